"""
IK核心算法实现
IK链构建、雅可比矩阵、伪逆最小二乘求解以及姿态增量的写回
"""
import numpy as np
from typing import List, Union, TYPE_CHECKING

from ..errors import SingularJacobianError

if TYPE_CHECKING:
    from ..model import Skeleton, Posture


def build_ik_chain(skeleton: 'Skeleton', start_bone: Union[int, str], end_bone: Union[int, str]) -> List[int]:
    """
    构建IK Chain：从末端骨骼(end_bone)沿父节点向上直到起始骨骼(start_bone)，两端都包含。
    注意：start_bone 不一定是 root，而是允许转动的最外层关节，可以用来定义短链。

    :param skeleton: 骨架
    :param start_bone: 允许转动的最外层骨骼（index 或名称）
    :param end_bone: 需要触碰目标的骨骼（index 或名称）
    :return: 骨骼 index 列表，顺序为 end -> start
    """
    start_idx = skeleton.bone_index(start_bone)
    end_idx = skeleton.bone_index(end_bone)

    # 从end开始，不断向上遍历parent，直到找到start
    chain: List[int] = []
    current = end_idx
    while current is not None:
        chain.append(current)
        if current == start_idx:
            break
        current = skeleton.bones[current].parent

    # 检查是否找到了start
    if chain[-1] != start_idx:
        raise ValueError(
            f"Cannot find path from {skeleton.bones[start_idx].name} to {skeleton.bones[end_idx].name}: "
            f"end bone must be a descendant of start bone"
        )

    return chain


def compute_error_vector(current_pos: np.ndarray, target_pos: np.ndarray) -> np.ndarray:
    """
    位置误差 target - current（3x1）
    """
    return np.asarray(target_pos, dtype=np.float64)[:3] - np.asarray(current_pos, dtype=np.float64)[:3]


def compute_jacobian(skeleton: 'Skeleton', ik_chain: List[int], target_pos: np.ndarray) -> np.ndarray:
    """
    构建雅可比矩阵 J (3 x 3N)，每根骨骼固定占3列（x/y/z 旋转）。
    未开启的自由度对应列保持为零。

    列向量: J_k = a_k cross (p_target - p_start)
    a_k 为骨骼世界旋转作用在第k个单位轴上的结果，p_start 为骨骼起点；所有变量均在世界坐标系下

    :param skeleton: 骨架（需已完成正向运动学）
    :param ik_chain: build_ik_chain 的结果（end -> start）
    :param target_pos: 目标位置
    :return: 3x3N 雅可比矩阵
    """
    target_pos = np.asarray(target_pos, dtype=np.float64)[:3]
    jacobian = np.zeros((3, 3 * len(ik_chain)), dtype=np.float64)

    for i, bone_idx in enumerate(ik_chain):
        bone = skeleton.bones[bone_idx]
        vector_to_target = target_pos - bone.start_position

        for axis, enabled in enumerate(bone.rotation_dofs):
            if not enabled:
                continue
            # rotation 的列向量即局部坐标轴在世界坐标系中的方向
            world_axis = bone.rotation[:, axis]
            axis_norm = np.linalg.norm(world_axis)
            if axis_norm > 1e-12:
                world_axis = world_axis / axis_norm
            jacobian[:, 3 * i + axis] = np.cross(world_axis, vector_to_target)

    return jacobian


def pseudo_inverse_solve(jacobian: np.ndarray, error: np.ndarray, rcond: float = 1e-10) -> np.ndarray:
    """
    求解 min |J x - error|，取 Moore-Penrose 伪逆给出的最小范数解。
    只使用前3行（空间分量），齐次坐标的第4行即使存在也不参与求解。

    :param jacobian: 3xM 或 4xM 雅可比矩阵
    :param error: 3或4维误差向量
    :param rcond: 奇异值截断的相对阈值
    :return: M 维关节角增量（弧度）
    """
    spatial_jacobian = np.asarray(jacobian, dtype=np.float64)[:3]
    spatial_error = np.asarray(error, dtype=np.float64)[:3]

    if not np.any(spatial_jacobian):
        raise SingularJacobianError("Jacobian is all zeros: no rotational DoF enabled in the chain")

    try:
        solution = np.linalg.pinv(spatial_jacobian, rcond=rcond) @ spatial_error
    except np.linalg.LinAlgError as e:
        # SVD 不收敛，通常意味着矩阵中出现了非有限值
        raise SingularJacobianError(f"Pseudo-inverse failed: {e}") from e

    if not np.all(np.isfinite(solution)):
        raise SingularJacobianError("Pseudo-inverse produced non-finite values")

    return solution


def apply_delta(skeleton: 'Skeleton', posture: 'Posture', ik_chain: List[int], delta_theta: np.ndarray):
    """
    把弧度增量换算成角度写回姿态；只写开启的自由度

    :param delta_theta: 3N 维增量，排列与 compute_jacobian 的列一致
    """
    delta_degree = np.rad2deg(delta_theta)
    for i, bone_idx in enumerate(ik_chain):
        bone = skeleton.bones[bone_idx]
        for axis, enabled in enumerate(bone.rotation_dofs):
            if enabled:
                posture.bone_rotations[bone_idx, axis] += delta_degree[3 * i + axis]
