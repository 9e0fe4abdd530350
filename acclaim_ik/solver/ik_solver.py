"""
IK求解器实现
使用雅可比伪逆的阻尼高斯-牛顿迭代
"""
import logging
import numpy as np
from typing import Union, TYPE_CHECKING

from ..errors import SingularJacobianError
from .forward import forward_kinematics
from .ik_core import (
    build_ik_chain,
    compute_jacobian,
    compute_error_vector,
    pseudo_inverse_solve,
    apply_delta
)

if TYPE_CHECKING:
    from ..model import Skeleton, Posture

log = logging.getLogger(__name__)


def solve_ik(
    skeleton: 'Skeleton',
    posture: 'Posture',
    target_pos: np.ndarray,
    start_bone: Union[int, str],
    end_bone: Union[int, str],
    max_iterations: int = 1000,
    epsilon: float = 1e-3,
    step: float = 0.1,
    singularity_kick: float = 5.0,
    stall_ratio: float = 1e-6
) -> bool:
    """
    使用雅可比伪逆求解IK，直接修改 posture

    :param skeleton: 骨架
    :param posture: 被修改的姿态（调用方应传入副本）
    :param target_pos: 目标位置，3维或齐次4维（第4个分量忽略）
    :param start_bone: 允许转动的最外层骨骼
    :param end_bone: 需要触碰目标的骨骼
    :param max_iterations: 最大迭代次数，默认值1000
    :param epsilon: 位置收敛容差（世界单位），默认值1e-3
    :param step: 每次迭代对伪逆解的缩放系数，默认值0.1
    :param singularity_kick: 链条处于奇异构型、最小二乘步长无法推进时，施加给每根骨骼的扰动角（度）
    :param stall_ratio: |J·Δθ| 小于 stall_ratio·|误差| 时认为处于奇异构型
    :return: True表示收敛（stable），False表示未收敛；未收敛时不回滚已写入的姿态
    """
    target_pos = np.asarray(target_pos, dtype=np.float64)[:3]
    ik_chain = build_ik_chain(skeleton, start_bone, end_bone)
    end = skeleton.bone(end_bone)

    for iteration in range(max_iterations):
        # FK更新：刷新全树
        forward_kinematics(skeleton, posture)

        # 计算误差 ΔX
        delta_x = compute_error_vector(end.end_position, target_pos)
        error_norm = np.linalg.norm(delta_x)

        # 收敛检查
        if error_norm < epsilon:
            log.debug("IK converged after %d iterations (error %.3e)", iteration, error_norm)
            return True

        # 构建雅可比矩阵 J (3 x 3N)
        J = compute_jacobian(skeleton, ik_chain, target_pos)

        # 求解 Δθ
        try:
            delta_theta = pseudo_inverse_solve(J, delta_x)
        except SingularJacobianError as e:
            log.warning("IK aborted at iteration %d: %s", iteration, e)
            return False

        # 误差方向不在 J 的列空间内（例如链条完全伸直并与误差共线），伪逆解为零，
        # 施加一个固定扰动让链条离开奇异构型
        if np.linalg.norm(J @ delta_theta) < stall_ratio * error_norm:
            log.debug("IK stalled in a singular configuration at iteration %d", iteration)
            _kick_chain(skeleton, posture, ik_chain, singularity_kick)
            continue

        apply_delta(skeleton, posture, ik_chain, step * delta_theta)

    # 超过最大迭代次数，停止迭代
    log.debug("IK did not converge within %d iterations", max_iterations)
    return False


def _kick_chain(skeleton: 'Skeleton', posture: 'Posture', ik_chain, kick_degree: float):
    """链上每根骨骼在第一个开启的旋转自由度上增加 kick_degree"""
    for bone_idx in ik_chain:
        bone = skeleton.bones[bone_idx]
        for axis, enabled in enumerate(bone.rotation_dofs):
            if enabled:
                posture.bone_rotations[bone_idx, axis] += kick_degree
                break
