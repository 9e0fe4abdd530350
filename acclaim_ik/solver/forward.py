"""
正向运动学
根据姿态从 root 到叶子逐层计算每根骨骼的世界旋转与起止点
"""
import numpy as np
from typing import TYPE_CHECKING

from ..utils import rotate_degree_zyx

if TYPE_CHECKING:
    from ..model import Skeleton, Posture, Bone


def dof_rotation(bone: 'Bone', posture: 'Posture') -> np.ndarray:
    """
    该骨骼在本帧的关节旋转 Rzyx(angles)，未开启的自由度分量被忽略

    :return: 3x3 旋转矩阵
    """
    mask = np.array(bone.rotation_dofs, dtype=np.float64)
    return rotate_degree_zyx(posture.bone_rotations[bone.idx] * mask)


def forward_kinematics(skeleton: 'Skeleton', posture: 'Posture'):
    """
    刷新全树的 rotation / start_position / end_position。
    只写这三个瞬态字段，不改动任何结构字段。

    :param skeleton: 骨架
    :param posture: 姿态（与骨架按 index 对齐）
    """
    if posture.bone_num != skeleton.get_bone_num():
        raise ValueError(f"Posture has {posture.bone_num} bones, skeleton has {skeleton.get_bone_num()}")

    root = skeleton.root
    root.rotation = root.rot_parent_current @ dof_rotation(root, posture)
    root.start_position = posture.root_translation * np.array(root.translation_dofs, dtype=np.float64)
    root.end_position = root.start_position + root.rotation @ root.dir * root.length

    # 父节点先于子节点，兄弟节点按列表顺序
    for bone in skeleton.traverse():
        if bone.parent is None:
            continue
        parent = skeleton.bones[bone.parent]
        bone.rotation = parent.rotation @ bone.rot_parent_current @ dof_rotation(bone, posture)
        bone.start_position = parent.end_position.copy()
        bone.end_position = bone.start_position + bone.rotation @ bone.dir * bone.length
