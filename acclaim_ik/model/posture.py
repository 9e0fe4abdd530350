"""
单帧姿态
"""
import numpy as np
from typing import Optional


class Posture:
    """
    一帧动作数据：root 平移 + 每根骨骼的欧拉角（度）
    与 Skeleton 按 index 对齐，bone_rotations[i] 作用于 bones[i]
    """

    def __init__(self, bone_num: int,
                 root_translation: Optional[np.ndarray] = None,
                 bone_rotations: Optional[np.ndarray] = None):
        """
        :param bone_num: 骨骼数量
        :param root_translation: root 平移（世界单位，已乘缩放系数）
        :param bone_rotations: (bone_num, 3) 欧拉角，只有开启自由度的分量有意义
        """
        if root_translation is None:
            root_translation = np.zeros(3)
        if bone_rotations is None:
            bone_rotations = np.zeros((bone_num, 3))

        self.root_translation = np.array(root_translation, dtype=np.float64)
        self.bone_rotations = np.array(bone_rotations, dtype=np.float64)

        if self.root_translation.shape != (3,):
            raise ValueError(f"root_translation must have shape (3,), got {self.root_translation.shape}")
        if self.bone_rotations.shape != (bone_num, 3):
            raise ValueError(f"bone_rotations must have shape ({bone_num}, 3), got {self.bone_rotations.shape}")

    @property
    def bone_num(self) -> int:
        return self.bone_rotations.shape[0]

    def copy(self) -> 'Posture':
        return Posture(self.bone_num, self.root_translation.copy(), self.bone_rotations.copy())

    def __repr__(self):
        return f"<{self.__class__.__name__}: {self.bone_num} bones>"
