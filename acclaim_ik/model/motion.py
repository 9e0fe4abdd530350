"""
动作序列：骨架 + 逐帧姿态
"""
import copy
import numpy as np
from typing import List, Optional, Union

from .skeleton import Skeleton
from .posture import Posture
from ..solver import forward_kinematics, solve_ik


class Motion:
    """
    持有一个 Skeleton 和按帧排列的 Posture 列表。

    postures 是加载得到的历史帧，IK 只修改 current_posture（当前帧的副本），
    reset() 用历史帧重新覆盖 current_posture。
    """

    def __init__(self, skeleton: Skeleton, postures: List[Posture]):
        if not postures:
            raise ValueError("Motion requires at least one posture")
        for posture in postures:
            if posture.bone_num != skeleton.get_bone_num():
                raise ValueError(
                    f"Posture has {posture.bone_num} bones, skeleton has {skeleton.get_bone_num()}"
                )
        self.skeleton = skeleton
        self.postures = postures
        self.current_frame = 0
        self.current_posture = postures[0].copy()

    def get_skeleton(self) -> Skeleton:
        return self.skeleton

    def get_frame_num(self) -> int:
        return len(self.postures)

    def _check_frame(self, frame_idx: int):
        if frame_idx < 0 or frame_idx >= len(self.postures):
            raise IndexError(f"Frame {frame_idx} out of range [0, {len(self.postures)})")

    def set_current_frame(self, frame_idx: int):
        """切换当前帧，丢弃对工作姿态的修改"""
        self._check_frame(frame_idx)
        self.current_frame = frame_idx
        self.current_posture = self.postures[frame_idx].copy()

    def forward_kinematics(self, frame_idx: Optional[int] = None):
        """
        正向运动学

        :param frame_idx: 回放历史帧的编号；None 表示使用当前的工作姿态
        """
        if frame_idx is None:
            forward_kinematics(self.skeleton, self.current_posture)
            return
        self._check_frame(frame_idx)
        forward_kinematics(self.skeleton, self.postures[frame_idx])

    def inverse_kinematics(self, target: np.ndarray, start_bone: Union[int, str],
                           end_bone: Union[int, str], **solver_params) -> bool:
        """
        在工作姿态上做IK，返回是否稳定（收敛）

        :param target: 目标位置（3维或齐次4维）
        :param start_bone: 允许转动的最外层骨骼
        :param end_bone: 需要触碰目标的骨骼
        :param solver_params: 透传给 solve_ik 的参数（max_iterations / epsilon / step ...）
        """
        return solve_ik(
            skeleton=self.skeleton,
            posture=self.current_posture,
            target_pos=target,
            start_bone=start_bone,
            end_bone=end_bone,
            **solver_params
        )

    def reset(self):
        """恢复当前帧的原始姿态"""
        self.current_posture = self.postures[self.current_frame].copy()
        forward_kinematics(self.skeleton, self.current_posture)

    def copy(self) -> 'Motion':
        """完全独立的深拷贝（用于"恢复备份"）"""
        return copy.deepcopy(self)

    def __repr__(self):
        return f"<{self.__class__.__name__}: {len(self.postures)} frames, {self.skeleton!r}>"
