"""
Acclaim 骨骼动画的正向/逆向运动学

- model: 骨骼层级与动作数据
- solver: 正向运动学、雅可比矩阵与伪逆IK
- data_io: ASF / AMC / 目标轨迹读取
"""

from .errors import LoadError, SingularJacobianError
from .model import Bone, Skeleton, Posture, Motion
from .solver import forward_kinematics, solve_ik
from .data_io import load_skeleton, load_motion, load_targets, interpolate_targets

__version__ = '0.1.0'

__all__ = [
    'LoadError',
    'SingularJacobianError',
    'Bone',
    'Skeleton',
    'Posture',
    'Motion',
    'forward_kinematics',
    'solve_ik',
    'load_skeleton',
    'load_motion',
    'load_targets',
    'interpolate_targets'
]
