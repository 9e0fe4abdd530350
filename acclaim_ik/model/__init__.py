"""
模型层 (Model Layer)
骨骼层级与动作数据，负责维护骨骼的父子关系以及逐帧姿态

导出：
- Bone: 骨骼节点，按 index 存放，父子关系以 index 表示
- Skeleton: 骨架，持有全部骨骼与缩放系数
- Posture: 单帧姿态（root 平移 + 每根骨骼的欧拉角）
- Motion: 骨架 + 姿态序列，提供正向/逆向运动学入口
"""

from .bone import Bone, DOF_TOKENS
from .skeleton import Skeleton
from .posture import Posture
from .motion import Motion

__all__ = [
    'Bone',
    'DOF_TOKENS',
    'Skeleton',
    'Posture',
    'Motion'
]
