"""
骨骼节点
所有骨骼按 index 存放在 Skeleton 的连续列表中，父子关系只记录 index
"""
import numpy as np
from typing import Optional, List, Tuple

# ASF 中合法的自由度标记，顺序即 dof 标志位的顺序
DOF_TOKENS = ('rx', 'ry', 'rz', 'tx', 'ty', 'tz')


class Bone:
    """
    骨骼树中的一个刚性段。

    结构字段（parent / children / dir / length / axis）在加载后不再修改；
    rotation / start_position / end_position 每次正向运动学都会重算。
    """

    def __init__(self, idx: int, name: str,
                 direction: Optional[np.ndarray] = None,
                 length: float = 0.0,
                 axis: Optional[np.ndarray] = None):
        """
        :param idx: 骨骼编号，同时是在 Skeleton.bones 中的位置
        :param name: 骨骼名称
        :param direction: 静止姿态下的方向（单位向量；加载时为全局坐标，之后转换为局部坐标）
        :param length: 骨骼长度（已乘缩放系数）
        :param axis: 局部坐标系相对父坐标系的欧拉角（度）
        """
        self.idx = idx
        self.name = name
        self.dir: np.ndarray = np.zeros(3) if direction is None else np.asarray(direction, dtype=np.float64)
        self.length: float = float(length)
        self.axis: np.ndarray = np.zeros(3) if axis is None else np.asarray(axis, dtype=np.float64)

        # 自由度
        self.dofrx = False
        self.dofry = False
        self.dofrz = False
        self.doftx = False
        self.dofty = False
        self.doftz = False
        self.dof = 0
        # dof 行中标记出现的顺序，AMC 的数值按此顺序排列
        self.dof_order: List[str] = []
        # 仅作记录，不做约束
        self.limits: List[Tuple[float, float]] = []

        # 层级关系（index），None 表示无父节点
        self.parent: Optional[int] = None
        self.children: List[int] = []

        # 预计算：局部坐标系 -> 父坐标系 的旋转
        self.rot_parent_current: np.ndarray = np.identity(3, dtype=np.float64)
        # 仅用于渲染：把单位圆柱(+Z, 长度1)对齐到骨骼方向
        self.global_facing: np.ndarray = np.identity(4, dtype=np.float64)

        # 正向运动学的瞬态结果（世界坐标系）
        self.rotation: np.ndarray = np.identity(3, dtype=np.float64)
        self.start_position: np.ndarray = np.zeros(3)
        self.end_position: np.ndarray = np.zeros(3)

    def set_dof(self, token: str) -> bool:
        """
        打开一个自由度

        :param token: rx / ry / rz / tx / ty / tz
        :return: False 表示标记无法识别
        """
        if token not in DOF_TOKENS:
            return False
        if not getattr(self, f"dof{token}"):
            setattr(self, f"dof{token}", True)
            self.dof += 1
        self.dof_order.append(token)
        return True

    @property
    def rotation_dofs(self) -> Tuple[bool, bool, bool]:
        return self.dofrx, self.dofry, self.dofrz

    @property
    def translation_dofs(self) -> Tuple[bool, bool, bool]:
        return self.doftx, self.dofty, self.doftz

    @property
    def child(self) -> Optional[int]:
        """第一个子节点"""
        return self.children[0] if self.children else None

    def __repr__(self):
        return f"<{self.__class__.__name__}: {self.idx} {self.name}>"
