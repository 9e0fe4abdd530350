"""
骨架：持有全部骨骼（按 index 连续存放）以及缩放系数
"""
import copy
import numpy as np
from typing import List, Optional, Union, Iterator

from .bone import Bone
from ..utils import rotate_degree_xyz, rotate_degree_zyx, rotation_from_z


class Skeleton:
    """
    骨骼层级。bones[0] 永远是 root。

    父子关系全部以 index 表示，因此深拷贝后的关系天然指向拷贝内部。
    """

    ROOT_IDX = 0

    def __init__(self, scale: float = 0.2):
        self.scale = float(scale)
        # root 也算一个可动骨骼
        self.movable_bones = 1
        self.bones: List[Bone] = [self._make_root()]

    @staticmethod
    def _make_root() -> Bone:
        root = Bone(Skeleton.ROOT_IDX, 'root')
        # root 的平移在前，旋转在后（AMC 的默认顺序）
        for token in ('tx', 'ty', 'tz', 'rx', 'ry', 'rz'):
            root.set_dof(token)
        return root

    @property
    def root(self) -> Bone:
        return self.bones[self.ROOT_IDX]

    def get_scale(self) -> float:
        return self.scale

    def get_bone_num(self) -> int:
        return len(self.bones)

    def get_movable_bone_num(self) -> int:
        return self.movable_bones

    def bone(self, key: Union[int, str]) -> Bone:
        """
        按 index 或名称查找骨骼

        :param key: 骨骼 index（int）或名称（str）
        :return: 骨骼对象（引用）
        """
        if isinstance(key, str):
            for bone in self.bones:
                if bone.name == key:
                    return bone
            raise KeyError(f"Bone '{key}' not found")
        if isinstance(key, (bool, np.bool_)) or not isinstance(key, (int, np.integer)):
            raise TypeError(f"Bone key must be int or str, got {type(key).__name__}")
        if key < 0 or key >= len(self.bones):
            raise IndexError(f"Bone index {key} out of range [0, {len(self.bones)})")
        return self.bones[key]

    def bone_index(self, key: Union[int, str]) -> int:
        return self.bone(key).idx

    def find_bone(self, name: str) -> Optional[Bone]:
        """找不到时返回 None"""
        for bone in self.bones:
            if bone.name == name:
                return bone
        return None

    def add_bone(self, bone: Bone):
        """按 bone.idx 放入骨骼列表；idx 必须等于当前长度"""
        if bone.idx != len(self.bones):
            raise ValueError(f"Bone '{bone.name}' has index {bone.idx}, expected {len(self.bones)}")
        self.bones.append(bone)

    def link(self, parent_idx: int, child_idx: int):
        """
        建立父子关系：child 追加到 parent 的有序子节点列表末尾

        :param parent_idx: 父骨骼 index
        :param child_idx: 子骨骼 index
        """
        parent = self.bones[parent_idx]
        child = self.bones[child_idx]
        if child.parent is not None:
            raise ValueError(f"Bone '{child.name}' already has parent '{self.bones[child.parent].name}'")
        if child_idx == self.ROOT_IDX:
            raise ValueError("root cannot be a child")
        child.parent = parent_idx
        parent.children.append(child_idx)

    def sibling(self, idx: int) -> Optional[int]:
        """同一父节点下的下一个兄弟节点"""
        parent = self.bones[idx].parent
        if parent is None:
            return None
        siblings = self.bones[parent].children
        pos = siblings.index(idx)
        return siblings[pos + 1] if pos + 1 < len(siblings) else None

    def traverse(self, start: int = ROOT_IDX) -> Iterator[Bone]:
        """深度优先遍历：父节点先于子节点，兄弟节点按列表顺序"""
        stack = [start]
        while stack:
            idx = stack.pop()
            bone = self.bones[idx]
            yield bone
            stack.extend(reversed(bone.children))

    def compute_local_direction(self):
        """把 ASF 中全局坐标系下的 dir 转换到骨骼的局部坐标系"""
        for bone in self.bones[1:]:
            bone.dir = rotate_degree_xyz(-bone.axis) @ bone.dir

    def compute_local_rotation(self):
        """
        计算每根骨骼从自身局部坐标系到父坐标系的旋转 rot_parent_current
        root: Rzyx(axis_root)
        其他: Rxyz(-axis_parent) · Rzyx(axis_bone)
        """
        self.root.rot_parent_current = rotate_degree_zyx(self.root.axis)
        for bone in self.bones:
            parent_inverse = rotate_degree_xyz(-bone.axis)
            for child_idx in bone.children:
                child = self.bones[child_idx]
                child.rot_parent_current = parent_inverse @ rotate_degree_zyx(child.axis)

    def compute_global_facing(self):
        """渲染用：单位圆柱沿+Z，旋转到骨骼方向并在Z方向缩放为骨骼长度"""
        for bone in self.bones:
            facing = np.identity(4, dtype=np.float64)
            facing[:3, :3] = rotation_from_z(bone.dir) @ np.diag([1.0, 1.0, bone.length])
            bone.global_facing = facing

    def model_matrices(self) -> List[np.ndarray]:
        """
        渲染用的模型矩阵：平移到骨骼中点，再乘以世界旋转与 global_facing
        需要在正向运动学之后调用
        """
        matrices = []
        for bone in self.bones:
            model = np.identity(4, dtype=np.float64)
            model[:3, :3] = bone.rotation
            model[:3, 3] = 0.5 * (bone.start_position + bone.end_position)
            matrices.append(model @ bone.global_facing)
        return matrices

    def copy(self) -> 'Skeleton':
        """完全独立的深拷贝"""
        return copy.deepcopy(self)

    def __len__(self):
        return len(self.bones)

    def __repr__(self):
        return f"<{self.__class__.__name__}: {len(self.bones)} bones, scale={self.scale}>"
