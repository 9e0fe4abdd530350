"""
旋转工具函数
ASF/AMC 中的角度均为角度制（degree），这里统一转换为 3x3 旋转矩阵
"""
import numpy as np
from typing import Union, Sequence
from scipy.spatial.transform import Rotation as R


def rotate_degree_xyz(angles: Union[np.ndarray, Sequence[float]]) -> np.ndarray:
    """
    按 Rx · Ry · Rz 的顺序构建旋转矩阵（内旋XYZ）

    :param angles: 欧拉角 [x, y, z]（度）
    :return: 3x3 旋转矩阵
    """
    angles = np.asarray(angles, dtype=np.float64)
    if angles.shape != (3,):
        raise ValueError(f"Euler angles must be a 3-element array, got shape {angles.shape}")

    # 内旋XYZ等价于外旋ZYX，矩阵乘法顺序：R = R_x @ R_y @ R_z
    return R.from_euler('XYZ', angles, degrees=True).as_matrix()


def rotate_degree_zyx(angles: Union[np.ndarray, Sequence[float]]) -> np.ndarray:
    """
    按 Rz · Ry · Rx 的顺序构建旋转矩阵（外旋xyz）
    rotate_degree_xyz(-a) 即为 rotate_degree_zyx(a) 的逆

    :param angles: 欧拉角 [x, y, z]（度）
    :return: 3x3 旋转矩阵
    """
    angles = np.asarray(angles, dtype=np.float64)
    if angles.shape != (3,):
        raise ValueError(f"Euler angles must be a 3-element array, got shape {angles.shape}")

    # 外旋xyz：先绕x，再绕y，最后绕z，矩阵乘法顺序：R = R_z @ R_y @ R_x
    return R.from_euler('xyz', angles, degrees=True).as_matrix()


def rotation_from_z(direction: Union[np.ndarray, Sequence[float]]) -> np.ndarray:
    """
    计算把 +Z 轴转到 direction 方向的最小旋转

    :param direction: 目标方向（不要求单位长度；零向量返回单位矩阵）
    :return: 3x3 旋转矩阵
    """
    direction = np.asarray(direction, dtype=np.float64)
    unit_z = np.array([0.0, 0.0, 1.0])

    rotation_axis = np.cross(unit_z, direction)
    dot_val = float(np.dot(unit_z, direction))
    cross_val = float(np.linalg.norm(rotation_axis))

    if cross_val < 1e-12:
        # 与Z轴共线：同向无需旋转，反向绕X轴转半圈
        if dot_val < 0.0:
            return R.from_rotvec([np.pi, 0.0, 0.0]).as_matrix()
        return np.identity(3, dtype=np.float64)

    theta = np.arctan2(cross_val, dot_val)
    return R.from_rotvec(rotation_axis / cross_val * theta).as_matrix()
