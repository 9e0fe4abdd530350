"""
求解层 (Solver Layer)
纯数学计算，负责正向运动学更新、雅可比矩阵构建、伪逆最小二乘求解及姿态更新
"""

from .forward import forward_kinematics, dof_rotation
from .ik_core import (
    build_ik_chain,
    compute_jacobian,
    compute_error_vector,
    pseudo_inverse_solve,
    apply_delta
)
from .ik_solver import solve_ik

__all__ = [
    'forward_kinematics',
    'dof_rotation',
    'build_ik_chain',
    'compute_jacobian',
    'compute_error_vector',
    'pseudo_inverse_solve',
    'apply_delta',
    'solve_ik'
]
