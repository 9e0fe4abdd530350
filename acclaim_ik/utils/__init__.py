from .rotation_utils import rotate_degree_xyz, rotate_degree_zyx, rotation_from_z
from .resource_path import resource_path, get_data_path, resolve_path

__all__ = [
    'rotate_degree_xyz',
    'rotate_degree_zyx',
    'rotation_from_z',
    'resource_path',
    'get_data_path',
    'resolve_path'
]
