"""
资源路径工具函数
处理PyInstaller打包后的资源文件路径
"""
import sys
import os


def resource_path(relative_path: str) -> str:
    """
    获取资源文件的绝对路径
    兼容开发环境和PyInstaller打包后的环境

    :param relative_path: 相对于包目录的路径（如 'data/skeleton.asf'）
    :return: 资源文件的绝对路径
    """
    if getattr(sys, 'frozen', False) and hasattr(sys, '_MEIPASS'):
        # PyInstaller打包后的环境，sys._MEIPASS是临时解压目录
        base_path = os.path.join(sys._MEIPASS, 'acclaim_ik')
    else:
        # 开发环境 / pip 安装：acclaim_ik 包目录
        base_path = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

    return os.path.join(base_path, relative_path)


def get_data_path(filename: str) -> str:
    """
    获取data目录下文件的路径

    :param filename: 文件名（如 'arm.asf'）
    :return: 文件的绝对路径
    """
    return resource_path(os.path.join('data', filename))


def resolve_path(path: str, base_dir: str) -> str:
    """
    相对路径以 base_dir 为基准解析；绝对路径原样返回
    """
    if os.path.isabs(path):
        return path
    return os.path.normpath(os.path.join(base_dir, path))
