"""
异常类型
"""


class LoadError(Exception):
    """
    ASF / AMC 文件缺失或格式错误。
    抛出时不会返回任何半成品对象，调用方应放弃后续的运动学计算。
    """

    def __init__(self, message: str, path=None, line_no=None):
        self.path = path
        self.line_no = line_no
        location = ''
        if path is not None:
            location = f"{path}"
            if line_no is not None:
                location += f":{line_no}"
            location += ': '
        super().__init__(f"{location}{message}")


class SingularJacobianError(ArithmeticError):
    """雅可比矩阵退化（全零或解出非有限值），由IK循环捕获并视为未收敛"""
