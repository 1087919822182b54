"""
自定义异常类
"""

class BasePostureError(Exception):
    """姿态监测系统基础异常"""
    pass

class InputError(BasePostureError):
    """输入数据格式异常"""
    pass

class SessionError(BasePostureError):
    """会话相关异常"""
    pass

class DuplicateSessionError(SessionError):
    """会话ID重复"""
    pass

class ConfigurationError(BasePostureError):
    """配置异常"""
    pass
