"""项目内使用的自定义异常定义。"""


class ImageResizerError(Exception):
    """基础异常类型。"""


class InvalidConfigurationError(ImageResizerError):
    """配置不合法时抛出。"""


class DecodeError(ImageResizerError):
    """源文件不是可解码的图片。"""


class EncodeError(ImageResizerError):
    """JPEG 编码失败。"""


class TaskCanceled(ImageResizerError):
    """任务开始前观察到取消信号时抛出。"""
