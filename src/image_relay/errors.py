"""图片生成错误类型

所有错误都携带可直接展示给用户的消息；`status_code` 是代理层映射 HTTP 状态时的参考值。
只有 `TransientError` 的子类会被重试。
"""


class ImageRelayError(RuntimeError):
    """图片生成错误基类"""

    status_code: int = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ConfigurationError(ImageRelayError):
    """缺少凭证或 endpoint，立即失败，不重试"""


class InvalidInputError(ImageRelayError):
    """输入不合法（如空 prompt），立即失败，不重试"""

    status_code = 400


class TransientError(ImageRelayError):
    """可重试的错误"""

    status_code = 502


class NetworkError(TransientError):
    """连接层失败：超时、连接重置、DNS 解析失败等"""


class HttpError(TransientError):
    """非 2xx 响应"""

    def __init__(self, status: int, message: str):
        self.status = status
        super().__init__(f"API Error: {status} - {message}")


class MalformedResponseError(ImageRelayError):
    """响应成功但 body 不是合法 JSON 或结构不符，不重试"""

    status_code = 502


class NoImageDataError(ImageRelayError):
    """响应结构正确但没有图片数据，不重试"""

    status_code = 502


class ImageOutputError(ImageRelayError):
    """图片无法解码、转码或写入本地文件"""
