"""data URI 构造与解析"""

import base64
import binascii

_PREFIX = "data:"
_MARKER = ";base64,"


def build_data_uri(b64: str, mime_type: str = "image/png") -> str:
    """把 base64 图片数据包装成 data URI，数据原样保留"""
    return f"{_PREFIX}{mime_type}{_MARKER}{b64}"


def parse_data_uri(uri: str) -> tuple[str, bytes]:
    """解析 base64 data URI，返回 (mime_type, 原始字节)"""
    if not uri.startswith(_PREFIX) or _MARKER not in uri:
        raise ValueError("不是 base64 data URI")
    mime_type, _, payload = uri[len(_PREFIX):].partition(_MARKER)
    try:
        data = base64.b64decode(payload, validate=True)
    except binascii.Error as e:
        raise ValueError(f"data URI 中的 base64 数据无效: {e}") from e
    return mime_type or "text/plain", data


def is_data_uri(uri: str) -> bool:
    return uri.startswith(_PREFIX)
