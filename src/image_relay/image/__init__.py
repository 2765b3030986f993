"""统一图片生成入口"""

from .base import (
    Failure,
    GenerationRequest,
    GenerationResult,
    ImageUrl,
    ResponseParser,
)
from .client import ImageClient, available_providers, extract, get_parser

__all__ = [
    "Failure",
    "GenerationRequest",
    "GenerationResult",
    "ImageClient",
    "ImageUrl",
    "ResponseParser",
    "available_providers",
    "extract",
    "get_parser",
]
