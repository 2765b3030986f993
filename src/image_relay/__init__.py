"""image-relay - 文生图客户端与代理"""

from .config import ProviderConfig
from .errors import (
    ConfigurationError,
    HttpError,
    ImageRelayError,
    InvalidInputError,
    MalformedResponseError,
    NetworkError,
    NoImageDataError,
)
from .image import Failure, GenerationRequest, GenerationResult, ImageClient, ImageUrl, extract
from .retry import RequestClient, RequestPayload, RetryState

__all__ = [
    "ConfigurationError",
    "Failure",
    "GenerationRequest",
    "GenerationResult",
    "HttpError",
    "ImageClient",
    "ImageRelayError",
    "ImageUrl",
    "InvalidInputError",
    "MalformedResponseError",
    "NetworkError",
    "NoImageDataError",
    "ProviderConfig",
    "RequestClient",
    "RequestPayload",
    "RetryState",
    "extract",
]
