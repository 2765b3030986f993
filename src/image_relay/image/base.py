"""图片生成抽象接口"""

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

import httpx

from ..config import ProviderConfig
from ..datauri import is_data_uri
from ..errors import InvalidInputError, MalformedResponseError
from ..retry import RequestPayload

NO_IMAGE_DATA = "no image data received"


@dataclass(frozen=True)
class GenerationRequest:
    """一次文生图请求，创建后不可变"""

    prompt: str
    width: int | None = None
    height: int | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.prompt, str) or not self.prompt.strip():
            raise InvalidInputError("Prompt is required.")
        for name in ("width", "height"):
            value = getattr(self, name)
            if value is None:
                continue
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise InvalidInputError(f"{name} 必须是正整数: {value!r}")


@dataclass(frozen=True)
class ImageUrl:
    """可直接展示的图片引用：托管 URL 或 data URI"""

    url: str
    provider: str = field(default="", compare=False)

    ok = True

    @property
    def is_data_uri(self) -> bool:
        return is_data_uri(self.url)


@dataclass(frozen=True)
class Failure:
    """响应结构正确但没有可用的图片"""

    reason: str
    provider: str = field(default="", compare=False)

    ok = False


GenerationResult = ImageUrl | Failure


class ResponseParser(ABC):
    """单个 provider 形状：负责构造请求体并从响应中提取图片"""

    default_endpoint: str = ""
    default_model: str = ""

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider 名称"""

    def endpoint(self, config: ProviderConfig) -> str:
        """解析最终请求的 URL"""
        if config.endpoint:
            return config.endpoint
        return self.default_endpoint.format(model=config.model or self.default_model)

    @abstractmethod
    def build_payload(
        self, request: GenerationRequest, config: ProviderConfig
    ) -> RequestPayload:
        """构造 provider 相关的请求体"""

    @abstractmethod
    def extract(self, raw_response: Any) -> GenerationResult:
        """从响应中提取图片引用"""

    @staticmethod
    def _load_json(raw_response: Any) -> Any:
        """把 httpx.Response / str / bytes 解析为 JSON，已解析的对象原样返回"""
        if isinstance(raw_response, httpx.Response):
            raw_response = raw_response.content
        if isinstance(raw_response, (str, bytes, bytearray)):
            try:
                return json.loads(raw_response)
            except ValueError as e:
                raise MalformedResponseError(f"响应不是合法 JSON: {e}") from e
        return raw_response

    def _expect(self, value: Any, kind: type, where: str) -> Any:
        if not isinstance(value, kind):
            raise MalformedResponseError(
                f"{self.name} 响应结构不符: {where} 应为 {kind.__name__}"
            )
        return value

    def _failure(self) -> Failure:
        return Failure(NO_IMAGE_DATA, provider=self.name)


def nearest_aspect_ratio(
    width: int | None,
    height: int | None,
    supported: list[tuple[int, int]],
) -> str | None:
    """将 WxH 转为 provider 支持的最接近的 aspect_ratio 字符串，尺寸不全时返回 None"""
    if not width or not height:
        return None
    target = width / height
    best = min(supported, key=lambda r: abs(r[0] / r[1] - target))
    return f"{best[0]}:{best[1]}"
