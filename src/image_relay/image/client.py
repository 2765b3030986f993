"""统一图片生成客户端

根据配置路由到对应 provider 形状：构造请求体 → 带重试的请求 → 解析响应。
"""

import logging
from typing import Any

import httpx

from ..config import ProviderConfig
from ..errors import ConfigurationError, NoImageDataError
from ..retry import RequestClient, SleepFunc
from .base import Failure, GenerationRequest, GenerationResult, ImageUrl, ResponseParser

logger = logging.getLogger(__name__)

# 已注册的 provider 解析器
_PARSER_FACTORIES: dict[str, type[ResponseParser]] = {}


def _ensure_registered() -> None:
    """延迟注册，避免循环导入"""
    if _PARSER_FACTORIES:
        return
    from .providers.deepai import DeepAIParser
    from .providers.gemini import GeminiParser
    from .providers.imagen import ImagenParser

    _PARSER_FACTORIES["deepai"] = DeepAIParser
    _PARSER_FACTORIES["imagen"] = ImagenParser
    _PARSER_FACTORIES["gemini"] = GeminiParser


def available_providers() -> list[str]:
    _ensure_registered()
    return list(_PARSER_FACTORIES)


def get_parser(provider: str) -> ResponseParser:
    """按名称取 provider 解析器"""
    _ensure_registered()
    factory = _PARSER_FACTORIES.get(provider)
    if not factory:
        raise ConfigurationError(
            f"未知 provider: {provider}，可选: {list(_PARSER_FACTORIES.keys())}"
        )
    return factory()


def extract(raw_response: Any, provider_shape: str) -> GenerationResult:
    """按 provider 形状解析响应"""
    return get_parser(provider_shape).extract(raw_response)


class ImageClient:
    """统一图片生成客户端

    用法:
        async with ImageClient(ProviderConfig.from_env("gemini")) as client:
            image = await client.generate("一只猫", width=1024, height=768)
            print(image.url)  # data URI 或托管 URL
    """

    def __init__(
        self,
        config: ProviderConfig | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: SleepFunc | None = None,
        **overrides: Any,
    ):
        config = config or ProviderConfig()
        self.config = config.with_overrides(**overrides)
        self._parser = get_parser(self.config.provider)
        self._requests = RequestClient(
            timeout=self.config.timeout, transport=transport, sleep=sleep
        )

    async def __aenter__(self) -> "ImageClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    @property
    def provider_name(self) -> str:
        return self._parser.name

    async def generate_result(
        self,
        prompt: str,
        width: int | None = None,
        height: int | None = None,
    ) -> GenerationResult:
        """文生图，返回 ImageUrl 或 Failure

        Raises:
            InvalidInputError: prompt 为空或尺寸不合法，不发起请求
            ConfigurationError: 未配置凭证或 endpoint，不发起请求
            NetworkError / HttpError: 重试耗尽
            MalformedResponseError: 响应无法解析
        """
        request = GenerationRequest(prompt, width=width, height=height)
        if not self.config.has_credential:
            raise ConfigurationError(f"{self.provider_name} 未配置 API key")

        payload = self._parser.build_payload(request, self.config)
        logger.info(
            "%s 文生图: width=%s, height=%s",
            self.provider_name,
            request.width,
            request.height,
        )
        response = await self._requests.call(
            self._parser.endpoint(self.config),
            payload,
            max_retries=self.config.max_retries,
            initial_delay=self.config.initial_delay,
        )
        return self._parser.extract(response)

    async def generate(
        self,
        prompt: str,
        width: int | None = None,
        height: int | None = None,
    ) -> ImageUrl:
        """文生图，没有图片数据时抛出 NoImageDataError"""
        result = await self.generate_result(prompt, width=width, height=height)
        if isinstance(result, Failure):
            raise NoImageDataError(result.reason)
        return result

    async def aclose(self) -> None:
        await self._requests.aclose()
