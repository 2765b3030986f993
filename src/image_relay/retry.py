"""带指数退避的图片生成请求客户端

第一次成功的响应原样返回，不再重试；body 是否可用由下游解析器判断。
非 2xx 响应和连接层错误会重试，每次重试前等待的时间翻倍。
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

import httpx

from .errors import ConfigurationError, HttpError, NetworkError, TransientError

logger = logging.getLogger(__name__)

SleepFunc = Callable[[float], Awaitable[Any]]


@dataclass
class RequestPayload:
    """provider 相关的请求体，json 与 files 二选一"""

    json: dict[str, Any] | None = None
    files: dict[str, Any] | None = None
    headers: dict[str, str] = field(default_factory=dict)
    params: dict[str, str] = field(default_factory=dict)


@dataclass
class RetryState:
    """单次 call 的重试状态"""

    attempts_remaining: int
    current_delay: float

    @property
    def exhausted(self) -> bool:
        return self.attempts_remaining <= 0

    def advance(self) -> None:
        self.attempts_remaining -= 1
        self.current_delay *= 2


def _error_message(resp: httpx.Response) -> str:
    """从错误响应中提取可读信息"""
    try:
        body = resp.json()
    except ValueError:
        body = None

    if isinstance(body, dict):
        error = body.get("error")
        # Google: {"error": {"message": ...}}
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str) and error:
            return error
        # DeepAI: {"err": ...}
        if body.get("err"):
            return str(body["err"])

    return resp.reason_phrase or resp.text[:200] or "Unknown error"


def _check_endpoint(endpoint: str) -> None:
    if not endpoint:
        raise ConfigurationError("未配置图片生成 endpoint")
    try:
        url = httpx.URL(endpoint)
    except httpx.InvalidURL as e:
        raise ConfigurationError(f"endpoint 不是合法 URL: {endpoint}") from e
    if url.scheme not in ("http", "https") or not url.host:
        raise ConfigurationError(f"endpoint 不是合法 URL: {endpoint}")


class RequestClient:
    """对图片生成 endpoint 发起 POST，失败时按指数退避重试

    用法:
        async with RequestClient(timeout=60) as client:
            resp = await client.call(url, RequestPayload(json={...}))

    等待通过可注入的 `sleep`（默认 asyncio.sleep）完成，不阻塞事件循环；
    取消调用方 task 会中断当前请求或等待。
    """

    def __init__(
        self,
        *,
        timeout: float = 120.0,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: SleepFunc | None = None,
    ):
        self.client = httpx.AsyncClient(timeout=httpx.Timeout(timeout), transport=transport)
        self._sleep = sleep or asyncio.sleep

    async def __aenter__(self) -> "RequestClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def _attempt(self, endpoint: str, payload: RequestPayload) -> httpx.Response:
        try:
            resp = await self.client.post(
                endpoint,
                json=payload.json,
                files=payload.files,
                headers=payload.headers,
                params=payload.params or None,
            )
        except httpx.TransportError as e:
            raise NetworkError(f"网络错误: {str(e) or type(e).__name__}") from e

        if not resp.is_success:
            logger.error("图片生成请求失败: %s %s", resp.status_code, resp.text[:500])
            raise HttpError(resp.status_code, _error_message(resp))
        return resp

    async def call(
        self,
        endpoint: str,
        payload: RequestPayload,
        *,
        max_retries: int = 3,
        initial_delay: float = 1.0,
    ) -> httpx.Response:
        """发起请求，最多尝试 max_retries + 1 次

        Args:
            endpoint: 图片生成服务 URL
            payload: provider 相关的请求体
            max_retries: 首次请求失败后的最大重试次数
            initial_delay: 第一次重试前等待的秒数，之后每次翻倍

        Raises:
            ConfigurationError: endpoint 缺失或不合法，不发起请求
            NetworkError / HttpError: 重试耗尽后的最后一次错误
        """
        _check_endpoint(endpoint)
        if max_retries < 0:
            raise ValueError("max_retries 不能为负数")

        state = RetryState(attempts_remaining=max_retries, current_delay=initial_delay)
        while True:
            try:
                return await self._attempt(endpoint, payload)
            except TransientError as e:
                if state.exhausted:
                    raise
                logger.warning(
                    "%s，%.2f 秒后重试（剩余 %d 次）",
                    e,
                    state.current_delay,
                    state.attempts_remaining,
                )
                await self._sleep(state.current_delay)
                state.advance()

    async def aclose(self) -> None:
        await self.client.aclose()
