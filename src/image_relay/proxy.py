"""图片生成代理服务

凭证只保存在代理进程的环境变量中，每次请求时读取，从不返回给调用方。

    POST /generate-image  {"prompt": ..., "width": ..., "height": ...}
        200 {"imageUrl": ...}
        400 {"error": ...}  缺少 prompt 或参数不合法
        405 {"error": ...}  方法不允许
        500 {"error": ...}  未配置凭证或上游失败
"""

import logging
from typing import Any

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import ProviderConfig
from .errors import (
    ConfigurationError,
    ImageRelayError,
    InvalidInputError,
    NoImageDataError,
)
from .image.client import ImageClient
from .retry import SleepFunc

logger = logging.getLogger(__name__)


def _error(status_code: int, message: str, headers: dict[str, str] | None = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message}, headers=headers)


def _coerce_dimension(value: Any, name: str) -> int | None:
    """宽高允许整数或数字字符串，缺省返回 None"""
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise InvalidInputError(f"{name} must be a positive integer.")
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, str) and value.strip().isdecimal():
        value = int(value.strip())
    if not isinstance(value, int) or value <= 0:
        raise InvalidInputError(f"{name} must be a positive integer.")
    return value


def create_app(
    *,
    transport: httpx.AsyncBaseTransport | None = None,
    sleep: SleepFunc | None = None,
) -> FastAPI:
    """构造代理应用，transport / sleep 供测试注入"""
    app = FastAPI(title="image-relay proxy")

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return _error(exc.status_code, str(exc.detail), headers=exc.headers)

    @app.get("/healthz")
    async def healthz():
        return {"status": "ok"}

    @app.post("/generate-image")
    async def generate_image(request: Request):
        try:
            body = await request.json()
        except ValueError:
            body = None
        if not isinstance(body, dict):
            body = {}

        prompt = body.get("prompt")
        if not isinstance(prompt, str) or not prompt.strip():
            return _error(400, "Prompt is required.")

        try:
            config = ProviderConfig.from_env()
        except ConfigurationError as e:
            logger.error("代理配置错误: %s", e)
            return _error(500, e.message)
        if not config.has_credential:
            logger.error("%s 未配置 API key，拒绝请求", config.provider)
            return _error(500, f"API key for {config.provider} is not configured on the server.")

        try:
            width = _coerce_dimension(body.get("width"), "width")
            height = _coerce_dimension(body.get("height"), "height")
            async with ImageClient(config, transport=transport, sleep=sleep) as client:
                image = await client.generate(prompt, width=width, height=height)
        except InvalidInputError as e:
            return _error(400, e.message)
        except NoImageDataError:
            logger.error("%s 未返回图片", config.provider)
            return _error(500, f"{config.provider} did not return an image.")
        except ImageRelayError as e:
            logger.error("代理调用失败: %s", e)
            return _error(500, f"Internal server error: {e.message}")

        return {"imageUrl": image.url}

    return app


app = create_app()
