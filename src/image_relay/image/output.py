"""把图片引用落地为本地文件

data URI 直接解码，托管 URL 用 httpx 下载；按目标文件后缀用 Pillow 转码。
"""

import io
import logging
from pathlib import Path

import httpx
from PIL import Image

from ..datauri import parse_data_uri
from ..errors import HttpError, ImageOutputError, NetworkError
from .base import ImageUrl

logger = logging.getLogger(__name__)

# 后缀 → Pillow 格式
_FORMATS = {
    ".png": "PNG",
    ".jpg": "JPEG",
    ".jpeg": "JPEG",
    ".webp": "WEBP",
}


def convert_image(data: bytes, fmt: str, *, max_width: int | None = None) -> bytes:
    """将图片转为指定格式，可选 resize"""
    try:
        img = Image.open(io.BytesIO(data))
        if max_width and img.width > max_width:
            ratio = max_width / img.width
            new_size = (max_width, int(img.height * ratio))
            img = img.resize(new_size, Image.LANCZOS)
        if fmt == "JPEG" and img.mode not in ("RGB", "L"):
            img = img.convert("RGB")
        buf = io.BytesIO()
        save_kwargs = {"quality": 85} if fmt in ("JPEG", "WEBP") else {}
        img.save(buf, format=fmt, **save_kwargs)
    except OSError as e:
        # UnidentifiedImageError 也是 OSError
        raise ImageOutputError(f"无法解析图片数据: {e}") from e
    return buf.getvalue()


async def fetch_image_bytes(
    image: ImageUrl,
    *,
    client: httpx.AsyncClient | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> bytes:
    """取得图片原始字节"""
    if image.is_data_uri:
        _, data = parse_data_uri(image.url)
        return data

    owns_client = client is None
    client = client or httpx.AsyncClient(timeout=60, transport=transport)
    try:
        resp = await client.get(image.url, follow_redirects=True)
        resp.raise_for_status()
        return resp.content
    except httpx.HTTPStatusError as e:
        logger.error("图片下载失败: %s %s", e.response.status_code, image.url)
        raise HttpError(e.response.status_code, e.response.reason_phrase or "download failed") from e
    except httpx.TransportError as e:
        raise NetworkError(f"图片下载失败: {str(e) or type(e).__name__}") from e
    finally:
        if owns_client:
            await client.aclose()


async def save_image(
    image: ImageUrl,
    path: str | Path,
    *,
    max_width: int | None = None,
    client: httpx.AsyncClient | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> Path:
    """保存图片到 path，格式由后缀决定"""
    path = Path(path)
    fmt = _FORMATS.get(path.suffix.lower())
    if not fmt:
        raise ValueError(f"不支持的图片格式: {path.suffix or '(无后缀)'}，可选: {list(_FORMATS)}")

    raw = await fetch_image_bytes(image, client=client, transport=transport)
    data = convert_image(raw, fmt, max_width=max_width)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
    except OSError as e:
        raise ImageOutputError(f"无法写入 {path}: {e.strerror or e}") from e
    logger.info("图片已保存: %s (%d bytes)", path, len(data))
    return path
