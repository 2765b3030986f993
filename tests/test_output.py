"""Tests for saving generated images to disk."""

import base64
import io
from pathlib import Path

import httpx
import pytest
from PIL import Image

from image_relay.datauri import build_data_uri
from image_relay.errors import HttpError, ImageOutputError, NetworkError
from image_relay.image import ImageUrl
from image_relay.image.output import convert_image, fetch_image_bytes, save_image


def _png_bytes(width: int = 64, height: int = 32) -> bytes:
    img = Image.new("RGBA", (width, height), (255, 0, 0, 128))
    buf = io.BytesIO()
    img.save(buf, "PNG")
    return buf.getvalue()


class TestConvertImage:
    def test_resize_keeps_ratio(self) -> None:
        data = convert_image(_png_bytes(200, 100), "PNG", max_width=50)
        assert Image.open(io.BytesIO(data)).size == (50, 25)

    def test_jpeg_drops_alpha(self) -> None:
        data = convert_image(_png_bytes(), "JPEG")
        img = Image.open(io.BytesIO(data))
        assert img.format == "JPEG"
        assert img.mode == "RGB"


class TestSaveImage:
    @pytest.mark.asyncio
    async def test_data_uri_to_webp(self, tmp_path: Path) -> None:
        image = ImageUrl(build_data_uri(base64.b64encode(_png_bytes()).decode()))

        path = await save_image(image, tmp_path / "out" / "meme.webp")

        saved = Image.open(path)
        assert saved.format == "WEBP"
        assert saved.size == (64, 32)

    @pytest.mark.asyncio
    async def test_hosted_url_downloaded(self, tmp_path: Path) -> None:
        seen: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(str(request.url))
            return httpx.Response(200, content=_png_bytes())

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            path = await save_image(ImageUrl("https://cdn/x.png"), tmp_path / "x.png", client=client)

        assert seen == ["https://cdn/x.png"]
        assert Image.open(path).format == "PNG"

    @pytest.mark.asyncio
    async def test_unsupported_suffix(self, tmp_path: Path) -> None:
        with pytest.raises(ValueError, match="不支持的图片格式"):
            await save_image(ImageUrl("data:image/png;base64,Zm9v"), tmp_path / "x.gif")


class TestOutputErrors:
    def test_non_image_bytes(self) -> None:
        with pytest.raises(ImageOutputError):
            convert_image(b"definitely not an image", "PNG")

    @pytest.mark.asyncio
    async def test_download_status_error(self) -> None:
        transport = httpx.MockTransport(lambda request: httpx.Response(403))
        with pytest.raises(HttpError) as exc_info:
            await fetch_image_bytes(ImageUrl("https://cdn/x.png"), transport=transport)
        assert exc_info.value.status == 403

    @pytest.mark.asyncio
    async def test_download_transport_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("slow cdn")

        with pytest.raises(NetworkError, match="slow cdn"):
            await fetch_image_bytes(ImageUrl("https://cdn/x.png"), transport=httpx.MockTransport(handler))
