"""Tests for the ImageClient facade."""

import logging

import httpx
import pytest

from image_relay.config import ProviderConfig
from image_relay.errors import (
    ConfigurationError,
    HttpError,
    InvalidInputError,
    MalformedResponseError,
    NoImageDataError,
)
from image_relay.image import Failure, ImageClient, ImageUrl


def _config(provider: str, **kwargs) -> ProviderConfig:
    return ProviderConfig(provider=provider, credential="secret-key", initial_delay=0.5, **kwargs)


class TestImageClient:
    @pytest.mark.asyncio
    async def test_deepai_flow(self, make_transport, sleep_recorder) -> None:
        mock = make_transport([httpx.Response(200, json={"output_url": "https://cdn/x.png"})])

        async with ImageClient(_config("deepai"), transport=mock.transport, sleep=sleep_recorder) as client:
            image = await client.generate("a saturn meme", width=512, height=512)

        assert image == ImageUrl("https://cdn/x.png")
        request = mock.requests[0]
        assert request.url.copy_with(query=None) == "https://api.deepai.org/api/text2img"
        assert request.headers["api-key"] == "secret-key"
        assert request.headers["content-type"].startswith("multipart/form-data")
        assert b'name="text"' in request.content
        assert b"a saturn meme" in request.content

    @pytest.mark.asyncio
    async def test_imagen_flow_returns_data_uri(self, make_transport) -> None:
        mock = make_transport([httpx.Response(200, json={"predictions": [{"bytesBase64Encoded": "Zm9v"}]})])

        async with ImageClient(_config("imagen"), transport=mock.transport) as client:
            image = await client.generate("cat")

        assert image.url == "data:image/png;base64,Zm9v"
        assert image.is_data_uri
        assert mock.requests[0].headers["x-goog-api-key"] == "secret-key"
        assert "key" not in mock.requests[0].url.params

    @pytest.mark.asyncio
    async def test_retries_then_succeeds(self, make_transport, sleep_recorder) -> None:
        mock = make_transport(
            [
                httpx.Response(503, json={"error": {"message": "overloaded"}}),
                httpx.ConnectError("reset"),
                httpx.Response(200, json={"predictions": [{"bytesBase64Encoded": "YmFy"}]}),
            ]
        )

        async with ImageClient(_config("imagen"), transport=mock.transport, sleep=sleep_recorder) as client:
            image = await client.generate("cat")

        assert image.url.endswith("YmFy")
        assert sleep_recorder.delays == [0.5, 1.0]

    @pytest.mark.asyncio
    async def test_exhausted_retries_surface_http_error(self, make_transport, sleep_recorder) -> None:
        mock = make_transport([httpx.Response(500, json={}) for _ in range(3)])

        async with ImageClient(
            _config("gemini", max_retries=2), transport=mock.transport, sleep=sleep_recorder
        ) as client:
            with pytest.raises(HttpError):
                await client.generate("cat")

        assert mock.call_count == 3

    @pytest.mark.asyncio
    @pytest.mark.parametrize("prompt", ["", "   "])
    async def test_blank_prompt_makes_no_request(self, make_transport, prompt: str) -> None:
        mock = make_transport([])

        async with ImageClient(_config("deepai"), transport=mock.transport) as client:
            with pytest.raises(InvalidInputError):
                await client.generate(prompt)

        assert mock.call_count == 0

    @pytest.mark.asyncio
    async def test_missing_credential_makes_no_request(self, make_transport) -> None:
        mock = make_transport([])

        async with ImageClient(ProviderConfig(provider="gemini"), transport=mock.transport) as client:
            with pytest.raises(ConfigurationError):
                await client.generate("cat")

        assert mock.call_count == 0

    @pytest.mark.asyncio
    async def test_no_image_data_not_retried(self, make_transport, sleep_recorder) -> None:
        body = {"candidates": [{"content": {"parts": [{"text": "sorry"}]}}]}
        mock = make_transport([httpx.Response(200, json=body)])

        async with ImageClient(_config("gemini"), transport=mock.transport, sleep=sleep_recorder) as client:
            with pytest.raises(NoImageDataError, match="no image data received"):
                await client.generate("cat")

        assert mock.call_count == 1
        assert sleep_recorder.delays == []

    @pytest.mark.asyncio
    async def test_generate_result_returns_failure(self, make_transport) -> None:
        mock = make_transport([httpx.Response(200, json={})])

        async with ImageClient(_config("deepai"), transport=mock.transport) as client:
            result = await client.generate_result("cat")

        assert isinstance(result, Failure)
        assert not result.ok

    @pytest.mark.asyncio
    async def test_malformed_body_not_retried(self, make_transport, sleep_recorder) -> None:
        mock = make_transport([httpx.Response(200, content=b"oops")])

        async with ImageClient(_config("imagen"), transport=mock.transport, sleep=sleep_recorder) as client:
            with pytest.raises(MalformedResponseError):
                await client.generate("cat")

        assert mock.call_count == 1

    def test_unknown_provider(self) -> None:
        with pytest.raises(ConfigurationError, match="未知 provider"):
            ImageClient(ProviderConfig(provider="dalle"))

    @pytest.mark.asyncio
    async def test_overrides(self) -> None:
        client = ImageClient(_config("deepai"), provider="gemini", max_retries=0, model=None)
        assert client.provider_name == "gemini"
        assert client.config.max_retries == 0
        await client.aclose()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "provider,body",
        [
            ("imagen", {"predictions": [{"bytesBase64Encoded": "Zm9v"}]}),
            ("gemini", {"candidates": [{"content": {"parts": [{"inlineData": {"data": "Zm9v"}}]}}]}),
            ("deepai", {"output_url": "https://cdn/x.png"}),
        ],
    )
    async def test_credential_never_logged(
        self, make_transport, caplog: pytest.LogCaptureFixture, provider: str, body: dict
    ) -> None:
        caplog.set_level(logging.INFO)
        mock = make_transport([httpx.Response(200, json=body)])
        config = ProviderConfig(provider=provider, credential="TOPSECRET123")

        async with ImageClient(config, transport=mock.transport) as client:
            await client.generate("cat")

        assert caplog.records
        assert "TOPSECRET123" not in caplog.text
        assert "TOPSECRET123" not in str(mock.requests[0].url)

    @pytest.mark.asyncio
    async def test_config_timeout_reaches_http_client(self) -> None:
        async with ImageClient(_config("deepai", timeout=12.0)) as client:
            assert client._requests.client.timeout == httpx.Timeout(12.0)
