"""Google Imagen（predict 接口，返回 base64 图片）"""

import logging
from typing import Any

from ...config import ProviderConfig
from ...datauri import build_data_uri
from ...retry import RequestPayload
from ..base import (
    GenerationRequest,
    GenerationResult,
    ImageUrl,
    ResponseParser,
    nearest_aspect_ratio,
)

logger = logging.getLogger(__name__)

# Imagen 支持的比例
_SUPPORTED_RATIOS = [(1, 1), (3, 4), (4, 3), (9, 16), (16, 9)]


class ImagenParser(ResponseParser):
    """Imagen：`predictions[].bytesBase64Encoded`"""

    default_endpoint = (
        "https://generativelanguage.googleapis.com/v1beta/models/{model}:predict"
    )
    default_model = "imagen-3.0-generate-002"

    @property
    def name(self) -> str:
        return "imagen"

    def build_payload(
        self, request: GenerationRequest, config: ProviderConfig
    ) -> RequestPayload:
        parameters: dict[str, Any] = {"sampleCount": 1}
        aspect_ratio = nearest_aspect_ratio(
            request.width, request.height, _SUPPORTED_RATIOS
        )
        if aspect_ratio:
            parameters["aspectRatio"] = aspect_ratio
        return RequestPayload(
            json={"instances": {"prompt": request.prompt}, "parameters": parameters},
            headers={"x-goog-api-key": config.credential},
        )

    def extract(self, raw_response: Any) -> GenerationResult:
        body = self._expect(self._load_json(raw_response), dict, "响应")
        predictions = body.get("predictions")
        if predictions is None:
            logger.error("Imagen 响应缺少 predictions: %s", list(body))
            return self._failure()

        for prediction in self._expect(predictions, list, "predictions"):
            self._expect(prediction, dict, "predictions[]")
            b64 = prediction.get("bytesBase64Encoded")
            if b64:
                self._expect(b64, str, "bytesBase64Encoded")
                mime_type = prediction.get("mimeType") or "image/png"
                self._expect(mime_type, str, "mimeType")
                return ImageUrl(build_data_uri(b64, mime_type), provider=self.name)

        return self._failure()
