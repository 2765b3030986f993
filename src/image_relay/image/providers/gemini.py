"""Google Gemini 多模态生成（返回 inlineData 图片）"""

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

# Gemini 支持的比例
_SUPPORTED_RATIOS = [
    (1, 1),
    (2, 3),
    (3, 2),
    (3, 4),
    (4, 3),
    (4, 5),
    (5, 4),
    (9, 16),
    (16, 9),
    (21, 9),
]


class GeminiParser(ResponseParser):
    """Gemini：`candidates[0].content.parts[]` 中带 inlineData 的那一段"""

    default_endpoint = (
        "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"
    )
    default_model = "gemini-2.0-flash-preview-image-generation"

    @property
    def name(self) -> str:
        return "gemini"

    def build_payload(
        self, request: GenerationRequest, config: ProviderConfig
    ) -> RequestPayload:
        generation_config: dict[str, Any] = {"responseModalities": ["TEXT", "IMAGE"]}
        aspect_ratio = nearest_aspect_ratio(
            request.width, request.height, _SUPPORTED_RATIOS
        )
        if aspect_ratio:
            generation_config["imageConfig"] = {"aspectRatio": aspect_ratio}
        return RequestPayload(
            json={
                "contents": [{"parts": [{"text": request.prompt}]}],
                "generationConfig": generation_config,
            },
            headers={"x-goog-api-key": config.credential},
        )

    def extract(self, raw_response: Any) -> GenerationResult:
        body = self._expect(self._load_json(raw_response), dict, "响应")
        candidates = body.get("candidates")
        if candidates is None:
            candidates = []
        if not self._expect(candidates, list, "candidates"):
            logger.error("Gemini 未返回 candidates: %s", body.get("promptFeedback"))
            return self._failure()

        candidate = self._expect(candidates[0], dict, "candidates[0]")
        content = candidate.get("content")
        if content is None:
            content = {}
        parts = self._expect(content, dict, "content").get("parts")
        if parts is None:
            parts = []

        for part in self._expect(parts, list, "content.parts"):
            self._expect(part, dict, "content.parts[]")
            inline = part.get("inlineData") or part.get("inline_data")
            if not inline:
                continue
            self._expect(inline, dict, "inlineData")
            mime_type = inline.get("mimeType") or inline.get("mime_type") or "image/png"
            self._expect(mime_type, str, "inlineData.mimeType")
            data = inline.get("data")
            if data and mime_type.startswith("image/"):
                self._expect(data, str, "inlineData.data")
                return ImageUrl(build_data_uri(data, mime_type), provider=self.name)

        logger.error(
            "Gemini 响应中未找到图片, finishReason=%s", candidate.get("finishReason")
        )
        return self._failure()
