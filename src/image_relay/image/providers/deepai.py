"""DeepAI text2img（表单提交，返回托管 URL）"""

import logging
from typing import Any

from ...config import ProviderConfig
from ...retry import RequestPayload
from ..base import GenerationRequest, GenerationResult, ImageUrl, ResponseParser

logger = logging.getLogger(__name__)


class DeepAIParser(ResponseParser):
    """DeepAI：multipart 表单请求，响应顶层 `output_url`"""

    default_endpoint = "https://api.deepai.org/api/text2img"

    @property
    def name(self) -> str:
        return "deepai"

    def build_payload(
        self, request: GenerationRequest, config: ProviderConfig
    ) -> RequestPayload:
        # (None, value) 让 httpx 以 multipart 字段而非文件发送
        files: dict[str, Any] = {"text": (None, request.prompt)}
        if request.width is not None:
            files["width"] = (None, str(request.width))
        if request.height is not None:
            files["height"] = (None, str(request.height))
        return RequestPayload(files=files, headers={"api-key": config.credential})

    def extract(self, raw_response: Any) -> GenerationResult:
        body = self._expect(self._load_json(raw_response), dict, "响应")
        output_url = body.get("output_url")
        if not output_url:
            logger.error("DeepAI 未返回 output_url: %s", body)
            return self._failure()
        self._expect(output_url, str, "output_url")
        return ImageUrl(output_url, provider=self.name)
