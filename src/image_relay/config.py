"""Provider 配置

配置通过构造参数显式传入；`from_env` 是唯一读取环境变量的地方。

环境变量:
    IMAGE_RELAY_PROVIDER: provider 名称（默认 deepai）
    IMAGE_RELAY_ENDPOINT: endpoint 覆盖
    IMAGE_RELAY_MODEL: 模型覆盖（imagen / gemini）
    IMAGE_RELAY_MAX_RETRIES: 最大重试次数（默认 3）
    IMAGE_RELAY_INITIAL_DELAY: 首次重试等待秒数（默认 1.0）
    IMAGE_RELAY_TIMEOUT: 单次请求超时秒数（默认 120）
    DEEPAI_API_KEY / GEMINI_API_KEY: 各 provider 的凭证
"""

import math
import os
from dataclasses import dataclass, field, replace

from .errors import ConfigurationError

DEFAULT_PROVIDER = "deepai"

# provider → 凭证环境变量
CREDENTIAL_ENV: dict[str, str] = {
    "deepai": "DEEPAI_API_KEY",
    "imagen": "GEMINI_API_KEY",
    "gemini": "GEMINI_API_KEY",
}


def _env_number(name: str, default, cast):
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return cast(raw)
    except ValueError:
        raise ConfigurationError(f"环境变量 {name} 不是合法数值: {raw!r}") from None


@dataclass(frozen=True)
class ProviderConfig:
    """单个 provider 的调用配置"""

    provider: str = DEFAULT_PROVIDER
    endpoint: str = ""
    credential: str = field(default="", repr=False)
    model: str = ""
    timeout: float = 120.0
    max_retries: int = 3
    initial_delay: float = 1.0

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ConfigurationError(f"max_retries 必须是非负整数: {self.max_retries!r}")
        if not math.isfinite(self.initial_delay) or self.initial_delay < 0:
            raise ConfigurationError(f"initial_delay 必须是非负秒数: {self.initial_delay!r}")
        if not math.isfinite(self.timeout) or self.timeout <= 0:
            raise ConfigurationError(f"timeout 必须是正秒数: {self.timeout!r}")

    @property
    def has_credential(self) -> bool:
        return bool(self.credential.strip())

    def with_overrides(self, **changes) -> "ProviderConfig":
        """返回覆盖了部分字段的新配置，None 值忽略"""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})

    @classmethod
    def from_env(cls, provider: str | None = None) -> "ProviderConfig":
        """从当前进程环境变量构造配置（每次调用都重新读取）"""
        name = provider or os.environ.get("IMAGE_RELAY_PROVIDER") or DEFAULT_PROVIDER
        name = name.strip().lower()
        credential_env = CREDENTIAL_ENV.get(name)
        return cls(
            provider=name,
            endpoint=os.environ.get("IMAGE_RELAY_ENDPOINT", ""),
            credential=os.environ.get(credential_env, "") if credential_env else "",
            model=os.environ.get("IMAGE_RELAY_MODEL", ""),
            timeout=_env_number("IMAGE_RELAY_TIMEOUT", 120.0, float),
            max_retries=_env_number("IMAGE_RELAY_MAX_RETRIES", 3, int),
            initial_delay=_env_number("IMAGE_RELAY_INITIAL_DELAY", 1.0, float),
        )
