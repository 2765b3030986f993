"""共享 fixtures"""

import httpx
import pytest

_ENV_VARS = [
    "IMAGE_RELAY_PROVIDER",
    "IMAGE_RELAY_ENDPOINT",
    "IMAGE_RELAY_MODEL",
    "IMAGE_RELAY_MAX_RETRIES",
    "IMAGE_RELAY_INITIAL_DELAY",
    "IMAGE_RELAY_TIMEOUT",
    "DEEPAI_API_KEY",
    "GEMINI_API_KEY",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """隔离宿主机上的真实配置"""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class SleepRecorder:
    """记录每次退避等待的秒数，不真正等待"""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class SequenceTransport:
    """按顺序返回预设结果的 httpx.MockTransport 包装，异常项会被抛出"""

    def __init__(self, outcomes: list) -> None:
        self._outcomes = list(outcomes)
        self.requests: list[httpx.Request] = []
        self.transport = httpx.MockTransport(self._handle)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        outcome = self._outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    @property
    def call_count(self) -> int:
        return len(self.requests)


@pytest.fixture
def sleep_recorder() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def make_transport():
    """SequenceTransport 工厂"""
    return SequenceTransport
