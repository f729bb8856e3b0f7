# tests/conftest.py
# Pytest 配置

import asyncio
import inspect
from datetime import datetime, timedelta, timezone

import pytest

from ratingkit import PersistentCounterStore, RatingConfig, SentimentResponse
from ratingkit.storage import InMemoryBackend


def pytest_addoption(parser):
    """兼容没有 pytest-asyncio 插件时的 ini 配置。"""
    parser.addini(
        "asyncio_mode",
        "Compatibility option when pytest-asyncio is unavailable",
        default="auto",
    )


def pytest_configure(config):
    """注册自定义 marker"""
    config.addinivalue_line(
        "markers", "integration: mark test as integration test (requires external services)"
    )
    config.addinivalue_line(
        "markers", "offline: mark test as offline test (no external services required)"
    )
    config.addinivalue_line(
        "markers", "asyncio: mark test as asyncio coroutine test"
    )


def pytest_collection_modifyitems(config, items):
    """自动标记没有 marker 的测试为 offline"""
    for item in items:
        if "integration" not in item.keywords:
            item.add_marker(pytest.mark.offline)


@pytest.hookimpl(tryfirst=True)
def pytest_pyfunc_call(pyfuncitem):
    """
    当 pytest-asyncio 不可用时，兜底执行 async 测试函数。
    """
    plugin_manager = pyfuncitem.config.pluginmanager
    if plugin_manager.hasplugin("pytest_asyncio") or plugin_manager.hasplugin("asyncio"):
        return None

    test_function = pyfuncitem.obj
    if not inspect.iscoroutinefunction(test_function):
        return None

    test_args = {
        arg: pyfuncitem.funcargs[arg]
        for arg in pyfuncitem._fixtureinfo.argnames
    }
    asyncio.run(test_function(**test_args))
    return True


# ========== 共享替身 ==========

class FakeClock:
    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


class RecordingRequester:
    def __init__(self) -> None:
        self.calls = 0

    def request_review(self) -> None:
        self.calls += 1


class FailingRequester:
    def request_review(self) -> None:
        raise RuntimeError("platform unsupported")


class RecordingOpener:
    def __init__(self) -> None:
        self.urls: list[str] = []

    async def open_url(self, url: str) -> None:
        self.urls.append(url)


class ScriptedPresenter:
    """按顺序返回预设回应"""

    def __init__(self, *responses: SentimentResponse) -> None:
        self.responses = list(responses)
        self.prompts: list[tuple[str, str, str]] = []

    async def present(self, question: str, positive_label: str, negative_label: str) -> SentimentResponse:
        self.prompts.append((question, positive_label, negative_label))
        return self.responses.pop(0)


@pytest.fixture
def backend() -> InMemoryBackend:
    return InMemoryBackend()


@pytest.fixture
def store(backend: InMemoryBackend) -> PersistentCounterStore:
    return PersistentCounterStore(backend, namespace="test")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def scenario_config() -> RatingConfig:
    return RatingConfig(
        minimum_app_sessions=3,
        minimum_success_flows=1,
        sentiment_gate_enabled=True,
        feedback_url="https://example.com/feedback",
    )
