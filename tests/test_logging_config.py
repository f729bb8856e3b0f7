from __future__ import annotations

import logging

import pytest
from loguru import logger

from ratingkit import PersistentCounterStore, RatingConfig, RatingManager
from ratingkit.logging_config import set_library_level, setup_logging
from ratingkit.storage import InMemoryBackend


@pytest.fixture
def captured():
    lines: list[str] = []
    yield lines
    setup_logging(level="INFO", force=True)


def _setup(lines: list[str], **kwargs) -> None:
    setup_logging(force=True, sink=lines.append, fmt="{level}|{message}", **kwargs)


def _reset_manager() -> None:
    # reset() 在 ratingkit.manager 里打一条 INFO
    RatingManager(RatingConfig(), PersistentCounterStore(InMemoryBackend())).reset()


def test_library_level_silences_ratingkit_only(captured):
    _setup(captured, level="DEBUG", library_level="WARNING")

    _reset_manager()
    logger.info("host started")

    assert [line.strip() for line in captured] == ["INFO|host started"]


def test_library_level_can_change_at_runtime(captured):
    _setup(captured, level="WARNING", library_level="CRITICAL")
    _reset_manager()
    assert captured == []

    set_library_level("INFO")
    _reset_manager()
    assert [line.strip() for line in captured] == ["INFO|Rating state reset"]


def test_library_level_defaults_to_host_level(captured):
    _setup(captured, level="INFO")
    _reset_manager()
    assert [line.strip() for line in captured] == ["INFO|Rating state reset"]


def test_stdlib_ratingkit_loggers_follow_library_level(captured):
    _setup(captured, level="DEBUG", library_level="ERROR")

    logging.getLogger("ratingkit.config").warning("quiet please")
    logging.getLogger("host.app").warning("still shown")

    assert [line.strip() for line in captured] == ["WARNING|still shown"]


def test_unknown_level_raises(captured):
    with pytest.raises(ValueError):
        set_library_level("LOUD")
