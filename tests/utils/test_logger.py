"""
Logger: singleton behaviour, level filtering and detail/traceback output.
"""

import io

import pytest

from utils.logger import get_logger, configure_logger, Logger, LogLevel, LogCategory


@pytest.fixture
def logger():
    lg = Logger(min_level=LogLevel.DEBUG, use_colors=False)
    lg.stream = io.StringIO()
    return lg


def test_logger_is_singleton():
    assert get_logger() is get_logger()


def test_configure_logger_preserves_singleton():
    original = get_logger()
    previous_level = original.min_level
    try:
        configure_logger(LogLevel.DEBUG, use_colors=False)
        assert get_logger() is original
        assert original.min_level is LogLevel.DEBUG
        assert original.use_colors is False
    finally:
        configure_logger(previous_level)


def test_level_filtering(logger):
    logger.min_level = LogLevel.WARN
    log = logger.for_category(LogCategory.STORE)

    log.info("hidden")
    log.warn("shown")

    out = logger.stream.getvalue()
    assert "hidden" not in out
    assert "shown" in out
    assert "STORE" in out


def test_details_rendered_as_tree(logger):
    logger.for_category(LogCategory.STORE).info("Connected to Redis", host="localhost", port=6379)

    lines = logger.stream.getvalue().splitlines()
    assert "Connected to Redis" in lines[0]
    assert lines[1].strip() == "├─ host: localhost"
    assert lines[2].strip() == "└─ port: 6379"


def test_category_override(logger):
    logger.for_category(LogCategory.STORE).log("moved", LogLevel.INFO, category=LogCategory.SHUTDOWN)
    assert "SHUTDOWN" in logger.stream.getvalue()


def test_exc_info_with_active_exception(logger):
    log = logger.for_category(LogCategory.API)
    try:
        raise ValueError("broken")
    except ValueError:
        log.error("failed", exc_info=True)

    out = logger.stream.getvalue()
    assert "Traceback" in out
    assert "ValueError: broken" in out


def test_exc_info_with_exception_instance(logger):
    try:
        raise KeyError("missing")
    except KeyError as e:
        caught = e

    logger.for_category(LogCategory.API).error("failed later", exc_info=caught)

    assert "KeyError: 'missing'" in logger.stream.getvalue()


def test_exc_info_without_exception_is_ignored(logger):
    logger.for_category(LogCategory.API).error("no traceback", exc_info=True)
    assert "Traceback" not in logger.stream.getvalue()
