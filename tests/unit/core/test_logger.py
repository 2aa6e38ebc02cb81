"""Tests for logger sinks and the close cascade."""

import pytest

from prlander.core.config import Config
from prlander.core.log import (
    LEVELS,
    ConsoleSink,
    FileSink,
    Logger,
    OTLPSink,
    level_name,
    level_number,
    logger as proxy,
)


def make_logger(tmp_path, name="test.log"):
    return Logger(
        console=ConsoleSink(enabled=False),
        file=FileSink(enabled=True, path=str(tmp_path / name)),
        otlp=OTLPSink(enabled=False),
    )


def test_level_cascades_to_sinks_without_their_own():
    logger = Logger(level="debug", file=FileSink(level="error"))

    assert logger.console.level == "debug"
    assert logger.file.level == "error"


def test_file_path_template(tmp_path):
    logger = Logger(
        console=ConsoleSink(enabled=False),
        file=FileSink(enabled=True),
    )

    logger.setup(log_root=tmp_path, run_name="acme-widgets")

    assert (tmp_path / "acme-widgets" / "prlander.log").is_file()
    logger.close()


def test_logger_closes_file_via_context_manager(tmp_path):
    logger = make_logger(tmp_path)
    logger.setup(log_root=tmp_path, run_name="test")

    assert not logger.file._file.closed

    with logger:
        logger.info("test message")

    assert logger.file._file.closed


def test_logger_closes_on_exception(tmp_path):
    logger = make_logger(tmp_path)
    logger.setup(log_root=tmp_path, run_name="test")

    with pytest.raises(ValueError), logger:
        raise ValueError("boom")

    assert logger.file._file.closed


def test_config_close_cascades_to_logger(tmp_path):
    config = Config(logger=make_logger(tmp_path, "cascade.log"),
                    log_root=tmp_path)

    proxy.info("through the proxy")
    config.close()

    assert config.logger.file._file.closed


def test_explicit_log_level_overrides_logger_section(tmp_path):
    config = Config(**{"log-level": "debug"}, log_root=tmp_path)

    assert config.log_level == "debug"


def test_levels_are_ordered():
    assert (
        LEVELS["spew"] < LEVELS["trace"] < LEVELS["debug"] < LEVELS["info"]
        < LEVELS["warn"] < LEVELS["error"] < LEVELS["fatal"]
    )


@pytest.mark.parametrize("name", sorted(LEVELS))
def test_level_names_map_back(name):
    assert level_name(level_number(name)) == name


def test_unknown_level_counts_as_info():
    assert level_number("loud") == LEVELS["info"]
    assert level_number(None) == LEVELS["info"]
    assert level_name(0) == "spew"


def test_run_log_lines(tmp_path):
    logger = make_logger(tmp_path, "run.log")
    logger.setup(log_root=tmp_path, run_name="test")

    logger.info("Landing {pr}", pr="acme/widgets#42")
    logger.debug("hidden below the sink level")
    logger.close()

    text = (tmp_path / "run.log").read_text()
    assert "INFO  Landing acme/widgets#42" in text
    assert "pr='acme/widgets#42'" in text
    assert "hidden" not in text


def test_disabled_console_has_no_options():
    assert ConsoleSink(enabled=False).options() is False
