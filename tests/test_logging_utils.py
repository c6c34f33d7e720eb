import logging

import pytest

from macromod import logging_utils
from macromod.logging_utils import LOG_DIR_ENV, configure_logging, default_log_dir, log_exception


@pytest.fixture
def package_logger():
    logger = logging.getLogger("macromod")
    before = list(logger.handlers)
    yield logger
    for handler in list(logger.handlers):
        if handler not in before:
            logger.removeHandler(handler)
            handler.close()


def _owned(logger: logging.Logger, kind: type) -> list[logging.Handler]:
    owned = [h for h in logger.handlers if isinstance(h, logging_utils._MacromodHandler)]
    if kind is logging.FileHandler:
        return [h for h in owned if isinstance(h, logging.FileHandler)]
    return [h for h in owned if not isinstance(h, logging.FileHandler)]


def test_log_dir_uses_env_override(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv(LOG_DIR_ENV, str(tmp_path))
    assert default_log_dir() == tmp_path


def test_log_dir_defaults_under_cache(monkeypatch) -> None:
    monkeypatch.delenv(LOG_DIR_ENV, raising=False)
    assert default_log_dir().parts[-3:] == (".cache", "macromod", "logs")


def test_explicit_log_dir_wins_over_env(tmp_path, monkeypatch, package_logger) -> None:
    monkeypatch.setenv(LOG_DIR_ENV, str(tmp_path / "env"))
    path = configure_logging(log_dir=tmp_path / "cli")
    assert path == tmp_path / "cli" / "macromod.log"
    assert path.exists()


def test_console_level_follows_debug_flag(tmp_path, package_logger) -> None:
    configure_logging(log_dir=tmp_path)
    (console,) = _owned(package_logger, logging.StreamHandler)
    assert console.level == logging.INFO

    configure_logging(debug=True, log_dir=tmp_path)
    (console,) = _owned(package_logger, logging.StreamHandler)
    assert console.level == logging.DEBUG


def test_reconfiguring_replaces_handlers(tmp_path, package_logger) -> None:
    configure_logging(log_dir=tmp_path / "first")
    configure_logging(log_dir=tmp_path / "second")
    (file_handler,) = _owned(package_logger, logging.FileHandler)
    assert file_handler.baseFilename == str(tmp_path / "second" / "macromod.log")
    assert package_logger.propagate


def test_log_exception_writes_traceback_to_file(tmp_path, package_logger) -> None:
    path = configure_logging(log_dir=tmp_path)
    try:
        raise RuntimeError("boom")
    except RuntimeError as exc:
        log_exception("unit test", exc)
    for handler in package_logger.handlers:
        handler.flush()
    text = path.read_text(encoding="utf-8")
    assert "unit test failed: RuntimeError: boom" in text
    assert "Traceback" in text


def test_log_exception_stays_off_console_without_debug(tmp_path, package_logger, capsys) -> None:
    configure_logging(log_dir=tmp_path)
    log_exception("quiet", ValueError("hidden"))
    assert "hidden" not in capsys.readouterr().err
