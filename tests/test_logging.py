import logging
from logging.handlers import RotatingFileHandler

from loan_pipeline import config, utils
from loan_pipeline.utils import get_logger


def test_logger_is_configured_once(monkeypatch, tmp_path):
    log_file = tmp_path / "nested" / "pipeline.log"
    monkeypatch.setattr(config, "LOG_FILE", str(log_file))
    monkeypatch.setattr(config, "LOG_LEVEL", "warning")

    logger = get_logger("loan_pipeline.tests.logging")
    try:
        assert get_logger("loan_pipeline.tests.logging") is logger
        assert len(logger.handlers) == 2
        assert logger.level == logging.WARNING
        assert not logger.propagate

        logger.warning("stage stalled")
        [file_handler] = [h for h in logger.handlers if isinstance(h, RotatingFileHandler)]
        file_handler.flush()
        assert "stage stalled" in log_file.read_text(encoding="utf-8")
    finally:
        for handler in list(logger.handlers):
            handler.close()
            logger.removeHandler(handler)


def test_importing_utils_configures_no_logger():
    assert not hasattr(utils, "app_logger")
