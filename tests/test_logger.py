from loguru import logger

from insight_cache.utils import setup_logger


def test_setup_logger_writes_file_sink(tmp_path):
    log_file = tmp_path / "insight_cache.log"

    configured = setup_logger(level="DEBUG", log_file=str(log_file))
    configured.info("durable tier write skipped")
    logger.complete()
    setup_logger(level="WARNING")

    assert "durable tier write skipped" in log_file.read_text()
