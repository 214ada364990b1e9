import logging

from seo_enrichment_service.logging_utils import ContextFormatter, configure_logging


def _record(**extra):
    record = logging.makeLogRecord({"name": "worker", "levelname": "INFO", "msg": "Completed domain"})
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_extra_fields_are_appended():
    formatter = ContextFormatter(fmt="%(levelname)s %(message)s")
    line = formatter.format(_record(job_id="j1", domain="shop.nl"))
    assert line == "INFO Completed domain | domain=shop.nl job_id=j1"


def test_plain_records_are_unchanged():
    formatter = ContextFormatter(fmt="%(message)s")
    assert formatter.format(_record()) == "Completed domain"


def test_configure_logging_writes_file(tmp_path):
    log_file = tmp_path / "logs" / "service.log"
    configure_logging(log_file, "debug")
    try:
        logging.getLogger("seo_enrichment_service.test").info("hello", extra={"job_id": "abc"})
        for handler in logging.getLogger().handlers:
            handler.flush()
        assert "hello | job_id=abc" in log_file.read_text()
        assert logging.getLogger("httpx").level == logging.WARNING
    finally:
        for handler in list(logging.getLogger().handlers):
            logging.getLogger().removeHandler(handler)
            handler.close()
