# file: tests/test_logger.py

import json
import logging

from oggscope.core.logger import LOG_RECORD_BUILTIN_ATTRS, JSONFormatter, get_logger, setup_logging, truncate_dict


def make_record(msg, *args, **extra):
    record = logging.LogRecord("oggscope", logging.WARNING, __file__, 10, msg, args, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:

    def test_format(self):
        formatter = JSONFormatter(fmt_keys={"level": "levelname", "message": "message", "extra": "extra"})
        record = make_record("page %d at %d", 3, 4096, offset=4096, pattern=b'XggS')

        output = json.loads(formatter.format(record))

        assert output["level"] == "WARNING"
        assert output["message"] == "page 3 at 4096"
        assert output["extra"] == {"offset": 4096, "pattern": "58676753"}

    def test_truncation(self):
        formatter = JSONFormatter(max_length=5, fmt_keys={"message": "message"})
        output = json.loads(formatter.format(make_record("abcdefghij")))
        assert output["message"] == "abcde..."

    def test_invalid_key(self):
        try:
            JSONFormatter(fmt_keys={"level": "not_an_attribute"})
        except ValueError as e:
            assert "not_an_attribute" in str(e)
        else:
            raise AssertionError("ValueError not raised")


def test_truncate_dict():
    assert truncate_dict({"a": [b'\x01\x02', "xyz"]}, 2) == {"a": ["01...", "xy..."]}


def test_setup_logging_level():
    logger = setup_logging("debug")
    assert logger is get_logger()
    assert logger.level == logging.DEBUG


def test_setup_logging_from_file(tmp_path):
    config_file = tmp_path / "logging.json"
    config_file.write_text(json.dumps({
        "version": 1,
        "disable_existing_loggers": False,
        "loggers": {"oggscope": {"level": "ERROR"}},
    }))
    logger = setup_logging(config_file=config_file)
    assert logger.level == logging.ERROR


def test_builtin_attrs_cover_log_record_fields():
    record = make_record("plain")
    assert set(vars(record)) <= LOG_RECORD_BUILTIN_ATTRS
    assert {"msg", "levelname", "lineno", "message", "asctime", "extra"} <= LOG_RECORD_BUILTIN_ATTRS


def test_extra_excludes_builtin_fields():
    formatter = JSONFormatter(fmt_keys={"extra": "extra"})
    output = json.loads(formatter.format(make_record("plain", serial=7)))
    assert output == {"extra": {"serial": 7}}
