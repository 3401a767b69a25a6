import json
import logging
import sys

from labinventory.config import get_settings
from labinventory.log import JsonFormatter, record_extras, setup_logging


def _record(msg="stock %s", args=("low",), exc_info=None, **extra) -> logging.LogRecord:
    record = logging.LogRecord("labinventory.test", logging.WARNING, __file__, 1, msg, args, exc_info)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_fields():
    out = json.loads(JsonFormatter().format(_record()))
    assert out["level"] == "WARNING"
    assert out["logger"] == "labinventory.test"
    assert out["msg"] == "stock low"
    assert out["ts"].endswith("+00:00")
    assert "exc" not in out


def test_json_formatter_merges_extra_fields():
    out = json.loads(JsonFormatter().format(_record(component_id=7, actor="Ana")))
    assert out["component_id"] == 7
    assert out["actor"] == "Ana"
    # extras never override the fixed keys
    out = json.loads(JsonFormatter().format(_record(level="bogus")))
    assert out["level"] == "WARNING"


def test_json_formatter_non_serializable_extra():
    out = json.loads(JsonFormatter().format(_record(path=object())))
    assert out["path"].startswith("<object object")


def test_json_formatter_includes_traceback():
    try:
        raise RuntimeError("boom")
    except RuntimeError:
        record = _record(exc_info=sys.exc_info())

    out = json.loads(JsonFormatter().format(record))
    assert "RuntimeError: boom" in out["exc"]


def test_record_extras_skips_standard_attributes():
    assert record_extras(_record()) == {}
    assert record_extras(_record(public_id="inventario/abc")) == {"public_id": "inventario/abc"}


def test_setup_logging_json(monkeypatch):
    settings = get_settings()
    monkeypatch.setattr(settings, "log_json", True)
    monkeypatch.setattr(settings, "log_level", "debug")

    root = logging.getLogger()
    monkeypatch.setattr(root, "level", root.level)
    monkeypatch.setattr(root, "handlers", list(root.handlers))

    handler = setup_logging()
    assert isinstance(handler.formatter, JsonFormatter)
    assert root.level == logging.DEBUG
    assert handler in root.handlers


def test_setup_logging_replaces_only_its_own_handler(monkeypatch):
    settings = get_settings()
    monkeypatch.setattr(settings, "log_json", False)
    monkeypatch.setattr(settings, "log_level", "nonsense")

    root = logging.getLogger()
    monkeypatch.setattr(root, "level", root.level)
    monkeypatch.setattr(root, "handlers", list(root.handlers))
    other = logging.NullHandler()
    root.addHandler(other)

    first = setup_logging()
    second = setup_logging()
    assert first not in root.handlers
    assert second in root.handlers
    assert other in root.handlers
    assert root.level == logging.INFO
    assert not isinstance(second.formatter, JsonFormatter)
