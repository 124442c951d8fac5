import logging

import pytest

from debug_log import DebugLog, DebugRecord, parse_levels


def test_records_are_appended_in_order_per_item() -> None:
    log = DebugLog()
    log.record(0, "a", "first")
    log.record(0, "b", "other item")
    log.record(1, "a", "second", {"step": "_:b0"})

    assert [r.message for r in log.records("a")] == ["first", "second"]
    assert len(log.records()) == 3


def test_flush_writes_only_that_item(caplog: pytest.LogCaptureFixture) -> None:
    log = DebugLog()
    log.record(0, "a", "Step 1", "https://a/evaluation")
    log.record(0, "b", "Step 1", "https://b/evaluation")

    with caplog.at_level(logging.INFO, logger="debug_log"):
        written = log.flush("a")

    assert written == 1
    assert "https://a/evaluation" in caplog.text
    assert "https://b/evaluation" not in caplog.text


def test_render_formats_structured_data_as_json() -> None:
    record = DebugRecord(level=1, item="a", message="DocMap steps", data=[{"step": "_:b0"}])

    assert record.render().startswith("[debug 1] a: DocMap steps\n[")
    assert '"step": "_:b0"' in record.render()


def test_parse_levels() -> None:
    default = frozenset({0, 1})

    assert parse_levels(None, default) == default
    assert parse_levels("  ", default) == default
    assert parse_levels("2, 0", default) == frozenset({0, 2})


@pytest.mark.parametrize("raw", ["x", "3", "0,-1"])
def test_parse_levels_rejects_unknown(raw: str) -> None:
    with pytest.raises(ValueError):
        parse_levels(raw, frozenset())
