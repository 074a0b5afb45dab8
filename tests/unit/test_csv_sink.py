"""
Unit tests for the CSV decision sink.

Tests:
- Header written exactly once
- Row format (JSON rules column, quoted timestamp)
- Round trip through csv.DictReader
- Batch and empty batch appends
- I/O failures reported in the result
"""

import json

import pytest

from tradeflow.decision.models import TradeDecision
from tradeflow.errors import PersistenceError
from tradeflow.storage.csv_sink import (
    CSV_HEADER,
    CsvDecisionSink,
    append_decision_to_csv,
    batch_append_decisions_to_csv,
    format_decision_row,
    read_decisions_from_csv,
)

TIMESTAMP = "2024-01-02T15:04:05.000000+00:00"


def make_decision(ticker="AAPL", rules=("price > 50-DMA",), confidence=1.0, action="ARM_FOR_BUY"):
    return TradeDecision(
        ticker=ticker,
        state="WAIT",
        action=action,
        confidence=confidence,
        triggered_rules=tuple(rules),
        timestamp=TIMESTAMP,
    )


@pytest.fixture
def csv_path(tmp_path):
    return tmp_path / "out" / "decisions.csv"


# ============================================================================
# Row Format
# ============================================================================

def test_format_decision_row():
    row = format_decision_row(make_decision())

    assert row == f'AAPL,WAIT,ARM_FOR_BUY,1,"[""price > 50-DMA""]","{TIMESTAMP}"'


def test_format_row_without_rules():
    row = format_decision_row(make_decision(rules=(), confidence=0.5, action="WAIT"))

    assert row == f'AAPL,WAIT,WAIT,0.5,[],"{TIMESTAMP}"'


# ============================================================================
# Appends
# ============================================================================

def test_header_written_once(csv_path):
    append_decision_to_csv(make_decision(), csv_path)
    append_decision_to_csv(make_decision(ticker="MSFT"), csv_path)

    lines = csv_path.read_text(encoding="utf-8").splitlines()

    assert lines[0] == CSV_HEADER
    assert lines.count(CSV_HEADER) == 1
    assert len(lines) == 3


def test_file_ends_with_newline(csv_path):
    append_decision_to_csv(make_decision(), csv_path)

    assert csv_path.read_text(encoding="utf-8").endswith("\n")


def test_rows_round_trip(csv_path):
    decisions = [
        make_decision(ticker="AAPL", rules=("price > 50-DMA + gap up",), confidence=0.92),
        make_decision(ticker="MSFT", rules=(), confidence=0.4, action="WAIT"),
        make_decision(ticker="NVDA", rules=('odd "rule", with comma',), confidence=0.0),
    ]
    for decision in decisions:
        result = append_decision_to_csv(decision, csv_path)
        assert result.success is True
        assert result.records_written == 1

    rows = read_decisions_from_csv(csv_path)

    assert [r["ticker"] for r in rows] == ["AAPL", "MSFT", "NVDA"]
    assert [float(r["confidence"]) for r in rows] == [0.92, 0.4, 0.0]
    assert json.loads(rows[0]["triggeredRules"]) == ["price > 50-DMA + gap up"]
    assert json.loads(rows[1]["triggeredRules"]) == []
    assert json.loads(rows[2]["triggeredRules"]) == ['odd "rule", with comma']
    assert all(r["timestamp"] == TIMESTAMP for r in rows)


def test_append_after_row_without_trailing_newline(tmp_path):
    path = tmp_path / "legacy.csv"
    path.write_text(f'{CSV_HEADER}\nAAPL,WAIT,WAIT,0.5,[],"t0"', encoding="utf-8")

    result = append_decision_to_csv(make_decision(ticker="MSFT"), path)

    assert result.success is True
    rows = read_decisions_from_csv(path)
    assert [r["ticker"] for r in rows] == ["AAPL", "MSFT"]
    assert rows[0]["timestamp"] == "t0"
    assert path.read_text(encoding="utf-8").endswith("\n")


def test_batch_append(csv_path):
    decisions = [make_decision(ticker=t) for t in ("AAPL", "MSFT", "GOOGL")]

    result = batch_append_decisions_to_csv(decisions, csv_path)

    assert result.success is True
    assert result.records_written == 3
    assert result.file_path == str(csv_path)
    assert len(read_decisions_from_csv(csv_path)) == 3


def test_empty_batch_writes_nothing(csv_path):
    result = batch_append_decisions_to_csv([], csv_path)

    assert result.success is True
    assert result.records_written == 0
    assert not csv_path.exists()


def test_write_failure_is_reported(tmp_path):
    blocker = tmp_path / "not_a_dir"
    blocker.write_text("x")

    result = append_decision_to_csv(make_decision(), blocker / "decisions.csv")

    assert result.success is False
    assert result.records_written == 0
    assert result.error


# ============================================================================
# Reading
# ============================================================================

def test_read_rejects_unexpected_header(tmp_path):
    path = tmp_path / "other.csv"
    path.write_text("a,b,c\n1,2,3\n", encoding="utf-8")

    with pytest.raises(PersistenceError):
        read_decisions_from_csv(path)


def test_read_missing_file(tmp_path):
    with pytest.raises(PersistenceError):
        read_decisions_from_csv(tmp_path / "missing.csv")


# ============================================================================
# Sink
# ============================================================================

@pytest.mark.asyncio
async def test_sink_write_counts_records(csv_path):
    sink = CsvDecisionSink(csv_path)

    await sink.write(make_decision())
    sink.append_batch([make_decision(ticker="MSFT"), make_decision(ticker="NVDA")])

    assert sink.records_written == 3
    assert sink.failures == 0
    assert [r["ticker"] for r in sink.read_all()] == ["AAPL", "MSFT", "NVDA"]


def test_sink_counts_failures(tmp_path):
    blocker = tmp_path / "not_a_dir"
    blocker.write_text("x")
    sink = CsvDecisionSink(blocker / "decisions.csv")

    result = sink.append(make_decision())

    assert result.success is False
    assert sink.failures == 1
    assert sink.records_written == 0
