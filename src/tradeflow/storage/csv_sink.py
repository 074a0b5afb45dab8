"""
Append-only CSV sink for trade decisions.

File layout:
    ticker,state,action,confidence,triggeredRules,timestamp
    AAPL,WAIT,ARM_FOR_BUY,1,"[""price > 50-DMA""]","2024-01-02T15:04:05.000000+00:00"

- The header is written once, when the file is created (or empty)
- triggeredRules is a JSON array ([] when nothing triggered)
- The timestamp is always quoted
- Fields containing commas or quotes use standard CSV quoting, so the file
  reads back with csv.reader / csv.DictReader
"""

import asyncio
import csv
import io
import json
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union
import logging

from tradeflow.decision.models import TradeDecision
from tradeflow.errors import PersistenceError

logger = logging.getLogger(__name__)

CSV_COLUMNS = ['ticker', 'state', 'action', 'confidence', 'triggeredRules', 'timestamp']
CSV_HEADER = ','.join(CSV_COLUMNS)
DEFAULT_CSV_FILENAME = 'trade-decisions.csv'

# One lock per resolved path, bounded by the configured output files;
# appends from worker threads must not interleave
_file_locks: Dict[str, threading.Lock] = {}
_file_locks_guard = threading.Lock()


@dataclass
class CsvOutputResult:
    success: bool
    file_path: str
    records_written: int
    error: Optional[str] = None


def _lock_for(path: Path) -> threading.Lock:
    key = str(path.resolve())
    with _file_locks_guard:
        lock = _file_locks.get(key)
        if lock is None:
            lock = threading.Lock()
            _file_locks[key] = lock
        return lock


def _format_confidence(confidence: float) -> str:
    return f"{confidence:g}"


def format_decision_row(decision: TradeDecision) -> str:
    """Serialize one decision as a CSV line (without line terminator)."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator='')
    writer.writerow([
        decision.ticker,
        decision.state,
        decision.action,
        _format_confidence(decision.confidence),
        json.dumps(list(decision.triggered_rules)),
    ])
    timestamp = decision.timestamp.replace('"', '""')
    return f'{buffer.getvalue()},"{timestamp}"'


def _resolve_path(output_path: Optional[Union[str, Path]]) -> Path:
    return Path(output_path) if output_path else Path.cwd() / DEFAULT_CSV_FILENAME


def _append_rows(csv_path: Path, rows: List[str]) -> None:
    csv_path.parent.mkdir(parents=True, exist_ok=True)
    with _lock_for(csv_path):
        needs_header = not csv_path.exists() or csv_path.stat().st_size == 0
        prefix = '' if needs_header or _ends_with_newline(csv_path) else '\n'
        lines = ([CSV_HEADER] if needs_header else []) + rows
        with open(csv_path, 'a', encoding='utf-8', newline='') as f:
            f.write(prefix + '\n'.join(lines) + '\n')


def _ends_with_newline(csv_path: Path) -> bool:
    with open(csv_path, 'rb') as f:
        f.seek(-1, 2)
        return f.read(1) == b'\n'


def append_decision_to_csv(
    decision: TradeDecision,
    output_path: Optional[Union[str, Path]] = None
) -> CsvOutputResult:
    """
    Append one decision to the CSV file.

    Args:
        decision: Decision to persist
        output_path: CSV file (default: ./trade-decisions.csv)

    Returns:
        CsvOutputResult; I/O failures are reported, not raised
    """
    return batch_append_decisions_to_csv([decision], output_path)


def batch_append_decisions_to_csv(
    decisions: Sequence[TradeDecision],
    output_path: Optional[Union[str, Path]] = None
) -> CsvOutputResult:
    """
    Append several decisions in a single file write.

    Args:
        decisions: Decisions to persist, in order
        output_path: CSV file (default: ./trade-decisions.csv)

    Returns:
        CsvOutputResult; I/O failures are reported, not raised
    """
    csv_path = _resolve_path(output_path)

    if not decisions:
        return CsvOutputResult(success=True, file_path=str(csv_path), records_written=0)

    try:
        _append_rows(csv_path, [format_decision_row(d) for d in decisions])
    except OSError as e:
        logger.error(f"Failed to append {len(decisions)} decision(s) to {csv_path}: {e}")
        return CsvOutputResult(
            success=False,
            file_path=str(csv_path),
            records_written=0,
            error=str(e),
        )

    logger.debug(f"Appended {len(decisions)} decision(s) to {csv_path}")
    return CsvOutputResult(success=True, file_path=str(csv_path), records_written=len(decisions))


def read_decisions_from_csv(path: Union[str, Path]) -> List[Dict[str, str]]:
    """
    Read decision rows back as dicts keyed by CSV column.

    Raises:
        PersistenceError: If the file is missing or has an unexpected header
    """
    csv_path = Path(path)
    try:
        with open(csv_path, 'r', encoding='utf-8', newline='') as f:
            reader = csv.DictReader(f)
            if reader.fieldnames != CSV_COLUMNS:
                raise PersistenceError(f"Unexpected CSV header in {csv_path}: {reader.fieldnames}")
            return [dict(row) for row in reader]
    except OSError as e:
        raise PersistenceError(f"Cannot read decisions from {csv_path}: {e}") from e


class CsvDecisionSink:
    """
    Decision sink bound to one CSV file.

    write() can be registered directly as a DecisionEngine callback.
    """

    def __init__(self, path: Optional[Union[str, Path]] = None):
        self.path = _resolve_path(path)
        self.records_written = 0
        self.failures = 0
        self.logger = logging.getLogger(f"{__name__}.CsvDecisionSink")

    def append(self, decision: TradeDecision) -> CsvOutputResult:
        return self._track(append_decision_to_csv(decision, self.path))

    def append_batch(self, decisions: Sequence[TradeDecision]) -> CsvOutputResult:
        return self._track(batch_append_decisions_to_csv(decisions, self.path))

    async def write(self, decision: TradeDecision) -> CsvOutputResult:
        """Append off the event loop."""
        return await asyncio.to_thread(self.append, decision)

    def _track(self, result: CsvOutputResult) -> CsvOutputResult:
        if result.success:
            self.records_written += result.records_written
        else:
            self.failures += 1
            self.logger.warning(f"Decision not persisted to {result.file_path}: {result.error}")
        return result

    def read_all(self) -> List[Dict[str, str]]:
        return read_decisions_from_csv(self.path)
