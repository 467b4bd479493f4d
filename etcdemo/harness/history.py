"""
History Recorder - thread-safe operation history for a test run
"""
import json
import time
import logging
import threading
from pathlib import Path
from dataclasses import asdict
from typing import Any, Dict, List, Optional
from ..models import HistoryEvent, Operation, OutcomeRecord

logger = logging.getLogger(__name__)


class HistoryRecorder:
    """
    Records every invocation and its completion, in the order they happened.

    The resulting JSON file is the handoff to an external checker: each
    completion carries the same process and key as its invocation, and info
    completions mark operations whose effect is unknown.
    """

    def __init__(self, store_dir: str, test_id: str, clock=time.time):
        self.test_dir = Path(store_dir) / test_id
        self.test_dir.mkdir(parents=True, exist_ok=True)
        self.test_id = test_id
        self.clock = clock
        self.events: List[HistoryEvent] = []
        self.counts: Dict[str, Dict[str, int]] = {}
        self._lock = threading.Lock()

    @property
    def history_file(self) -> Path:
        return self.test_dir / "history.json"

    def invoke(self, process: int, node: str, operation: Operation) -> HistoryEvent:
        event = HistoryEvent(
            process=process,
            type='invoke',
            f=operation.f.value,
            key=operation.key,
            value=_jsonable(operation.value),
            time=self.clock(),
            node=node
        )
        with self._lock:
            self.events.append(event)
        return event

    def complete(self, process: int, node: str, operation: Operation, outcome: OutcomeRecord) -> HistoryEvent:
        status = outcome.status.value
        # Reads complete with the value they observed, everything else with what was invoked
        value = outcome.value if operation.f.value == 'read' else _jsonable(operation.value)
        event = HistoryEvent(
            process=process,
            type=status,
            f=operation.f.value,
            key=operation.key,
            value=value,
            time=self.clock(),
            node=node,
            error=outcome.error_kind.value if outcome.error_kind else None
        )
        with self._lock:
            self.events.append(event)
            by_status = self.counts.setdefault(operation.f.value, {})
            by_status[status] = by_status.get(status, 0) + 1
        return event

    def completed_operations(self) -> int:
        with self._lock:
            return sum(sum(by_status.values()) for by_status in self.counts.values())

    def write(self, extra: Optional[Dict[str, Any]] = None) -> Path:
        """Write the history and outcome counts to disk"""
        with self._lock:
            document = {
                'test_id': self.test_id,
                'counts': self.counts,
                'history': [asdict(event) for event in self.events],
            }
        if extra:
            document.update(extra)

        self.history_file.write_text(json.dumps(document, indent=2, default=str))
        logger.info(f"Wrote {len(document['history'])} history events to {self.history_file}")
        return self.history_file

    def summary_lines(self) -> List[str]:
        lines = []
        with self._lock:
            for f in sorted(self.counts):
                by_status = self.counts[f]
                parts = ', '.join(f"{status}={by_status[status]}" for status in sorted(by_status))
                lines.append(f"{f:<6} {parts}")
        return lines


def _jsonable(value):
    if isinstance(value, tuple):
        return list(value)
    return value
