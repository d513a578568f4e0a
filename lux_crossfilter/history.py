"""
FilterHistory - undo/redo for filter operations.

Each entry stores the filter state before and after one add/remove/clear,
so undo and redo restore a snapshot instead of re-running inverse operations.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional


@dataclass
class HistoryEntry:
    operation: str
    key: Optional[str]
    value: Any
    before: Dict[str, Any]
    after: Dict[str, Any]

    @property
    def undo_description(self) -> str:
        return f"undo {self._describe()}"

    @property
    def redo_description(self) -> str:
        return f"redo {self._describe()}"

    def _describe(self) -> str:
        if self.operation == 'clear':
            return 'clear all filters'
        if self.value is None:
            return f"{self.operation} filter {self.key}"
        return f"{self.operation} filter {self.key}={self.value!r}"


class FilterHistory:
    """
    Linear history with a movable cursor. Recording a new entry discards
    everything after the cursor. `memento_size` caps the number of entries
    kept (oldest first out).

    Usage:
        history = FilterHistory(restore=controller.restore_filters)
        history.record('add', 'colour', 'black', before, after)
        history.undo()
    """

    def __init__(self, restore: Callable[[Dict[str, Any]], None], memento_size: Optional[int] = None):
        self._restore = restore
        self._memento: List[HistoryEntry] = []
        self._index = -1
        self._replaying = False
        self.memento_size = memento_size

    def __len__(self):
        return len(self._memento)

    @property
    def undo_count(self) -> int:
        return self._index + 1

    @property
    def redo_count(self) -> int:
        return len(self._memento) - self._index - 1

    @property
    def can_undo(self) -> bool:
        return self.undo_count > 0

    @property
    def can_redo(self) -> bool:
        return self.redo_count > 0

    @property
    def replaying(self) -> bool:
        return self._replaying

    def entries(self) -> List[HistoryEntry]:
        return list(self._memento)

    def record(self, operation: str, key: Optional[str], value: Any,
               before: Dict[str, Any], after: Dict[str, Any]):
        """Append an entry unless an undo/redo is being replayed."""
        if self._replaying:
            return
        self._clear_future()
        self._memento.append(HistoryEntry(operation, key, value, before, after))
        self._index += 1
        if self.memento_size and self.memento_size > 0:
            self.clear_history(self.memento_size)

    def undo(self) -> Optional[HistoryEntry]:
        """Step back one entry. Returns the undone entry, or None at the start."""
        if self._index < 0:
            return None
        entry = self._memento[self._index]
        self._replay(entry.before)
        self._index -= 1
        return entry

    def redo(self) -> Optional[HistoryEntry]:
        """Step forward one entry. Returns the redone entry, or None at the end."""
        if self._index >= len(self._memento) - 1:
            return None
        self._index += 1
        entry = self._memento[self._index]
        self._replay(entry.after)
        return entry

    def clear_history(self, count: Optional[int] = None):
        """
        Drop history. With no count everything goes; otherwise the future is
        discarded and only the last `count` past entries are kept.
        """
        if not count:
            self._memento = []
            self._index = -1
            return
        if count <= 0:
            return
        self._clear_future()
        count = min(count, self._index + 1)
        self._memento = self._memento[self._index + 1 - count:]
        self._index = count - 1

    def _clear_future(self):
        del self._memento[self._index + 1:]

    def _replay(self, snapshot: Dict[str, Any]):
        self._replaying = True
        try:
            self._restore(snapshot)
        finally:
            self._replaying = False
