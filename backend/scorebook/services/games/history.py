from typing import List, Optional

from .errors import InvalidState, NothingToUndo
from .events import CommittedEvent


class ActionHistory:
    """Append-only log of committed events; only the newest can be popped."""

    def __init__(self, events=None):
        self._events: List[CommittedEvent] = list(events or [])

    def __len__(self):
        return len(self._events)

    @property
    def events(self) -> List[CommittedEvent]:
        return list(self._events)

    @property
    def next_seq(self) -> int:
        return self._events[-1].seq + 1 if self._events else 1

    def record(self, event: CommittedEvent) -> None:
        if self._events and event.seq <= self._events[-1].seq:
            raise InvalidState(f'Event {event.seq} is out of order')
        self._events.append(event)

    def last(self) -> Optional[CommittedEvent]:
        return self._events[-1] if self._events else None

    def find(self, seq: int) -> Optional[CommittedEvent]:
        for event in reversed(self._events):
            if event.seq == seq:
                return event
        return None

    def dependents(self, seq: int) -> List[CommittedEvent]:
        return [e for e in self._events if e.parent_seq == seq]

    def pop(self) -> CommittedEvent:
        """Remove the newest event; refuses while later events still point at it."""
        if not self._events:
            raise NothingToUndo()
        event = self._events[-1]
        if self.dependents(event.seq):
            raise InvalidState('Undo the events that depend on this one first')
        return self._events.pop()
