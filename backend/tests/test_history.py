import pytest

from scorebook.services.games.errors import InvalidState, NothingToUndo
from scorebook.services.games.events import CommittedEvent, Effect, StatCredit
from scorebook.services.games.history import ActionHistory


def _event(seq, parent_seq=None):
    payload = StatCredit(101, 1, 'steal', None)
    return CommittedEvent(seq=seq, payload=payload, effect=Effect(()), quarter=1,
                          clock_seconds=600, timestamp=0.0, parent_seq=parent_seq,
                          description=payload.describe())


def test_sequence_numbers_increase():
    history = ActionHistory()
    assert history.next_seq == 1
    history.record(_event(1))
    history.record(_event(2))
    assert history.next_seq == 3
    with pytest.raises(InvalidState):
        history.record(_event(2))


def test_pop_returns_newest_first():
    history = ActionHistory([_event(1), _event(2)])
    assert history.pop().seq == 2
    assert history.pop().seq == 1
    with pytest.raises(NothingToUndo):
        history.pop()


def test_find_and_dependents():
    history = ActionHistory([_event(1), _event(2, parent_seq=1), _event(3)])
    assert history.find(2).parent_seq == 1
    assert history.find(9) is None
    assert [e.seq for e in history.dependents(1)] == [2]
    assert history.dependents(3) == []


def test_events_is_a_copy():
    history = ActionHistory([_event(1)])
    history.events.clear()
    assert len(history) == 1
