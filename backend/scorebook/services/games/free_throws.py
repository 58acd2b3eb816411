from dataclasses import dataclass, field
from typing import List, Optional

from .errors import InvalidState


@dataclass
class FreeThrowSequence:
    """Attempts awarded by one foul, shot one at a time.

    ``results`` only holds attempts that were committed as events, so
    dropping the sequence at any point leaves nothing half-recorded.
    """
    shooter_id: int
    team_id: int
    total_attempts: int
    one_and_one: bool = False
    live: bool = True
    foul_seq: Optional[int] = None
    results: List[bool] = field(default_factory=list)

    def __post_init__(self):
        if self.total_attempts < 1:
            raise InvalidState('A free throw sequence needs at least one attempt')
        if self.one_and_one and self.total_attempts != 2:
            raise InvalidState('A one-and-one is always a two attempt award')

    @property
    def current_attempt(self) -> int:
        return len(self.results) + 1

    @property
    def is_complete(self) -> bool:
        if self.one_and_one and self.results and not self.results[0]:
            return True
        return len(self.results) >= self.total_attempts

    def will_end_after(self, made: bool) -> bool:
        """Whether recording ``made`` for the current attempt ends the sequence."""
        if self.one_and_one and self.current_attempt == 1 and not made:
            return True
        return self.current_attempt >= self.total_attempts

    def record(self, made: bool) -> bool:
        """Store a result; returns True while more attempts remain."""
        if self.is_complete:
            raise InvalidState('Free throw sequence already finished')
        self.results.append(bool(made))
        return not self.is_complete

    def rewind(self) -> None:
        """Drop the last result (used when its event is undone)."""
        if self.results:
            self.results.pop()

    def to_dict(self) -> dict:
        return {
            'shooter_id': self.shooter_id,
            'team_id': self.team_id,
            'total_attempts': self.total_attempts,
            'current_attempt': self.current_attempt,
            'one_and_one': self.one_and_one,
            'live': self.live,
            'foul_seq': self.foul_seq,
            'results': list(self.results),
        }
