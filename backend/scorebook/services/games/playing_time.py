"""Playing time and lineup stints.

Neither is a ledger counter: both are replayed from the event log, using
the game clock stamped on each event and the lineup changes in each
event's effect. Time between two events is credited to everyone who was
on the court in between.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .events import CommittedEvent, FreeThrowAttempt, OvertimeStart, QuarterChange, ShotAttempt
from .rules import MAX_PLAYERS_ON_COURT


@dataclass
class LineupStint:
    """A stretch of play by one unchanged five-player unit."""

    team_id: int
    players: Tuple[int, ...]
    start_quarter: int
    start_clock: int
    end_quarter: Optional[int] = None
    end_clock: Optional[int] = None
    seconds_played: int = 0
    points_scored: int = 0
    points_allowed: int = 0

    @property
    def plus_minus(self) -> int:
        return self.points_scored - self.points_allowed

    @property
    def is_active(self) -> bool:
        return self.end_quarter is None

    def to_dict(self) -> dict:
        return {
            'team_id': self.team_id,
            'players': list(self.players),
            'start_quarter': self.start_quarter,
            'start_clock': self.start_clock,
            'end_quarter': self.end_quarter,
            'end_clock': self.end_clock,
            'seconds_played': self.seconds_played,
            'points_scored': self.points_scored,
            'points_allowed': self.points_allowed,
            'plus_minus': self.plus_minus,
            'is_active': self.is_active,
        }


def _points(event: CommittedEvent) -> int:
    payload = event.payload
    if isinstance(payload, ShotAttempt):
        return payload.points
    if isinstance(payload, FreeThrowAttempt) and payload.made:
        return 1
    return 0


class PlayingTime:
    def __init__(self, team_of: Mapping[int, int], lineup: Mapping[int, Sequence[int]],
                 quarter: int, clock_seconds: int):
        self._team_of = dict(team_of)
        self.quarter = quarter
        self.clock = clock_seconds
        self.seconds: Dict[int, int] = {player_id: 0 for player_id in self._team_of}
        self.on_court: Dict[int, set] = {int(team_id): set(ids) for team_id, ids in lineup.items()}
        self.stints: List[LineupStint] = []
        self._open: Dict[int, LineupStint] = {}
        for team_id in self.on_court:
            self._open_stint(team_id)

    def _open_stint(self, team_id: int):
        players = self.on_court[team_id]
        # a short-handed team (foul-out vacancy) plays no stint until it is whole again
        if len(players) != MAX_PLAYERS_ON_COURT:
            return
        stint = LineupStint(team_id, tuple(sorted(players)), self.quarter, self.clock)
        self.stints.append(stint)
        self._open[team_id] = stint

    def _close_stint(self, team_id: int):
        stint = self._open.pop(team_id, None)
        if stint is not None:
            stint.end_quarter = self.quarter
            stint.end_clock = self.clock

    def run_to(self, quarter: int, clock_seconds: int):
        """Credit the time between the cursor and ``clock_seconds``."""
        if quarter == self.quarter:
            elapsed = max(0, self.clock - clock_seconds)
            if elapsed:
                for team_id, players in self.on_court.items():
                    for player_id in players:
                        self.seconds[player_id] = self.seconds.get(player_id, 0) + elapsed
                    if team_id in self._open:
                        self._open[team_id].seconds_played += elapsed
        self.quarter = quarter
        self.clock = clock_seconds

    def apply(self, event: CommittedEvent):
        self.run_to(event.quarter, event.clock_seconds)
        points = _points(event)
        if points:
            scorer = event.payload.team_id
            for team_id, stint in self._open.items():
                if team_id == scorer:
                    stint.points_scored += points
                else:
                    stint.points_allowed += points

        changed = []
        for change in event.effect.lineup:
            team_id = self._team_of[change.player_id]
            players = self.on_court.setdefault(team_id, set())
            if change.after:
                players.add(change.player_id)
            else:
                players.discard(change.player_id)
            if team_id not in changed:
                changed.append(team_id)
        for team_id in changed:
            self._close_stint(team_id)
            self._open_stint(team_id)

        payload = event.payload
        if isinstance(payload, (QuarterChange, OvertimeStart)):
            self.quarter = payload.to_quarter
            self.clock = payload.clock_seconds


def replay(events: Iterable[CommittedEvent], team_of: Mapping[int, int], lineup: Mapping[int, Sequence[int]],
           period_seconds: int, quarter: int, clock_seconds: int) -> PlayingTime:
    """Replay ``events`` from tip-off up to ``quarter``/``clock_seconds``."""
    played = PlayingTime(team_of, lineup, 1, period_seconds)
    for event in events:
        played.apply(event)
    played.run_to(quarter, clock_seconds)
    return played
