"""Shot / assist / rebound attribution.

A shot is a multi-step interaction: a court tap opens a pending shot, the
make/miss resolution commits the shot event, then an assist prompt (make)
or a rebound prompt (miss) follows. Only one of these prompts may be open
at a time so that half-finished interactions never interleave.
"""

import math
from dataclasses import dataclass
from typing import List, Optional, Union

from .errors import InvalidState
from .rules import CORNER_THREE_DEPTH, CORNER_THREE_SIDELINE, THREE_POINT_DISTANCE, ShotType

# zone names, in court coordinates (feet, basket at origin)
AT_RIM = 'at_rim'
PAINT = 'paint'
LEFT_ELBOW = 'left_elbow'
RIGHT_ELBOW = 'right_elbow'
FREE_THROW_LINE = 'free_throw_line'
MID_RANGE = 'mid_range'
LEFT_CORNER_3 = 'left_corner_3'
RIGHT_CORNER_3 = 'right_corner_3'
LEFT_WING_3 = 'left_wing_3'
RIGHT_WING_3 = 'right_wing_3'
TOP_KEY_3 = 'top_key_3'

ZONES = (
    AT_RIM, PAINT, LEFT_ELBOW, RIGHT_ELBOW, FREE_THROW_LINE, MID_RANGE,
    LEFT_CORNER_3, RIGHT_CORNER_3, LEFT_WING_3, RIGHT_WING_3, TOP_KEY_3,
)


def is_three(x: float, y: float) -> bool:
    corner = abs(x) > CORNER_THREE_SIDELINE and y < CORNER_THREE_DEPTH
    return math.hypot(x, y) > THREE_POINT_DISTANCE or corner


def shot_zone(x: float, y: float, three: Optional[bool] = None) -> str:
    if three is None:
        three = is_three(x, y)
    if three:
        if abs(x) > 20 and y < CORNER_THREE_DEPTH:
            return RIGHT_CORNER_3 if x > 0 else LEFT_CORNER_3
        if abs(x) > 12:
            return RIGHT_WING_3 if x > 0 else LEFT_WING_3
        return TOP_KEY_3
    distance = math.hypot(x, y)
    if distance < 4:
        return AT_RIM
    if y < 8 and distance < 10:
        return PAINT
    if abs(x) > 12:
        return RIGHT_ELBOW if x > 0 else LEFT_ELBOW
    if y > 15:
        return FREE_THROW_LINE
    return MID_RANGE


@dataclass(frozen=True)
class PendingShot:
    shot_type: ShotType
    x: Optional[float] = None
    y: Optional[float] = None
    zone: Optional[str] = None

    def to_dict(self) -> dict:
        return {'kind': 'shot', 'shot_type': self.shot_type.value, 'x': self.x, 'y': self.y, 'zone': self.zone}


@dataclass(frozen=True)
class PendingAssist:
    shot_seq: int
    scorer_id: int
    team_id: int
    points: int

    @property
    def parent_seq(self) -> int:
        return self.shot_seq

    def to_dict(self) -> dict:
        return {'kind': 'assist', 'shot_seq': self.shot_seq, 'scorer_id': self.scorer_id,
                'team_id': self.team_id, 'points': self.points}


@dataclass(frozen=True)
class PendingRebound:
    parent_seq: int
    shooter_id: int
    shooter_team_id: int
    source: str = 'shot'

    def to_dict(self) -> dict:
        return {'kind': 'rebound', 'parent_seq': self.parent_seq, 'shooter_id': self.shooter_id,
                'shooter_team_id': self.shooter_team_id, 'source': self.source}


Pending = Union[PendingShot, PendingAssist, PendingRebound]


class AttributionWorkflow:
    """Holds the single open shot/assist/rebound prompt for a game."""

    def __init__(self):
        self.pending: Optional[Pending] = None

    @property
    def is_idle(self) -> bool:
        return self.pending is None

    def _open(self, pending: Pending) -> Pending:
        if self.pending is not None:
            raise InvalidState(
                f'Finish or cancel the open {type(self.pending).__name__[7:].lower()} prompt first')
        self.pending = pending
        return pending

    def begin_shot(self, x: Optional[float] = None, y: Optional[float] = None,
                   shot_type: Optional[ShotType] = None) -> PendingShot:
        zone = None
        if x is not None and y is not None:
            three = is_three(x, y)
            if shot_type is None:
                shot_type = ShotType.THREE if three else ShotType.TWO
            zone = shot_zone(x, y, shot_type is ShotType.THREE)
        if shot_type is None:
            raise InvalidState('A shot needs a court location or an explicit shot type')
        return self._open(PendingShot(ShotType(shot_type), x, y, zone))

    def take_shot(self) -> PendingShot:
        if not isinstance(self.pending, PendingShot):
            raise InvalidState('No shot is waiting to be resolved')
        shot = self.pending
        self.pending = None
        return shot

    def await_assist(self, shot_seq: int, scorer_id: int, team_id: int, points: int) -> PendingAssist:
        return self._open(PendingAssist(shot_seq, scorer_id, team_id, points))

    def take_assist(self) -> PendingAssist:
        if not isinstance(self.pending, PendingAssist):
            raise InvalidState('No assist prompt is open')
        assist = self.pending
        self.pending = None
        return assist

    def await_rebound(self, parent_seq: int, shooter_id: int, shooter_team_id: int,
                      source: str = 'shot') -> PendingRebound:
        return self._open(PendingRebound(parent_seq, shooter_id, shooter_team_id, source))

    def take_rebound(self) -> PendingRebound:
        if not isinstance(self.pending, PendingRebound):
            raise InvalidState('No rebound prompt is open')
        rebound = self.pending
        self.pending = None
        return rebound

    def cancel(self) -> Optional[Pending]:
        pending, self.pending = self.pending, None
        return pending

    def depends_on(self, seq: int) -> bool:
        return getattr(self.pending, 'parent_seq', None) == seq


def assist_candidates(ledger, pending: PendingAssist) -> List[int]:
    return [p.player_id for p in ledger.on_court(pending.team_id) if p.player_id != pending.scorer_id]


def rebound_candidates(ledger) -> List[int]:
    return [p.player_id for p in ledger.on_court()]
