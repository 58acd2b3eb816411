"""Committed game events.

An event is an immutable envelope (sequence number, game clock snapshot,
parent link) around one payload variant. Each payload class is a variant of
the event union and is registered by its ``kind``; the ledger dispatches on
the payload type to build the event's :class:`Effect`, and undo simply
applies the inverted effect.
"""

from dataclasses import dataclass, field, asdict
from typing import ClassVar, Dict, Optional, Tuple, Type


PLAYER = 'player'
TEAM = 'team'
GAME = 'game'


@dataclass(frozen=True)
class Delta:
    """Signed change to one integer counter of the ledger."""
    target: str
    key: Optional[int]
    field: str
    amount: int

    def inverted(self) -> 'Delta':
        return Delta(self.target, self.key, self.field, -self.amount)


@dataclass(frozen=True)
class LineupChange:
    player_id: int
    before: bool
    after: bool

    def inverted(self) -> 'LineupChange':
        return LineupChange(self.player_id, self.after, self.before)


@dataclass(frozen=True)
class Effect:
    deltas: Tuple[Delta, ...] = ()
    lineup: Tuple[LineupChange, ...] = ()

    def inverted(self) -> 'Effect':
        return Effect(
            tuple(d.inverted() for d in reversed(self.deltas)),
            tuple(c.inverted() for c in reversed(self.lineup)),
        )

    def to_dict(self) -> dict:
        return {
            'deltas': [asdict(d) for d in self.deltas],
            'lineup': [asdict(c) for c in self.lineup],
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'Effect':
        return cls(
            tuple(Delta(**d) for d in data.get('deltas', [])),
            tuple(LineupChange(**c) for c in data.get('lineup', [])),
        )


_PAYLOADS: Dict[str, Type['Payload']] = {}


def _register(cls):
    _PAYLOADS[cls.kind] = cls
    return cls


class Payload:
    kind: ClassVar[str] = ''

    @property
    def actor_player_id(self) -> Optional[int]:
        return None

    @property
    def secondary_player_id(self) -> Optional[int]:
        return None

    @property
    def team_id(self) -> Optional[int]:
        return None

    def describe(self) -> str:
        return self.kind


@_register
@dataclass(frozen=True)
class ShotAttempt(Payload):
    kind: ClassVar[str] = 'shot'
    shooter_id: int
    shooter_team_id: int
    shot_type: str
    made: bool
    x: Optional[float] = None
    y: Optional[float] = None
    zone: Optional[str] = None

    @property
    def points(self) -> int:
        if not self.made:
            return 0
        return 3 if self.shot_type == '3pt' else 2

    @property
    def actor_player_id(self):
        return self.shooter_id

    @property
    def team_id(self):
        return self.shooter_team_id

    def describe(self):
        return f"{self.shot_type.upper()} {'made' if self.made else 'missed'}"


@_register
@dataclass(frozen=True)
class FoulCommitted(Payload):
    kind: ClassVar[str] = 'foul'
    fouler_id: int
    fouler_team_id: int
    foul_type: str
    shot_type: Optional[str] = None
    was_and_one: bool = False
    fouled_player_id: Optional[int] = None
    free_throws_awarded: int = 0
    one_and_one: bool = False
    free_throw_shooter_id: Optional[int] = None
    fouled_out: bool = False

    @property
    def actor_player_id(self):
        return self.fouler_id

    @property
    def secondary_player_id(self):
        return self.fouled_player_id

    @property
    def team_id(self):
        return self.fouler_team_id

    def describe(self):
        label = self.foul_type.replace('flagrant', 'flagrant ').title() + ' foul'
        return label + (' (FOULED OUT)' if self.fouled_out else '')


@_register
@dataclass(frozen=True)
class FreeThrowAttempt(Payload):
    kind: ClassVar[str] = 'free_throw'
    shooter_id: int
    shooter_team_id: int
    made: bool
    attempt_number: int
    total_attempts: int
    one_and_one: bool = False
    live: bool = True

    @property
    def actor_player_id(self):
        return self.shooter_id

    @property
    def team_id(self):
        return self.shooter_team_id

    def describe(self):
        return f"FT {'made' if self.made else 'missed'} ({self.attempt_number}/{self.total_attempts})"


@_register
@dataclass(frozen=True)
class ReboundCredit(Payload):
    kind: ClassVar[str] = 'rebound'
    rebound_team_id: int
    offensive: bool
    player_id: Optional[int] = None

    @property
    def actor_player_id(self):
        return self.player_id

    @property
    def team_id(self):
        return self.rebound_team_id

    def describe(self):
        side = 'Offensive' if self.offensive else 'Defensive'
        return f"{side} {'team ' if self.player_id is None else ''}rebound"


@_register
@dataclass(frozen=True)
class AssistCredit(Payload):
    kind: ClassVar[str] = 'assist'
    assister_id: int
    assister_team_id: int
    scorer_id: int

    @property
    def actor_player_id(self):
        return self.assister_id

    @property
    def secondary_player_id(self):
        return self.scorer_id

    @property
    def team_id(self):
        return self.assister_team_id

    def describe(self):
        return 'Assist'


@_register
@dataclass(frozen=True)
class StatCredit(Payload):
    kind: ClassVar[str] = 'stat'
    player_id: int
    player_team_id: int
    stat: str
    detail: Optional[str] = None

    @property
    def actor_player_id(self):
        return self.player_id

    @property
    def team_id(self):
        return self.player_team_id

    def describe(self):
        return self.stat.title() + (f' ({self.detail.replace("_", " ")})' if self.detail else '')


@_register
@dataclass(frozen=True)
class Substitution(Payload):
    kind: ClassVar[str] = 'substitution'
    sub_team_id: int
    player_in_id: int
    player_out_id: Optional[int] = None

    @property
    def actor_player_id(self):
        return self.player_in_id

    @property
    def secondary_player_id(self):
        return self.player_out_id

    @property
    def team_id(self):
        return self.sub_team_id

    def describe(self):
        return 'Substitution' if self.player_out_id is not None else 'Lineup vacancy filled'


@_register
@dataclass(frozen=True)
class TimeoutCalled(Payload):
    kind: ClassVar[str] = 'timeout'
    timeout_team_id: int

    @property
    def team_id(self):
        return self.timeout_team_id

    def describe(self):
        return 'Timeout'


@_register
@dataclass(frozen=True)
class QuarterChange(Payload):
    kind: ClassVar[str] = 'quarter_change'
    from_quarter: int
    to_quarter: int
    previous_clock_seconds: int
    clock_seconds: int

    def describe(self):
        return f'Quarter {self.from_quarter} -> {self.to_quarter}'


@_register
@dataclass(frozen=True)
class OvertimeStart(Payload):
    kind: ClassVar[str] = 'overtime_start'
    overtime_number: int
    from_quarter: int
    to_quarter: int
    previous_clock_seconds: int
    clock_seconds: int

    def describe(self):
        return f'Overtime {self.overtime_number} started'


@dataclass(frozen=True)
class CommittedEvent:
    seq: int
    payload: Payload
    effect: Effect
    quarter: int
    clock_seconds: int
    timestamp: float
    parent_seq: Optional[int] = None
    description: str = field(default='')

    @property
    def kind(self) -> str:
        return self.payload.kind

    def to_dict(self) -> dict:
        return {
            'seq': self.seq,
            'kind': self.kind,
            'payload': asdict(self.payload),
            'effect': self.effect.to_dict(),
            'quarter': self.quarter,
            'clock_seconds': self.clock_seconds,
            'timestamp': self.timestamp,
            'parent_seq': self.parent_seq,
            'description': self.description,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'CommittedEvent':
        return cls(
            seq=int(data['seq']),
            payload=payload_from_dict(data['kind'], data['payload']),
            effect=Effect.from_dict(data.get('effect') or {}),
            quarter=int(data['quarter']),
            clock_seconds=int(data['clock_seconds']),
            timestamp=float(data.get('timestamp') or 0.0),
            parent_seq=data.get('parent_seq'),
            description=data.get('description') or '',
        )


def payload_from_dict(kind: str, data: dict) -> Payload:
    try:
        payload_cls = _PAYLOADS[kind]
    except KeyError:
        raise ValueError(f'unknown event kind: {kind!r}')
    return payload_cls(**data)


def event_kinds() -> Tuple[str, ...]:
    return tuple(_PAYLOADS)
