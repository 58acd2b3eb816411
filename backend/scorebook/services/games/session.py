"""GameSession: the live-game state machine for one game.

A session owns the clock, the stat ledger, the action history and the
transient prompts (shot/assist/rebound, free-throw sequence). Every public
command either applies completely or raises before touching any state.
Committed events and undos are queued in an outbox that the persistence
adapter drains in order; the session itself does no I/O.
"""

import logging
import time
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from . import roster
from .attribution import (
    AttributionWorkflow, PendingAssist, PendingRebound, PendingShot, assist_candidates, rebound_candidates,
)
from .clock import GameClock
from .errors import InvalidState, NoActiveFreeThrows, NothingToUndo
from .events import (
    AssistCredit, CommittedEvent, FoulCommitted, FreeThrowAttempt, OvertimeStart, Payload, QuarterChange,
    ReboundCredit, ShotAttempt, StatCredit, TimeoutCalled,
)
from .fouls import assess_foul
from .free_throws import FreeThrowSequence
from .history import ActionHistory
from .ledger import Ledger
from .playing_time import PlayingTime, replay
from .rules import FoulType, GameSettings, GameStatus, QuickStat, ShotType

logger = logging.getLogger(__name__)

COMMIT = 'commit'
UNDO = 'undo'

_IN_PROGRESS = (GameStatus.ACTIVE, GameStatus.PAUSED)


class GameSession:
    def __init__(self, home_team_id: int, away_team_id: int, roster_ids: Iterable[Tuple[int, int]],
                 settings: Optional[GameSettings] = None, game_id: Optional[int] = None,
                 now: Callable[[], float] = time.monotonic, wall_clock: Callable[[], float] = time.time):
        self.game_id = game_id
        self.settings = settings or GameSettings()
        self.status = GameStatus.SCHEDULED
        self.ledger = Ledger(self.settings, home_team_id, away_team_id, roster_ids)
        self.history = ActionHistory()
        self.attribution = AttributionWorkflow()
        self.free_throws: Optional[FreeThrowSequence] = None
        self.starters: Dict[int, List[int]] = {home_team_id: [], away_team_id: []}
        self.starting_lineup: Optional[Dict[int, List[int]]] = None
        self.period_ended = False
        self.clock = GameClock(self.settings.period_length(1), now=now, on_period_end=self._on_period_end)
        self._wall_clock = wall_clock
        self._outbox: List[Tuple[str, CommittedEvent]] = []

    @classmethod
    def restore(cls, home_team_id: int, away_team_id: int, roster_ids: Iterable[Tuple[int, int]],
                settings: GameSettings, status, events: Sequence[CommittedEvent],
                starting_lineup: Optional[Mapping[int, Sequence[int]]] = None,
                starters: Optional[Mapping[int, Sequence[int]]] = None,
                clock_seconds: Optional[int] = None, clock_running: bool = False,
                clock_anchor: Optional[float] = None, clock_carry: float = 0.0, **kwargs) -> 'GameSession':
        """Rebuild a session from what the store persisted.

        The ledger is the fold of the event log over the starting lineup;
        pending prompts are transient and are not restored.
        """
        roster_ids = list(roster_ids)
        session = cls(home_team_id, away_team_id, roster_ids, settings=settings, **kwargs)
        session.status = GameStatus(status)
        if starters:
            session.starters = {int(t): list(ids) for t, ids in starters.items()}
        if starting_lineup:
            session.starting_lineup = {int(t): list(ids) for t, ids in starting_lineup.items()}
        session.history = ActionHistory(events)
        session.ledger = Ledger.fold(settings, home_team_id, away_team_id, roster_ids, events,
                                     starting_lineup=session.starting_lineup)
        quarter = session.ledger.game.current_quarter
        session.clock.period_seconds = settings.period_length(quarter)
        session.clock.set_quarter(quarter)
        if clock_seconds is None:
            clock_seconds = session.clock.period_seconds
        running = clock_running and session.status is GameStatus.ACTIVE
        session.clock.restore(clock_seconds, running, clock_anchor, clock_carry)
        session.period_ended = clock_seconds == 0 and session.status in _IN_PROGRESS
        session.tick()
        return session

    # ---- properties ----

    @property
    def current_quarter(self) -> int:
        return self.ledger.game.current_quarter

    @property
    def is_active(self) -> bool:
        return self.status is GameStatus.ACTIVE

    @property
    def can_record_stats(self) -> bool:
        return self.status in _IN_PROGRESS

    @property
    def is_tied(self) -> bool:
        return self.ledger.game.home_score == self.ledger.game.away_score

    # ---- internals ----

    def _on_period_end(self):
        self.period_ended = True
        if self.status is GameStatus.ACTIVE:
            self.status = GameStatus.PAUSED
        logger.info('[period-end] game=%s quarter=%s', self.game_id, self.current_quarter)

    def _pause_clock(self):
        self.clock.pause()
        if self.status is GameStatus.ACTIVE:
            self.status = GameStatus.PAUSED

    def _require_in_progress(self):
        if self.status not in _IN_PROGRESS:
            raise InvalidState(f'Game is {self.status.value}; stats can only be recorded during a game')

    def _require_idle(self):
        if self.free_throws is not None:
            raise InvalidState('Finish or cancel the free throw sequence first')
        if not self.attribution.is_idle:
            kind = type(self.attribution.pending).__name__[len('Pending'):].lower()
            raise InvalidState(f'Finish or cancel the open {kind} prompt first')

    def _require_on_court(self, player_id: int):
        line = self.ledger.player(player_id)
        if line.fouled_out:
            raise InvalidState(f'Player {player_id} has fouled out')
        if not line.is_on_court:
            raise InvalidState(f'Player {player_id} is not on the court')
        return line

    def _commit(self, payload: Payload, parent_seq: Optional[int] = None) -> CommittedEvent:
        effect = self.ledger.effect_for(payload)
        event = CommittedEvent(
            seq=self.history.next_seq,
            payload=payload,
            effect=effect,
            quarter=self.current_quarter,
            clock_seconds=self.clock.seconds_remaining,
            timestamp=self._wall_clock(),
            parent_seq=parent_seq,
            description=payload.describe(),
        )
        self.ledger.apply(effect)
        self.history.record(event)
        self._outbox.append((COMMIT, event))
        logger.debug('[commit] game=%s seq=%s kind=%s', self.game_id, event.seq, event.kind)
        return event

    def drain_outbox(self) -> List[Tuple[str, CommittedEvent]]:
        ops, self._outbox = self._outbox, []
        return ops

    # ---- lifecycle ----

    def update_settings(self, **changes) -> GameSettings:
        if self.status is not GameStatus.SCHEDULED:
            raise InvalidState('Settings can only be changed before the game starts')
        settings = self.settings.updated(**changes)
        self.settings = settings
        self.ledger.settings = settings
        for team in self.ledger.teams.values():
            team.timeouts_remaining = settings.timeouts_per_team
        self.clock.period_seconds = settings.period_length(self.current_quarter)
        self.clock.reset()
        return settings

    def toggle_starter(self, player_id: int) -> Dict[int, List[int]]:
        if self.status is not GameStatus.SCHEDULED:
            raise InvalidState('Starters can only be chosen before the game starts')
        line = self.ledger.player(player_id)
        self.starters = roster.toggle_starter(self.starters, line.team_id, player_id)
        return self.starters

    def start_game(self):
        if self.status is not GameStatus.SCHEDULED:
            raise InvalidState(f'Game is already {self.status.value}')
        lineup = roster.complete_lineup(self.ledger, self.starters)
        self.ledger.set_lineup(lineup)
        self.starting_lineup = lineup
        self.starters = {t: list(ids) for t, ids in lineup.items()}
        self.status = GameStatus.ACTIVE
        self.clock.reset(self.settings.period_length(self.current_quarter))
        self.clock.start()
        logger.info('[start] game=%s', self.game_id)

    def pause_game(self):
        self.tick()
        if self.status is not GameStatus.ACTIVE:
            raise InvalidState('Only an active game can be paused')
        self._pause_clock()

    def resume_game(self):
        self.tick()
        if self.status is not GameStatus.PAUSED:
            raise InvalidState('Only a paused game can be resumed')
        if self.clock.seconds_remaining == 0:
            raise InvalidState('The period is over; move to the next period first')
        self.status = GameStatus.ACTIVE
        self.period_ended = False
        self.clock.start()

    def end_game(self, force: bool = False):
        self.tick()
        self._require_in_progress()
        if not force:
            if self.current_quarter < self.settings.regulation_quarters or self.clock.seconds_remaining > 0:
                raise InvalidState('Regulation is not over yet; force the end to stop the game early')
            if self.is_tied:
                raise InvalidState('The score is tied; start overtime or force the end')
        self.clock.pause()
        self.attribution.cancel()
        self.free_throws = None
        self.status = GameStatus.COMPLETED
        logger.info('[end] game=%s forced=%s score=%s-%s', self.game_id, force,
                    self.ledger.game.home_score, self.ledger.game.away_score)

    def reactivate_game(self):
        if self.status is not GameStatus.COMPLETED:
            raise InvalidState('Only a completed game can be reactivated')
        self.status = GameStatus.PAUSED
        self.period_ended = self.clock.seconds_remaining == 0

    # ---- clock & periods ----

    def tick(self) -> bool:
        return self.clock.tick()

    def set_clock(self, seconds: int):
        self.tick()
        self._require_in_progress()
        seconds = int(seconds)
        if seconds < 0 or seconds > self.settings.period_length(self.current_quarter):
            raise InvalidState('Clock time must be between 0 and the period length')
        self.clock.set_time(seconds)
        self.period_ended = seconds == 0

    def set_quarter(self, quarter: int, reset_time: bool = True) -> CommittedEvent:
        self.tick()
        self._require_in_progress()
        self._require_idle()
        quarter = int(quarter)
        if quarter < 1:
            raise InvalidState('Quarter must be 1 or later')
        if quarter == self.current_quarter:
            raise InvalidState(f'Game is already in quarter {quarter}')
        self._pause_clock()
        previous = self.clock.seconds_remaining
        seconds = self.settings.period_length(quarter) if reset_time else min(
            previous, self.settings.period_length(quarter))
        event = self._commit(QuarterChange(self.current_quarter, quarter, previous, seconds))
        self._enter_period(quarter, seconds)
        return event

    def end_period(self) -> str:
        """Close the current period.

        Returns ``'next_period'`` when play moves on, ``'overtime'`` when the
        score is tied after regulation (call :meth:`start_overtime`), or
        ``'game_over'`` when the game has been completed.
        """
        self.tick()
        self._require_in_progress()
        self._require_idle()
        if self.current_quarter < self.settings.regulation_quarters:
            self.set_quarter(self.current_quarter + 1)
            return 'next_period'
        self._pause_clock()
        self.clock.set_time(0)
        self.period_ended = True
        if self.is_tied:
            return 'overtime'
        self.end_game()
        return 'game_over'

    def start_overtime(self) -> CommittedEvent:
        self.tick()
        self._require_in_progress()
        self._require_idle()
        if self.current_quarter < self.settings.regulation_quarters:
            raise InvalidState('Overtime can only start after regulation')
        if not self.is_tied:
            raise InvalidState('Overtime is only played when the score is tied')
        self._pause_clock()
        to_quarter = self.current_quarter + 1
        seconds = self.settings.period_length(to_quarter)
        event = self._commit(OvertimeStart(
            overtime_number=to_quarter - self.settings.regulation_quarters,
            from_quarter=self.current_quarter,
            to_quarter=to_quarter,
            previous_clock_seconds=self.clock.seconds_remaining,
            clock_seconds=seconds,
        ))
        self._enter_period(to_quarter, seconds)
        logger.info('[overtime] game=%s ot=%s', self.game_id, event.payload.overtime_number)
        return event

    def _enter_period(self, quarter: int, seconds: int):
        self.clock.period_seconds = self.settings.period_length(quarter)
        self.clock.set_quarter(quarter)
        self.clock.set_time(seconds)
        self.period_ended = seconds == 0

    # ---- shots, assists, rebounds ----

    def begin_shot(self, x: Optional[float] = None, y: Optional[float] = None,
                   shot_type=None) -> PendingShot:
        self.tick()
        self._require_in_progress()
        if self.free_throws is not None:
            raise InvalidState('Finish or cancel the free throw sequence first')
        return self.attribution.begin_shot(x, y, ShotType(shot_type) if shot_type is not None else None)

    def resolve_shot(self, shooter_id: int, made: bool) -> CommittedEvent:
        self.tick()
        self._require_in_progress()
        if not isinstance(self.attribution.pending, PendingShot):
            raise InvalidState('No shot is waiting to be resolved')
        line = self._require_on_court(shooter_id)
        shot = self.attribution.take_shot()
        event = self._commit(ShotAttempt(
            shooter_id=shooter_id,
            shooter_team_id=line.team_id,
            shot_type=shot.shot_type.value,
            made=bool(made),
            x=shot.x,
            y=shot.y,
            zone=shot.zone,
        ))
        if made:
            self.attribution.await_assist(event.seq, shooter_id, line.team_id, event.payload.points)
        else:
            self.attribution.await_rebound(event.seq, shooter_id, line.team_id)
        return event

    def record_shot(self, shooter_id: int, made: bool, shot_type=None,
                    x: Optional[float] = None, y: Optional[float] = None) -> CommittedEvent:
        self.tick()
        self._require_in_progress()
        self._require_idle()
        self._require_on_court(shooter_id)
        self.begin_shot(x, y, shot_type)
        return self.resolve_shot(shooter_id, made)

    def resolve_assist(self, assister_id: Optional[int] = None) -> Optional[CommittedEvent]:
        """Credit the open assist prompt; ``None`` means no assist."""
        self.tick()
        if not isinstance(self.attribution.pending, PendingAssist):
            raise InvalidState('No assist prompt is open')
        pending = self.attribution.pending
        if assister_id is None:
            self.attribution.take_assist()
            return None
        if assister_id == pending.scorer_id:
            raise InvalidState('A scorer cannot assist their own basket')
        line = self._require_on_court(assister_id)
        if line.team_id != pending.team_id:
            raise InvalidState('Assists can only go to a teammate of the scorer')
        self.attribution.take_assist()
        return self._commit(AssistCredit(assister_id, line.team_id, pending.scorer_id), parent_seq=pending.shot_seq)

    def resolve_rebound(self, player_id: Optional[int] = None,
                        team_id: Optional[int] = None) -> CommittedEvent:
        """Credit the open rebound prompt to a player, or to ``team_id`` as a team rebound."""
        self.tick()
        if not isinstance(self.attribution.pending, PendingRebound):
            raise InvalidState('No rebound prompt is open')
        pending = self.attribution.pending
        if player_id is not None:
            team_id = self._require_on_court(player_id).team_id
        elif team_id is None:
            raise InvalidState('Pick a rebounder or a team for a team rebound')
        else:
            self.ledger.team(team_id)
        self.attribution.take_rebound()
        offensive = team_id == pending.shooter_team_id
        return self._commit(ReboundCredit(team_id, offensive, player_id), parent_seq=pending.parent_seq)

    def cancel_pending(self) -> Optional[dict]:
        """Drop any open prompt or free throw sequence; committed events stay."""
        cancelled = None
        pending = self.attribution.cancel()
        if pending is not None:
            cancelled = pending.to_dict()
        if self.free_throws is not None:
            cancelled = {'kind': 'free_throws', **self.free_throws.to_dict()}
            self.free_throws = None
        return cancelled

    # ---- quick stats ----

    def record_stat(self, player_id: int, stat, detail: Optional[str] = None) -> CommittedEvent:
        self.tick()
        self._require_in_progress()
        self._require_idle()
        stat = QuickStat(stat)
        line = self._require_on_court(player_id)
        return self._commit(StatCredit(player_id, line.team_id, stat.value, detail))

    # ---- fouls & free throws ----

    def record_foul(self, player_id: int, foul_type, shot_type=None, was_and_one: bool = False,
                    fouled_player_id: Optional[int] = None,
                    shooter_id: Optional[int] = None) -> CommittedEvent:
        self.tick()
        self._require_in_progress()
        self._require_idle()
        foul_type = FoulType(foul_type)
        shot_type = ShotType(shot_type) if shot_type is not None else None
        line = self.ledger.player(player_id)
        assessment = assess_foul(line, self.ledger.team(line.team_id), foul_type, self.settings,
                                 shot_type=shot_type, was_and_one=was_and_one)
        if foul_type is not FoulType.TECHNICAL:
            self._require_on_court(player_id)
        opponent_id = self.ledger.opponent_of(line.team_id)
        if fouled_player_id is not None and self.ledger.player(fouled_player_id).team_id != opponent_id:
            raise InvalidState('The fouled player must be on the other team')

        award = assessment.award
        ft_shooter = None
        if award.attempts:
            ft_shooter = self._free_throw_shooter(opponent_id, shooter_id or fouled_player_id,
                                                  award.shooter_must_be_on_court,
                                                  any_on_court=foul_type is FoulType.TECHNICAL)

        event = self._commit(FoulCommitted(
            fouler_id=player_id,
            fouler_team_id=line.team_id,
            foul_type=foul_type.value,
            shot_type=shot_type.value if shot_type else None,
            was_and_one=was_and_one,
            fouled_player_id=fouled_player_id,
            free_throws_awarded=award.attempts,
            one_and_one=award.one_and_one,
            free_throw_shooter_id=ft_shooter,
            fouled_out=assessment.fouled_out,
        ))
        if award.attempts:
            self.free_throws = FreeThrowSequence(ft_shooter, opponent_id, award.attempts,
                                                 one_and_one=award.one_and_one, live=award.live,
                                                 foul_seq=event.seq)
        if assessment.fouled_out:
            logger.info('[foul-out] game=%s player=%s fouls=%s', self.game_id, player_id,
                        assessment.player_fouls)
        return event

    def _free_throw_shooter(self, team_id: int, player_id: Optional[int], must_be_on_court: bool,
                            any_on_court: bool = False) -> int:
        # only technical free throws may be taken by whoever the team sends
        if player_id is None:
            if not any_on_court:
                raise InvalidState('Pick the fouled player to shoot the free throws')
            candidates = self.ledger.on_court(team_id)
            if not candidates:
                raise InvalidState('No eligible free throw shooter on the court')
            return candidates[0].player_id
        line = self.ledger.player(player_id)
        if line.team_id != team_id:
            raise InvalidState('Free throws are shot by the team that was fouled')
        if must_be_on_court:
            self._require_on_court(player_id)
        elif line.fouled_out:
            raise InvalidState(f'Player {player_id} has fouled out')
        return player_id

    def start_free_throws(self, shooter_id: int, attempts: int, one_and_one: bool = False,
                          live: bool = True) -> FreeThrowSequence:
        self.tick()
        self._require_in_progress()
        self._require_idle()
        line = self.ledger.player(shooter_id)
        if line.fouled_out:
            raise InvalidState(f'Player {shooter_id} has fouled out')
        self.free_throws = FreeThrowSequence(shooter_id, line.team_id, int(attempts),
                                             one_and_one=one_and_one, live=live)
        return self.free_throws

    def record_free_throw(self, made: bool) -> CommittedEvent:
        self.tick()
        sequence = self.free_throws
        if sequence is None:
            raise NoActiveFreeThrows()
        self._require_in_progress()
        if self.ledger.player(sequence.shooter_id).fouled_out:
            raise InvalidState(f'Player {sequence.shooter_id} has fouled out')
        made = bool(made)
        ends = sequence.will_end_after(made)
        event = self._commit(FreeThrowAttempt(
            shooter_id=sequence.shooter_id,
            shooter_team_id=sequence.team_id,
            made=made,
            attempt_number=sequence.current_attempt,
            total_attempts=sequence.total_attempts,
            one_and_one=sequence.one_and_one,
            live=sequence.live,
        ), parent_seq=sequence.foul_seq)
        sequence.record(made)
        if ends:
            self.free_throws = None
            if not made and sequence.live:
                self.attribution.await_rebound(event.seq, sequence.shooter_id, sequence.team_id,
                                               source='free_throw')
        return event

    # ---- lineup & timeouts ----

    def swap(self, out_player_id: int, in_player_id: int, team_id: Optional[int] = None) -> CommittedEvent:
        self.tick()
        self._require_in_progress()
        self._require_idle()
        payload = roster.validate_swap(self.ledger, out_player_id, in_player_id, team_id)
        return self._commit(payload)

    def fill_vacancy(self, in_player_id: int) -> CommittedEvent:
        self.tick()
        self._require_in_progress()
        self._require_idle()
        return self._commit(roster.validate_fill(self.ledger, in_player_id))

    def record_timeout(self, team_id: int) -> CommittedEvent:
        self.tick()
        self._require_in_progress()
        self._require_idle()
        if self.ledger.team(team_id).timeouts_remaining <= 0:
            raise InvalidState('No timeouts remaining')
        event = self._commit(TimeoutCalled(team_id))
        self._pause_clock()
        return event

    # ---- undo ----

    def undo_last(self) -> CommittedEvent:
        """Reverse the newest event and restore the prompt it closed, if any."""
        self.tick()
        event = self.history.last()
        if event is None:
            raise NothingToUndo()

        sequence = self.free_throws
        if sequence is not None:
            if sequence.results:
                if not isinstance(event.payload, FreeThrowAttempt):
                    raise InvalidState('Finish or cancel the free throw sequence first')
            elif sequence.foul_seq != event.seq:
                raise InvalidState('Finish or cancel the free throw sequence first')
        pending = self.attribution.pending
        if pending is not None and not self.attribution.depends_on(event.seq):
            raise InvalidState('Cancel the open prompt before undoing')

        self.history.pop()
        self.attribution.cancel()
        self.ledger.revert(event.effect)
        self._reopen_after_undo(event)
        self._outbox.append((UNDO, event))
        logger.info('[undo] game=%s seq=%s kind=%s', self.game_id, event.seq, event.kind)
        return event

    def _reopen_after_undo(self, event: CommittedEvent):
        payload = event.payload
        if isinstance(payload, FoulCommitted):
            self.free_throws = None
        elif isinstance(payload, FreeThrowAttempt):
            if self.free_throws is not None:
                self.free_throws.rewind()
            else:
                self.free_throws = FreeThrowSequence(
                    payload.shooter_id, payload.shooter_team_id, payload.total_attempts,
                    one_and_one=payload.one_and_one, live=payload.live, foul_seq=event.parent_seq,
                    results=self._earlier_free_throws(payload.attempt_number - 1),
                )
        elif isinstance(payload, AssistCredit):
            shot = self.history.find(event.parent_seq)
            self.attribution.await_assist(shot.seq, shot.payload.shooter_id, shot.payload.shooter_team_id,
                                          shot.payload.points)
        elif isinstance(payload, ReboundCredit):
            parent = self.history.find(event.parent_seq)
            source = 'free_throw' if isinstance(parent.payload, FreeThrowAttempt) else 'shot'
            self.attribution.await_rebound(parent.seq, parent.payload.shooter_id, parent.payload.team_id, source)
        elif isinstance(payload, (QuarterChange, OvertimeStart)):
            self._pause_clock()
            self._enter_period(payload.from_quarter, payload.previous_clock_seconds)

    def _earlier_free_throws(self, count: int) -> List[bool]:
        results = []
        for earlier in reversed(self.history.events):
            if len(results) >= count:
                break
            if isinstance(earlier.payload, FreeThrowAttempt):
                results.append(earlier.payload.made)
        return list(reversed(results))

    # ---- read models ----

    def vacancies(self) -> Dict[int, int]:
        return roster.vacancies(self.ledger)

    def snapshot(self) -> dict:
        game = self.ledger.game
        pending = self.attribution.pending
        snapshot = {
            'game_id': self.game_id,
            'status': self.status.value,
            'current_quarter': game.current_quarter,
            'period_label': self.settings.period_label(game.current_quarter),
            'is_overtime': self.settings.is_overtime(game.current_quarter),
            'clock': {
                'seconds_remaining': self.clock.seconds_remaining,
                'running': self.clock.is_running,
                'display': GameClock.format(self.clock.seconds_remaining),
            },
            'home_team_id': self.ledger.home_team_id,
            'away_team_id': self.ledger.away_team_id,
            'home_score': game.home_score,
            'away_score': game.away_score,
            'settings': self.settings.to_dict(),
            'players': self._player_dicts(),
            'teams': [t.to_dict() for t in self.ledger.teams.values()],
            'starters': {
                'home': list(self.starters.get(self.ledger.home_team_id, [])),
                'away': list(self.starters.get(self.ledger.away_team_id, [])),
            },
            'pending': pending.to_dict() if pending is not None else None,
            'free_throw_sequence': self.free_throws.to_dict() if self.free_throws is not None else None,
            'is_active': self.is_active,
            'can_record_stats': self.can_record_stats,
            'period_ended': self.period_ended,
            'vacancies': [{'team_id': t, 'open_spots': n} for t, n in self.vacancies().items()],
            'can_undo': len(self.history) > 0,
            'last_event': self.history.last().description if len(self.history) else None,
        }
        if isinstance(pending, PendingAssist):
            snapshot['assist_candidates'] = assist_candidates(self.ledger, pending)
        if isinstance(pending, PendingRebound):
            snapshot['rebound_candidates'] = rebound_candidates(self.ledger)
        return snapshot

    def score_by_period(self) -> dict:
        periods = [self.settings.period_label(q) for q in range(1, self.current_quarter + 1)]
        scores = {side: {label: 0 for label in periods} for side in ('home', 'away')}
        for event in self.history.events:
            payload = event.payload
            if isinstance(payload, ShotAttempt):
                points = payload.points
            elif isinstance(payload, FreeThrowAttempt) and payload.made:
                points = 1
            else:
                continue
            if not points:
                continue
            side = 'home' if payload.team_id == self.ledger.home_team_id else 'away'
            label = self.settings.period_label(event.quarter)
            scores[side][label] = scores[side].get(label, 0) + points
        return scores

    def shot_chart(self, team_id: Optional[int] = None) -> dict:
        shots = []
        zones = {}
        for event in self.history.events:
            shot = event.payload
            if not isinstance(shot, ShotAttempt):
                continue
            if team_id is not None and shot.shooter_team_id != team_id:
                continue
            shots.append({
                'seq': event.seq,
                'player_id': shot.shooter_id,
                'team_id': shot.shooter_team_id,
                'quarter': event.quarter,
                'shot_type': shot.shot_type,
                'made': shot.made,
                'x': shot.x,
                'y': shot.y,
                'zone': shot.zone,
            })
            if shot.zone:
                tally = zones.setdefault(shot.zone, {'made': 0, 'attempted': 0})
                tally['attempted'] += 1
                tally['made'] += 1 if shot.made else 0
        return {'shots': shots, 'zones': zones}

    def _replay_playing_time(self) -> Optional[PlayingTime]:
        if self.starting_lineup is None:
            return None
        team_of = {p.player_id: p.team_id for p in self.ledger.players.values()}
        return replay(self.history.events, team_of, self.starting_lineup, self.settings.period_length(1),
                      self.current_quarter, self.clock.seconds_remaining)

    def playing_time(self) -> Dict[int, int]:
        """Seconds of game clock each player has spent on the court."""
        played = self._replay_playing_time()
        if played is None:
            return {p: 0 for p in self.ledger.players}
        return dict(played.seconds)

    def lineup_stints(self, team_id: Optional[int] = None) -> List[dict]:
        played = self._replay_playing_time()
        if played is None:
            return []
        return [s.to_dict() for s in played.stints if team_id is None or s.team_id == team_id]

    def _player_dicts(self) -> List[dict]:
        played = self.playing_time()
        players = []
        for line in self.ledger.players.values():
            data = line.to_dict()
            data['seconds_played'] = played.get(line.player_id, 0)
            data['minutes_played'] = GameClock.format(data['seconds_played'])
            players.append(data)
        return players

    def export_snapshot(self) -> dict:
        return {
            'game': {
                'game_id': self.game_id,
                'status': self.status.value,
                'home_team_id': self.ledger.home_team_id,
                'away_team_id': self.ledger.away_team_id,
                'home_score': self.ledger.game.home_score,
                'away_score': self.ledger.game.away_score,
                'current_quarter': self.current_quarter,
            },
            'settings': self.settings.to_dict(),
            'players': self._player_dicts(),
            'teams': [t.to_dict() for t in self.ledger.teams.values()],
            'score_by_period': self.score_by_period(),
            'shot_chart': self.shot_chart(),
            'lineup_stints': self.lineup_stints(),
            'events': [e.to_dict() for e in self.history.events],
        }
