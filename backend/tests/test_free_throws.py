import pytest

from scorebook.services.games.errors import InvalidState, NoActiveFreeThrows, PreconditionFailure
from scorebook.services.games.free_throws import FreeThrowSequence
from scorebook.services.games.attribution import PendingRebound
from conftest import AWAY, HOME


def test_fixed_count_sequence_runs_to_the_end():
    seq = FreeThrowSequence(shooter_id=1, team_id=1, total_attempts=3)
    assert seq.record(False) is True
    assert seq.record(False) is True
    assert seq.record(True) is False
    assert seq.is_complete
    with pytest.raises(InvalidState):
        seq.record(True)


@pytest.mark.parametrize('first, expected_length', [(False, 1), (True, 2)])
def test_one_and_one_length_depends_only_on_first_attempt(first, expected_length):
    seq = FreeThrowSequence(shooter_id=1, team_id=1, total_attempts=2, one_and_one=True)
    more = seq.record(first)
    if more:
        seq.record(False)
    assert len(seq.results) == expected_length
    assert seq.is_complete


def test_one_and_one_must_be_two_attempts():
    with pytest.raises(InvalidState):
        FreeThrowSequence(shooter_id=1, team_id=1, total_attempts=3, one_and_one=True)
    with pytest.raises(InvalidState):
        FreeThrowSequence(shooter_id=1, team_id=1, total_attempts=0)


def test_missed_front_end_of_one_and_one(session):
    session.start_free_throws(201, 2, one_and_one=True)
    session.record_free_throw(False)
    shooter = session.ledger.player(201)
    assert shooter.free_throws_attempted == 1
    assert shooter.free_throws_made == 0
    assert session.free_throws is None
    # last free throw was live, so the rebound prompt follows
    assert isinstance(session.attribution.pending, PendingRebound)
    assert session.attribution.pending.source == 'free_throw'


def test_made_front_end_earns_second_attempt(session):
    session.start_free_throws(201, 2, one_and_one=True)
    session.record_free_throw(True)
    assert session.free_throws.current_attempt == 2
    session.record_free_throw(True)
    shooter = session.ledger.player(201)
    assert (shooter.free_throws_made, shooter.free_throws_attempted, shooter.points) == (2, 2, 2)
    assert session.ledger.game.away_score == 2
    assert session.free_throws is None
    assert session.attribution.pending is None


def test_missed_final_free_throw_goes_to_rebound(session):
    session.record_foul(101, 'shooting', shot_type='3pt', fouled_player_id=202)
    assert session.free_throws.total_attempts == 3
    session.record_free_throw(True)
    session.record_free_throw(True)
    session.record_free_throw(False)
    assert session.ledger.player(202).points == 2
    session.resolve_rebound(player_id=103)
    rebounder = session.ledger.player(103)
    assert rebounder.defensive_rebounds == 1
    assert rebounder.offensive_rebounds == 0


def test_free_throw_without_sequence_is_benign(session):
    with pytest.raises(NoActiveFreeThrows) as exc:
        session.record_free_throw(True)
    assert isinstance(exc.value, PreconditionFailure)
    assert len(session.history) == 0


def test_cancel_mid_sequence_keeps_only_committed_attempts(session):
    session.start_free_throws(201, 2)
    session.record_free_throw(True)
    cancelled = session.cancel_pending()
    assert cancelled['kind'] == 'free_throws'
    shooter = session.ledger.player(201)
    assert (shooter.free_throws_made, shooter.free_throws_attempted) == (1, 1)
    assert session.free_throws is None
    assert len(session.history) == 1


def test_plus_minus_follows_free_throws(session):
    session.start_free_throws(201, 1)
    session.record_free_throw(True)
    assert session.ledger.player(205).plus_minus == 1
    assert session.ledger.player(101).plus_minus == -1
    assert session.ledger.player(106).plus_minus == 0
    assert session.ledger.team(HOME).is_home_team
    assert not session.ledger.team(AWAY).is_home_team
