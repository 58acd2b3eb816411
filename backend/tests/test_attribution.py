import pytest

from scorebook.services.games import attribution
from scorebook.services.games.attribution import AttributionWorkflow, PendingAssist, PendingRebound
from scorebook.services.games.errors import InvalidState
from scorebook.services.games.rules import ShotType
from conftest import AWAY, HOME


@pytest.mark.parametrize('x, y, zone, three', [
    (0, 2, attribution.AT_RIM, False),
    (5, 5, attribution.PAINT, False),
    (-15, 10, attribution.LEFT_ELBOW, False),
    (15, 10, attribution.RIGHT_ELBOW, False),
    (0, 18, attribution.FREE_THROW_LINE, False),
    (8, 12, attribution.MID_RANGE, False),
    (23, 5, attribution.RIGHT_CORNER_3, True),
    (-23, 5, attribution.LEFT_CORNER_3, True),
    (-18, 18, attribution.LEFT_WING_3, True),
    (0, 25, attribution.TOP_KEY_3, True),
])
def test_zone_and_shot_value_from_location(x, y, zone, three):
    assert attribution.is_three(x, y) is three
    assert attribution.shot_zone(x, y) == zone


def test_location_decides_shot_type_unless_given():
    workflow = AttributionWorkflow()
    shot = workflow.begin_shot(0, 25)
    assert shot.shot_type is ShotType.THREE
    assert shot.zone == attribution.TOP_KEY_3
    workflow.cancel()

    shot = workflow.begin_shot(shot_type=ShotType.TWO)
    assert shot.zone is None
    workflow.cancel()

    with pytest.raises(InvalidState):
        workflow.begin_shot()


def test_only_one_prompt_at_a_time():
    workflow = AttributionWorkflow()
    workflow.await_rebound(4, 101, HOME)
    with pytest.raises(InvalidState):
        workflow.begin_shot(0, 2)
    with pytest.raises(InvalidState):
        workflow.await_assist(5, 101, HOME, 2)
    assert workflow.depends_on(4)
    assert not workflow.depends_on(5)
    assert isinstance(workflow.take_rebound(), PendingRebound)
    assert workflow.is_idle
    with pytest.raises(InvalidState):
        workflow.take_assist()


def test_made_shot_opens_assist_prompt(session):
    event = session.record_shot(101, True, x=0, y=2)
    assert event.payload.zone == attribution.AT_RIM
    pending = session.attribution.pending
    assert isinstance(pending, PendingAssist)
    assert pending.shot_seq == event.seq
    assert session.snapshot()['assist_candidates'] == [102, 103, 104, 105]


def test_assist_is_linked_to_the_shot(session):
    shot = session.record_shot(101, True, x=0, y=25)
    assist = session.resolve_assist(102)
    assert assist.parent_seq == shot.seq
    assert session.ledger.player(102).assists == 1
    assert session.ledger.player(101).points == 3
    assert session.attribution.is_idle


def test_assist_must_come_from_a_teammate_on_court(session):
    session.record_shot(101, True, '2pt')
    with pytest.raises(InvalidState):
        session.resolve_assist(101)
    with pytest.raises(InvalidState):
        session.resolve_assist(201)
    with pytest.raises(InvalidState):
        session.resolve_assist(106)
    assert isinstance(session.attribution.pending, PendingAssist)
    assert session.resolve_assist(None) is None
    assert session.attribution.is_idle


def test_missed_shot_opens_rebound_prompt(session):
    shot = session.record_shot(201, False, '2pt')
    assert isinstance(session.attribution.pending, PendingRebound)
    candidates = session.snapshot()['rebound_candidates']
    assert sorted(candidates) == [101, 102, 103, 104, 105, 201, 202, 203, 204, 205]

    rebound = session.resolve_rebound(player_id=104)
    assert rebound.parent_seq == shot.seq
    assert not rebound.payload.offensive
    assert session.ledger.player(104).defensive_rebounds == 1


def test_offensive_and_team_rebounds(session):
    session.record_shot(201, False, '3pt')
    session.resolve_rebound(player_id=202)
    assert session.ledger.player(202).offensive_rebounds == 1

    session.record_shot(202, False, '2pt')
    session.resolve_rebound(team_id=HOME)
    assert session.ledger.team(HOME).team_rebounds == 1
    assert session.ledger.team(AWAY).team_rebounds == 0


def test_rebound_needs_a_player_or_a_team(session):
    session.record_shot(201, False, '2pt')
    with pytest.raises(InvalidState):
        session.resolve_rebound()
    with pytest.raises(InvalidState):
        session.resolve_rebound(player_id=107)
    assert isinstance(session.attribution.pending, PendingRebound)


def test_two_step_shot_flow(session):
    pending = session.begin_shot(23, 5)
    assert pending.shot_type is ShotType.THREE
    with pytest.raises(InvalidState):
        session.record_stat(101, 'steal')
    session.resolve_shot(203, True)
    shooter = session.ledger.player(203)
    assert (shooter.field_goals_made, shooter.three_pointers_made, shooter.points) == (1, 1, 3)
    chart = session.shot_chart(AWAY)
    assert chart['zones'] == {attribution.RIGHT_CORNER_3: {'made': 1, 'attempted': 1}}
    assert session.shot_chart(HOME)['shots'] == []


def test_bench_player_cannot_shoot(session):
    with pytest.raises(InvalidState):
        session.record_shot(106, True, '2pt')
    assert session.attribution.is_idle
    assert len(session.history) == 0


def test_cancel_shot_prompt_keeps_committed_shot(session):
    session.record_shot(101, True, '2pt')
    cancelled = session.cancel_pending()
    assert cancelled['kind'] == 'assist'
    assert session.ledger.game.home_score == 2
    assert session.cancel_pending() is None
