from flask import Blueprint, jsonify, request, current_app
from flask_login import login_required
from scorebook import db
from scorebook.models import Player, Team
from scorebook.services.games import store


teams = Blueprint('teams', __name__)


@teams.route('/create', methods=['POST'])
@login_required
def create_team():
    data = request.get_json(silent=True) or {}
    name = (data.get('name') or '').strip()
    if not name:
        return jsonify({'error': 'Team name is required'}), 400
    team = Team(name=name)
    db.session.add(team)
    db.session.commit()
    current_app.logger.info(f"[team-create] team={team.id} name={team.name}")
    return jsonify(team.to_dict()), 201


@teams.route('/<int:team_id>', methods=['GET'])
def get_team(team_id):
    team = Team.query.filter_by(id=team_id).first_or_404()
    return jsonify(team.to_dict())


@teams.route('/<int:team_id>/players', methods=['POST'])
@login_required
def add_player(team_id):
    team = Team.query.filter_by(id=team_id).first_or_404()
    data = request.get_json(silent=True) or {}
    name = (data.get('name') or '').strip()
    if not name:
        return jsonify({'error': 'Player name is required'}), 400
    number = data.get('number')
    try:
        number = int(number) if number is not None else None
    except (TypeError, ValueError):
        return jsonify({'error': 'number must be an integer'}), 400
    player = Player(name=name, number=number, position=data.get('position'), team_id=team.id)
    db.session.add(player)
    db.session.commit()
    # cached sessions were built with the old roster
    store.evict_team(team.id)
    return jsonify(player.to_dict()), 201
