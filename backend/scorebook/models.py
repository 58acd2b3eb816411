from scorebook import db, bcrypt
from flask_login import UserMixin
import json


class User(UserMixin, db.Model):
    __tablename__ = 'user'
    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(256), nullable=False)

    def set_password(self, password):
        self.password_hash = bcrypt.generate_password_hash(password).decode('utf-8')

    def check_password(self, password):
        return bcrypt.check_password_hash(self.password_hash, password)

    def to_dict(self):
        return {
            'id': self.id,
            'username': self.username,
        }


class Team(db.Model):
    __tablename__ = 'team'
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(64), nullable=False)
    players = db.relationship('Player', back_populates='team', order_by='Player.id')

    def to_dict(self, include_players=True):
        data = {
            'id': self.id,
            'name': self.name,
        }
        if include_players:
            data['players'] = [p.to_dict() for p in self.players]
        return data


class Player(db.Model):
    __tablename__ = 'player'
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(64), nullable=False)
    number = db.Column(db.Integer, nullable=True)
    position = db.Column(db.String(16), nullable=True)
    team_id = db.Column(db.Integer, db.ForeignKey('team.id'), nullable=False, index=True)
    team = db.relationship('Team', back_populates='players')

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'number': self.number,
            'position': self.position,
            'team_id': self.team_id,
        }


class Game(db.Model):
    __tablename__ = 'game'
    id = db.Column(db.Integer, primary_key=True)
    home_team_id = db.Column(db.Integer, db.ForeignKey('team.id'), nullable=False)
    away_team_id = db.Column(db.Integer, db.ForeignKey('team.id'), nullable=False)
    scorekeeper_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=True)
    status = db.Column(db.String(16), default='scheduled', nullable=False)  # scheduled, active, paused, completed
    current_quarter = db.Column(db.Integer, default=1, nullable=False)
    clock_seconds_remaining = db.Column(db.Integer, nullable=True)
    clock_running = db.Column(db.Boolean, default=False, nullable=False)
    clock_anchor = db.Column(db.Float, nullable=True)  # epoch seconds the running clock last consumed a second
    clock_carry = db.Column(db.Float, default=0.0, nullable=False)  # fraction of a second elapsed before the last pause
    home_score = db.Column(db.Integer, default=0, nullable=False)
    away_score = db.Column(db.Integer, default=0, nullable=False)
    settings = db.Column(db.Text, nullable=True)  # JSON-encoded GameSettings
    starters = db.Column(db.Text, nullable=True)  # JSON: {team_id: [player ids]} chosen before tip-off
    starting_lineup = db.Column(db.Text, nullable=True)  # JSON: lineup the event log is folded over

    home_team = db.relationship('Team', foreign_keys=[home_team_id])
    away_team = db.relationship('Team', foreign_keys=[away_team_id])
    player_stats = db.relationship('PlayerStat', back_populates='game', lazy='dynamic')
    team_stats = db.relationship('TeamGameStat', back_populates='game', lazy='dynamic')
    events = db.relationship('GameEvent', back_populates='game', lazy='dynamic', order_by='GameEvent.seq')

    def settings_dict(self):
        return json.loads(self.settings) if self.settings else {}

    def to_dict(self):
        return {
            'id': self.id,
            'home_team_id': self.home_team_id,
            'away_team_id': self.away_team_id,
            'home_team': self.home_team.name if self.home_team else None,
            'away_team': self.away_team.name if self.away_team else None,
            'scorekeeper_id': self.scorekeeper_id,
            'status': self.status,
            'current_quarter': self.current_quarter,
            'clock_seconds_remaining': self.clock_seconds_remaining,
            'clock_running': self.clock_running,
            'home_score': self.home_score,
            'away_score': self.away_score,
            'settings': self.settings_dict(),
        }


class PlayerStat(db.Model):
    __tablename__ = 'player_stat'
    __table_args__ = (db.UniqueConstraint('game_id', 'player_id', name='uq_player_stat_game_player'),)
    id = db.Column(db.Integer, primary_key=True)
    game_id = db.Column(db.Integer, db.ForeignKey('game.id'), nullable=False, index=True)
    player_id = db.Column(db.Integer, db.ForeignKey('player.id'), nullable=False)
    team_id = db.Column(db.Integer, db.ForeignKey('team.id'), nullable=False)
    is_home_team = db.Column(db.Boolean, default=False, nullable=False)
    points = db.Column(db.Integer, default=0, nullable=False)
    field_goals_made = db.Column(db.Integer, default=0, nullable=False)
    field_goals_attempted = db.Column(db.Integer, default=0, nullable=False)
    three_pointers_made = db.Column(db.Integer, default=0, nullable=False)
    three_pointers_attempted = db.Column(db.Integer, default=0, nullable=False)
    free_throws_made = db.Column(db.Integer, default=0, nullable=False)
    free_throws_attempted = db.Column(db.Integer, default=0, nullable=False)
    offensive_rebounds = db.Column(db.Integer, default=0, nullable=False)
    defensive_rebounds = db.Column(db.Integer, default=0, nullable=False)
    assists = db.Column(db.Integer, default=0, nullable=False)
    steals = db.Column(db.Integer, default=0, nullable=False)
    blocks = db.Column(db.Integer, default=0, nullable=False)
    turnovers = db.Column(db.Integer, default=0, nullable=False)
    fouls = db.Column(db.Integer, default=0, nullable=False)
    technical_fouls = db.Column(db.Integer, default=0, nullable=False)
    flagrant_fouls = db.Column(db.Integer, default=0, nullable=False)
    flagrant2_fouls = db.Column(db.Integer, default=0, nullable=False)
    plus_minus = db.Column(db.Integer, default=0, nullable=False)
    seconds_played = db.Column(db.Integer, default=0, nullable=False)  # replayed from the event log
    is_on_court = db.Column(db.Boolean, default=False, nullable=False)
    fouled_out = db.Column(db.Boolean, default=False, nullable=False)

    game = db.relationship('Game', back_populates='player_stats')
    player = db.relationship('Player')


class TeamGameStat(db.Model):
    __tablename__ = 'team_game_stat'
    __table_args__ = (db.UniqueConstraint('game_id', 'team_id', name='uq_team_game_stat_game_team'),)
    id = db.Column(db.Integer, primary_key=True)
    game_id = db.Column(db.Integer, db.ForeignKey('game.id'), nullable=False, index=True)
    team_id = db.Column(db.Integer, db.ForeignKey('team.id'), nullable=False)
    is_home_team = db.Column(db.Boolean, default=False, nullable=False)
    fouls_this_quarter = db.Column(db.Integer, default=0, nullable=False)
    fouls_total = db.Column(db.Integer, default=0, nullable=False)
    timeouts_remaining = db.Column(db.Integer, default=0, nullable=False)
    team_rebounds = db.Column(db.Integer, default=0, nullable=False)
    in_bonus = db.Column(db.Boolean, default=False, nullable=False)
    in_double_bonus = db.Column(db.Boolean, default=False, nullable=False)

    game = db.relationship('Game', back_populates='team_stats')


class GameEvent(db.Model):
    __tablename__ = 'game_event'
    __table_args__ = (db.UniqueConstraint('game_id', 'seq', name='uq_game_event_game_seq'),)
    id = db.Column(db.Integer, primary_key=True)
    game_id = db.Column(db.Integer, db.ForeignKey('game.id'), nullable=False, index=True)
    seq = db.Column(db.Integer, nullable=False)
    kind = db.Column(db.String(32), nullable=False)
    parent_seq = db.Column(db.Integer, nullable=True)
    quarter = db.Column(db.Integer, nullable=False)
    clock_seconds = db.Column(db.Integer, nullable=False)
    timestamp = db.Column(db.Float, nullable=False)
    actor_player_id = db.Column(db.Integer, db.ForeignKey('player.id'), nullable=True)
    secondary_player_id = db.Column(db.Integer, db.ForeignKey('player.id'), nullable=True)
    team_id = db.Column(db.Integer, db.ForeignKey('team.id'), nullable=True)
    payload = db.Column(db.Text, nullable=False)  # JSON-encoded event payload
    effect = db.Column(db.Text, nullable=False)  # JSON-encoded counter deltas + lineup changes
    description = db.Column(db.String(128), nullable=True)

    game = db.relationship('Game', back_populates='events')

    def to_record(self):
        """Shape understood by ``CommittedEvent.from_dict``."""
        return {
            'seq': self.seq,
            'kind': self.kind,
            'payload': json.loads(self.payload),
            'effect': json.loads(self.effect),
            'quarter': self.quarter,
            'clock_seconds': self.clock_seconds,
            'timestamp': self.timestamp,
            'parent_seq': self.parent_seq,
            'description': self.description,
        }

    def to_dict(self):
        data = self.to_record()
        data.pop('effect')
        data.update({
            'id': self.id,
            'actor_player_id': self.actor_player_id,
            'secondary_player_id': self.secondary_player_id,
            'team_id': self.team_id,
        })
        return data
