from rps import db
from flask_login import UserMixin
from datetime import datetime, timezone
import json

from rps.services.game.aggregator import GameRecord, PlayerAggregate, win_rate
from rps.services.game.outcome import Move, Outcome


def _utcnow():
    return datetime.now(timezone.utc)


def _iso(value):
    return value.isoformat() if value else None


class Player(UserMixin, db.Model):
    """Account credential and cumulative statistics for one player."""
    __tablename__ = 'player'
    id = db.Column(db.Integer, primary_key=True)
    player_name = db.Column(db.String(50), nullable=False, index=True)
    # Stored lower-cased; unique per account
    email = db.Column(db.String(255), unique=True, nullable=True, index=True)
    # NULL for email-only accounts that never set a password
    password_hash = db.Column(db.String(128), nullable=True)
    total_games = db.Column(db.Integer, nullable=False, default=0)
    total_wins = db.Column(db.Integer, nullable=False, default=0)
    current_streak = db.Column(db.Integer, nullable=False, default=0)
    max_streak = db.Column(db.Integer, nullable=False, default=0)
    best_score = db.Column(db.Integer, nullable=False, default=0)
    last_played = db.Column(db.DateTime(timezone=True), default=_utcnow)
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)
    history = db.relationship(
        'GameRecordRow',
        back_populates='player',
        order_by='GameRecordRow.id',
        cascade='all, delete-orphan',
    )
    sessions = db.relationship('GameSession', back_populates='player', lazy='dynamic')

    @property
    def has_password(self):
        return bool(self.password_hash)

    @property
    def win_rate(self):
        return win_rate(self.total_wins or 0, self.total_games or 0)

    def to_aggregate(self):
        return PlayerAggregate(
            identity=self.id,
            display_name=self.player_name,
            total_games=self.total_games or 0,
            total_wins=self.total_wins or 0,
            current_streak=self.current_streak or 0,
            max_streak=self.max_streak or 0,
            best_score=self.best_score or 0,
            last_played_at=self.last_played,
            history=[row.to_record() for row in self.history],
        )

    def to_account_dict(self):
        return {
            'id': self.id,
            'email': self.email,
            'playerName': self.player_name,
        }

    def to_leaderboard_dict(self):
        return {
            'id': self.id,
            'playerName': self.player_name,
            'bestScore': self.best_score,
            'totalWins': self.total_wins,
            'totalGames': self.total_games,
            'currentStreak': self.current_streak,
            'maxStreak': self.max_streak,
            'lastPlayed': _iso(self.last_played),
            'winRate': self.win_rate,
        }

    def to_dict(self):
        data = self.to_leaderboard_dict()
        data.update({
            'email': self.email,
            'gameHistory': [row.to_dict() for row in self.history],
            'createdAt': _iso(self.created_at),
            'updatedAt': _iso(self.updated_at),
        })
        return data


class GameRecordRow(db.Model):
    """One round kept in a player's bounded history."""
    __tablename__ = 'game_record'
    id = db.Column(db.Integer, primary_key=True)
    player_id = db.Column(db.Integer, db.ForeignKey('player.id'), nullable=False, index=True)
    user_choice = db.Column(db.String(16), nullable=False)
    comp_choice = db.Column(db.String(16), nullable=False)
    result = db.Column(db.String(8), nullable=False)
    timestamp = db.Column(db.DateTime(timezone=True), nullable=True)
    player = db.relationship('Player', back_populates='history')

    @classmethod
    def from_record(cls, player_id, record):
        return cls(
            player_id=player_id,
            user_choice=record.user_move.value,
            comp_choice=record.opponent_move.value,
            result=record.outcome.value,
            timestamp=record.occurred_at,
        )

    def to_record(self):
        return GameRecord(Move(self.user_choice), Move(self.comp_choice), Outcome(self.result), self.timestamp)

    def to_dict(self):
        return {
            'userChoice': self.user_choice,
            'compChoice': self.comp_choice,
            'result': self.result,
            'timestamp': _iso(self.timestamp),
        }


class GameSession(db.Model):
    """Counters exactly as submitted by one save request."""
    __tablename__ = 'game_session'
    id = db.Column(db.Integer, primary_key=True)
    player_id = db.Column(db.Integer, db.ForeignKey('player.id'), nullable=False, index=True)
    score = db.Column(db.Integer, nullable=False, default=0)
    total_games = db.Column(db.Integer, nullable=False, default=0)
    total_wins = db.Column(db.Integer, nullable=False, default=0)
    win_rate = db.Column(db.Float, nullable=False, default=0)
    current_streak = db.Column(db.Integer, nullable=False, default=0)
    max_streak = db.Column(db.Integer, nullable=False, default=0)
    history = db.Column(db.Text, nullable=True)  # JSON-encoded list of rounds
    started_at = db.Column(db.DateTime(timezone=True), default=_utcnow)
    ended_at = db.Column(db.DateTime(timezone=True), nullable=True)
    player = db.relationship('Player', back_populates='sessions')

    def to_dict(self):
        return {
            'id': self.id,
            'playerId': self.player_id,
            'score': self.score,
            'totalGames': self.total_games,
            'totalWins': self.total_wins,
            'winRate': self.win_rate,
            'currentStreak': self.current_streak,
            'maxStreak': self.max_streak,
            'gameHistory': json.loads(self.history) if self.history else [],
            'startedAt': _iso(self.started_at),
            'endedAt': _iso(self.ended_at),
        }
