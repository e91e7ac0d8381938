"""Client-side game session.

``GameState`` is an immutable snapshot of everything the player sees: the
current match score, running totals, login state and the bearer token. Each
function takes a state and returns a new one; ``load_state``/``save_state``
are the only places that touch storage.
"""

import json
import logging
import os
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Optional, Tuple

from .aggregator import (
    BatchSummary,
    GameRecord,
    PlayerAggregate,
    apply_batch,
    parse_timestamp,
    trim_history,
    utcnow,
    win_rate,
)
from .outcome import Move, Outcome, random_move, resolve

logger = logging.getLogger(__name__)

DEFAULT_PLAYER_NAME = 'Player'


class RoundInProgressError(RuntimeError):
    """A move was made while the previous round is still being revealed."""


class NotLoggedInError(RuntimeError):
    pass


@dataclass(frozen=True)
class PendingRound:
    user_move: Move
    opponent_move: Move


@dataclass(frozen=True)
class GameState:
    user_score: int = 0
    comp_score: int = 0
    totals: PlayerAggregate = field(default_factory=lambda: PlayerAggregate(display_name=DEFAULT_PLAYER_NAME))
    player_name: str = DEFAULT_PLAYER_NAME
    is_logged_in: bool = False
    jwt_token: Optional[str] = None
    pending: Optional[PendingRound] = None
    # Totals already reported to the server
    saved_games: int = 0
    saved_wins: int = 0
    # Highest match score seen since the last save
    peak_score: int = 0
    last_saved_at: Optional[datetime] = None

    @property
    def win_rate(self) -> int:
        return self.totals.win_rate


def begin_round(state: GameState, user_move, rng=None) -> GameState:
    if state.pending is not None:
        raise RoundInProgressError('Wait for the current round to finish')
    return replace(state, pending=PendingRound(Move(user_move), random_move(rng)))


def finish_round(state: GameState, now=None) -> Tuple[GameState, GameRecord]:
    """Resolve the pending round and fold it into the running totals."""
    if state.pending is None:
        raise RoundInProgressError('No round is in progress')
    pending = state.pending
    outcome = resolve(pending.user_move, pending.opponent_move)
    record = GameRecord(pending.user_move, pending.opponent_move, outcome, now or utcnow())

    totals = state.totals
    user_score, comp_score = state.user_score, state.comp_score
    if outcome == Outcome.WIN:
        user_score += 1
        streak = totals.current_streak + 1
    else:
        # Any non-win ends the streak
        streak = 0
        if outcome == Outcome.LOSE:
            comp_score += 1

    batch = BatchSummary(
        games_played=1,
        games_won=1 if outcome == Outcome.WIN else 0,
        ending_streak=streak,
        peak_streak=streak,
        peak_score=user_score,
        new_history=[record],
    )
    totals = apply_batch(totals, batch, now=record.occurred_at)
    next_state = replace(
        state,
        user_score=user_score,
        comp_score=comp_score,
        totals=totals,
        peak_score=max(state.peak_score, user_score),
        pending=None,
    )
    return next_state, record


def play_round(state: GameState, user_move, rng=None, now=None) -> Tuple[GameState, GameRecord]:
    return finish_round(begin_round(state, user_move, rng=rng), now=now)


def reset_scores(state: GameState) -> GameState:
    """Clear the visible match score; lifetime totals are kept."""
    return replace(state, user_score=0, comp_score=0, pending=None)


def log_in(state: GameState, player_name: str, token: Optional[str] = None) -> GameState:
    player_name = (player_name or '').strip()
    if not player_name:
        raise ValueError('Please enter a valid player name')
    totals = replace(state.totals, display_name=player_name)
    return replace(state, player_name=player_name, is_logged_in=True, jwt_token=token, totals=totals)


def log_out(state: GameState) -> GameState:
    # The token is only discarded locally; it stays valid until it expires
    totals = replace(state.totals, display_name=DEFAULT_PLAYER_NAME)
    return replace(state, player_name=DEFAULT_PLAYER_NAME, is_logged_in=False, jwt_token=None, totals=totals)


def build_score_payload(state: GameState) -> dict:
    """Body for ``POST /api/scores`` covering the rounds played since the last save."""
    if not state.is_logged_in or not state.jwt_token:
        raise NotLoggedInError('Please login to save your score!')
    totals = state.totals
    games = totals.total_games - state.saved_games
    wins = totals.total_wins - state.saved_wins
    history = [
        record for record in totals.history
        if state.last_saved_at is None
        or (record.occurred_at is not None and record.occurred_at > state.last_saved_at)
    ]
    return {
        'playerName': state.player_name,
        'score': state.peak_score,
        'totalGames': games,
        'totalWins': wins,
        'winRate': win_rate(wins, games),
        'currentStreak': totals.current_streak,
        'maxStreak': totals.max_streak,
        'gameHistory': [record.to_dict() for record in history],
    }


def mark_saved(state: GameState, now=None) -> GameState:
    return replace(
        state,
        saved_games=state.totals.total_games,
        saved_wins=state.totals.total_wins,
        peak_score=state.user_score,
        last_saved_at=now or utcnow(),
    )


def to_snapshot(state: GameState) -> dict:
    totals = state.totals
    return {
        'userScore': state.user_score,
        'compScore': state.comp_score,
        'totalGames': totals.total_games,
        'totalWins': totals.total_wins,
        'currentStreak': totals.current_streak,
        'maxStreak': totals.max_streak,
        'gameHistory': [record.to_dict() for record in totals.history],
        'playerName': state.player_name,
        'isLoggedIn': state.is_logged_in,
        'jwtToken': state.jwt_token,
        'savedGames': state.saved_games,
        'savedWins': state.saved_wins,
        'peakScore': state.peak_score,
        'lastSavedAt': state.last_saved_at.isoformat() if state.last_saved_at else None,
    }


def from_snapshot(data: dict) -> GameState:
    if not isinstance(data, dict):
        raise ValueError(f"expected a JSON object, got {type(data).__name__}")
    player_name = data.get('playerName') or DEFAULT_PLAYER_NAME
    history = [GameRecord.from_dict(item) for item in data.get('gameHistory') or []]
    totals = PlayerAggregate(
        display_name=player_name,
        total_games=int(data.get('totalGames') or 0),
        total_wins=int(data.get('totalWins') or 0),
        current_streak=int(data.get('currentStreak') or 0),
        max_streak=int(data.get('maxStreak') or 0),
        history=trim_history(history),
    )
    return GameState(
        user_score=int(data.get('userScore') or 0),
        comp_score=int(data.get('compScore') or 0),
        totals=totals,
        player_name=player_name,
        is_logged_in=bool(data.get('isLoggedIn')),
        jwt_token=data.get('jwtToken'),
        saved_games=int(data.get('savedGames') or 0),
        saved_wins=int(data.get('savedWins') or 0),
        peak_score=int(data.get('peakScore') or 0),
        last_saved_at=parse_timestamp(data.get('lastSavedAt')),
    )


def load_state(path) -> GameState:
    """Read a saved snapshot; a missing or unreadable file yields a fresh state."""
    if not os.path.exists(path):
        return GameState()
    try:
        with open(path, encoding='utf-8') as fh:
            return from_snapshot(json.load(fh))
    except (ValueError, KeyError, TypeError) as exc:
        logger.warning(f"[state] discarding unreadable snapshot {path}: {exc}")
        return GameState()


def save_state(state: GameState, path) -> None:
    with open(path, 'w', encoding='utf-8') as fh:
        json.dump(to_snapshot(state), fh)
