"""Score aggregation: folds a batch of rounds into a player's running totals.

The same merge rules run on the client (local running totals) and on the
server (persisted totals, see ``rps.services.scores``). Counters reported in
a batch are trusted as given: wins are never re-derived from the history, so
``total_wins <= total_games`` only holds when the caller reports consistent
numbers.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from .outcome import Move, Outcome

HISTORY_LIMIT = 50


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(value) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    # JavaScript clients send a trailing 'Z'
    return datetime.fromisoformat(str(value).replace('Z', '+00:00'))


@dataclass(frozen=True)
class GameRecord:
    user_move: Move
    opponent_move: Move
    outcome: Outcome
    occurred_at: datetime

    def to_dict(self):
        return {
            'userChoice': self.user_move.value,
            'compChoice': self.opponent_move.value,
            'result': self.outcome.value,
            'timestamp': self.occurred_at.isoformat() if self.occurred_at else None,
        }

    @classmethod
    def from_dict(cls, data):
        return cls(
            user_move=Move(data['userChoice']),
            opponent_move=Move(data['compChoice']),
            outcome=Outcome(data['result']),
            occurred_at=parse_timestamp(data.get('timestamp')),
        )


@dataclass(frozen=True)
class BatchSummary:
    """Rounds reported together in one save."""
    games_played: int = 0
    games_won: int = 0
    ending_streak: int = 0
    peak_streak: int = 0
    peak_score: int = 0
    new_history: Sequence[GameRecord] = ()


@dataclass(frozen=True)
class PlayerAggregate:
    identity: Optional[int] = None
    display_name: str = ''
    total_games: int = 0
    total_wins: int = 0
    current_streak: int = 0
    max_streak: int = 0
    best_score: int = 0
    last_played_at: Optional[datetime] = None
    history: List[GameRecord] = field(default_factory=list)

    @property
    def win_rate(self) -> int:
        return win_rate(self.total_wins, self.total_games)


def win_rate(total_wins: int, total_games: int) -> int:
    """Percentage of rounds won, rounded half up; 0 before any round."""
    if total_games <= 0:
        return 0
    return int(100 * total_wins / total_games + 0.5)


def trim_history(history, limit: int = HISTORY_LIMIT) -> list:
    """Keep only the most recent ``limit`` records, oldest dropped first."""
    history = list(history)
    if limit <= 0:
        return []
    return history[-limit:]


def apply_batch(current: PlayerAggregate, batch: BatchSummary, now=None,
                history_limit: int = HISTORY_LIMIT) -> PlayerAggregate:
    """Merge ``batch`` into ``current`` and return the new aggregate.

    Totals accumulate, the current streak is replaced by the batch's ending
    run, and max streak / best score only ever move up. Negative batch values
    count as zero so the non-negative invariants survive bad input.
    """
    ending_streak = max(0, batch.ending_streak)
    max_streak = max(current.max_streak, batch.peak_streak, ending_streak)
    return replace(
        current,
        total_games=current.total_games + max(0, batch.games_played),
        total_wins=current.total_wins + max(0, batch.games_won),
        current_streak=ending_streak,
        max_streak=max_streak,
        best_score=max(current.best_score, batch.peak_score),
        history=trim_history(list(current.history) + list(batch.new_history), history_limit),
        last_played_at=now or utcnow(),
    )
