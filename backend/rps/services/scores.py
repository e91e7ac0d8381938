"""Server-side score acceptance.

Applies the aggregator's merge rules to the persisted totals. Counters use
single UPDATE statements (``x = x + n`` and CASE-based maximums) so two saves
racing for the same player cannot lose each other's increments. The current
streak is last-writer-wins.
"""

import json

from flask import current_app
from sqlalchemy import case, update

from rps import db
from rps.models import GameRecordRow, GameSession, Player
from rps.services.game.aggregator import BatchSummary, HISTORY_LIMIT, utcnow


def _greatest(column, value):
    # Portable GREATEST(column, value)
    return case((column < value, value), else_=column)


def merge_counters(player_id: int, batch: BatchSummary, now) -> None:
    ending_streak = max(0, batch.ending_streak)
    peak_streak = max(batch.peak_streak, ending_streak)
    stmt = (
        update(Player)
        .where(Player.id == player_id)
        .values(
            total_games=Player.total_games + max(0, batch.games_played),
            total_wins=Player.total_wins + max(0, batch.games_won),
            current_streak=ending_streak,
            max_streak=_greatest(Player.max_streak, peak_streak),
            best_score=_greatest(Player.best_score, batch.peak_score),
            last_played=now,
            updated_at=now,
        )
        .execution_options(synchronize_session=False)
    )
    db.session.execute(stmt)


def append_history(player_id: int, records, limit: int = HISTORY_LIMIT) -> None:
    """Store new rounds and drop all but the newest ``limit`` for the player."""
    for record in records:
        db.session.add(GameRecordRow.from_record(player_id, record))
    db.session.flush()

    keep_ids = [
        row_id for (row_id,) in db.session.query(GameRecordRow.id)
        .filter(GameRecordRow.player_id == player_id)
        .order_by(GameRecordRow.id.desc())
        .limit(max(0, limit))
    ]
    stale = GameRecordRow.query.filter(GameRecordRow.player_id == player_id)
    if keep_ids:
        stale = stale.filter(GameRecordRow.id.notin_(keep_ids))
    stale.delete(synchronize_session=False)


def record_submission(player: Player, submission) -> GameSession:
    """Merge a validated ``ScoreSubmission`` into ``player`` and log the session.

    The submitted counters are trusted as reported; they are not re-derived
    from ``gameHistory``.
    """
    now = utcnow()
    batch = submission.to_batch(default_time=now)
    limit = int(current_app.config.get('HISTORY_LIMIT', HISTORY_LIMIT))

    merge_counters(player.id, batch, now)
    append_history(player.id, batch.new_history, limit)

    session = GameSession(
        player_id=player.id,
        score=submission.score,
        total_games=submission.totalGames,
        total_wins=submission.totalWins,
        win_rate=submission.winRate,
        current_streak=submission.currentStreak,
        max_streak=submission.maxStreak,
        history=json.dumps([record.to_dict() for record in batch.new_history]),
        started_at=now,
        ended_at=now,
    )
    db.session.add(session)
    db.session.commit()
    db.session.refresh(player)

    current_app.logger.info(
        f"[score] player={player.id} session={session.id} games=+{batch.games_played} "
        f"wins=+{batch.games_won} best={player.best_score}"
    )
    return session
