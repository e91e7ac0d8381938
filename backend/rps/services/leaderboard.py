"""Read-only leaderboard and global statistics over stored players."""

from sqlalchemy import func

from rps import db
from rps.models import Player

SORT_COLUMNS = {
    'bestScore': Player.best_score,
    'totalWins': Player.total_wins,
    'totalGames': Player.total_games,
    'maxStreak': Player.max_streak,
}


def top_n(n: int, sort_key: str = 'bestScore') -> list:
    """Best ``n`` players by ``sort_key``; ties keep insertion order."""
    column = SORT_COLUMNS[sort_key]
    players = (
        Player.query
        .order_by(column.desc(), Player.id.asc())
        .limit(n)
        .all()
    )
    return [p.to_leaderboard_dict() for p in players]


def count_players() -> int:
    return db.session.query(func.count(Player.id)).scalar() or 0


def global_stats(recent: int = 5) -> dict:
    total_games, total_wins = db.session.query(
        func.coalesce(func.sum(Player.total_games), 0),
        func.coalesce(func.sum(Player.total_wins), 0),
    ).one()

    top = Player.query.order_by(Player.best_score.desc(), Player.id.asc()).first()
    recent_players = (
        Player.query
        .order_by(Player.last_played.desc(), Player.id.asc())
        .limit(recent)
        .all()
    )
    return {
        'totalPlayers': count_players(),
        'totalGames': int(total_games),
        'totalWins': int(total_wins),
        'topPlayer': {'playerName': top.player_name, 'bestScore': top.best_score} if top else None,
        'recentPlayers': [
            {'playerName': p.player_name, 'lastPlayed': p.last_played.isoformat() if p.last_played else None}
            for p in recent_players
        ],
    }
