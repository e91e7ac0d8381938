"""Game domain logic: round outcomes, score aggregation and the client session.

Nothing in this package touches Flask or the database, so the same rules can
drive a local game and the server's score acceptance.
"""

from .outcome import Move, Outcome, resolve, random_move
from .aggregator import BatchSummary, GameRecord, PlayerAggregate, apply_batch, win_rate

__all__ = [
    'apply_batch',
    'BatchSummary',
    'GameRecord',
    'Move',
    'Outcome',
    'PlayerAggregate',
    'random_move',
    'resolve',
    'win_rate',
]
