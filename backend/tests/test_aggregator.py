from datetime import datetime, timedelta, timezone

import pytest

from rps.services.game.aggregator import (
    BatchSummary,
    GameRecord,
    PlayerAggregate,
    apply_batch,
    trim_history,
    win_rate,
)
from rps.services.game.outcome import Move, Outcome

T0 = datetime(2026, 1, 1, tzinfo=timezone.utc)


def make_records(count, start=0):
    return [
        GameRecord(Move.ROCK, Move.SCISSORS, Outcome.WIN, T0 + timedelta(seconds=start + i))
        for i in range(count)
    ]


def test_apply_batch_merges_totals():
    current = PlayerAggregate(identity=1, display_name='Alice', total_games=10, total_wins=4,
                              current_streak=2, max_streak=3, best_score=5)
    batch = BatchSummary(games_played=6, games_won=4, ending_streak=1, peak_streak=2, peak_score=4,
                         new_history=make_records(2))

    result = apply_batch(current, batch, now=T0)

    assert result.total_games == 16
    assert result.total_wins == 8
    assert result.current_streak == 1
    assert result.max_streak == 3
    assert result.best_score == 5
    assert result.last_played_at == T0
    assert len(result.history) == 2
    # Input is left untouched
    assert current.total_games == 10


def test_apply_batch_raises_peaks():
    current = PlayerAggregate(max_streak=2, best_score=3)
    result = apply_batch(current, BatchSummary(games_played=5, games_won=5, ending_streak=5,
                                               peak_streak=5, peak_score=7))
    assert result.max_streak == 5
    assert result.best_score == 7


def test_current_streak_is_replaced_not_accumulated():
    current = PlayerAggregate(total_games=3, total_wins=3, current_streak=3, max_streak=3)
    result = apply_batch(current, BatchSummary(games_played=2, games_won=2, ending_streak=2, peak_streak=2))
    assert result.current_streak == 2
    assert result.max_streak == 3


@pytest.mark.parametrize('batch', [
    BatchSummary(games_played=1, ending_streak=9, peak_streak=0, peak_score=0),
    BatchSummary(games_played=0, ending_streak=-4, peak_streak=-1, peak_score=-10),
    BatchSummary(games_played=-3, games_won=-2, ending_streak=0, peak_streak=0, peak_score=0),
])
def test_invariants_hold_for_adversarial_batches(batch):
    current = PlayerAggregate(total_games=4, total_wins=2, current_streak=1, max_streak=2, best_score=6)
    result = apply_batch(current, batch)
    assert result.max_streak >= result.current_streak >= 0
    assert result.best_score >= current.best_score
    assert result.total_games >= current.total_games
    assert result.total_wins >= current.total_wins


def test_empty_batch_only_touches_last_played():
    current = PlayerAggregate(identity=7, display_name='Bob', total_games=10, total_wins=5,
                              current_streak=0, max_streak=4, best_score=3, last_played_at=T0,
                              history=make_records(3))
    later = T0 + timedelta(hours=1)

    result = apply_batch(current, BatchSummary(), now=later)

    assert result.last_played_at == later
    assert (result.total_games, result.total_wins, result.max_streak, result.best_score) == (10, 5, 4, 3)
    assert result.history == current.history


def test_history_keeps_most_recent_fifty_in_order():
    aggregate = PlayerAggregate()
    aggregate = apply_batch(aggregate, BatchSummary(games_played=30, new_history=make_records(30)))
    aggregate = apply_batch(aggregate, BatchSummary(games_played=30, new_history=make_records(30, start=30)))

    assert len(aggregate.history) == 50
    expected = make_records(60)[-50:]
    assert aggregate.history == expected
    assert aggregate.history[0].occurred_at == T0 + timedelta(seconds=10)


def test_trim_history_limits():
    assert trim_history([1, 2, 3], limit=2) == [2, 3]
    assert trim_history([1, 2], limit=5) == [1, 2]
    assert trim_history([1, 2], limit=0) == []


@pytest.mark.parametrize('wins, games, expected', [
    (0, 0, 0),
    (3, 4, 75),
    (1, 3, 33),
    (2, 3, 67),
    (1, 8, 13),
    (5, 5, 100),
])
def test_win_rate(wins, games, expected):
    assert win_rate(wins, games) == expected


def test_aggregate_exposes_win_rate():
    assert PlayerAggregate(total_games=4, total_wins=3).win_rate == 75
    assert PlayerAggregate().win_rate == 0


def test_game_record_dict_roundtrip_uses_wire_names():
    record = GameRecord(Move.PAPER, Move.ROCK, Outcome.WIN, T0)
    data = record.to_dict()
    assert data == {
        'userChoice': 'paper',
        'compChoice': 'rock',
        'result': 'win',
        'timestamp': T0.isoformat(),
    }
    assert GameRecord.from_dict({**data, 'timestamp': '2026-01-01T00:00:00Z'}) == record
