import random
from enum import Enum


class Move(str, Enum):
    ROCK = 'rock'
    PAPER = 'paper'
    SCISSORS = 'scissors'


class Outcome(str, Enum):
    WIN = 'win'
    LOSE = 'lose'
    DRAW = 'draw'


# Each move mapped to the move it defeats
BEATS = {
    Move.ROCK: Move.SCISSORS,
    Move.SCISSORS: Move.PAPER,
    Move.PAPER: Move.ROCK,
}


def resolve(user_move: Move, opponent_move: Move) -> Outcome:
    """Return the outcome of a single round from the user's point of view."""
    user_move, opponent_move = Move(user_move), Move(opponent_move)
    if user_move == opponent_move:
        return Outcome.DRAW
    return Outcome.WIN if BEATS[user_move] == opponent_move else Outcome.LOSE


def random_move(rng=None) -> Move:
    """Pick an opponent move uniformly at random."""
    return (rng or random).choice(list(Move))


def describe(outcome: Outcome, user_move: Move, opponent_move: Move) -> str:
    user_label = Move(user_move).value.capitalize()
    opponent_label = Move(opponent_move).value.capitalize()
    if outcome == Outcome.WIN:
        return f"You Win! {user_label} beats {opponent_label}"
    if outcome == Outcome.LOSE:
        return f"You Lose! {opponent_label} beats {user_label}"
    return f"It's a Draw! Both chose {user_label}"
