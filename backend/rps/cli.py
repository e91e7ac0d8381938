import click
from flask import current_app
from flask.cli import with_appcontext

from rps import db
from rps.services.game import state as game
from rps.services.game.outcome import describe

SEED_PLAYERS = [
    ('alice@example.com', 'alice', 12, 9, 4),
    ('bob@example.com', 'bob', 8, 3, 2),
    ('cara@example.com', 'cara', 20, 11, 5),
]


@click.command('db-reset')
@with_appcontext
def db_reset_command():
    """Drops, recreates, and seeds the database."""
    from rps.models import Player
    from rps.services.auth import hash_password

    db.drop_all()
    db.create_all()

    for email, name, games, wins, best in SEED_PLAYERS:
        db.session.add(Player(
            email=email,
            player_name=name,
            password_hash=hash_password('password'),
            total_games=games,
            total_wins=wins,
            max_streak=min(wins, 3),
            best_score=best,
        ))
    db.session.commit()
    click.echo('Database has been reset and seeded!')


@click.command('play')
@click.option('--state-file', default='rps_state.json', show_default=True,
              help='Where the local game snapshot is kept between runs.')
@click.option('--rounds', default=0, help='Stop after this many rounds (0 plays until quit).')
@with_appcontext
def play_command(state_file, rounds):
    """Play against the computer in the terminal."""
    current = game.load_state(state_file)
    click.echo(f"Welcome, {current.player_name}! Type rock, paper or scissors ('q' quits, 'r' resets).")
    played = 0
    while not rounds or played < rounds:
        choice = click.prompt('Your move', type=click.Choice(['rock', 'paper', 'scissors', 'r', 'q']),
                              show_choices=False)
        if choice == 'q':
            break
        if choice == 'r':
            current = game.reset_scores(current)
            click.echo('Game reset!')
            game.save_state(current, state_file)
            continue
        current, record = game.play_round(current, choice)
        played += 1
        click.echo(f"Computer chose {record.opponent_move.value}. "
                   f"{describe(record.outcome, record.user_move, record.opponent_move)}")
        click.echo(f"Score {current.user_score}-{current.comp_score} | "
                   f"win rate {current.win_rate}% | streak {current.totals.current_streak}")
        game.save_state(current, state_file)
    current_app.logger.info(f"[play] finished after {played} rounds")
