from flask import Blueprint, current_app, jsonify, request
from flask_login import current_user, login_required

from rps import socketio
from rps.errors import NotFoundError
from rps.models import Player
from rps.schemas import LeaderboardQuery, ScoreSubmission, parse
from rps.services import leaderboard as projector
from rps.services.scores import record_submission

scores = Blueprint('scores', __name__)


@scores.route('/scores', methods=['POST'])
@login_required
def save_score():
    submission = parse(ScoreSubmission, request.get_json(silent=True))
    player = current_user._get_current_object()
    session = record_submission(player, submission)

    # Live leaderboard clients refetch on this event
    socketio.emit('leaderboard_update', player.to_leaderboard_dict(), to='leaderboard', namespace='/ws')

    return jsonify({
        'success': True,
        'message': 'Score saved successfully',
        'playerId': player.id,
        'sessionId': session.id,
    })


@scores.route('/leaderboard', methods=['GET'])
def get_leaderboard():
    cfg = current_app.config
    query = parse(LeaderboardQuery, {
        'limit': request.args.get('limit') or cfg.get('LEADERBOARD_DEFAULT_LIMIT', 10),
        'sortBy': request.args.get('sortBy') or 'bestScore',
    })
    limit = min(query.limit, int(cfg.get('LEADERBOARD_MAX_LIMIT', 100)))
    return jsonify({
        'success': True,
        'leaderboard': projector.top_n(limit, query.sortBy),
        'totalPlayers': projector.count_players(),
    })


@scores.route('/player/<int:player_id>', methods=['GET'])
def get_player(player_id):
    player = Player.query.filter_by(id=player_id).first()
    if player is None:
        raise NotFoundError('Player not found')
    return jsonify({'success': True, 'player': player.to_dict()})


@scores.route('/player/name/<string:name>', methods=['GET'])
def get_player_by_name(name):
    player = Player.query.filter_by(player_name=name).order_by(Player.id.asc()).first()
    if player is None:
        raise NotFoundError('Player not found')
    return jsonify({'success': True, 'player': player.to_dict()})


@scores.route('/stats', methods=['GET'])
def get_stats():
    return jsonify({'success': True, 'stats': projector.global_stats()})
