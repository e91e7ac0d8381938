from flask import Blueprint, g, jsonify, request

from rps.errors import AuthError
from rps.schemas import LoginRequest, SignupRequest, parse
from rps.services import auth as gatekeeper

auth = Blueprint('auth', __name__)


@auth.route('/signup', methods=['POST'])
def signup():
    data = parse(SignupRequest, request.get_json(silent=True))
    player, token, _ = gatekeeper.signup(data.email, data.playerName, data.password)
    return jsonify({
        'success': True,
        'token': token,
        'player': player.to_account_dict(),
    }), 201


@auth.route('/login', methods=['POST'])
def login():
    data = parse(LoginRequest, request.get_json(silent=True))
    player, token = gatekeeper.login(data.email, data.playerName, data.password)
    account = player.to_account_dict()
    account.update({
        'bestScore': player.best_score,
        'totalWins': player.total_wins,
        'totalGames': player.total_games,
    })
    return jsonify({'success': True, 'token': token, 'player': account})


def load_player_from_request(req):
    """Flask-Login request loader: resolve the bearer token to a Player."""
    try:
        claim = gatekeeper.authorize(gatekeeper.bearer_token(req.headers.get('Authorization')))
        player = gatekeeper.find_player_for_claim(claim)
    except AuthError as exc:
        # Reported by reject_unauthorized once login_required gives up
        g.auth_error = exc
        return None
    return player


def reject_unauthorized():
    raise g.get('auth_error') or AuthError('Missing Authorization token')
