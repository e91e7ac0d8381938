from flask import Blueprint, jsonify
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from datetime import datetime, timezone

from rps import db

main = Blueprint('main', __name__)

API_VERSION = '1.0.0'


@main.route('/')
def index():
    return jsonify({
        'message': 'Rock Paper Scissors API',
        'version': API_VERSION,
        'endpoints': {
            'POST /api/auth/signup': 'Create an account',
            'POST /api/auth/login': 'Log in and receive a token',
            'POST /api/scores': 'Save player score',
            'GET /api/leaderboard': 'Get leaderboard',
            'GET /api/player/:id': 'Get player stats',
            'GET /api/player/name/:name': 'Get player stats by name',
            'GET /api/stats': 'Get global stats',
        },
    })


@main.route('/health')
def health():
    return jsonify({'status': 'OK', 'timestamp': datetime.now(timezone.utc).isoformat()})


@main.route('/health/db')
def health_db():
    try:
        db.session.execute(text('SELECT 1'))
    except SQLAlchemyError as exc:
        db.session.rollback()
        return jsonify({'status': 'ERROR', 'connected': False, 'message': exc.__class__.__name__}), 503
    engine = db.engine
    return jsonify({
        'status': 'OK',
        'connected': True,
        'dialect': engine.dialect.name,
        'database': engine.url.database,
    })
