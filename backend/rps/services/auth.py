"""Account and session gatekeeper.

Passwords are hashed with bcrypt (Flask-Bcrypt). Sessions are stateless:
a successful signup or login returns a signed, time-limited token
(itsdangerous) that the client presents as ``Authorization: Bearer``.
Nothing is stored server-side for a session, so there is no revocation
list; logging out means the client forgets its token, which otherwise
stays valid until it expires.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from flask import current_app
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from rps import bcrypt, db
from rps.errors import AuthError, ConflictError, NotFoundError, ValidationError
from rps.models import Player

TOKEN_SALT = 'rps-auth-token'


@dataclass(frozen=True)
class Claim:
    identity: int
    email: Optional[str]
    display_name: str
    expires_at: Optional[datetime] = None


def _serializer():
    return URLSafeTimedSerializer(current_app.config['SECRET_KEY'], salt=TOKEN_SALT)


def hash_password(password: str) -> str:
    return bcrypt.generate_password_hash(password).decode('utf-8')


def verify_password(password_hash: str, password: str) -> bool:
    # check_password_hash compares digests in constant time
    return bcrypt.check_password_hash(password_hash, password)


def issue_token(player: Player) -> str:
    return _serializer().dumps({
        'playerId': player.id,
        'email': player.email,
        'playerName': player.player_name,
    })


def authorize(token: Optional[str]) -> Claim:
    """Verify a bearer token and return its claim, raising ``AuthError`` otherwise."""
    if not token:
        raise AuthError('Missing Authorization token')
    max_age = int(current_app.config.get('TOKEN_MAX_AGE_SEC', 7 * 24 * 3600))
    try:
        payload, signed_at = _serializer().loads(token, max_age=max_age, return_timestamp=True)
    except SignatureExpired:
        raise AuthError('Token has expired') from None
    except BadSignature:
        raise AuthError('Invalid or expired token') from None
    if not isinstance(payload, dict) or not isinstance(payload.get('playerId'), int):
        raise AuthError('Invalid or expired token')
    return Claim(
        identity=payload['playerId'],
        email=payload.get('email'),
        display_name=payload.get('playerName') or '',
        expires_at=signed_at + timedelta(seconds=max_age),
    )


def bearer_token(header_value: Optional[str]) -> Optional[str]:
    header_value = header_value or ''
    if header_value.startswith('Bearer '):
        return header_value[len('Bearer '):].strip() or None
    return None


def find_player_for_claim(claim: Claim) -> Player:
    player = db.session.get(Player, claim.identity)
    if player is None and claim.email:
        player = Player.query.filter_by(email=claim.email).first()
    if player is None:
        raise AuthError('Player not found for token')
    return player


def signup(email: str, player_name: str, password: str):
    """Create an account, or attach a password to an email-only account.

    Returns ``(player, token, upgraded)``.
    """
    existing = Player.query.filter_by(email=email).first()
    if existing is not None and existing.has_password:
        raise ConflictError('Email already registered')

    password_hash = hash_password(password)
    if existing is not None:
        existing.player_name = player_name
        existing.password_hash = password_hash
        player = existing
    else:
        player = Player(email=email, player_name=player_name, password_hash=password_hash)
    db.session.add(player)
    db.session.commit()

    current_app.logger.info(f"[signup] player={player.id} upgraded={existing is not None}")
    return player, issue_token(player), existing is not None


def login(email: str, player_name: Optional[str] = None, password: Optional[str] = None):
    """Check credentials and return ``(player, token)``."""
    player = Player.query.filter_by(email=email).first()
    if player is None:
        raise NotFoundError('Account not found. Please sign up.')

    if player.has_password:
        if not password:
            raise ValidationError.for_field('password', 'Password required')
        if not verify_password(player.password_hash, password):
            current_app.logger.info(f"[login] player={player.id} rejected: bad password")
            raise AuthError('Invalid credentials')
    elif player_name and player.player_name != player_name:
        # Passwordless accounts may pick a new display name on login
        player.player_name = player_name
        db.session.add(player)
        db.session.commit()

    current_app.logger.info(f"[login] player={player.id}")
    return player, issue_token(player)
