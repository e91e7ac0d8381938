"""Request body schemas.

Each view parses its JSON body through ``parse``; pydantic failures become a
``ValidationError`` listing every offending field.
"""

from datetime import datetime
from typing import Annotated, List, Literal, Optional

from pydantic import (
    AfterValidator,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    EmailStr,
    Field,
    StringConstraints,
    model_validator,
)
from pydantic import ValidationError as PydanticValidationError

from rps.errors import ValidationError
from rps.services.game.aggregator import BatchSummary, GameRecord
from rps.services.game.outcome import Move, Outcome, resolve

SORT_KEYS = ('bestScore', 'totalWins', 'totalGames', 'maxStreak')


def _strip(value):
    return value.strip() if isinstance(value, str) else value


# Stored and compared lower-cased
Email = Annotated[EmailStr, BeforeValidator(_strip), AfterValidator(str.lower)]
PlayerName = Annotated[str, StringConstraints(strip_whitespace=True, min_length=2, max_length=50)]
Password = Annotated[str, StringConstraints(min_length=6)]


class SignupRequest(BaseModel):
    email: Email
    playerName: PlayerName
    password: Password


class LoginRequest(BaseModel):
    email: Email
    playerName: Optional[PlayerName] = None
    password: Optional[Password] = None


class GameRecordPayload(BaseModel):
    userChoice: Move
    compChoice: Move
    result: Outcome
    timestamp: Optional[datetime] = None

    @model_validator(mode='after')
    def result_matches_moves(self):
        if resolve(self.userChoice, self.compChoice) != self.result:
            raise ValueError(f"{self.userChoice.value} vs {self.compChoice.value} cannot be a {self.result.value}")
        return self

    def to_record(self, default_time):
        return GameRecord(self.userChoice, self.compChoice, self.result, self.timestamp or default_time)


class ScoreSubmission(BaseModel):
    # Counters are taken as reported by the client and not recomputed from gameHistory.
    # Unknown keys such as the client's playerName are ignored; the name comes from the token.
    model_config = ConfigDict(extra='ignore')

    score: int = Field(ge=0)
    totalGames: int = Field(ge=0)
    totalWins: int = Field(ge=0)
    winRate: float = Field(ge=0, le=100)
    currentStreak: int = Field(ge=0)
    maxStreak: int = Field(ge=0)
    gameHistory: List[GameRecordPayload] = Field(default_factory=list)

    @model_validator(mode='after')
    def wins_within_games(self):
        if self.totalWins > self.totalGames:
            raise ValueError('totalWins cannot exceed totalGames')
        return self

    def to_batch(self, default_time):
        return BatchSummary(
            games_played=self.totalGames,
            games_won=self.totalWins,
            ending_streak=self.currentStreak,
            peak_streak=self.maxStreak,
            peak_score=self.score,
            new_history=[item.to_record(default_time) for item in self.gameHistory],
        )


class LeaderboardQuery(BaseModel):
    limit: int = Field(default=10, ge=1)
    sortBy: Literal['bestScore', 'totalWins', 'totalGames', 'maxStreak'] = 'bestScore'


def _field_name(loc):
    return '.'.join(str(part) for part in loc) or 'body'


def parse(schema, data):
    """Validate ``data`` against ``schema`` or raise ``ValidationError``."""
    if data is None:
        raise ValidationError.for_field('body', 'A JSON body is required')
    try:
        return schema.model_validate(data)
    except PydanticValidationError as exc:
        errors = [
            {'field': _field_name(err['loc']), 'message': err['msg']}
            for err in exc.errors()
        ]
        raise ValidationError('Validation failed', errors=errors) from None
