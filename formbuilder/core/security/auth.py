from datetime import timedelta
from typing import Optional
import logging

import jwt
from passlib.context import CryptContext
from pydantic import BaseModel

from formbuilder.core.config.settings import Settings
from formbuilder.utils.helpers import get_utc_now, parse_duration

logger = logging.getLogger(__name__)


class PasswordHasher:
    """bcrypt hashing with the work factor taken from settings"""

    def __init__(self, rounds: int = 10):
        self.context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)

    @classmethod
    def from_settings(cls, settings: Settings) -> "PasswordHasher":
        return cls(rounds=settings.BCRYPT_ROUNDS)

    def hash(self, password: str) -> str:
        return self.context.hash(password)

    def verify(self, plain_password: str, hashed_password: str) -> bool:
        return self.context.verify(plain_password, hashed_password)


class InvalidTokenError(Exception):
    """Raised when a token fails signature, payload or expiry checks"""


class TokenPayload(BaseModel):
    id: str
    email: str


class TokenService:
    """Issues and verifies signed, time-limited identity tokens"""

    def __init__(self, secret: str, algorithm: str = "HS256", expires_in: timedelta = timedelta(days=1)):
        self.secret = secret
        self.algorithm = algorithm
        self.expires_in = expires_in

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenService":
        if settings.uses_insecure_secret:
            logger.warning("JWT_SECRET is not set, tokens are signed with an insecure fallback secret")
        return cls(
            secret=settings.JWT_SECRET,
            algorithm=settings.JWT_ALGORITHM,
            expires_in=parse_duration(settings.JWT_EXPIRES_IN),
        )

    def issue(self, user_id: str, email: str, expires_delta: Optional[timedelta] = None) -> str:
        issued_at = get_utc_now()
        to_encode = {
            "id": user_id,
            "email": email,
            "iat": issued_at,
            "exp": issued_at + (expires_delta if expires_delta is not None else self.expires_in),
        }
        return jwt.encode(to_encode, self.secret, algorithm=self.algorithm)

    def verify(self, token: str) -> TokenPayload:
        try:
            payload = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                options={"require": ["exp"]},
            )
        except jwt.ExpiredSignatureError:
            raise InvalidTokenError("Token has expired")
        except jwt.PyJWTError as e:
            raise InvalidTokenError(f"Invalid token: {str(e)}")

        user_id = payload.get("id")
        email = payload.get("email")
        if not isinstance(user_id, str) or not isinstance(email, str) or not user_id:
            raise InvalidTokenError("Invalid token payload")

        return TokenPayload(id=user_id, email=email)
