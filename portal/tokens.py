"""
Signed, time-limited session tokens for administrators.

Tokens are stateless: there is no server-side session store and no
revocation list. Logging out means the client discards its token; a
leaked token stays valid until it expires.
"""
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from jose import jwt, JWTError


class TokenError(Exception):
    message = 'Invalid token. Please login again.'


class InvalidToken(TokenError):
    pass


class ExpiredToken(TokenError):
    message = 'Token expired. Please login again.'


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenService:
    def __init__(
        self,
        secret: str,
        lifetime: timedelta = timedelta(days=7),
        algorithm: str = 'HS256',
        clock: Callable[[], datetime] = _utcnow
    ):
        if not secret:
            raise ValueError('A token signing secret is required')
        self.secret = secret
        self.lifetime = lifetime
        self.algorithm = algorithm
        self.clock = clock

    def issue(self, account_id: int, now: Optional[datetime] = None) -> str:
        issued_at = now or self.clock()
        claims = {
            'sub': str(account_id),
            'iat': int(issued_at.timestamp()),
            'exp': int((issued_at + self.lifetime).timestamp()),
        }
        return jwt.encode(claims, self.secret, algorithm=self.algorithm)

    def verify(self, token: str, now: Optional[datetime] = None) -> int:
        """Return the account id the token was issued for.

        Raises InvalidToken for a malformed or tampered token and
        ExpiredToken once the current time is past its expiry.
        """
        if not token:
            raise InvalidToken()

        try:
            # Expiry is checked below against our own clock
            claims = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                options={'verify_exp': False}
            )
        except JWTError:
            raise InvalidToken()

        expires_at = claims.get('exp')
        if not isinstance(expires_at, int):
            raise InvalidToken()

        current = now or self.clock()
        if current.timestamp() > expires_at:
            raise ExpiredToken()

        try:
            return int(claims['sub'])
        except (KeyError, TypeError, ValueError):
            raise InvalidToken()
