# Admin gate: one shared password, exchanged for a short-lived signed token
# that every write endpoint checks server-side.
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import ExpiredSignatureError, JWTError, jwt

from errors import ConfigurationError, Unauthorized
from logger import get_logger

log = get_logger("auth")

ALGORITHM = "HS256"
SUBJECT = "admin"


class CredentialGate:
    """Checks a candidate password against the configured secret.

    Fails closed: with no secret configured nothing verifies.
    """

    def __init__(self, secret: Optional[str]):
        self._secret = secret or None
        if self._secret is None:
            log.warning("ADMIN_PASSWORD is not set; admin login is disabled")

    @property
    def configured(self) -> bool:
        return self._secret is not None

    def require_configured(self) -> None:
        if not self.configured:
            raise ConfigurationError("Admin password is not configured")

    def verify(self, candidate: str) -> bool:
        if self._secret is None or not isinstance(candidate, str):
            return False
        ok = candidate == self._secret
        if not ok:
            log.info("admin password rejected")
        return ok


class TokenIssuer:
    """Issues and checks capability tokens (HS256 JWTs)."""

    def __init__(self, secret: Optional[str] = None, ttl: timedelta = timedelta(hours=1)):
        # a random key means tokens die with the process
        self._key = secret or secrets.token_urlsafe(32)
        self.ttl = ttl

    def issue(self) -> Tuple[str, datetime]:
        now = datetime.now(timezone.utc)
        expires = now + self.ttl
        claims = {"sub": SUBJECT, "iat": int(now.timestamp()), "exp": int(expires.timestamp())}
        return jwt.encode(claims, self._key, algorithm=ALGORITHM), expires

    def check(self, token: Optional[str]) -> dict:
        if not token:
            raise Unauthorized("Missing token")
        try:
            claims = jwt.decode(token, self._key, algorithms=[ALGORITHM])
        except ExpiredSignatureError:
            raise Unauthorized("Token expired")
        except JWTError:
            raise Unauthorized("Invalid token")
        if claims.get("sub") != SUBJECT:
            raise Unauthorized("Invalid token")
        return claims


def login(gate: CredentialGate, issuer: TokenIssuer, password: str) -> Tuple[str, datetime]:
    gate.require_configured()
    if not gate.verify(password):
        raise Unauthorized("Bad credentials")
    return issuer.issue()


bearer = HTTPBearer(auto_error=False)


def require_admin(request: Request,
                  credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer)) -> dict:
    token = credentials.credentials if credentials else None
    return request.app.state.tokens.check(token)

