import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
import jwt
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from config import JWT_ALGO
from errors import AuthError, UnauthorizedError

logger = logging.getLogger(__name__)

TOKEN_LIFETIME = timedelta(days=1)
HASH_ROUNDS = 10
# bcrypt only looks at the first 72 bytes
MAX_PASSWORD_BYTES = 72

security = HTTPBearer(auto_error=False)


class AuthService:
    """Password hashing and session tokens signed with one process-wide secret."""

    def __init__(self, secret: str, algorithm: str = JWT_ALGO, rounds: int = HASH_ROUNDS):
        self._secret = secret
        self.algorithm = algorithm
        self.rounds = rounds

    @staticmethod
    def _encode(password: str) -> bytes:
        return password.encode()[:MAX_PASSWORD_BYTES]

    def hash_password(self, password: str) -> str:
        return bcrypt.hashpw(self._encode(password), bcrypt.gensalt(rounds=self.rounds)).decode()

    def verify_password(self, password: str, password_hash: str) -> bool:
        if not password_hash:
            return False
        return bcrypt.checkpw(self._encode(password), password_hash.encode())

    def create_token(self, user: dict) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "userId": str(user["_id"]),
            "isAdmin": bool(user.get("is_admin", False)),
            "iat": now,
            "exp": now + TOKEN_LIFETIME,
        }
        return jwt.encode(payload, self._secret, algorithm=self.algorithm)

    def decode_token(self, token: str) -> dict:
        try:
            return jwt.decode(token, self._secret, algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError:
            raise UnauthorizedError("Token expired")
        except jwt.InvalidTokenError:
            raise UnauthorizedError("Invalid token")

    def login(self, users, email: str, password: str) -> tuple:
        """Return ``(user, token)`` or raise AuthError naming the failed check."""
        user = users.find_one({"email": email})
        if not user:
            logger.warning("Login failed for %s: unknown email", email)
            raise AuthError("User not found!")
        if not self.verify_password(password, user.get("password_hash", "")):
            logger.warning("Login failed for %s: wrong password", email)
            raise AuthError("Invalid password!")
        logger.info("User %s logged in", email)
        return user, self.create_token(user)


def get_auth(request: Request) -> AuthService:
    return request.app.state.auth


def require_admin(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
):
    if not request.app.state.auth_enabled:
        return None
    if credentials is None:
        raise UnauthorizedError()
    claims = get_auth(request).decode_token(credentials.credentials)
    if not claims.get("isAdmin"):
        raise UnauthorizedError()
    return claims
