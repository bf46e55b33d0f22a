"""
Admin authentication: login throttling, password checks and session tokens.
"""
import hmac
import logging
import math
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from jose import JWTError, jwt

from app.core.config import settings
from app.core.exceptions import AuthenticationFailed, TooManyLoginAttempts

logger = logging.getLogger(__name__)

JWT_ALGORITHM = "HS256"


@dataclass
class LoginAttemptRecord:
    failures: int
    reset_at: float


class LoginAttemptTracker:
    """
    Counts failed admin logins per client key.

    After `max_attempts` failures inside one window the key is locked out
    until the window ends. A successful login clears the record. Expired
    records are swept every `cleanup_interval` seconds.
    """

    def __init__(self, max_attempts: int = 5, window_seconds: float = 15 * 60,
                 clock: Callable[[], float] = time.time, cleanup_interval: float = 5 * 60):
        self.max_attempts = max_attempts
        self.window_seconds = window_seconds
        self.cleanup_interval = cleanup_interval
        self._clock = clock
        self._next_cleanup = clock() + cleanup_interval
        self._attempts: Dict[str, LoginAttemptRecord] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._attempts)

    def can_attempt(self, key: str) -> bool:
        with self._lock:
            record = self._attempts.get(key)
            if record is None or self._clock() > record.reset_at:
                return True
            return record.failures < self.max_attempts

    def record_attempt(self, key: str, success: bool) -> None:
        with self._lock:
            if success:
                self._attempts.pop(key, None)
                return

            now = self._clock()
            if now >= self._next_cleanup:
                self._purge_expired(now)
                self._next_cleanup = now + self.cleanup_interval

            record = self._attempts.get(key)
            if record is None or now > record.reset_at:
                self._attempts[key] = LoginAttemptRecord(failures=1, reset_at=now + self.window_seconds)
            else:
                record.failures += 1

    def remaining_lockout(self, key: str) -> float:
        """Seconds until `key` may try again, 0 if it is not locked out."""
        with self._lock:
            record = self._attempts.get(key)
            if record is None or record.failures < self.max_attempts:
                return 0.0
            return max(0.0, record.reset_at - self._clock())

    def cleanup(self) -> int:
        """Drop records whose window has ended. Returns how many were removed."""
        with self._lock:
            return self._purge_expired(self._clock())

    def _purge_expired(self, now: float) -> int:
        expired = [k for k, record in self._attempts.items() if now > record.reset_at]
        for key in expired:
            del self._attempts[key]
        return len(expired)


@dataclass
class AdminSession:
    authenticated: bool
    expires_at: int
    ip_address: Optional[str] = None


class AdminAuthService:

    def __init__(
        self,
        admin_password: str = settings.ADMIN_PASSWORD,
        secret_key: str = settings.SECRET_KEY,
        session_seconds: int = settings.ADMIN_SESSION_SECONDS,
        tracker: Optional[LoginAttemptTracker] = None,
        clock: Callable[[], float] = time.time
    ):
        self._admin_password = admin_password
        self._secret_key = secret_key
        self.session_seconds = session_seconds
        self.tracker = tracker or LoginAttemptTracker(clock=clock)
        self._clock = clock

    def verify_password(self, password: Optional[str]) -> bool:
        """Constant-time comparison against the configured admin password."""
        if not password or not isinstance(password, str):
            return False
        return hmac.compare_digest(
            password.encode("utf-8"),
            self._admin_password.encode("utf-8")
        )

    def create_token(self, ip_address: Optional[str]) -> str:
        now = int(self._clock())
        payload = {
            "authenticated": True,
            "ip": ip_address or "unknown",
            "iat": now,
            "exp": now + self.session_seconds,
        }
        return jwt.encode(payload, self._secret_key, algorithm=JWT_ALGORITHM)

    def verify_token(self, token: Optional[str], ip_address: Optional[str] = None) -> Optional[AdminSession]:
        if not token:
            return None

        try:
            # Expiry is checked below against our own clock.
            payload = jwt.decode(
                token, self._secret_key,
                algorithms=[JWT_ALGORITHM],
                options={"verify_exp": False}
            )
        except JWTError as e:
            logger.warning(f"Admin token verification failed: {e}")
            return None

        session = AdminSession(
            authenticated=bool(payload.get("authenticated")),
            expires_at=int(payload.get("exp", 0)),
            ip_address=payload.get("ip")
        )
        if not session.authenticated or self._clock() > session.expires_at:
            return None

        if ip_address and session.ip_address and session.ip_address != ip_address:
            logger.warning(
                f"Admin session IP mismatch: session={session.ip_address} request={ip_address}"
            )

        return session

    def login(self, password: str, client_key: str, ip_address: Optional[str]) -> str:
        """Check throttling and the password, then issue a session token."""
        if not self.tracker.can_attempt(client_key):
            retry_after = math.ceil(self.tracker.remaining_lockout(client_key))
            logger.warning(f"Admin login locked out for {client_key}")
            raise TooManyLoginAttempts(retry_after)

        valid = self.verify_password(password)
        self.tracker.record_attempt(client_key, valid)

        if not valid:
            logger.info(f"Failed admin login from {client_key}")
            raise AuthenticationFailed("Invalid admin password")

        logger.info(f"Admin login from {ip_address}")
        return self.create_token(ip_address)
