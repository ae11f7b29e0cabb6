"""
EduBoost Gateway — In-Memory Session Store
===========================================

What:  Maps opaque bearer tokens to {role, expires_at}.
Why:   Login trades a shared password for a token the browser keeps in
       localStorage; every protected request presents that token.
How:   A dict owned by one SessionStore instance, created in create_app() and
       shared through app.state. Expiry is checked on every lookup and, in
       bulk, by the background sweeper.

Concurrency:
    Runs on a single asyncio event loop. No method awaits, so each
    read-modify-write on the dict is atomic with respect to other requests.
    A port to preemptive threads must add a lock around every method.

Limitations:
    Tokens live in process memory only: a restart logs everyone out, and
    several instances behind a load balancer do not share sessions.
"""

import logging
import secrets
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

logger = logging.getLogger(__name__)

ROLE_STUDENT = "student"
ROLE_PROFESSOR = "professor"
ROLES = (ROLE_STUDENT, ROLE_PROFESSOR)

# 32 random bytes → 64 hex chars (256 bits of entropy)
TOKEN_BYTES = 32


@dataclass(frozen=True)
class Session:
    token: str
    role: str
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


class SessionStore:
    """
    Token → Session mapping with lazy and periodic expiry.

    Invariant:
        An entry whose expires_at has passed is never reported as valid,
        whether or not the sweeper has removed it yet.

    Args:
        ttl_seconds: Lifetime of a new session
        clock:       Returns the current time in seconds (injectable for tests)
    """

    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.time):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._sessions: Dict[str, Session] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def create_session(self, role: str = ROLE_STUDENT) -> str:
        """Issue a fresh token for `role` and return it."""
        if role not in ROLES:
            raise ValueError(f"Unknown role '{role}'")

        token = secrets.token_hex(TOKEN_BYTES)
        # Collisions are astronomically unlikely, but a token must never be reused
        while token in self._sessions:
            token = secrets.token_hex(TOKEN_BYTES)

        self._sessions[token] = Session(
            token=token,
            role=role,
            expires_at=self._clock() + self.ttl_seconds,
        )
        logger.info("Session created for role=%s (%d active)", role, len(self._sessions))
        return token

    def lookup(self, token: Optional[str]) -> Optional[Session]:
        """
        Return the live Session for `token`, or None.

        An expired entry found here is evicted on the spot.
        """
        if not token:
            return None
        session = self._sessions.get(token)
        if session is None:
            return None
        if session.is_expired(self._clock()):
            del self._sessions[token]
            return None
        return session

    def is_valid(self, token: Optional[str]) -> bool:
        return self.lookup(token) is not None

    def role_of(self, token: Optional[str]) -> str:
        """
        Role of a currently valid token, else "student".

        Callers that must tell "unknown token" from "student" use lookup().
        """
        session = self.lookup(token)
        return session.role if session is not None else ROLE_STUDENT

    def remove(self, token: str) -> bool:
        return self._sessions.pop(token, None) is not None

    def sweep(self, now: Optional[float] = None) -> int:
        """Remove every session with expires_at <= now. Returns how many were removed."""
        now = self._clock() if now is None else now
        expired = [token for token, s in self._sessions.items() if s.is_expired(now)]
        for token in expired:
            del self._sessions[token]
        if expired:
            logger.debug("Swept %d expired sessions", len(expired))
        return len(expired)
