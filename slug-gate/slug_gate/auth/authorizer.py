"""
Cookie Authorizer
=================
Rebuilds the "logged in to this protected path" fact from cookies alone.
"""

import time
from typing import Callable, Mapping, Optional

import structlog

from .cookies import extract_gate_cookie, resolve_login_token
from .models import AuthDecision, AuthResult, CookiePrefixes, DenyReason
from .signature import verify_gate_mac

logger = structlog.get_logger(__name__)


class CookieAuthorizer:
    """
    Verifies gate cookies for protected files.

    The login flow mints ``HMAC(secret, id|token|expiry)`` into the gate
    cookie; this class recomputes it from the proof-token cookie and compares
    in constant time. Every failure is a plain DENY.
    """

    def __init__(
        self,
        secret: str,
        prefixes: Optional[CookiePrefixes] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.secret = secret or ""
        self.prefixes = prefixes or CookiePrefixes()
        self.clock = clock

    def _deny(self, path_id: Optional[str], reason: DenyReason) -> AuthResult:
        logger.info("gate_cookie_rejected", path_id=path_id, reason=reason.value)
        return AuthResult(decision=AuthDecision.DENY, reason=reason, path_id=path_id)

    def check(self, path_id, cookies: Mapping[str, str]) -> AuthResult:
        """
        Decide whether the request's cookies prove a login for ``path_id``.

        Args:
            path_id: Protection-path identifier from the protected-file map
            cookies: Request cookies

        Returns:
            AuthResult with ALLOW only when the MAC matches and is unexpired
        """
        path_id = "" if path_id is None else str(path_id)
        if not path_id:
            return self._deny(None, DenyReason.MISSING_PATH_ID)
        if not self.secret:
            return self._deny(path_id, DenyReason.MISSING_SECRET)

        gate_cookie, reason = extract_gate_cookie(cookies, path_id, self.prefixes)
        if gate_cookie is None:
            return self._deny(path_id, reason)

        if gate_cookie.expires < self.clock():
            return self._deny(path_id, DenyReason.EXPIRED_GATE_COOKIE)

        token, reason = resolve_login_token(cookies, path_id, self.prefixes)
        if token is None:
            return self._deny(path_id, reason)

        if not verify_gate_mac(self.secret, path_id, token, gate_cookie.expires, gate_cookie.mac):
            return self._deny(path_id, DenyReason.INVALID_SIGNATURE)

        logger.debug("gate_cookie_accepted", path_id=path_id)
        return AuthResult(decision=AuthDecision.ALLOW, path_id=path_id)
