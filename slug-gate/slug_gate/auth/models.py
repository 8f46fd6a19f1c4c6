"""
Gate Auth Models
================
Data models and enums for gate-cookie authorization.
"""

from typing import Optional
from dataclasses import dataclass
from enum import Enum


class AuthDecision(str, Enum):
    """Gate authorization decision."""
    ALLOW = "ALLOW"
    DENY = "DENY"


class DenyReason(str, Enum):
    """Why a protected request was denied. Logged only, never sent to the client."""
    MISSING_PATH_ID = "missing_path_id"
    MISSING_SECRET = "missing_secret"
    MISSING_GATE_COOKIE = "missing_gate_cookie"
    MALFORMED_GATE_COOKIE = "malformed_gate_cookie"
    EXPIRED_GATE_COOKIE = "expired_gate_cookie"
    MISSING_PROOF_TOKEN = "missing_proof_token"
    ORPHAN_REMEMBER_TOKEN = "orphan_remember_token"
    INVALID_SIGNATURE = "invalid_signature"


@dataclass(frozen=True)
class CookiePrefixes:
    """Cookie-name prefixes; a cookie name is ``<prefix><path id>``."""
    session: str = "esp_auth_"
    remember_id: str = "esp_remember_id_"
    remember_token: str = "esp_remember_token_"
    gate: str = "esp_gate_"


@dataclass(frozen=True)
class GateCookie:
    """Parsed ``<mac>.<expiry>`` gate cookie."""
    mac: str
    expires: int


@dataclass
class AuthResult:
    """Result of a gate-cookie check."""
    decision: AuthDecision
    reason: Optional[DenyReason] = None
    path_id: Optional[str] = None

    @property
    def allowed(self) -> bool:
        return self.decision is AuthDecision.ALLOW
