"""
Cookie Authorizer Tests
=======================
Gate-cookie parsing, MAC verification, expiry and proof-token selection.
"""

import pytest

from conftest import GATE_KEY, NOW, PATH_ID, SESSION_TOKEN

VALID_MAC = "a" * 64


class TestParseGateCookie:
    """Tests for ``mac.expiry`` parsing."""

    def test_parses_valid_cookie(self):
        """Well-formed cookies parse into mac and expiry."""
        from slug_gate.auth import parse_gate_cookie

        cookie = parse_gate_cookie(f"{VALID_MAC}.1700000000")

        assert cookie.mac == VALID_MAC
        assert cookie.expires == 1700000000

    def test_mac_is_lowercased(self):
        """Uppercase hex is accepted and normalized."""
        from slug_gate.auth import parse_gate_cookie

        cookie = parse_gate_cookie(f"{'AB' * 32}.5")

        assert cookie.mac == "ab" * 32

    @pytest.mark.parametrize("value", [
        "",
        "no-dot",
        f"{VALID_MAC}.",
        ".1700000000",
        f"{VALID_MAC}.0",
        f"{VALID_MAC}.-5",
        f"{VALID_MAC}.12.3",
        f"{VALID_MAC}.12a",
        f"{'a' * 63}.1700000000",
        f"{'a' * 65}.1700000000",
        f"{'g' * 64}.1700000000",
        f"{VALID_MAC}.{'9' * 19}",
        f"{VALID_MAC}.{'9' * 5000}",
    ])
    def test_rejects_malformed_values(self, value):
        """Anything off-format is rejected outright."""
        from slug_gate.auth import parse_gate_cookie

        assert parse_gate_cookie(value) is None

    def test_rejects_non_strings(self):
        """Non-string cookie values are rejected."""
        from slug_gate.auth import parse_gate_cookie

        assert parse_gate_cookie(None) is None
        assert parse_gate_cookie(123) is None


class TestSignature:
    """Tests for HMAC computation and minting."""

    def test_payload_format(self):
        """Payload binds id, token and expiry with pipes."""
        from slug_gate.auth import build_payload

        assert build_payload("7", "tok", 99) == "7|tok|99"

    def test_mac_matches_hmac_sha256(self):
        """MAC is plain HMAC-SHA256 hex of the payload."""
        import hashlib
        import hmac

        from slug_gate.auth import compute_gate_mac

        expected = hmac.new(b"k", b"7|tok|99", hashlib.sha256).hexdigest()

        assert compute_gate_mac("k", "7", "tok", 99) == expected

    def test_verify_rejects_empty_secret(self):
        """An empty secret never verifies."""
        from slug_gate.auth import compute_gate_mac, verify_gate_mac

        mac = compute_gate_mac("", "7", "tok", 99)

        assert verify_gate_mac("", "7", "tok", 99, mac) is False

    def test_mint_requires_secret(self):
        """Minting with an empty secret is a programming error."""
        from slug_gate.auth import mint_gate_cookie

        with pytest.raises(ValueError):
            mint_gate_cookie("", "7", "tok", expires=99)

    def test_mint_default_expiry(self):
        """Minted cookies default to an expiry one hour ahead."""
        import time

        from slug_gate.auth import parse_gate_cookie, mint_gate_cookie

        before = int(time.time())
        cookie = parse_gate_cookie(mint_gate_cookie("k", "7", "tok"))

        assert before + 3600 <= cookie.expires <= int(time.time()) + 3600


class TestCookieAuthorizer:
    """Tests for the full authorization decision."""

    def _authorizer(self, now=NOW, secret=GATE_KEY):
        from slug_gate.auth import CookieAuthorizer

        return CookieAuthorizer(secret, clock=lambda: now)

    def test_valid_session_cookie_allows(self, login_cookies):
        """Matching session and gate cookies authorize."""
        from slug_gate.auth import AuthDecision

        result = self._authorizer().check(PATH_ID, login_cookies())

        assert result.allowed is True
        assert result.decision == AuthDecision.ALLOW

    def test_no_cookies_denies(self):
        """No cookies at all is a deny."""
        from slug_gate.auth import DenyReason

        result = self._authorizer().check(PATH_ID, {})

        assert result.allowed is False
        assert result.reason == DenyReason.MISSING_GATE_COOKIE

    def test_expiry_round_trip(self, login_cookies):
        """Valid until the expiry instant, denied one second later."""
        from slug_gate.auth import DenyReason

        cookies = login_cookies(expires=NOW + 60)

        assert self._authorizer(now=NOW + 60).check(PATH_ID, cookies).allowed is True
        late = self._authorizer(now=NOW + 61).check(PATH_ID, cookies)
        assert late.allowed is False
        assert late.reason == DenyReason.EXPIRED_GATE_COOKIE

    def test_changing_path_id_breaks_mac(self, login_cookies):
        """A cookie minted for one path does not open another."""
        from slug_gate.auth import DenyReason

        cookies = login_cookies()
        moved = {
            "esp_auth_43": cookies[f"esp_auth_{PATH_ID}"],
            "esp_gate_43": cookies[f"esp_gate_{PATH_ID}"],
        }

        result = self._authorizer().check("43", moved)

        assert result.reason == DenyReason.INVALID_SIGNATURE

    def test_changing_token_breaks_mac(self, login_cookies):
        """Swapping the proof token invalidates the MAC."""
        from slug_gate.auth import DenyReason

        cookies = login_cookies()
        cookies[f"esp_auth_{PATH_ID}"] = SESSION_TOKEN + "x"

        assert self._authorizer().check(PATH_ID, cookies).reason == DenyReason.INVALID_SIGNATURE

    def test_changing_expiry_breaks_mac(self, login_cookies):
        """Extending the expiry without re-signing fails."""
        from slug_gate.auth import DenyReason

        cookies = login_cookies(expires=NOW + 60)
        mac = cookies[f"esp_gate_{PATH_ID}"].split(".")[0]
        cookies[f"esp_gate_{PATH_ID}"] = f"{mac}.{NOW + 999999}"

        assert self._authorizer().check(PATH_ID, cookies).reason == DenyReason.INVALID_SIGNATURE

    def test_wrong_secret_denies(self, login_cookies):
        """Cookies minted under another key do not verify."""
        cookies = login_cookies(secret="other-key")

        assert self._authorizer().check(PATH_ID, cookies).allowed is False

    def test_empty_secret_denies(self, login_cookies):
        """An unconfigured key fails closed."""
        from slug_gate.auth import DenyReason

        result = self._authorizer(secret="").check(PATH_ID, login_cookies())

        assert result.reason == DenyReason.MISSING_SECRET

    def test_missing_path_id_denies(self, login_cookies):
        """An empty protection id cannot be authorized."""
        from slug_gate.auth import DenyReason

        assert self._authorizer().check("", login_cookies()).reason == DenyReason.MISSING_PATH_ID
        assert self._authorizer().check(None, login_cookies()).reason == DenyReason.MISSING_PATH_ID

    def test_remember_token_with_id_allows(self):
        """Remember-me token plus its id authorizes."""
        from slug_gate.auth import mint_gate_cookie

        cookies = {
            f"esp_remember_id_{PATH_ID}": "device-1",
            f"esp_remember_token_{PATH_ID}": "remember-tok",
            f"esp_gate_{PATH_ID}": mint_gate_cookie(GATE_KEY, PATH_ID, "remember-tok", expires=NOW + 10),
        }

        assert self._authorizer().check(PATH_ID, cookies).allowed is True

    def test_remember_token_without_id_denies(self):
        """A lone remember token is insufficient."""
        from slug_gate.auth import DenyReason, mint_gate_cookie

        cookies = {
            f"esp_remember_token_{PATH_ID}": "remember-tok",
            f"esp_gate_{PATH_ID}": mint_gate_cookie(GATE_KEY, PATH_ID, "remember-tok", expires=NOW + 10),
        }

        result = self._authorizer().check(PATH_ID, cookies)

        assert result.allowed is False
        assert result.reason == DenyReason.ORPHAN_REMEMBER_TOKEN

    def test_session_token_takes_precedence(self):
        """A present session cookie is used even if a remember pair exists."""
        from slug_gate.auth import DenyReason, mint_gate_cookie

        cookies = {
            f"esp_auth_{PATH_ID}": "session-tok",
            f"esp_remember_id_{PATH_ID}": "device-1",
            f"esp_remember_token_{PATH_ID}": "remember-tok",
            f"esp_gate_{PATH_ID}": mint_gate_cookie(GATE_KEY, PATH_ID, "remember-tok", expires=NOW + 10),
        }

        assert self._authorizer().check(PATH_ID, cookies).reason == DenyReason.INVALID_SIGNATURE

    def test_gate_cookie_without_proof_token_denies(self, login_cookies):
        """The gate cookie alone proves nothing."""
        from slug_gate.auth import DenyReason

        cookies = login_cookies()
        del cookies[f"esp_auth_{PATH_ID}"]

        assert self._authorizer().check(PATH_ID, cookies).reason == DenyReason.MISSING_PROOF_TOKEN

    def test_custom_prefixes(self):
        """Cookie names follow the configured prefixes."""
        from slug_gate.auth import CookieAuthorizer, CookiePrefixes, mint_gate_cookie

        prefixes = CookiePrefixes(session="s_", remember_id="ri_", remember_token="rt_", gate="g_")
        cookies = {
            "s_9": "tok",
            "g_9": mint_gate_cookie(GATE_KEY, "9", "tok", expires=NOW + 10),
        }

        authorizer = CookieAuthorizer(GATE_KEY, prefixes=prefixes, clock=lambda: NOW)

        assert authorizer.check("9", cookies).allowed is True
