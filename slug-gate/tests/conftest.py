"""
Shared fixtures: a synthetic upload tree, a published config directory and a
gate application wired to them.
"""

import json

import pytest

GATE_KEY = "test-gate-key-0f3c9a"
PATH_ID = "42"
SESSION_TOKEN = "session-token-abc"

# Frozen clock for cookie expiry
NOW = 1_700_000_000


@pytest.fixture
def upload_tree(tmp_path):
    """uploads/ with public and protected files, webpc/ with one variant."""
    uploads = tmp_path / "uploads"
    (uploads / "public").mkdir(parents=True)
    (uploads / "private").mkdir()
    (uploads / "public" / "pic.jpg").write_bytes(b"public-image")
    (uploads / "private" / "report.pdf").write_bytes(b"0123456789")
    (uploads / "private" / "photo.jpg").write_bytes(b"original-photo")

    webpc = tmp_path / "webpc"
    (webpc / "private").mkdir(parents=True)
    (webpc / "private" / "photo.jpg.webp").write_bytes(b"webp-photo")

    (tmp_path / "outside.txt").write_bytes(b"top secret")
    return tmp_path


@pytest.fixture
def site_config_data(upload_tree):
    return {
        "media_gate_key": GATE_KEY,
        "upload_base": str(upload_tree / "uploads"),
        "uploads_webpc_base": str(upload_tree / "webpc"),
        "site_id": "1",
        "site_slug": "main",
        "site_url": "https://media.example.com",
        "delivery_method": "php",
    }


@pytest.fixture
def config_dir(upload_tree, site_config_data):
    """Config directory holding config.json and protected-files.json."""
    directory = upload_tree / "gate-config"
    directory.mkdir()
    (directory / "config.json").write_text(json.dumps(site_config_data))
    (directory / "protected-files.json").write_text(json.dumps({
        "items": {
            "private/report.pdf": PATH_ID,
            "private/photo.jpg": PATH_ID,
        },
        "site_slug": "main",
    }))
    return directory


@pytest.fixture
def gate_environ():
    return {"ESP_MEDIA_GATE_KEY": GATE_KEY}


@pytest.fixture
def make_client(config_dir, gate_environ):
    """Factory for a TestClient over a gate app; config may be overridden."""
    from starlette.testclient import TestClient

    from slug_gate.app import create_app
    from slug_gate.config import GateSettings

    def factory(environ=None, clock=lambda: NOW, chunk_size=4):
        settings = GateSettings(
            config_dir=str(config_dir),
            chunk_size=chunk_size,
            environment="production",
        )
        app = create_app(
            settings,
            environ=gate_environ if environ is None else environ,
            clock=clock,
            configure_logging=False,
        )
        return TestClient(app)

    return factory


@pytest.fixture
def login_cookies():
    """Cookies a successful login for PATH_ID would have set."""
    from slug_gate.auth import mint_gate_cookie

    def factory(path_id=PATH_ID, token=SESSION_TOKEN, expires=NOW + 3600, secret=GATE_KEY):
        return {
            f"esp_auth_{path_id}": token,
            f"esp_gate_{path_id}": mint_gate_cookie(secret, path_id, token, expires=expires),
        }

    return factory
