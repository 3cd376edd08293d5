import os
import tempfile


# Settings are read at import time: point everything at a scratch directory
# before any printdesk module is imported.
TMP_DIR = tempfile.mkdtemp(prefix="printdesk-tests-")

os.environ.update({
    "OPENAI_API_KEY": "test-key",
    "OPENAI_MODEL": "gpt-test",
    "AUTH_SECRET_KEY": "test-secret",
    "AUTH_TOKEN_EXPIRE_MINUTES": "60",
    "AUTH_LOGIN": "admin",
    "AUTH_PASSWORD": "admin-pass",
    "DATABASE_URL": f"sqlite+aiosqlite:///{os.path.join(TMP_DIR, 'printdesk.db')}",
    "LOG_DIR": os.path.join(TMP_DIR, "logs"),
    "LOG_PRINT": "0",
    "PUBLIC_ORIGIN": "https://console.test",
    "DISPLAY_LOCALE": "en",
    "FUNCTIONS_API_KEY": "",
    "SEARCH_API_URL": "",
})

import pytest
from fastapi.testclient import TestClient


class FakeLog:
    """Collects log calls instead of writing files."""

    def __init__(self):
        self.entries = []

    async def log_info(self, target="", message="", data=None, is_console=None):
        self.entries.append(("info", target, message, data))

    async def log_warning(self, target="", message="", data=None, is_console=None):
        self.entries.append(("warning", target, message, data))

    async def log_error(self, target="", message="", data=None, is_console=None):
        self.entries.append(("error", target, message, data))

    def messages(self, level=None):
        return [m for (lvl, _, m, _) in self.entries if level is None or lvl == level]


@pytest.fixture
def fake_log():
    return FakeLog()


@pytest.fixture(scope="session")
def client():
    from printdesk.main import app

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture(scope="session")
def auth_headers(client):
    resp = client.post("/auth/token", data={"username": "admin", "password": "admin-pass"})
    assert resp.status_code == 200, resp.text
    return {"Authorization": f"Bearer {resp.json()['access_token']}"}
