"""Pytest fixtures shared by the fileshare tests."""

import pytest

from config import Settings
from errors import DuplicateKey, StoreUnavailable
from fileShareApp import create_app
from models import Capability, Credential
from stores import SqlCredentialStore, SqlLinkStore, make_session_factory


class FakeCredentialStore:
    """In-memory credential store; set `broken` to simulate an outage."""

    def __init__(self, credentials=()):
        self.rows = {c.secret: c for c in credentials}
        self.lookups = 0
        self.writes = 0
        self.broken = False

    def find_by_credential_and_capability(self, secret, capability):
        self.lookups += 1
        if self.broken:
            raise StoreUnavailable()
        c = self.rows.get(secret)
        return c if c is not None and c.capability == capability else None

    def find_by_secret(self, secret):
        return self.rows.get(secret)

    def insert(self, credential):
        if credential.secret in self.rows:
            raise DuplicateKey()
        self.rows[credential.secret] = credential
        self.writes += 1

    def set_enabled(self, secret, value):
        c = self.rows[secret]
        self.rows[secret] = Credential(secret=c.secret, capability=c.capability, enabled=value)
        self.writes += 1


class FakeLinkStore:
    """
    In-memory link store.
    `taken` codes report as existing; `raced` codes pass the existence check
    but fail on insert, like a concurrent writer winning the race.
    """

    def __init__(self):
        self.rows = {}
        self.taken = set()
        self.raced = set()
        self.writes = 0

    def find_by_code(self, code):
        return self.rows.get(code)

    def exists_by_code(self, code):
        return code in self.rows or code in self.taken

    def insert(self, link):
        if link.code in self.rows or link.code in self.raced:
            raise DuplicateKey()
        self.rows[link.code] = link
        self.writes += 1

    def set_enabled(self, code, value):
        link = self.rows[code]
        self.rows[code] = type(link)(
            code=link.code, target_filename=link.target_filename, private=link.private, enabled=value
        )
        self.writes += 1


class Sources:
    """Stand-in for a request: just headers and query args."""

    def __init__(self, headers=None, args=None):
        self.headers = headers or {}
        self.args = args or {}


ADMIN_TOKEN = "admin-secret"


@pytest.fixture
def base_dir(tmp_path):
    root = tmp_path / "data"
    (root / "public").mkdir(parents=True)
    (root / "private").mkdir(parents=True)
    return root


@pytest.fixture
def credential_store():
    return FakeCredentialStore(
        [
            Credential("up-token", Capability.UPLOAD),
            Credential("down-token", Capability.DOWNLOAD),
            Credential("short-token", Capability.SHORTEN),
            Credential("admin-token", Capability.ADMINISTER),
            Credential("down-disabled", Capability.DOWNLOAD, enabled=False),
        ]
    )


@pytest.fixture
def link_store():
    return FakeLinkStore()


@pytest.fixture
def session_factory(tmp_path):
    return make_session_factory(f"sqlite:///{tmp_path / 'fileshare.db'}")


@pytest.fixture
def settings(base_dir, tmp_path):
    return Settings(
        base_dir=base_dir,
        database_url=f"sqlite:///{tmp_path / 'app.db'}",
        admin_token=ADMIN_TOKEN,
        short_code_length=6,
    )


@pytest.fixture
def app(settings):
    app = create_app(settings)
    app.config.update(TESTING=True)
    return app


@pytest.fixture
def client(app):
    return app.test_client()


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def issue_key(client):
    """Create a key of the given type through the admin API and return its secret."""

    def _issue(capability):
        resp = client.post("/api-keys", json={"type": capability}, headers=bearer(ADMIN_TOKEN))
        assert resp.status_code == 201
        return resp.get_json()["key"]

    return _issue


@pytest.fixture
def sql_stores(session_factory):
    return SqlCredentialStore(session_factory), SqlLinkStore(session_factory)
