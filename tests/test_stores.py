import pytest
from sqlalchemy.exc import OperationalError

import api_keys
from auth_utils import TokenAuthorizer
from conftest import Sources
from errors import DuplicateKey, Exhausted, NotFound, StoreUnavailable
from models import Capability, Credential, ShortLink
from short_links import ShortCodeRegistry
from stores import ApiKeyRow


class TestSqlCredentialStore:
    def test_lookup_is_scoped_by_capability(self, sql_stores):
        creds, _ = sql_stores
        creds.insert(Credential("s1", Capability.UPLOAD))

        assert creds.find_by_credential_and_capability("s1", Capability.UPLOAD) == Credential("s1", Capability.UPLOAD)
        assert creds.find_by_credential_and_capability("s1", Capability.DOWNLOAD) is None
        assert creds.find_by_secret("s1").capability is Capability.UPLOAD
        assert creds.find_by_secret("nope") is None

    def test_duplicate_secret(self, sql_stores):
        creds, _ = sql_stores
        creds.insert(Credential("s1", Capability.UPLOAD))
        with pytest.raises(DuplicateKey):
            creds.insert(Credential("s1", Capability.DOWNLOAD))

    def test_set_enabled(self, sql_stores):
        creds, _ = sql_stores
        creds.insert(Credential("s1", Capability.SHORTEN))
        creds.set_enabled("s1", False)
        assert creds.find_by_secret("s1").enabled is False

    def test_authorizer_against_sql_store(self, sql_stores):
        creds, _ = sql_stores
        creds.insert(Credential("dl", Capability.DOWNLOAD))
        creds.insert(Credential("dl-off", Capability.DOWNLOAD, enabled=False))
        authorizer = TokenAuthorizer(creds)

        assert authorizer.authorize(Sources(args={"token": "dl"}), Capability.DOWNLOAD)
        assert not authorizer.authorize(Sources(args={"token": "dl"}), Capability.UPLOAD)
        assert not authorizer.authorize(Sources(args={"token": "dl-off"}), Capability.DOWNLOAD)


class TestSqlLinkStore:
    def test_insert_and_find(self, sql_stores):
        _, links = sql_stores
        links.insert(ShortLink("abc", "a.txt", private=True))

        assert links.exists_by_code("abc")
        assert not links.exists_by_code("xyz")
        assert links.find_by_code("abc") == ShortLink("abc", "a.txt", private=True, enabled=True)

    def test_duplicate_code(self, sql_stores):
        _, links = sql_stores
        links.insert(ShortLink("abc", "a.txt", private=True))
        with pytest.raises(DuplicateKey):
            links.insert(ShortLink("abc", "b.txt", private=False))

    def test_registry_retries_on_real_unique_constraint(self, sql_stores):
        _, links = sql_stores
        links.insert(ShortLink("dup", "a.txt", private=False))
        draws = iter(["dup", "dup", "fresh"])
        registry = ShortCodeRegistry(links, code_factory=lambda n: next(draws))

        assert registry.allocate("b.txt", private=True) == "fresh"

    def test_registry_exhausts_on_real_store(self, sql_stores):
        _, links = sql_stores
        links.insert(ShortLink("dup", "a.txt", private=False))
        registry = ShortCodeRegistry(links, code_factory=lambda n: "dup")
        with pytest.raises(Exhausted):
            registry.allocate("b.txt", private=True)


def test_store_failures_become_store_unavailable(sql_stores, monkeypatch):
    creds, _ = sql_stores

    class BrokenSession:
        def execute(self, *args, **kwargs):
            raise OperationalError("SELECT 1", {}, Exception("database is locked"))

        def commit(self):
            pass

        def rollback(self):
            pass

        def close(self):
            pass

    monkeypatch.setattr(creds, "_session_factory", BrokenSession)
    with pytest.raises(StoreUnavailable):
        creds.find_by_secret("s1")


def test_unknown_capability_row_reads_as_absent(sql_stores, session_factory):
    creds, _ = sql_stores
    with session_factory() as s:
        s.add(ApiKeyRow(key="legacy", capability="api", is_enabled=True))
        s.commit()

    assert creds.find_by_secret("legacy") is None
    assert api_keys.ensure_admin(creds, "legacy") is False
    with pytest.raises(NotFound):
        api_keys.set_enabled(creds, "legacy", False)
