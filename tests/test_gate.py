"""AuthorizationGate: token source precedence and uniform rejection."""
import pytest

from conftest import make_image
from models import storage
from services.gate import REJECTED, extract_token
from services.results import ErrorKind


class TestExtractToken:
    def test_cookie_wins_over_header(self):
        assert extract_token("from-cookie", "Bearer from-header") == "from-cookie"

    def test_header_used_without_cookie(self):
        assert extract_token(None, "Bearer from-header") == "from-header"
        assert extract_token("  ", "Bearer from-header") == "from-header"

    @pytest.mark.parametrize("header", [None, "", "Bearer ", "Bearer", "Basic abc", "Token abc"])
    def test_no_usable_token(self, header):
        assert extract_token(None, header) is None

    @pytest.mark.parametrize("header", ["bearer abc", "BEARER abc", "Bearer   abc "])
    def test_scheme_is_case_insensitive(self, header):
        assert extract_token(None, header) == "abc"


class TestAuthenticate:
    def test_login_then_gate_resolves_same_principal(self, service, gate, alice):
        login = service.login("pw123", username="alice").value
        result = gate.authenticate(authorization=f"Bearer {login.access_token}")
        assert result.ok
        assert result.value["id"] == alice["id"]
        assert "password_hash" not in result.value
        assert "refresh_token" not in result.value

    def test_cookie_token_resolves_principal(self, gate, codec, alice):
        assert gate.authenticate(cookie_token=codec.mint_access(alice["id"])).value["id"] == alice["id"]

    def test_cookie_precedence_over_header(self, service, gate, codec, alice):
        bob = service.register("bob", "bob@x.com", "Bob", "pw", avatar=make_image()).value
        result = gate.authenticate(
            cookie_token=codec.mint_access(alice["id"]),
            authorization=f"Bearer {codec.mint_access(bob['id'])}",
        )
        assert result.value["id"] == alice["id"]

    def test_bad_cookie_is_not_rescued_by_good_header(self, gate, codec, alice):
        result = gate.authenticate(
            cookie_token="garbage",
            authorization=f"Bearer {codec.mint_access(alice['id'])}",
        )
        assert result.error.kind is ErrorKind.UNAUTHORIZED

    def test_every_failure_looks_the_same(self, gate, codec, store, alice):
        refresh_as_access = codec.mint_refresh(alice["id"])
        ghost = codec.mint_access("deleted-user")

        failures = [
            gate.authenticate(),
            gate.authenticate(authorization="Bearer not-a-jwt"),
            gate.authenticate(authorization=f"Bearer {refresh_as_access}"),
            gate.authenticate(cookie_token=ghost),
        ]
        for result in failures:
            assert result.error.kind is ErrorKind.UNAUTHORIZED
            assert result.error.status == 401
            assert result.error.message == REJECTED

    def test_deleted_principal_is_rejected(self, gate, codec, store, alice):
        token = codec.mint_access(alice["id"])
        session = storage.get_session()
        session.delete(store.find_by_id(alice["id"]))
        storage.save()
        assert gate.authenticate(authorization=f"Bearer {token}").error.message == REJECTED
