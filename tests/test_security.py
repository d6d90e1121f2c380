"""Password hashing and the access/refresh token codec."""
from datetime import timedelta

import jwt
import pytest

from utils.security import TokenCodec, TokenConfig, hash_password, verify_password


class TestPasswordHashing:
    def test_hash_is_not_plaintext(self):
        digest = hash_password("pw123")
        assert digest != "pw123"
        assert digest.startswith("$argon2")

    def test_same_password_produces_different_hashes(self):
        assert hash_password("pw123") != hash_password("pw123")

    def test_verify_accepts_correct_password(self):
        assert verify_password("pw123", hash_password("pw123")) is True

    def test_verify_rejects_wrong_password(self):
        assert verify_password("nope", hash_password("pw123")) is False

    @pytest.mark.parametrize("stored", [None, "", "not-an-argon2-hash"])
    def test_verify_rejects_missing_or_malformed_hash(self, stored):
        assert verify_password("pw123", stored) is False


class TestTokenCodec:
    def test_access_token_round_trip_carries_user_id(self, codec):
        claims = codec.verify_access(codec.mint_access("user-1"))
        assert claims is not None
        assert claims.user_id == "user-1"
        assert claims.expires_at > claims.issued_at

    def test_each_mint_is_distinct(self, codec):
        assert codec.mint_refresh("user-1") != codec.mint_refresh("user-1")

    def test_access_and_refresh_are_not_interchangeable(self, codec):
        assert codec.verify_refresh(codec.mint_access("user-1")) is None
        assert codec.verify_access(codec.mint_refresh("user-1")) is None

    def test_refresh_lifetime_is_longer(self, codec):
        access = codec.verify_access(codec.mint_access("u"))
        refresh = codec.verify_refresh(codec.mint_refresh("u"))
        assert refresh.expires_at - refresh.issued_at == timedelta(days=1)
        assert access.expires_at - access.issued_at == timedelta(minutes=5)

    def test_expired_token_is_rejected(self, token_config):
        expired = TokenCodec(TokenConfig(
            access_secret=token_config.access_secret,
            access_ttl=timedelta(seconds=-10),
            refresh_secret=token_config.refresh_secret,
            refresh_ttl=token_config.refresh_ttl,
        ))
        assert expired.verify_access(expired.mint_access("u")) is None

    def test_token_signed_with_other_secret_is_rejected(self, codec, token_config):
        forged = jwt.encode(
            {"sub": "u", "iat": 0, "exp": 9999999999, "type": "access", "iss": token_config.issuer},
            "some-other-secret-that-is-long-enough-000000",
            algorithm="HS256",
        )
        assert codec.verify_access(forged) is None

    @pytest.mark.parametrize("token", [None, "", "garbage", "a.b.c"])
    def test_malformed_tokens_are_rejected(self, codec, token):
        assert codec.verify_access(token) is None

    def test_from_mapping_reads_flask_style_keys(self):
        config = TokenConfig.from_mapping({
            "ACCESS_TOKEN_SECRET": "a" * 40,
            "ACCESS_TOKEN_EXPIRES": timedelta(minutes=1),
            "REFRESH_TOKEN_SECRET": "r" * 40,
            "REFRESH_TOKEN_EXPIRES": timedelta(hours=1),
            "JWT_ALGORITHM": "HS512",
        })
        assert config.algorithm == "HS512"
        assert config.refresh_ttl == timedelta(hours=1)
        assert config.issuer == "session-auth-api"
