import io
import os
from datetime import timedelta

# Select the in-memory database before anything imports `models`
os.environ["APP_ENV"] = "test"

import pytest  # noqa: E402
from werkzeug.datastructures import FileStorage  # noqa: E402

from api import create_app  # noqa: E402
from models import storage  # noqa: E402
from models.credential_store import CredentialStore  # noqa: E402
from services.gate import AuthorizationGate  # noqa: E402
from services.session import SessionService  # noqa: E402
from utils.security import TokenCodec, TokenConfig  # noqa: E402
from utils.uploads import LocalAssetUploader  # noqa: E402

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


def make_image(filename="avatar.png"):
    """An uploaded-file handle as Flask would hand it to a view."""
    return FileStorage(stream=io.BytesIO(PNG_BYTES), filename=filename, content_type="image/png")


@pytest.fixture(autouse=True)
def reset_db():
    storage.drop_all()
    storage.reload()
    yield
    storage.close()


@pytest.fixture
def token_config():
    return TokenConfig(
        access_secret="unit-access-secret-0123456789abcdef0123456789",
        access_ttl=timedelta(minutes=5),
        refresh_secret="unit-refresh-secret-0123456789abcdef012345678",
        refresh_ttl=timedelta(days=1),
    )


@pytest.fixture
def codec(token_config):
    return TokenCodec(token_config)


@pytest.fixture
def store():
    return CredentialStore(storage)


@pytest.fixture
def upload_dir(tmp_path):
    return str(tmp_path / "uploads")


@pytest.fixture
def uploader(upload_dir):
    return LocalAssetUploader(upload_dir)


@pytest.fixture
def service(store, codec, uploader):
    return SessionService(store, codec, uploader)


@pytest.fixture
def gate(store, codec):
    return AuthorizationGate(store, codec)


@pytest.fixture
def alice(service):
    """A registered principal (sanitized dict)."""
    result = service.register("alice", "alice@x.com", "Alice Liddell", "pw123", avatar=make_image())
    assert result.ok, result.error
    return result.value


@pytest.fixture
def app(upload_dir):
    return create_app("test", overrides={"UPLOAD_FOLDER": upload_dir})


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def bare_client(app):
    """Client without a cookie jar: tokens travel only in headers/bodies."""
    return app.test_client(use_cookies=False)
