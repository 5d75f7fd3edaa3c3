import anyio
import pytest

from itsdangerous import URLSafeTimedSerializer
from borrowtrack.core import auth
from borrowtrack.core.auth import IdentityProvider
from borrowtrack.core.exceptions import AuthenticationError, ValidationError


@pytest.fixture
def identity(documents):
    return IdentityProvider(documents)


def test_cookie_basic_functionality():
    auth.SERIALIZER = URLSafeTimedSerializer(b"123", salt="auth-cookie")
    cookie = auth.create_session_cookie("uid-123")

    assert auth.verify_session_cookie(cookie) == "uid-123"


def test_cookie_tampered_or_foreign():
    auth.SERIALIZER = URLSafeTimedSerializer(b"123", salt="auth-cookie")
    cookie = auth.create_session_cookie("uid-123")

    assert auth.verify_session_cookie(cookie[:-2] + "xx") is None
    assert auth.verify_session_cookie(None) is None
    assert auth.verify_session_cookie("") is None

    other = URLSafeTimedSerializer(b"456", salt="auth-cookie").dumps({"uid": "uid-123"})
    assert auth.verify_session_cookie(other) is None


def test_hash_password_is_salted():
    assert auth.hash_password("secret1", "a") == auth.hash_password("secret1", "a")
    assert auth.hash_password("secret1", "a") != auth.hash_password("secret1", "b")


def test_create_and_sign_in(identity):
    profile = anyio.run(identity.create_account, "maria", "Maria@Example.com", "secret1")

    assert profile.email == "maria@example.com"
    assert profile.role == "user"
    assert anyio.run(identity.sign_in, "maria", "secret1") == profile
    assert anyio.run(identity.sign_in, "MARIA@example.com", "secret1") == profile
    assert anyio.run(identity.get_profile, profile.uid) == profile


def test_sign_in_rejects_bad_credentials(identity):
    anyio.run(identity.create_account, "maria", "maria@example.com", "secret1")

    with pytest.raises(AuthenticationError):
        anyio.run(identity.sign_in, "maria", "wrong")
    with pytest.raises(AuthenticationError):
        anyio.run(identity.sign_in, "pedro", "secret1")


@pytest.mark.parametrize("username,email,password,field", [
    ("", "a@example.com", "secret1", "username"),
    ("maria", "", "secret1", "email"),
    ("maria", "a@example.com", "short", "password"),
])
def test_create_account_validation(identity, username, email, password, field):
    with pytest.raises(ValidationError) as excinfo:
        anyio.run(identity.create_account, username, email, password)
    assert excinfo.value.field == field


def test_usernames_and_emails_are_unique(identity):
    anyio.run(identity.create_account, "maria", "maria@example.com", "secret1")

    with pytest.raises(ValidationError) as excinfo:
        anyio.run(identity.create_account, "maria", "other@example.com", "secret1")
    assert excinfo.value.field == "username"

    with pytest.raises(ValidationError) as excinfo:
        anyio.run(identity.create_account, "pedro", "maria@example.com", "secret1")
    assert excinfo.value.field == "email"


def test_change_password(identity):
    profile = anyio.run(identity.create_account, "maria", "maria@example.com", "secret1")

    with pytest.raises(AuthenticationError):
        anyio.run(identity.change_password, profile.uid, "wrong", "secret2")

    anyio.run(identity.change_password, profile.uid, "secret1", "secret2")
    with pytest.raises(AuthenticationError):
        anyio.run(identity.sign_in, "maria", "secret1")
    assert anyio.run(identity.sign_in, "maria", "secret2").uid == profile.uid


def test_ensure_admin_once(identity):
    admin = anyio.run(identity.ensure_admin, "Admin", "admin@example.com", "secret1")
    assert admin.role == "admin"
    assert anyio.run(identity.ensure_admin, "Admin", "admin@example.com", "secret1") is None
