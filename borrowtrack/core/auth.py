import hashlib
import hmac
import logging
import secrets
from typing import Optional

from itsdangerous import URLSafeTimedSerializer, BadSignature
from borrowtrack.configs import SEED
from borrowtrack.core.documents import DocumentStore
from borrowtrack.core.exceptions import AuthenticationError, ValidationError
from borrowtrack.core.utils import now_iso
from borrowtrack.schemas.user import UserProfile

logger = logging.getLogger(__name__)

SERIALIZER = None  # Will be initialized lazily
COOKIE_TTL = 604800
COLLECTION = "users"
HASH_ITERATIONS = 200_000


def _get_serializer():
    """Get or initialize the SERIALIZER lazily."""
    global SERIALIZER
    if SERIALIZER is None:
        SERIALIZER = URLSafeTimedSerializer(SEED, salt="auth-cookie")
    return SERIALIZER


def create_session_cookie(uid: str) -> str:
    """Returns a signed session cookie for a signed-in user."""
    return _get_serializer().dumps({"uid": uid})


def verify_session_cookie(session) -> Optional[str]:
    """Retrieves and verifies the user id from a signed cookie."""
    if not session:
        return None
    try:
        data = _get_serializer().loads(session, max_age=COOKIE_TTL)
    except BadSignature:
        return None
    return data.get("uid") if isinstance(data, dict) else None


def hash_password(password: str, salt: str) -> str:
    digest = hashlib.pbkdf2_hmac(
        "sha256", password.encode("utf-8"), salt.encode("utf-8"), HASH_ITERATIONS)
    return digest.hex()


class IdentityProvider:
    """Accounts and sign-in, kept as `users/{uid}` documents.

    The record store never looks inside; it only needs a signed-in user.
    """

    def __init__(self, documents: DocumentStore):
        self.documents = documents

    async def _find(self, field, value):
        for uid, data in await self.documents.list_children(COLLECTION):
            if data.get(field) == value:
                return uid, data
        return None

    async def create_account(self, username: str, email: str, password: str,
                             role: str = "user") -> UserProfile:
        username, email = (username or "").strip(), (email or "").strip().lower()
        if not username:
            raise ValidationError("username", "Username is required")
        if not email:
            raise ValidationError("email", "Email is required")
        if not password or len(password) < 6:
            raise ValidationError("password", "Password must be at least 6 characters")
        if await self._find("username", username):
            raise ValidationError("username", f"Username {username} is taken")
        if await self._find("email", email):
            raise ValidationError("email", f"Email {email} is already registered")

        profile = UserProfile(
            uid=secrets.token_urlsafe(20), username=username, email=email,
            role=role, created_at=now_iso())
        salt = secrets.token_hex(16)
        await self.documents.write_document(COLLECTION, profile.uid, data={
            **profile.model_dump(by_alias=True),
            "passwordSalt": salt,
            "passwordHash": hash_password(password, salt),
        })
        logger.info(f"Created {role} account {username}")
        return profile

    async def sign_in(self, login: str, password: str) -> UserProfile:
        """Sign in by email or username."""
        login = (login or "").strip()
        found = await self._find("email", login.lower()) or await self._find("username", login)
        if found is None:
            raise AuthenticationError("Invalid credentials")
        uid, data = found
        expected = data.get("passwordHash", "")
        if not hmac.compare_digest(expected, hash_password(password or "", data.get("passwordSalt", ""))):
            raise AuthenticationError("Invalid credentials")
        return UserProfile.model_validate(data)

    async def get_profile(self, uid: str) -> Optional[UserProfile]:
        if not uid:
            return None
        data = await self.documents.read_document(COLLECTION, uid)
        return UserProfile.model_validate(data) if data else None

    async def get_by_username(self, username: str) -> Optional[UserProfile]:
        found = await self._find("username", username)
        return UserProfile.model_validate(found[1]) if found else None

    async def change_password(self, uid: str, current: str, new: str) -> None:
        profile = await self.get_profile(uid)
        if profile is None:
            raise AuthenticationError("No authenticated user")
        await self.sign_in(profile.email, current)
        if not new or len(new) < 6:
            raise ValidationError("password", "Password must be at least 6 characters")
        salt = secrets.token_hex(16)
        await self.documents.update_document(COLLECTION, uid, patch={
            "passwordSalt": salt, "passwordHash": hash_password(new, salt)})

    async def ensure_admin(self, username: str, email: str, password: str) -> Optional[UserProfile]:
        """Create the admin account unless the username already exists."""
        if await self.get_by_username(username):
            logger.info("Admin account already exists")
            return None
        return await self.create_account(username, email, password, role="admin")
