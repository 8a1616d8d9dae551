import secrets
from datetime import timedelta
from typing import Any

import structlog
from pymongo.asynchronous.database import AsyncDatabase

from aura.core.core import Service
from aura.core.modules.session.models import AuthToken, OtpCode, Session
from aura.errors import AuthenticationError, ValidationError
from aura.utils import now

logger = structlog.get_logger(__name__)

OTP_LENGTH = 6


def generate_otp(length: int = OTP_LENGTH) -> str:
    """Random numeric code without a leading zero."""
    low = 10 ** (length - 1)
    return str(low + secrets.randbelow(9 * low))


class SessionService(Service):
    """Issues one-time passwords and bearer-token sessions."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._collection = database.get_collection("sessions")
        self._otp_collection = database.get_collection("otp_codes")
        self._authenticated_users: dict[AuthToken, str] = {}

    async def on_start(self) -> None:
        """Create indexes on startup."""
        config = self.core.config
        await self._collection.create_index([("auth_token", 1)], unique=True)
        await self._collection.create_index([("user_id", 1)])
        await self._collection.create_index([("created_at", 1)], expireAfterSeconds=config.session_ttl_days * 24 * 60 * 60)
        await self._otp_collection.create_index([("phone_no", 1)], unique=True)
        await self._otp_collection.create_index([("created_at", 1)], expireAfterSeconds=config.otp_ttl_seconds)

    async def issue_otp(self, phone_no: str) -> str:
        """Create a new code for the phone, replacing any previous one."""
        otp = OtpCode(phone_no=phone_no, code=generate_otp())
        await self._otp_collection.update_one({"phone_no": phone_no}, {"$set": otp.model_dump()}, upsert=True)
        logger.debug("otp_issued", phone_no=phone_no)
        return otp.code

    async def verify_otp(self, phone_no: str, code: str, *, consume: bool = True) -> None:
        """Check the code for the phone; a verified code is deleted unless ``consume`` is False."""
        doc = await self._otp_collection.find_one({"phone_no": phone_no})
        if doc is None or not secrets.compare_digest(doc["code"], code):
            raise ValidationError("Invalid OTP")

        # The TTL monitor runs only once a minute, so expiry is checked here as well
        if now() - doc["created_at"] > timedelta(seconds=self.core.config.otp_ttl_seconds):
            raise ValidationError("OTP expired")

        if consume:
            await self._otp_collection.delete_one({"phone_no": phone_no})

    async def create_session(self, user_id: str) -> AuthToken:
        auth_token = AuthToken(secrets.token_urlsafe(32))
        new_session = Session(user_id=user_id, auth_token=auth_token)
        await self._collection.insert_one(new_session.model_dump())
        return auth_token

    async def get_authenticated_user_id(self, auth_token: AuthToken) -> str:
        if auth_token in self._authenticated_users:
            return self._authenticated_users[auth_token]

        session = await self._collection.find_one({"auth_token": auth_token})
        if session is None:
            raise AuthenticationError("Invalid or expired token")

        self._authenticated_users[auth_token] = session["user_id"]
        return session["user_id"]

    async def is_auth_token_valid(self, auth_token: AuthToken) -> bool:
        try:
            await self.get_authenticated_user_id(auth_token)
        except AuthenticationError:
            return False
        return True

    async def invalidate_session(self, auth_token: AuthToken) -> None:
        """Invalidate a session by removing it from the database."""
        self._authenticated_users.pop(auth_token, None)
        await self._collection.delete_one({"auth_token": auth_token})
