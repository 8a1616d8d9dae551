from aura.core.core import Service
from aura.core.modules.session.models import AuthToken
from aura.core.modules.user.models import User
from aura.errors import AccessDeniedError


class AccessService(Service):
    async def ensure_authenticated(self, auth_token: AuthToken) -> str:
        """Return the id of the user behind the token."""
        return await self.core.services.session.get_authenticated_user_id(auth_token)

    async def ensure_authenticated_user(self, auth_token: AuthToken) -> User:
        """Return the full user document behind the token."""
        user_id = await self.ensure_authenticated(auth_token)
        return await self.core.services.user.get_user(user_id)

    @staticmethod
    def ensure_owner(owner_id: str, user_id: str, what: str) -> None:
        """Raise AccessDeniedError unless ``user_id`` owns the resource."""
        if owner_id != user_id:
            raise AccessDeniedError(f"Forbidden: You are not the owner of this {what}")
