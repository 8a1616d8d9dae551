from typing import Annotated, cast

from fastapi import Depends, Request
from fastapi.security import APIKeyCookie, HTTPAuthorizationCredentials, HTTPBearer

from aura.app import App
from aura.config import Config
from aura.core.modules.session.models import AuthToken
from aura.errors import AuthenticationError

AUTH_COOKIE = "auth_token"

bearer_scheme = HTTPBearer(auto_error=False)
cookie_scheme = APIKeyCookie(name=AUTH_COOKIE, auto_error=False)


def get_app(request: Request) -> App:
    return cast(App, request.app.state.app)


def get_config(request: Request) -> Config:
    return cast(Config, request.app.state.config)


AppDep = Annotated[App, Depends(get_app)]
ConfigDep = Annotated[Config, Depends(get_config)]


def candidate_tokens(credentials: HTTPAuthorizationCredentials | None, cookie: str | None) -> list[AuthToken]:
    """Tokens presented by the client, the Authorization header ahead of the cookie."""
    tokens = []
    if credentials is not None and credentials.scheme.lower() == "bearer":
        tokens.append(AuthToken(credentials.credentials))
    if cookie:
        tokens.append(AuthToken(cookie))
    return tokens


async def get_auth_token(
    app: AppDep,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)] = None,
    cookie: Annotated[str | None, Depends(cookie_scheme)] = None,
) -> AuthToken:
    """First presented token that maps to a live session.

    A stale mobile cookie does not shadow a valid bearer token and vice versa.
    """
    for token in candidate_tokens(credentials, cookie):
        if await app.is_auth_token_valid(token):
            return token
    raise AuthenticationError


AuthTokenDep = Annotated[AuthToken, Depends(get_auth_token)]
