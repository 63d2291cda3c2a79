"""
Authentication dependencies for FastAPI endpoints.

- Extracting the bearer session token from the Authorization header
- Resolving it to the current identity

Example usage:
    from credgate.core.dependencies.auth import CurrentIdentity

    @router.get("/me")
    async def me(identity: CurrentIdentity):
        return identity
"""

from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from credgate.core.config import auth_logger
from credgate.core.dependencies.services import AuthServiceDep
from credgate.core.domain import PublicIdentity
from credgate.core.enums import AuthError
from credgate.core.exceptions.types import InvalidTokenException

# auto_error=False so a missing header gets the same 401 body as a bad token
bearer_scheme = HTTPBearer(auto_error=False)


async def get_session_token(
    credentials: Annotated[
        HTTPAuthorizationCredentials | None, Depends(bearer_scheme)
    ],
) -> str:
    """
    Return the raw bearer token.

    Raises:
        InvalidTokenException: 401 if the header is missing or not a bearer token.
    """
    if credentials is None or not credentials.credentials:
        auth_logger.warning("Authentication failed: missing bearer token")
        raise InvalidTokenException("Not authenticated.")
    return credentials.credentials


async def get_current_identity(
    token: Annotated[str, Depends(get_session_token)],
    auth_service: AuthServiceDep,
) -> PublicIdentity:
    """
    Resolve the session token to the identity it names.

    Returns:
        PublicIdentity: The authenticated identity.

    Raises:
        InvalidTokenException: 401 if the token is tampered, expired, not a
            session token, or names an identity that no longer exists.
        UpstreamException: 502 if the store failed.
    """
    result = await auth_service.authenticate(token)
    if result.ok:
        return result.value

    auth_logger.warning(f"Authentication failed: {result.error.value}")
    if result.error == AuthError.UPSTREAM_FAILURE:
        result.unwrap()
    raise InvalidTokenException()


SessionToken = Annotated[str, Depends(get_session_token)]
CurrentIdentity = Annotated[PublicIdentity, Depends(get_current_identity)]
