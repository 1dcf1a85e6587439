"""Identity service HTTP client for resolving bearer credentials"""

import httpx
from nivi_budget.domain.exceptions import IdentityServiceError, InvalidCredentialsError
from nivi_budget.config import settings


class IdentityClient:
    """Client for the external identity/session service"""

    def __init__(self, base_url: str | None = None, timeout: float | None = None):
        self.base_url = base_url or settings.identity_api_base
        self.timeout = timeout or settings.http_timeout_seconds

    async def resolve_user(self, token: str) -> str:
        """
        Resolve a bearer token to the user identity it was issued for.

        Raises:
            InvalidCredentialsError: Token unknown, expired or revoked
            IdentityServiceError: On timeout, HTTP errors, or invalid response
        """
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            try:
                response = await client.get(
                    f"{self.base_url}/sessions/me",
                    headers={"Authorization": f"Bearer {token}"},
                )
                if response.status_code in (401, 403):
                    raise InvalidCredentialsError("Bearer token rejected")
                response.raise_for_status()
                user_id = response.json()["user_id"]
                if not user_id:
                    raise ValueError("empty user_id")
                return str(user_id)

            except httpx.TimeoutException as e:
                raise IdentityServiceError(f"Identity service timeout after {self.timeout}s") from e
            except httpx.HTTPStatusError as e:
                raise IdentityServiceError(f"Identity service error: {e.response.status_code}") from e
            except httpx.RequestError as e:
                raise IdentityServiceError(f"Identity service unreachable: {e}") from e
            except (KeyError, ValueError, TypeError) as e:
                raise IdentityServiceError(f"Invalid session data from identity service: {e}") from e
