import httpx

from shelfscan.logging.logger import Log
from shelfscan.pipeline.exceptions import ServiceUnavailableError


class IdentityClient:
    """Resolves a caller's bearer token to a user id via the auth service."""

    def __init__(
        self,
        *,
        base_url: str,
        api_key: str = "",
        timeout_seconds: float = 5.0,
        http_client: httpx.Client | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._timeout_seconds = timeout_seconds
        self._http = http_client or httpx.Client()

    def resolve_user_id(self, token: str) -> str | None:
        """Return the user id for ``token``, or None if the token is not accepted.

        Raises:
            ServiceUnavailableError: if the auth service cannot be reached.
        """
        headers = {"Authorization": f"Bearer {token}"}
        if self._api_key:
            headers["apikey"] = self._api_key
        try:
            response = self._http.get(
                f"{self._base_url}/user",
                headers=headers,
                timeout=self._timeout_seconds,
            )
        except httpx.HTTPError as exc:
            raise ServiceUnavailableError(f"Auth service unreachable: {exc}") from exc

        if response.status_code in (401, 403):
            return None
        if response.status_code >= 400:
            Log.warning(f"Auth service returned HTTP {response.status_code}")
            return None
        try:
            user_id = response.json().get("id")
        except ValueError:
            return None
        return str(user_id) if user_id else None
