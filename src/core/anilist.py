"""AniList Client."""

import asyncio

import aiohttp
from limiter import Limiter
from pydantic import ValidationError

from src import __version__, log
from src.exceptions import (
    ProviderNotFoundError,
    ProviderRequestError,
    ProviderResponseError,
)
from src.models.schemas.anilist import Media

__all__ = ["AniListClient"]

# The rate limit for the AniList API *should* be 90 requests per minute, but in practice
# it seems to be around 30 requests per minute
anilist_limiter = Limiter(rate=30 / 60, capacity=3, jitter=False)


class AniListClient:
    """Read-only client for the AniList GraphQL API.

    All requests share a single aiohttp session and obey a conservative rate limit.
    """

    API_URL = "https://graphql.anilist.co"
    MAX_TRIES = 3

    def __init__(self, anilist_token: str | None = None) -> None:
        """Initialize the AniList client.

        Args:
            anilist_token (str | None): Authentication token for AniList API; if None,
                client operates in public mode.
        """
        self.anilist_token = anilist_token
        self._session: aiohttp.ClientSession | None = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create the aiohttp session.

        Returns:
            aiohttp.ClientSession: The active session for making HTTP requests.
        """
        if self._session is None or self._session.closed:
            headers = {
                "Accept": "application/json",
                "Content-Type": "application/json",
                "User-Agent": f"AniShelf/{__version__}",
            }
            if self.anilist_token:
                headers["Authorization"] = f"Bearer {self.anilist_token}"

            self._session = aiohttp.ClientSession(headers=headers)

        return self._session

    async def close(self) -> None:
        """Close the aiohttp session."""
        if self._session and not self._session.closed:
            await self._session.close()

    async def get_media(self, anilist_id: int) -> Media:
        """Fetch a single anime entry by its AniList identifier.

        Args:
            anilist_id (int): AniList media ID.

        Returns:
            Media: The parsed media entry.

        Raises:
            ProviderNotFoundError: If AniList has no anime with this ID.
            ProviderRequestError: If the API could not be reached.
            ProviderResponseError: If the response could not be parsed.
        """
        query = f"""
        query ($id: Int) {{
            Media(id: $id, type: ANIME) {{
                {Media.model_dump_graphql()}
            }}
        }}
        """

        response = await self._make_request(query, {"id": anilist_id})
        data = response.get("data") or {}
        if not isinstance(data, dict):
            raise ProviderResponseError(
                f"Unexpected AniList payload for ID {anilist_id}"
            )
        media = data.get("Media")
        if media is None:
            raise ProviderNotFoundError(f"AniList has no anime with ID {anilist_id}")

        try:
            return Media.model_validate(media)
        except ValidationError as e:
            raise ProviderResponseError(
                f"Unexpected AniList payload for ID {anilist_id}"
            ) from e

    @anilist_limiter()
    async def _make_request(
        self, query: str, variables: dict | None = None, retry_count: int = 0
    ) -> dict:
        """Makes a rate-limited request to the AniList GraphQL API.

        Retries after waiting when the rate limit is exceeded, on 502 responses
        and on connection errors.

        Args:
            query (str): GraphQL query string
            variables (dict | None): Variables for the GraphQL query
            retry_count (int): Number of retries attempted (used for temporary errors)

        Returns:
            dict: JSON response from the API

        Raises:
            ProviderNotFoundError: If the API answers 404.
            ProviderRequestError: If the request keeps failing.
            ProviderResponseError: If the body is not a JSON object.
        """
        if retry_count >= self.MAX_TRIES:
            raise ProviderRequestError(
                f"Failed to make request to AniList after {self.MAX_TRIES} tries"
            )

        if variables is None:
            variables = {}

        session = await self._get_session()

        try:
            async with session.post(
                self.API_URL, json={"query": query, "variables": variables}
            ) as response:
                if response.status == 429:  # Handle rate limit retries
                    try:
                        retry_after = int(response.headers.get("Retry-After", 60))
                    except ValueError:
                        retry_after = 60
                    log.warning(f"Rate limit exceeded, waiting {retry_after} seconds")
                    await asyncio.sleep(retry_after + 1)
                    return await self._make_request(
                        query=query, variables=variables, retry_count=retry_count + 1
                    )
                elif response.status == 502:  # Bad Gateway
                    log.warning("Received 502 Bad Gateway, retrying")
                    await asyncio.sleep(1)
                    return await self._make_request(
                        query=query, variables=variables, retry_count=retry_count + 1
                    )
                elif response.status == 404:
                    raise ProviderNotFoundError(
                        f"AniList returned 404 for variables {variables}"
                    )

                try:
                    response.raise_for_status()
                except aiohttp.ClientResponseError as e:
                    log.error("Failed to make request to AniList API")
                    response_text = await response.text()
                    log.error(f"\t\t{response_text}")
                    raise ProviderRequestError(
                        f"AniList responded with HTTP {response.status}"
                    ) from e

                try:
                    data = await response.json()
                except ValueError as e:
                    raise ProviderResponseError("AniList returned invalid JSON") from e
                if not isinstance(data, dict):
                    raise ProviderResponseError("AniList returned a non-object payload")
                return data

        except (TimeoutError, aiohttp.ClientError):
            log.error("Connection error while making request to AniList API")
            await asyncio.sleep(1)
            return await self._make_request(
                query=query, variables=variables, retry_count=retry_count + 1
            )
