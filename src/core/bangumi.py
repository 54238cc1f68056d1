"""Bangumi Client."""

import asyncio

import aiohttp
from limiter import Limiter
from pydantic import ValidationError

from src import log
from src.exceptions import (
    ProviderNotFoundError,
    ProviderRequestError,
    ProviderResponseError,
)
from src.models.schemas.bangumi import Subject

__all__ = ["BangumiClient"]

bangumi_limiter = Limiter(rate=1, capacity=5, jitter=False)


class BangumiClient:
    """Read-only client for the Bangumi (bgm.tv) REST API."""

    API_URL = "https://api.bgm.tv"
    MAX_TRIES = 3

    def __init__(self, user_agent: str, token: str | None = None) -> None:
        """Initialize the Bangumi client.

        Args:
            user_agent (str): User-Agent header; Bangumi rejects generic agents.
            token (str | None): Optional access token, needed for NSFW subjects.
        """
        self.user_agent = user_agent
        self.token = token
        self._session: aiohttp.ClientSession | None = None

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            headers = {
                "Accept": "application/json",
                "User-Agent": self.user_agent,
            }
            if self.token:
                headers["Authorization"] = f"Bearer {self.token}"

            self._session = aiohttp.ClientSession(headers=headers)

        return self._session

    async def close(self) -> None:
        """Close the aiohttp session."""
        if self._session and not self._session.closed:
            await self._session.close()

    async def get_subject(self, subject_id: int | str) -> Subject:
        """Fetch a subject by its Bangumi identifier.

        Args:
            subject_id (int | str): Bangumi subject ID.

        Returns:
            Subject: The parsed subject.

        Raises:
            ProviderNotFoundError: If Bangumi has no subject with this ID.
            ProviderRequestError: If the API could not be reached.
            ProviderResponseError: If the response could not be parsed.
        """
        data = await self._make_request(f"/v0/subjects/{subject_id}")
        try:
            return Subject.model_validate(data)
        except ValidationError as e:
            raise ProviderResponseError(
                f"Unexpected Bangumi payload for subject {subject_id}"
            ) from e

    @bangumi_limiter()
    async def _make_request(self, path: str, retry_count: int = 0) -> dict:
        """Makes a rate-limited GET request to the Bangumi API.

        Args:
            path (str): Path relative to the API root.
            retry_count (int): Number of retries attempted.

        Returns:
            dict: JSON response from the API

        Raises:
            ProviderNotFoundError: If the API answers 404.
            ProviderRequestError: If the request keeps failing.
            ProviderResponseError: If the body is not a JSON object.
        """
        if retry_count >= self.MAX_TRIES:
            raise ProviderRequestError(
                f"Failed to make request to Bangumi after {self.MAX_TRIES} tries"
            )

        session = await self._get_session()

        try:
            async with session.get(f"{self.API_URL}{path}") as response:
                if response.status == 404:
                    raise ProviderNotFoundError(f"Bangumi returned 404 for {path}")
                if response.status == 429:
                    try:
                        retry_after = int(response.headers.get("Retry-After", 30))
                    except ValueError:
                        retry_after = 30
                    log.warning(f"Rate limit exceeded, waiting {retry_after} seconds")
                    await asyncio.sleep(retry_after + 1)
                    return await self._make_request(path, retry_count + 1)
                if response.status >= 500:
                    log.warning(f"Received {response.status} from Bangumi, retrying")
                    await asyncio.sleep(1)
                    return await self._make_request(path, retry_count + 1)

                try:
                    response.raise_for_status()
                except aiohttp.ClientResponseError as e:
                    log.error(f"Failed to make request to Bangumi API: {path}")
                    log.error(f"\t\t{await response.text()}")
                    raise ProviderRequestError(
                        f"Bangumi responded with HTTP {response.status}"
                    ) from e

                try:
                    data = await response.json()
                except ValueError as e:
                    raise ProviderResponseError(
                        f"Bangumi returned invalid JSON for {path}"
                    ) from e
                if not isinstance(data, dict):
                    raise ProviderResponseError(
                        f"Bangumi returned a non-object payload for {path}"
                    )
                return data

        except (TimeoutError, aiohttp.ClientError):
            log.error("Connection error while making request to Bangumi API")
            await asyncio.sleep(1)
            return await self._make_request(path, retry_count + 1)
