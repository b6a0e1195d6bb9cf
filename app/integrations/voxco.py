import re
from functools import lru_cache
from typing import Optional, Protocol

import httpx

from app.core.config import settings
from app.core.logging import logger
from app.utils.errors import RemotePlatformError

SURVEY_LOCATION_PATTERN = re.compile(r"/survey/(\d+)")


class SurveyPlatform(Protocol):
    """Operations the survey stages need from the survey hosting platform."""

    async def authenticate(self, username: str, password: str) -> str: ...

    async def create_survey(self, name: str, token: str) -> int: ...

    async def fetch_survey(self, survey_id: int, token: str) -> dict: ...

    async def replace_survey(self, survey_id: int, survey: dict, token: str) -> bool: ...


def _error_detail(response: httpx.Response) -> str:
    body = response.text
    try:
        payload = response.json()
    except ValueError:
        return body
    if isinstance(payload, dict):
        error = payload.get("error")
        return payload.get("message") or (error.get("message") if isinstance(error, dict) else None) or body
    return body


class VoxcoClient:
    """Async client for the Voxco survey REST API."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.base_url = (base_url if base_url is not None else settings.VOXCO_API_BASE_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.VOXCO_TIMEOUT_SECONDS
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        if not self.base_url:
            raise RemotePlatformError("Voxco API base URL not configured.")
        return httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout, transport=self.transport)

    @staticmethod
    def _auth_headers(token: str) -> dict:
        return {"Accept": "application/json", "Authorization": f"Client {token}"}

    async def authenticate(self, username: str, password: str) -> str:
        if not username or not password:
            raise RemotePlatformError("Voxco credentials (username, password) are required for authentication.")
        try:
            async with self._client() as client:
                response = await client.get(
                    "/authentication/user",
                    params={"userInfo.username": username, "userInfo.password": password},
                    headers={"Accept": "application/json"}
                )
            if not response.is_success:
                raise RemotePlatformError(
                    f"Authentication failed: {response.status_code} {response.reason_phrase} - {_error_detail(response)}"
                )
            token = response.json().get("Token")
        except httpx.HTTPError as e:
            raise RemotePlatformError(f"Voxco API authentication failed: {e}")
        except ValueError as e:
            raise RemotePlatformError(f"Voxco API authentication failed: invalid JSON received. {e}")

        if not token:
            raise RemotePlatformError("Authentication successful, but token not found in response.")
        logger.info("Authenticated against Voxco")
        return token

    async def create_survey(self, name: str, token: str) -> int:
        try:
            async with self._client() as client:
                response = await client.post(
                    "/survey/create",
                    json={"Name": name},
                    headers=self._auth_headers(token)
                )
        except httpx.HTTPError as e:
            raise RemotePlatformError(f"Voxco API create survey failed: {e}")

        if not response.is_success:
            raise RemotePlatformError(
                f"Survey creation failed: {response.status_code} {response.reason_phrase} - {_error_detail(response)}"
            )
        location = response.headers.get("location")
        if not location:
            raise RemotePlatformError("Survey created, but location header missing in response.")
        match = SURVEY_LOCATION_PATTERN.search(location)
        if not match:
            raise RemotePlatformError(f"Survey created, but could not parse survey ID from location: {location}")

        survey_id = int(match.group(1))
        logger.info("Voxco survey created", survey_id=survey_id, survey_name=name)
        return survey_id

    async def fetch_survey(self, survey_id: int, token: str) -> dict:
        try:
            async with self._client() as client:
                response = await client.get(
                    f"/survey/export/json/{survey_id}",
                    params={"deployed": "false", "modality": "Master"},
                    headers=self._auth_headers(token)
                )
            if not response.is_success:
                raise RemotePlatformError(
                    f"Survey import failed: {response.status_code} {response.reason_phrase} - {_error_detail(response)}"
                )
            survey = response.json()
        except httpx.HTTPError as e:
            raise RemotePlatformError(f"Voxco API import survey failed: {e}")
        except ValueError as e:
            raise RemotePlatformError(f"Voxco API import survey failed: Invalid JSON received from API. {e}")

        logger.info("Voxco survey fetched", survey_id=survey_id)
        return survey

    async def replace_survey(self, survey_id: int, survey: dict, token: str) -> bool:
        try:
            async with self._client() as client:
                response = await client.post(
                    f"/survey/import/json/{survey_id}",
                    json=survey,
                    headers={**self._auth_headers(token), "Content-Type": "application/json"}
                )
        except httpx.HTTPError as e:
            raise RemotePlatformError(f"Voxco API save survey failed: {e}")

        if not response.is_success:
            raise RemotePlatformError(
                f"Survey save failed: {response.status_code} {response.reason_phrase} - {_error_detail(response)}"
            )
        logger.info("Voxco survey content replaced", survey_id=survey_id)
        return True


@lru_cache
def get_voxco_client() -> VoxcoClient:
    return VoxcoClient()
