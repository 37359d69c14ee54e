"""
Remote username availability check.

Talks to ``GET <base-url>/isUserNameAvailable?userName=<value>`` and sorts every
way that call can go wrong into the APIError taxonomy. The form never sees an
exception from here: check_username_available() hands back an outcome.
"""

import logging
from typing import Optional

import httpx
from pydantic import ValidationError

from signup_form.config import AVAILABILITY_SERVICE_URL, AVAILABILITY_TIMEOUT
from signup_form.exceptions import (
    APIError,
    APIValidationError,
    DecodingError,
    InvalidRequestError,
    InvalidResponseError,
    ServerError,
    TransportError,
)
from signup_form.models import APIErrorMessage, Available, AvailabilityOutcome, Failed, UserNameAvailableMessage

logger = logging.getLogger(__name__)

AVAILABILITY_PATH = "/isUserNameAvailable"


class AvailabilityClient:
    def __init__(
        self,
        base_url: str = AVAILABILITY_SERVICE_URL,
        timeout: float = AVAILABILITY_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        # Tests pass httpx.MockTransport / ASGITransport here
        self.transport = transport

    def build_url(self, username: str) -> httpx.URL:
        try:
            username.encode("utf-8")
            url = httpx.URL(f"{self.base_url}{AVAILABILITY_PATH}", params={"userName": username})
        except (UnicodeEncodeError, httpx.InvalidURL) as e:
            raise InvalidRequestError("URL invalid") from e
        if url.scheme not in ("http", "https") or not url.host:
            raise InvalidRequestError("URL invalid")
        return url

    async def fetch_username_available(self, username: str) -> bool:
        """Return whether ``username`` is free. Raises APIError on any failure."""
        url = self.build_url(username)

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.get(url)
        except httpx.TransportError as e:
            logger.warning("Availability check for %r failed to reach %s: %s", username, self.base_url, e)
            raise TransportError(e) from e
        except httpx.DecodingError as e:
            logger.warning("Availability check for %r returned a body that could not be decoded", username)
            raise DecodingError(e) from e
        except httpx.HTTPError as e:
            logger.warning("Availability check for %r failed: %s", username, e)
            raise InvalidResponseError() from e

        logger.debug("Availability check for %r returned %s", username, response.status_code)

        if not response.is_success:
            error = self._classify_error(response)
            logger.warning("Availability check for %r rejected: %s", username, error)
            raise error

        try:
            message = UserNameAvailableMessage.model_validate_json(response.content)
        except ValidationError as e:
            logger.warning("Availability check for %r returned an undecodable body", username)
            raise DecodingError(e) from e
        return message.isAvailable

    async def check_username_available(self, username: str) -> AvailabilityOutcome:
        try:
            return Available(is_available=await self.fetch_username_available(username))
        except APIError as e:
            return Failed(error=e)

    @staticmethod
    def _classify_error(response: httpx.Response) -> APIError:
        try:
            body = APIErrorMessage.model_validate_json(response.content)
        except ValidationError:
            return InvalidResponseError()
        if response.status_code == 400:
            return APIValidationError(body.reason)
        return ServerError(response.status_code, body.reason, response.headers.get("Retry-After"))
