"""
Base API client with common functionality
"""

import asyncio
from abc import ABC
from typing import Optional, Dict, Any, Union
import httpx
from tasksync.utils.logger import logger
from tasksync.utils.error_handler import FetchError, FetchErrorReason
from tasksync.config.constants import HTTP_TIMEOUT, MAX_RETRIES, RETRY_DELAY

JSONValue = Union[Dict[str, Any], list]


class BaseAPIClient(ABC):
    """Base class for API clients with common functionality"""

    def __init__(
        self,
        base_url: str,
        timeout: int = HTTP_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        retry_delay: float = RETRY_DELAY,
    ):
        """
        Initialize base API client

        Args:
            base_url: Base URL for API
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used by tests)
            retry_delay: Base delay between retries in seconds
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.retry_delay = retry_delay
        self.client = httpx.AsyncClient(timeout=timeout, transport=transport)
        self.logger = logger

    @staticmethod
    def _classify_status(response: httpx.Response) -> FetchErrorReason:
        if response.status_code == 401:
            return FetchErrorReason.UNAUTHENTICATED
        if response.status_code == 429:
            return FetchErrorReason.RATE_LIMITED
        if response.status_code == 403 and response.headers.get("X-RateLimit-Remaining") == "0":
            return FetchErrorReason.RATE_LIMITED
        return FetchErrorReason.GENERIC

    async def _request(
        self,
        method: str,
        endpoint: str,
        headers: Optional[Dict[str, str]] = None,
        params: Optional[Dict[str, Any]] = None,
        json_data: Optional[Dict[str, Any]] = None,
        retries: int = MAX_RETRIES,
    ) -> JSONValue:
        """
        Make HTTP request with retry logic

        Authentication and rate-limit failures are not retried.

        Args:
            method: HTTP method (GET, POST, PUT, DELETE)
            endpoint: API endpoint
            headers: Request headers
            params: Query parameters
            json_data: JSON body
            retries: Number of retry attempts

        Returns:
            Decoded JSON body ({} for empty responses)

        Raises:
            FetchError: If the request fails after all retries
        """
        url = f"{self.base_url}/{endpoint.lstrip('/')}"

        for attempt in range(retries):
            try:
                self.logger.debug(f"Request: {method} {url} (attempt {attempt + 1}/{retries})")

                response = await self.client.request(
                    method=method,
                    url=url,
                    headers=headers,
                    params=params,
                    json=json_data,
                )

                self.logger.debug(f"Response status: {response.status_code}")
                if response.status_code >= 400:
                    self.logger.warning(f"Error response body: {response.text[:1000]}")

                response.raise_for_status()

                if response.status_code == 204 or not response.text.strip():
                    return {}

                try:
                    return response.json()
                except ValueError as e:
                    raise FetchError(f"Malformed JSON from {url}: {e}", FetchErrorReason.GENERIC, response.status_code)

            except httpx.HTTPStatusError as e:
                status = e.response.status_code
                reason = self._classify_status(e.response)
                if reason == FetchErrorReason.GENERIC and attempt < retries - 1:
                    self.logger.warning(
                        f"Request failed with status {status}, "
                        f"retrying in {self.retry_delay * (attempt + 1)} seconds..."
                    )
                    await asyncio.sleep(self.retry_delay * (attempt + 1))
                    continue
                self.logger.error(f"Request failed after {attempt + 1} attempts: {e}")
                raise FetchError(f"HTTP error: {status}", reason, status) from e

            except httpx.RequestError as e:
                if attempt < retries - 1:
                    self.logger.warning(
                        f"Request error: {e}, retrying in {self.retry_delay * (attempt + 1)} seconds..."
                    )
                    await asyncio.sleep(self.retry_delay * (attempt + 1))
                    continue
                self.logger.error(f"Request error after {retries} attempts: {e}")
                raise FetchError(f"Request error: {e}", FetchErrorReason.GENERIC) from e

        raise FetchError(f"No attempts made for {url}", FetchErrorReason.GENERIC)

    async def get(
        self,
        endpoint: str,
        headers: Optional[Dict[str, str]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> JSONValue:
        """Make GET request"""
        return await self._request("GET", endpoint, headers=headers, params=params)

    async def close(self):
        """Close HTTP client"""
        await self.client.aclose()

    async def __aenter__(self):
        """Async context manager entry"""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit"""
        await self.close()
