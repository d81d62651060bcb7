"""
Credentials, transport and access token handling for the Foxy API.

Access tokens are obtained with the OAuth2 refresh token grant and kept
in the configured cache until they are about to expire.
"""

import json
import time
from typing import Any, Dict, Optional

import requests

from .cache import Cache, MemoryCache
from .constants import (
    CACHE_KEY_ACCESS_TOKEN,
    DEFAULT_CONFIG,
    HEADER_API_VERSION,
    HEADER_AUTHORIZATION,
    HEADER_CONTENT_TYPE,
    SUPPORTED_VERSIONS,
    TOKEN_EXPIRY_MARGIN_MS,
)
from .exceptions import ConfigurationError, TransportError
from .log import LOG_LEVELS, create_logger
from .settings import Settings


def _now_ms() -> int:
    return int(time.time() * 1000)


class Auth:
    """
    Holds the integration credentials and the shared HTTP session.

    Credentials not passed explicitly are read from the ``FOXY_API_CLIENT_ID``,
    ``FOXY_API_CLIENT_SECRET`` and ``FOXY_API_REFRESH_TOKEN`` environment
    variables; the endpoint from ``FOXY_API_URL``.
    """

    def __init__(
        self,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        refresh_token: Optional[str] = None,
        *,
        cache: Optional[Cache] = None,
        endpoint: Optional[str] = None,
        **config,
    ):
        """
        Initialize credentials and transport.

        Args:
            client_id: OAuth2 client id for your integration
            client_secret: OAuth2 client secret, also the HMAC signing secret
            refresh_token: Long-term OAuth2 refresh token
            cache: Cache provider for tokens and default ids (MemoryCache by default)
            endpoint: API endpoint override
            **config: Configuration options (version, timeout, log_level, silent, json_logs)
        """
        settings = Settings()

        self.client_id = client_id or settings.client_id
        self.client_secret = client_secret or settings.client_secret
        self.refresh_token = refresh_token or settings.refresh_token
        self.endpoint = (endpoint or settings.url).rstrip('/')
        self.cache = cache if cache is not None else MemoryCache()

        # Merge default config with user overrides
        self.config = {**DEFAULT_CONFIG, **config}
        self._validate_config()

        self.version = self.config['version']
        self.logger = create_logger(
            level=self.config['log_level'],
            silent=self.config['silent'],
            json_output=self.config['json_logs'],
        )
        self.session = requests.Session()

    def _validate_config(self):
        """Validate credentials and configuration."""
        if not self.client_id:
            raise ConfigurationError("client_id or FOXY_API_CLIENT_ID is missing")

        if not self.client_secret:
            raise ConfigurationError("client_secret or FOXY_API_CLIENT_SECRET is missing")

        if not self.refresh_token:
            raise ConfigurationError("refresh_token or FOXY_API_REFRESH_TOKEN is missing")

        if self.config['version'] not in SUPPORTED_VERSIONS:
            raise ConfigurationError(f"unsupported API version {self.config['version']!r}")

        if self.config['timeout'] <= 0:
            raise ConfigurationError("timeout must be positive")

        if self.config['log_level'] not in LOG_LEVELS:
            raise ConfigurationError(f"unknown log_level {self.config['log_level']!r}")

    def request(
        self,
        method: str,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        data: Any = None,
    ) -> requests.Response:
        """
        Send a request and return the successful response.

        Args:
            method: HTTP method
            url: Absolute URL
            headers: Request headers, the API version header is always added
            data: Request body

        Returns:
            requests.Response object with a 2xx status

        Raises:
            TransportError: If the request fails or the status is not 2xx
        """
        headers = {HEADER_API_VERSION: self.version, **(headers or {})}

        try:
            response = self.session.request(
                method, url, headers=headers, data=data, timeout=self.config['timeout']
            )
        except requests.RequestException as e:
            raise TransportError(f"HTTP request failed: {e}") from e

        self.logger.debug("http", method=method, url=url, status=response.status_code)

        if not response.ok:
            raise TransportError(response.text, response.status_code)
        return response

    def get_access_token(self) -> str:
        """
        Return a valid access token for this integration.

        A cached token is reused while it stays valid for at least five more
        minutes, otherwise a new one is requested and cached.

        Raises:
            TransportError: If the token endpoint rejects the refresh token
        """
        cached = self.cache.get(CACHE_KEY_ACCESS_TOKEN)
        token = self._parse_token(cached)
        if token is not None:
            return token

        response = self.request(
            'POST',
            f"{self.endpoint}/token",
            headers={HEADER_CONTENT_TYPE: "application/x-www-form-urlencoded"},
            data={
                'grant_type': "refresh_token",
                'refresh_token': self.refresh_token,
                'client_secret': self.client_secret,
                'client_id': self.client_id,
            },
        )
        body = response.json()
        stored = {
            'value': body['access_token'],
            'expiresAt': _now_ms() + int(body['expires_in']) * 1000,
        }
        self.cache.set(CACHE_KEY_ACCESS_TOKEN, json.dumps(stored))
        return body['access_token']

    def _parse_token(self, cached: Any) -> Optional[str]:
        """Return the cached token value if it has not (nearly) expired."""
        if not cached:
            return None
        try:
            stored = json.loads(cached)
            if stored['expiresAt'] > _now_ms() + TOKEN_EXPIRY_MARGIN_MS:
                return stored['value']
        except (ValueError, TypeError, KeyError):
            pass
        return None

    def authorized_headers(self) -> Dict[str, str]:
        """Headers carrying a bearer token for API calls."""
        return {HEADER_AUTHORIZATION: f"Bearer {self.get_access_token()}"}

    def close(self):
        """Close HTTP session."""
        if self.session:
            self.session.close()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
