"""
Foxy hypermedia API client.

A Python client for the Foxy REST API that resolves relation paths into
resource URLs with as few requests as possible, caches access tokens, and
signs cart links and forms with HMAC.

Example usage:
    from foxy_client import FoxyApi

    foxy = FoxyApi(client_id="...", client_secret="...", refresh_token="...")
    transactions = foxy.follow("fx:store").follow("fx:transactions").fetch()
    signed_page = foxy.hmac_sign.html_string(page)
"""

from . import sanitize, sso, webhook
from .cache import Cache, DiskCache, MemoryCache, MixedCache
from .client import FoxyApi
from .exceptions import (
    FoxyClientError,
    ConfigurationError,
    ResolutionError,
    TransportError,
    SigningAmbiguityError,
    InvalidURLError
)
from .constants import (
    HEADER_API_VERSION,
    DEFAULT_CONFIG,
    DEFAULT_ENDPOINT,
)
from .signer import FoxySigner

__version__ = "1.0.0"
__all__ = [
    "FoxyApi",
    "FoxySigner",
    "Cache",
    "MemoryCache",
    "DiskCache",
    "MixedCache",
    "FoxyClientError",
    "ConfigurationError",
    "ResolutionError",
    "TransportError",
    "SigningAmbiguityError",
    "InvalidURLError",
    "HEADER_API_VERSION",
    "DEFAULT_CONFIG",
    "DEFAULT_ENDPOINT",
    "sanitize",
    "sso",
    "webhook",
]
