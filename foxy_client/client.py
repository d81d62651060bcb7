"""
Foxy hypermedia API client.

This module provides the entry point used by applications: building
relation paths from the API root or from a fetched resource, raw
requests, and HMAC signing with the integration's client secret.
"""

from typing import Any, Mapping

from .auth import Auth
from .follower import Follower
from .resolver import PathMember
from .sender import Sender
from .signer import FoxySigner


class FoxyApi(Auth):
    """
    Client for the Foxy hypermedia API.

    Example:
        foxy = FoxyApi(client_id="...", client_secret="...", refresh_token="...")
        store = foxy.follow("fx:store").fetch()

    See https://api.foxycart.com/docs for the API itself.
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.hmac_sign = FoxySigner(self.client_secret, logger=self.logger)

    def follow(self, rel: PathMember) -> Follower:
        """
        Start building a resource URL from the API root.

        Args:
            rel: Any root relation, e.g. ``"fx:store"``
        """
        return Follower(self, (rel,), self.endpoint)

    def from_resource(self, resource: Mapping[str, Any]) -> Follower:
        """
        Start building a resource URL from a fetched resource.

        Args:
            resource: Response object whose ``_links`` hold a ``self`` link

        Example:
            store = {"_links": {"self": {"href": "https://api.foxycart.com/stores/8"}}}
            foxy.from_resource(store).follow("fx:attributes").fetch()
        """
        return Follower(self, (), resource['_links']['self']['href'])

    def fetch_raw(self, url: str, method: str = 'GET', body: Any = None) -> Any:
        """
        Make an API request to ``url`` without any path resolution.

        Prefer ``follow(...).fetch()`` or ``from_resource(...).fetch()``.
        """
        return Sender(self, (), self.endpoint).fetch_raw(url, method=method, body=body)
