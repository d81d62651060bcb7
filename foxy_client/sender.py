"""
Request dispatch on top of path resolution.
"""

import json
import re
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from .constants import HEADER_CONTENT_TYPE
from .exceptions import TransportError
from .resolver import Resolver

Query = Union[Mapping[str, str], Iterable[tuple]]
Zoom = Union[str, List[Any], Dict[str, Any]]

_TZ_OFFSET = re.compile(r"([+-])(\d{2})(\d{2})$")


def serialize_zoom(zoom: Zoom) -> str:
    """
    Serialize the zoom parameter.

    ``"a"`` -> ``a``, ``["a", "b"]`` -> ``a,b``, ``{"a": "b"}`` -> ``a:b``;
    lists and dicts nest.
    """
    if isinstance(zoom, str):
        return zoom
    if isinstance(zoom, dict):
        return ",".join(f"{key}:{serialize_zoom(value)}" for key, value in zoom.items())
    return ",".join(serialize_zoom(item) for item in zoom)


def merge_fields(existing: Optional[str], fields: Iterable[str]) -> str:
    """Merge ``fields`` into an existing comma-separated list, first occurrence wins."""
    merged = existing.split(",") if existing else []
    merged.extend(fields)
    return ",".join(dict.fromkeys(field for field in merged if field))


def normalize(value: Any, key: Optional[str] = None) -> Any:
    """
    Normalize an API response.

    Locale codes become ``en-US`` instead of ``en_US`` and timezone offsets
    in dates become ``+03:00`` instead of ``+0300``.
    """
    if isinstance(value, dict):
        return {k: normalize(v, k) for k, v in value.items()}
    if isinstance(value, list):
        return [normalize(item) for item in value]
    if not isinstance(value, str) or not value or key is None:
        return value
    if key == "locale_code":
        return value.replace("_", "-", 1)
    if "date" in key.split("_"):
        return _TZ_OFFSET.sub(r"\1\2:\3", value)
    return value


class Sender(Resolver):
    """
    Sends requests to resolved URLs.

    Internal part of the client; use ``FoxyApi.follow(...).fetch()`` or
    ``FoxyApi.fetch_raw()`` instead of instantiating this class directly.
    """

    def fetch_raw(self, url: str, method: str = 'GET', body: Any = None) -> Any:
        """
        Make an authenticated request to ``url``.

        Args:
            url: Absolute URL
            method: HTTP method
            body: String sent as-is, anything else serialized to JSON

        Returns:
            Normalized JSON response

        Raises:
            TransportError: If the request fails
        """
        if body is not None and not isinstance(body, str):
            body = json.dumps(body)

        headers = {
            HEADER_CONTENT_TYPE: "application/json",
            **self._auth.authorized_headers(),
        }
        response = self._auth.request(method, url, headers=headers, data=body)
        return normalize(response.json())

    def fetch(
        self,
        skip_cache: bool = False,
        method: Optional[str] = None,
        query: Optional[Query] = None,
        body: Any = None,
        fields: Optional[Iterable[str]] = None,
        zoom: Optional[Zoom] = None,
    ) -> Any:
        """
        Resolve the path and request the resource.

        When smart resolution produced a URL the API cannot route, the path
        is resolved once more by full traversal and the request repeated.

        Args:
            skip_cache: Resolve every step by traversal
            method: HTTP method, GET by default
            query: Query parameters to append
            body: Request body
            fields: Partial resource fields, merged into the ``fields`` param
            zoom: Embedded resources to include

        Returns:
            Normalized JSON response
        """
        method = method or 'GET'
        fields = list(fields) if fields is not None else None
        url = self._build_url(self.resolve(skip_cache), query, fields, zoom)

        try:
            return self.fetch_raw(url, method=method, body=body)
        except TransportError as e:
            if skip_cache or not e.is_no_route:
                self._auth.logger.error("request failed", url=url, error=str(e))
                raise
            self._auth.logger.error("smart resolution failed, attempting tree traversal", url=url)

        url = self._build_url(self.resolve(True), query, fields, zoom)
        return self.fetch_raw(url, method=method, body=body)

    def _build_url(
        self,
        url: str,
        query: Optional[Query],
        fields: Optional[List[str]],
        zoom: Optional[Zoom],
    ) -> str:
        parts = urlsplit(url)
        params = parse_qsl(parts.query, keep_blank_values=True)

        if query:
            items = query.items() if isinstance(query, Mapping) else query
            params.extend((str(k), str(v)) for k, v in items)

        if fields:
            existing = [v for k, v in params if k == 'fields']
            params = [(k, v) for k, v in params if k != 'fields']
            params.append(('fields', merge_fields(",".join(existing), fields)))

        if zoom:
            params = [(k, v) for k, v in params if k != 'zoom']
            params.append(('zoom', serialize_zoom(zoom)))

        if not params:
            return url
        path = parts.path or '/'
        return urlunsplit((parts.scheme, parts.netloc, path, urlencode(params), parts.fragment))
