"""
Relation path resolution.

Restores full resource URLs from ordered lists of relation names and
numeric ids while making as few API requests as possible. Each step is
handed to the offline strategies in order; the first one returning a URL
wins and a live traversal of the API is the last resort.
"""

import re
from typing import Callable, Optional, Sequence, Tuple, Union
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from .cache import Cache
from .constants import (
    CACHE_KEY_DEFAULT_STORE,
    CACHE_KEY_DEFAULT_USER,
    CACHED_RELATIONS,
    STATIC_ROOT_RELATIONS,
)
from .exceptions import ResolutionError

PathMember = Union[str, int]
Path = Tuple[PathMember, ...]

# (current url, step, api origin, cache) -> url, or None when not applicable
Strategy = Callable[[str, PathMember, str, Cache], Optional[str]]

_USER_ID = re.compile(r"\.\w+/users/(\d+)", re.IGNORECASE)
_STORE_ID = re.compile(r"\.\w+/stores/(\d+)", re.IGNORECASE)


def is_numeric_step(step: PathMember) -> bool:
    return isinstance(step, int) and not isinstance(step, bool)


def origin(url: str) -> str:
    parts = urlsplit(url)
    return f"{parts.scheme}://{parts.netloc}"


def set_query_param(url: str, name: str, value: str) -> str:
    """Set ``name`` in the query of ``url``, keeping every other parameter."""
    parts = urlsplit(url)
    params = []
    replaced = False
    for key, val in parse_qsl(parts.query, keep_blank_values=True):
        if key != name:
            params.append((key, val))
        elif not replaced:
            params.append((key, value))
            replaced = True
    if not replaced:
        params.append((name, value))
    path = parts.path or '/'
    return urlunsplit((parts.scheme, parts.netloc, path, urlencode(params), parts.fragment))


def resolve_static(url: str, step: PathMember, api_url: str, cache: Cache) -> Optional[str]:
    """Well-known relations that never need any state."""
    if step == "self":
        return url
    if step == "first":
        return set_query_param(url, 'offset', "0")
    if isinstance(step, str) and step in STATIC_ROOT_RELATIONS:
        return f"{api_url}/{STATIC_ROOT_RELATIONS[step]}"
    return None


def resolve_cached(url: str, step: PathMember, api_url: str, cache: Cache) -> Optional[str]:
    """Relations built from the default store or user id found by earlier traversals."""
    if not isinstance(step, str) or step not in CACHED_RELATIONS:
        return None
    key, template = CACHED_RELATIONS[step]
    identifier = cache.get(key)
    if identifier is None:
        return None
    return f"{api_url}/{template.format(id=identifier)}"


def resolve_id(url: str, step: PathMember, api_url: str, cache: Cache) -> Optional[str]:
    """Numeric ids select a resource in the current collection."""
    if not is_numeric_step(step):
        return None
    return f"{url}/{step}"


OFFLINE_STRATEGIES: Tuple[Strategy, ...] = (resolve_static, resolve_cached, resolve_id)


class Resolver:
    """
    Turns a relation path into a URL.

    Internal part of the client; build paths with ``FoxyApi.follow()``
    instead of instantiating this class directly.
    """

    def __init__(self, auth, path: Sequence[PathMember] = (), base: Optional[str] = None):
        self._auth = auth
        self._path: Path = tuple(path)
        self._base = base or auth.endpoint

    @property
    def path(self) -> Path:
        return self._path

    @property
    def _api_url(self) -> str:
        return origin(self._base)

    def resolve(self, skip_cache: bool = False) -> str:
        """
        Restore the full URL of the path this resolver was created with.

        Args:
            skip_cache: Disable every offline strategy and traverse the API
                for each step.

        Returns:
            Absolute URL of the resource

        Raises:
            ResolutionError: If a traversal response lacks the relation
            TransportError: If a traversal request fails
        """
        url = self._base
        total = len(self._path)
        self._auth.logger.debug("looking up", path=" => ".join(map(str, self._path)))

        for index, step in enumerate(self._path, 1):
            self._auth.logger.debug("resolving step", step=f"{index}/{total}", url=url, rel=step)
            resolved = None if skip_cache else self._resolve_offline(url, step)
            url = resolved if resolved is not None else self._traverse(url, step)

        self._auth.logger.debug("found", url=url)
        return url

    def _resolve_offline(self, url: str, step: PathMember) -> Optional[str]:
        for strategy in OFFLINE_STRATEGIES:
            result = strategy(url, step, self._api_url, self._auth.cache)
            if result is not None:
                self._auth.logger.debug("resolved offline", url=result)
                return result
        return None

    def _traverse(self, url: str, step: PathMember) -> str:
        """Fetch ``url`` and read the href of ``step`` from its link table."""
        response = self._auth.request('GET', url, headers=self._auth.authorized_headers())
        try:
            links = response.json().get('_links') or {}
        except (ValueError, AttributeError) as e:
            raise ResolutionError(f"{url} did not return a JSON resource") from e
        link = links.get(str(step))

        if not isinstance(link, dict) or 'href' not in link:
            raise ResolutionError(f"relation {step!r} not found in {url}")

        result = link['href']
        self._auth.logger.debug("resolved online", url=result)
        self._cache_identifiers(result)
        return result

    def _cache_identifiers(self, url: str):
        """Remember user and store ids found in a resolved URL as the defaults."""
        user = _USER_ID.search(url)
        store = _STORE_ID.search(url)

        if user:
            self._auth.cache.set(CACHE_KEY_DEFAULT_USER, user.group(1))
            self._auth.logger.debug("default user set", user=user.group(1))

        if store:
            self._auth.cache.set(CACHE_KEY_DEFAULT_STORE, store.group(1))
            self._auth.logger.debug("default store set", store=store.group(1))
