"""
Helpers for removing private data from API responses.

Every helper is a scrubber: a function taking a response document and
returning a cleaned copy, leaving the original untouched. Scrubbers can
be chained with :func:`combine`.

Example:
    clean = combine(remove_private_attributes, remove_properties("third_party_id"))(store)
"""

from typing import Any, Callable, Optional

Scrubber = Callable[[Any], Any]

_REMOVE = object()
_SENSITIVE_PREFIXES = ("password", "third_party_id")


def _walk(node: Any, visit: Callable[[Optional[str], Any, Optional[str]], Any],
          key: Optional[str] = None, parent_key: Optional[str] = None) -> Any:
    """Rebuild ``node`` bottom-up; ``visit`` may replace a value or drop it with ``_REMOVE``."""
    if isinstance(node, dict):
        node = {
            k: v for k, v in ((k, _walk(v, visit, k, key)) for k, v in node.items())
            if v is not _REMOVE
        }
    elif isinstance(node, list):
        node = [v for v in (_walk(item, visit, None, key) for item in node) if v is not _REMOVE]
    return visit(key, node, parent_key)


def combine(*scrubbers: Scrubber) -> Scrubber:
    """Run several scrubbers one after another."""
    def scrub(resource: Any) -> Any:
        for scrubber in scrubbers:
            resource = scrubber(resource)
        return resource
    return scrub


def remove_private_attributes(resource: Any) -> Any:
    """Keep only public entries of embedded ``fx:attributes``."""
    def visit(key, value, parent_key):
        if key == "fx:attributes" and isinstance(value, list):
            return [attr for attr in value if isinstance(attr, dict) and attr.get("visibility") == "public"]
        return value
    return _walk(resource, visit)


def remove_sensitive_data(resource: Any) -> Any:
    """Drop password hashes and third-party ids."""
    def visit(key, value, parent_key):
        if key is not None and key.startswith(_SENSITIVE_PREFIXES):
            return _REMOVE
        return value
    return _walk(resource, visit)


def remove_all_links_except(*rels: str) -> Scrubber:
    """Create a scrubber dropping every ``_links`` relation not listed in ``rels``."""
    def visit(key, value, parent_key):
        if parent_key == "_links" and key is not None and key not in rels:
            return _REMOVE
        return value
    return lambda resource: _walk(resource, visit)


def remove_properties(*keys: str) -> Scrubber:
    """Create a scrubber dropping every property named in ``keys``."""
    def visit(key, value, parent_key):
        if key in keys:
            return _REMOVE
        return value
    return lambda resource: _walk(resource, visit)
