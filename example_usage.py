#!/usr/bin/env python3
"""
Basic usage examples for the Foxy API client.

This script demonstrates how to use foxy_client to browse a store through
the hypermedia API and to sign cart links and forms. Credentials are read
from FOXY_API_CLIENT_ID, FOXY_API_CLIENT_SECRET and FOXY_API_REFRESH_TOKEN.
"""

import sys

from foxy_client import (
    ConfigurationError,
    DiskCache,
    FoxyApi,
    FoxyClientError,
    FoxySigner,
    MemoryCache,
    MixedCache,
    sanitize,
)

CART_FORM = """<form action="https://example.foxycart.com/cart" method="post">
  <input type="hidden" name="code" value="abc123">
  <input type="hidden" name="name" value="T-Shirt">
  <input type="hidden" name="price" value="10">
  <select name="size"><option value="small">Small</option><option>Large</option></select>
  <input type="text" name="color">
</form>"""


def main():
    """Run basic usage examples."""

    print("=== Foxy API Client Basic Usage Examples ===\n")

    # Create client
    print("1. Creating client...")
    try:
        foxy = FoxyApi(cache=MixedCache([MemoryCache(), DiskCache("/tmp")]), log_level="info")
    except ConfigurationError as e:
        print(f"   ✗ {e}")
        sys.exit(1)
    print(f"   Client created for: {foxy.endpoint}\n")

    try:
        # Example 1: Default store, resolved by traversal the first time
        print("2. Fetching the default store...")
        store = foxy.follow("fx:store").fetch(fields=["store_name", "store_domain"])
        print(f"   ✓ Store: {store.get('store_name')} ({store.get('store_domain')})")
        print()

        # Example 2: Nested relations, resolved offline from the cached store id
        print("3. Fetching the latest transactions...")
        transactions = foxy.follow("fx:store").follow("fx:transactions").fetch(
            query={"limit": 5, "order": "transaction_date desc"},
            zoom=["items", {"customer": "default_billing_address"}],
        )
        print(f"   ✓ Total transactions: {transactions.get('total_items')}")
        print()

        # Example 3: Starting from a fetched resource
        print("4. Fetching store attributes from the store resource...")
        attributes = foxy.from_resource(store).follow("fx:attributes").fetch()
        public = sanitize.remove_private_attributes(attributes)
        print(f"   ✓ Attributes: {len(public.get('_embedded', {}).get('fx:attributes', []))} public")
        print()

        print("=== All Examples Completed Successfully! ===")

    except FoxyClientError as e:
        print(f"Foxy Client Error: {e}")
        sys.exit(1)
    finally:
        foxy.close()


def demonstrate_signing():
    """Demonstrate HMAC signing of cart links and forms."""

    print("\n=== Cart Signing Example ===")

    signer = FoxySigner("your-client-secret")

    url = "https://example.foxycart.com/cart?code=abc123&name=T-Shirt&price=10"
    print(f"✓ Signed link:\n  {signer.url(url)}")
    print(f"✓ Signed form:\n{signer.html_string(CART_FORM)}")


if __name__ == "__main__":
    demonstrate_signing()
    main()
