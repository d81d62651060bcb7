"""
Constants for the Foxy hypermedia API client.
Relation tables, header names, cache keys and default configuration.
"""

from types import MappingProxyType

# HTTP Headers
HEADER_API_VERSION = "FOXY-API-VERSION"
HEADER_AUTHORIZATION = "Authorization"
HEADER_CONTENT_TYPE = "Content-Type"

DEFAULT_ENDPOINT = "https://api.foxycart.com"
SUPPORTED_VERSIONS = ("1",)

# Default configuration values
DEFAULT_CONFIG = {
    'version': "1",        # FOXY-API-VERSION header value
    'timeout': 30,         # HTTP timeout in seconds
    'log_level': "error",  # winston-style level name, see LOG_LEVELS
    'silent': False,       # disables logging entirely
    'json_logs': False,    # JSON renderer instead of console output
}

# Cache keys
CACHE_KEY_ACCESS_TOKEN = "fx_auth_access_token"
CACHE_KEY_DEFAULT_STORE = "fx_resolver_store"
CACHE_KEY_DEFAULT_USER = "fx_resolver_user"

# Access tokens are refreshed when they expire in less than this (ms)
TOKEN_EXPIRY_MARGIN_MS = 300 * 1000

# Relation names carry a "fx:" namespace, stripped when building sub-paths
NAMESPACE_PREFIX_LENGTH = 3

# Relations resolvable without any state, mapped to a path off the API origin
STATIC_ROOT_RELATIONS = MappingProxyType({
    "https://api.foxycart.com/rels": "rels",
    "fx:property_helpers": "property_helpers",
    "fx:reporting": "reporting",
    "fx:encode": "encode",
    "fx:token": "token",
})

STORE_COLLECTION_RELATIONS = frozenset({
    "fx:users",
    "fx:attributes",
    "fx:user_accesses",
    "fx:customers",
    "fx:carts",
    "fx:transactions",
    "fx:subscriptions",
    "fx:process_subscription_webhook",
    "fx:item_categories",
    "fx:taxes",
    "fx:payment_method_sets",
    "fx:coupons",
    "fx:template_sets",
    "fx:template_configs",
    "fx:cart_templates",
    "fx:cart_include_templates",
    "fx:checkout_templates",
    "fx:receipt_templates",
    "fx:email_templates",
    "fx:error_entries",
    "fx:downloadables",
    "fx:payment_gateways",
    "fx:hosted_payment_gateways",
    "fx:fraud_protections",
    "fx:payment_methods_expiring",
    "fx:store_shipping_methods",
    "fx:integrations",
    "fx:native_integrations",
})

# Relations depending on a previously discovered id: (cache key, path template)
CACHED_RELATIONS = MappingProxyType({
    "fx:user": (CACHE_KEY_DEFAULT_USER, "users/{id}"),
    "fx:stores": (CACHE_KEY_DEFAULT_USER, "users/{id}/stores"),
    "fx:store": (CACHE_KEY_DEFAULT_STORE, "stores/{id}"),
    "fx:subscription_settings": (CACHE_KEY_DEFAULT_STORE, "store_subscription_settings/{id}"),
    **{
        rel: (CACHE_KEY_DEFAULT_STORE, "stores/{id}/" + rel[NAMESPACE_PREFIX_LENGTH:])
        for rel in STORE_COLLECTION_RELATIONS
    },
})

# HMAC signing
OPEN_SENTINEL = "--OPEN--"
OPEN_MARKER = "||open"
SIGNATURE_SEPARATOR = "||"
MULTIPLE_CODES_DOCS = "https://wiki.foxycart.com/v/2.0/hmac_validation#multiple_products_in_one_form"
