"""
Single sign-on URLs for customers of a Foxy store.

See https://docs.foxycart.com/v/2.0/sso
"""

import hashlib
import time
from typing import Optional
from urllib.parse import urlencode, urljoin


def create_url(
    customer: str,
    secret: str,
    domain: str,
    timestamp: Optional[int] = None,
    session: Optional[str] = None,
) -> str:
    """
    Build a checkout URL that signs ``customer`` in.

    Args:
        customer: Customer id
        secret: Store secret
        domain: Store domain, e.g. ``https://example.foxycart.com``
        timestamp: Epoch milliseconds, the current time by default
        session: Optional ``fcsid`` session id to keep the cart

    Returns:
        ``{domain}/checkout`` with the customer id, auth token and timestamp
    """
    if timestamp is None:
        timestamp = int(time.time() * 1000)

    token = hashlib.sha1(f"{customer}|{timestamp}|{secret}".encode('utf-8')).hexdigest()
    params = [
        ('fc_customer_id', customer),
        ('fc_auth_token', token),
        ('timestamp', str(timestamp)),
    ]
    if session is not None:
        params.append(('fcsid', session))

    return f"{urljoin(domain, '/checkout')}?{urlencode(params)}"
