"""
Shared fixtures: a client whose HTTP session is replaced by an in-memory API.
"""

import json

import pytest
import requests

from foxy_client import FoxyApi

API = "https://api.foxy.local"


def make_response(body=None, status=200):
    """Build a real requests.Response holding ``body``."""
    response = requests.Response()
    response.status_code = status
    text = body if isinstance(body, str) else json.dumps({} if body is None else body)
    response._content = text.encode('utf-8')
    response.encoding = 'utf-8'
    return response


def api_error(message):
    """Error body in the format the API uses for failed requests."""
    return json.dumps({
        "total": 1,
        "_embedded": {"fx:errors": [{"logref": "id-1", "message": message}]},
    })


class FakeApi:
    """Answers session requests from a routing table and records them."""

    def __init__(self):
        self.routes = {}
        self.calls = []
        self.add('POST', f"{API}/token", {"access_token": "token_mock", "expires_in": 3600})

    def add(self, method, url, body=None, status=200):
        self.routes[(method, url)] = (body, status)

    def __call__(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        body, status = self.routes.get((method, url), (api_error("not mocked"), 500))
        return make_response(body, status)

    def requested(self, method='GET'):
        """URLs requested with ``method``, in order."""
        return [url for m, url, _ in self.calls if m == method]


@pytest.fixture
def fake_api():
    return FakeApi()


@pytest.fixture
def api(fake_api):
    """Client wired to the fake API."""
    client = FoxyApi(client_id="0", client_secret="1", refresh_token="42", endpoint=API, silent=True)
    client.session.request = fake_api
    return client
