"""Shared fixtures: a Transport backed by httpx.MockTransport."""

import json

import httpx
import pytest

from sci_client import IdentityClient, Transport

TENANT_URL = "https://tenant.accounts.ondemand.com"


class Recorder:
    """Routes (method, path) to canned responses and records every request."""

    def __init__(self):
        self.routes = {}
        self.requests = []

    def add(self, method, path, status=200, json_body=None, headers=None):
        self.routes[(method, path)] = (status, json_body, headers or {})

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = (request.method, request.url.path)
        if key not in self.routes:
            return httpx.Response(404, json={"detail": f"no route for {key}"})
        status, body, headers = self.routes[key]
        if body is None:
            return httpx.Response(status, headers=headers)
        return httpx.Response(status, json=body, headers=headers)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


def body_of(request: httpx.Request):
    return json.loads(request.content) if request.content else None


def assert_call(request: httpx.Request, method: str, path: str, body=None):
    assert request.method == method
    assert request.url.path == path
    if body is not None:
        assert body_of(request) == body


@pytest.fixture
def recorder():
    return Recorder()


@pytest.fixture
def transport(recorder):
    t = Transport(TENANT_URL, authorization="Basic dGVzdDp0ZXN0", transport=httpx.MockTransport(recorder))
    yield t
    t.close()


@pytest.fixture
def client(transport):
    return IdentityClient(transport)
