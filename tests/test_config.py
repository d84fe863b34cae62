"""Tests for configuration loading and client construction from configuration."""

import json

import httpx
import pytest

from sci_client import IdentityClient
from sci_client.config import ClientConfig, ConfigError, load_config

TENANT_URL = "https://tenant.accounts.ondemand.com"


@pytest.fixture(autouse=True)
def _clear_env(monkeypatch):
    for name in ("SCI_USERNAME", "SCI_PASSWORD", "SCI_CLIENT_ID", "SCI_CLIENT_SECRET"):
        monkeypatch.delenv(name, raising=False)


def write_config(tmp_path, data):
    path = tmp_path / "sci-config.json"
    path.write_text(json.dumps(data), encoding="utf-8")
    return str(path)


def test_load_config(tmp_path):
    path = write_config(tmp_path, {"tenant_url": TENANT_URL + "/", "username": "u", "password": "p"})
    config = load_config(path)
    assert config.tenant_url == TENANT_URL
    assert config.username == "u"
    assert config.timeout == 30.0


def test_env_fills_missing_credentials(tmp_path, monkeypatch):
    monkeypatch.setenv("SCI_CLIENT_ID", "env-id")
    monkeypatch.setenv("SCI_CLIENT_SECRET", "env-secret")
    monkeypatch.setenv("SCI_USERNAME", "env-user")
    path = write_config(tmp_path, {"tenant_url": TENANT_URL, "username": "file-user"})

    config = load_config(path)
    assert config.client_id == "env-id"
    assert config.client_secret == "env-secret"
    assert config.username == "file-user"


def test_missing_file_uses_env_only(tmp_path, monkeypatch):
    monkeypatch.setenv("SCI_USERNAME", "env-user")
    with pytest.raises(ConfigError, match="tenant_url"):
        load_config(str(tmp_path / "missing.json"))


@pytest.mark.parametrize(
    "data",
    [
        {"tenant_url": "tenant.accounts.ondemand.com"},
        {"tenant_url": "https://"},
        {"tenant_url": TENANT_URL, "timeout": 0},
        {"username": "u"},
    ],
)
def test_invalid_config(tmp_path, data):
    with pytest.raises(ConfigError):
        load_config(write_config(tmp_path, data))


def test_malformed_file(tmp_path):
    path = tmp_path / "sci-config.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(str(path))


def test_file_must_be_object(tmp_path):
    with pytest.raises(ConfigError):
        load_config(write_config(tmp_path, ["x"]))


# ============ IdentityClient.from_config ============

def test_from_config_basic_auth():
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(200, json={"Resources": []})

    config = ClientConfig(tenant_url=TENANT_URL, username="user", password="pass")
    with IdentityClient.from_config(config, transport=httpx.MockTransport(handler)) as client:
        client.groups.get_all()

    assert requests[0].headers["Authorization"] == "Basic dXNlcjpwYXNz"


def test_from_config_oauth():
    requests = []

    def handler(request):
        requests.append(request)
        if request.url.path == "/oauth2/token":
            return httpx.Response(200, json={"access_token": "tok"})
        return httpx.Response(200, json={"Resources": []})

    config = ClientConfig(tenant_url=TENANT_URL, client_id="cid", client_secret="secret",
                          username="ignored", password="ignored")
    with IdentityClient.from_config(config, transport=httpx.MockTransport(handler)) as client:
        client.users.get_all()

    assert [r.url.path for r in requests] == ["/oauth2/token", "/scim/Users/"]
    assert requests[1].headers["Authorization"] == "Bearer tok"


def test_from_config_without_credentials():
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(200, json={})

    config = ClientConfig(tenant_url=TENANT_URL)
    with IdentityClient.from_config(config, transport=httpx.MockTransport(handler)) as client:
        client.applications.get_all()

    assert "Authorization" not in requests[0].headers
