"""HTTP contract for /media and /media/refresh."""

import pytest
from dependency_injector import providers
from starlette.testclient import TestClient

from media_resolver.core.container import container
from media_resolver.core.exceptions import ConfigurationError, SigningError
from media_resolver.core.rate_limit import TokenBucket
from tests.conftest import TOKEN, make_settings


def media(client, path="images/a.jpg", token=TOKEN, **params):
    query = {"token": token, "path": path, **params}
    return client.get("/media", params={k: v for k, v in query.items() if v is not None})


def test_scenario_hit_then_fresh(client, wired, signer):
    first = media(client)
    assert first.status_code == 302
    u1 = first.headers["location"]
    assert len(signer.calls) == 1
    assert wired.calls["set"] == 1

    second = media(client)
    assert second.status_code == 302
    assert second.headers["location"] == u1
    assert len(signer.calls) == 1

    third = media(client, fresh="1")
    assert third.status_code == 302
    u2 = third.headers["location"]
    assert u2 != u1
    assert len(signer.calls) == 2

    fourth = media(client)
    assert fourth.headers["location"] == u2


def test_fresh_other_than_one_uses_cache(client, signer):
    media(client)
    media(client, fresh="0")
    media(client, fresh="true")
    assert len(signer.calls) == 1


def test_refresh_then_media_behaves_like_fresh(client, wired, signer):
    u1 = media(client).headers["location"]

    resp = client.get("/media/refresh", params={"token": TOKEN, "path": "images/a.jpg"})
    assert resp.status_code == 200
    assert resp.json() == {"message": "Cache cleared successfully"}
    assert len(signer.calls) == 1

    u2 = media(client).headers["location"]
    assert u2 != u1
    assert wired.calls["clear"] == 1
    assert len(signer.calls) == 2


def test_refresh_of_uncached_path_succeeds(client):
    resp = client.get("/media/refresh", params={"token": TOKEN, "path": "nothing.bin"})
    assert resp.status_code == 200


@pytest.mark.parametrize("token,expected", [(None, 401), ("", 401), ("wrong", 403)])
@pytest.mark.parametrize("endpoint", ["/media", "/media/refresh"])
def test_bad_token_never_reaches_cache_or_signer(client, wired, signer, token, expected, endpoint):
    params = {"path": "images/a.jpg", "fresh": "1"}
    if token is not None:
        params["token"] = token
    resp = client.get(endpoint, params=params)

    assert resp.status_code == expected
    assert wired.calls == {"get": 0, "set": 0, "clear": 0}
    assert signer.calls == []


@pytest.mark.parametrize("endpoint", ["/media", "/media/refresh"])
def test_missing_path(client, wired, signer, endpoint):
    resp = client.get(endpoint, params={"token": TOKEN})

    assert resp.status_code == 400
    assert resp.json() == {"detail": "Missing path"}
    assert wired.calls == {"get": 0, "set": 0, "clear": 0}
    assert signer.calls == []


def test_cache_write_failure_still_redirects(client, wired, signer):
    wired.fail.add("set")
    resp = media(client)

    assert resp.status_code == 302
    assert resp.headers["location"] == "https://signed.example/images/a.jpg?sig=1"


def test_cache_read_failure_is_server_error(client, wired, signer):
    wired.fail.add("get")
    resp = media(client)

    assert resp.status_code == 500
    assert resp.json() == {"detail": "Failed to read cache"}
    assert signer.calls == []


def test_clear_failure_aborts_fresh_request(client, wired, signer):
    wired.fail.add("clear")
    resp = media(client, fresh="1")

    assert resp.status_code == 500
    assert resp.json() == {"detail": "Failed to clear cache"}
    assert wired.calls["get"] == 0
    assert signer.calls == []

    resp = client.get("/media/refresh", params={"token": TOKEN, "path": "images/a.jpg"})
    assert resp.status_code == 500


def test_signing_failure_hides_details(client, wired, signer):
    signer.error = SigningError("images/a.jpg", "InvalidAccessKeyId: AKIA...")
    resp = media(client)

    assert resp.status_code == 500
    assert resp.json() == {"detail": "Failed to generate signed URL"}
    assert "AKIA" not in resp.text
    assert wired.calls["set"] == 0


def test_rate_limit_rejects_before_auth(client, wired, signer):
    container.rate_limiter.override(providers.Object(TokenBucket(rate=0.001, burst=1)))
    try:
        assert media(client).status_code == 302
        limited = media(client, token="wrong")
        assert limited.status_code == 429
        assert media(client).status_code == 429
    finally:
        container.rate_limiter.reset_override()
    assert len(signer.calls) == 1


def test_home_page_is_public(client):
    resp = client.get("/")
    assert resp.status_code == 200
    assert "/media" in resp.text
    assert resp.headers["content-type"].startswith("text/html")


def test_health_reports_cache(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "healthy"
    assert body["checks"] == {"cache": True}
    assert body["cache_driver"] == "sqlite"
    assert body["expiry_seconds"] == 3600


def test_bad_endpoint_fails_startup(tmp_path):
    from media_resolver.main import app

    container.reset_singletons()
    container.settings.override(providers.Object(make_settings(tmp_path, s3_endpoint="localhost:9000")))
    try:
        with pytest.raises(ConfigurationError):
            with TestClient(app):
                pass
    finally:
        container.settings.reset_override()
        container.reset_singletons()
