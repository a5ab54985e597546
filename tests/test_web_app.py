"""Tests for the FastAPI routes."""

from __future__ import annotations

from urllib.parse import parse_qs, urlparse

import httpx
import pytest
from fastapi.testclient import TestClient

from helpers import StubUpstream, gmail_message
from inbox_sorter.core.config import AppSettings, GoogleSettings, LlmSettings
from inbox_sorter.web.app import create_app

NOW = 1_700_000_000


def _client(settings: AppSettings, upstream: StubUpstream) -> TestClient:
    app = create_app(settings, http_transport=upstream.transport, clock=lambda: NOW)
    return TestClient(app)


def _set_cookies(response: httpx.Response) -> dict[str, str]:
    """Map cookie name to its full ``Set-Cookie`` header."""
    cookies: dict[str, str] = {}
    for header in response.headers.get_list("set-cookie"):
        name = header.split("=", 1)[0]
        cookies[name] = header
    return cookies


def _cookie_value(header: str) -> str:
    return header.split(";", 1)[0].split("=", 1)[1]


def _is_cleared(header: str) -> bool:
    return "max-age=0" in header.lower()


@pytest.fixture
def client(settings: AppSettings, upstream: StubUpstream) -> TestClient:
    return _client(settings, upstream)


def test_auth_start_redirects_with_state_cookie(client: TestClient) -> None:
    response = client.get("/api/auth/google/start", follow_redirects=False)

    assert response.status_code == 302
    location = urlparse(response.headers["location"])
    params = {key: values[0] for key, values in parse_qs(location.query).items()}
    assert location.netloc == "accounts.google.com"
    assert params["redirect_uri"] == "http://testserver/api/auth/google/callback"

    state_cookie = _set_cookies(response)["ga_state"]
    assert _cookie_value(state_cookie) == params["state"]
    lowered = state_cookie.lower()
    assert "httponly" in lowered
    assert "secure" in lowered
    assert "samesite=lax" in lowered
    assert "max-age=600" in lowered
    assert "path=/" in lowered


def test_auth_start_uses_public_origin(
    settings: AppSettings, upstream: StubUpstream
) -> None:
    configured = settings.model_copy(
        update={
            "google": GoogleSettings(
                client_id="client-123",
                client_secret="shh",
                public_origin="https://mail.example.com",
            )
        }
    )

    response = _client(configured, upstream).get(
        "/api/auth/google/start", follow_redirects=False
    )

    params = parse_qs(urlparse(response.headers["location"]).query)
    assert params["redirect_uri"] == [
        "https://mail.example.com/api/auth/google/callback"
    ]


def test_callback_success_sets_token_cookies(
    client: TestClient, upstream: StubUpstream
) -> None:
    upstream.token_responses.append(
        httpx.Response(
            200,
            json={"access_token": "at-1", "refresh_token": "rt-1", "expires_in": 3599},
        )
    )

    response = client.get(
        "/api/auth/google/callback",
        params={"code": "auth-code", "state": "s1"},
        headers={"Cookie": "ga_state=s1"},
        follow_redirects=False,
    )

    assert response.status_code == 302
    assert response.headers["location"] == "/"
    cookies = _set_cookies(response)
    assert _cookie_value(cookies["ga_at"]) == "at-1"
    assert "max-age=3599" in cookies["ga_at"].lower()
    assert _cookie_value(cookies["ga_rt"]) == "rt-1"
    assert "max-age" not in cookies["ga_rt"].lower()
    assert _cookie_value(cookies["ga_exp"]) == str(NOW + 3599)
    assert _is_cleared(cookies["ga_state"])
    form = dict(httpx.QueryParams(upstream.requests[0].content.decode()))
    assert form["code"] == "auth-code"
    assert form["redirect_uri"] == "http://testserver/api/auth/google/callback"


def test_callback_without_code_is_rejected(
    client: TestClient, upstream: StubUpstream
) -> None:
    response = client.get(
        "/api/auth/google/callback",
        params={"state": "s1"},
        headers={"Cookie": "ga_state=s1"},
        follow_redirects=False,
    )

    assert response.status_code == 400
    assert response.json() == {"error": "Missing code"}
    assert _is_cleared(_set_cookies(response)["ga_state"])
    assert upstream.requests == []


@pytest.mark.parametrize(
    "cookie_header", [{"Cookie": "ga_state=expected"}, {}], ids=["mismatch", "absent"]
)
def test_callback_with_bad_state_is_rejected(
    client: TestClient, upstream: StubUpstream, cookie_header: dict[str, str]
) -> None:
    response = client.get(
        "/api/auth/google/callback",
        params={"code": "auth-code", "state": "forged"},
        headers=cookie_header,
        follow_redirects=False,
    )

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid state"}
    cookies = _set_cookies(response)
    assert _is_cleared(cookies["ga_state"])
    assert "ga_at" not in cookies
    assert upstream.requests == []


def test_callback_exchange_failure_reports_provider_body(
    client: TestClient, upstream: StubUpstream
) -> None:
    upstream.token_responses.append(httpx.Response(400, text="invalid_grant"))

    response = client.get(
        "/api/auth/google/callback",
        params={"code": "auth-code", "state": "s1"},
        headers={"Cookie": "ga_state=s1"},
        follow_redirects=False,
    )

    assert response.status_code == 500
    assert "invalid_grant" in response.json()["error"]
    cookies = _set_cookies(response)
    assert "ga_at" not in cookies
    assert _is_cleared(cookies["ga_state"])


def test_logout_clears_token_cookies(client: TestClient) -> None:
    response = client.post("/api/auth/logout")

    assert response.status_code == 204
    cookies = _set_cookies(response)
    assert {"ga_at", "ga_rt", "ga_exp"} <= set(cookies)
    assert all(_is_cleared(cookies[name]) for name in ("ga_at", "ga_rt", "ga_exp"))


def test_session_reports_access_cookie(client: TestClient) -> None:
    assert client.get("/api/auth/session").json() == {"authenticated": False}
    assert client.get(
        "/api/auth/session", headers={"Cookie": "ga_at=token"}
    ).json() == {"authenticated": True}


def test_fetch_without_session_is_unauthorized(client: TestClient) -> None:
    response = client.get("/api/gmail/fetch")

    assert response.status_code == 401
    assert response.json() == {"error": "Not authenticated"}


def test_fetch_returns_decoded_emails(
    client: TestClient, upstream: StubUpstream
) -> None:
    upstream.messages = {
        "m1": gmail_message("m1", subject="Hi", body="Plain body"),
        "m2": gmail_message("m2", sender=None),
    }

    response = client.get(
        "/api/gmail/fetch",
        headers={"Cookie": f"ga_at=live; ga_exp={NOW + 900}"},
    )

    assert response.status_code == 200
    emails = response.json()["emails"]
    assert [email["id"] for email in emails] == ["m1", "m2"]
    assert emails[0]["from"] == "alice@example.com"
    assert emails[0]["subject"] == "Hi"
    assert emails[0]["bodyText"] == "Plain body"
    assert emails[0]["snippet"] == "Preview"
    assert "from" not in emails[1]
    assert "ga_at" not in _set_cookies(response)
    assert upstream.requests_to("oauth2.googleapis.com") == []


@pytest.mark.parametrize(
    ("raw_max", "expected"),
    [("500", "50"), ("0", "1"), ("abc", "15"), (None, "15"), ("7", "7")],
)
def test_fetch_clamps_max(
    client: TestClient, upstream: StubUpstream, raw_max: str | None, expected: str
) -> None:
    params = {} if raw_max is None else {"max": raw_max}

    response = client.get(
        "/api/gmail/fetch",
        params=params,
        headers={"Cookie": f"ga_at=live; ga_exp={NOW + 900}"},
    )

    assert response.status_code == 200
    list_request = upstream.requests_to("gmail.googleapis.com")[0]
    assert list_request.url.params["maxResults"] == expected


def test_fetch_refreshes_and_rewrites_cookies(
    client: TestClient, upstream: StubUpstream
) -> None:
    upstream.messages = {"m1": gmail_message("m1")}

    response = client.get("/api/gmail/fetch", headers={"Cookie": "ga_rt=rt-1"})

    assert response.status_code == 200
    cookies = _set_cookies(response)
    assert _cookie_value(cookies["ga_at"]) == "fresh-token"
    assert "max-age=3600" in cookies["ga_at"].lower()
    assert _cookie_value(cookies["ga_exp"]) == str(NOW + 3600)
    gmail_request = upstream.requests_to("gmail.googleapis.com")[0]
    assert gmail_request.headers["Authorization"] == "Bearer fresh-token"


def test_fetch_failure_after_refresh_still_writes_cookies(
    client: TestClient, upstream: StubUpstream
) -> None:
    upstream.list_status = 503

    response = client.get("/api/gmail/fetch", headers={"Cookie": "ga_rt=rt-1"})

    assert response.status_code == 500
    assert "list exploded" in response.json()["error"]
    assert _cookie_value(_set_cookies(response)["ga_at"]) == "fresh-token"


def test_refresh_without_lifetime_keeps_session_cookie(
    client: TestClient, upstream: StubUpstream
) -> None:
    upstream.token_responses.append(httpx.Response(200, json={"access_token": "new"}))

    response = client.get("/api/gmail/fetch", headers={"Cookie": "ga_rt=rt-1"})

    assert response.status_code == 200
    cookies = _set_cookies(response)
    assert _cookie_value(cookies["ga_at"]) == "new"
    assert "max-age" not in cookies["ga_at"].lower()
    assert _cookie_value(cookies["ga_exp"]) == str(NOW)
    assert "max-age" not in cookies["ga_exp"].lower()


def test_fetch_with_rejected_refresh_is_unauthorized(
    client: TestClient, upstream: StubUpstream
) -> None:
    upstream.token_responses.append(httpx.Response(400, text="invalid_grant"))

    response = client.get("/api/gmail/fetch", headers={"Cookie": "ga_rt=revoked"})

    assert response.status_code == 401
    assert "invalid_grant" in response.json()["error"]
    assert "ga_at" not in _set_cookies(response)


def test_fetch_reports_message_failure(
    client: TestClient, upstream: StubUpstream
) -> None:
    upstream.messages = {"m1": gmail_message("m1")}
    upstream.unreachable_ids = ["gone"]

    response = client.get(
        "/api/gmail/fetch", headers={"Cookie": f"ga_at=live; ga_exp={NOW + 900}"}
    )

    assert response.status_code == 500
    error = response.json()["error"]
    assert "gone" in error
    assert "not found" in error


@pytest.mark.parametrize("body", [{"emails": []}, {}, None])
def test_classify_without_emails_is_bad_request(
    client: TestClient, body: dict[str, object] | None
) -> None:
    response = client.post("/api/classify", json=body)

    assert response.status_code == 400
    assert response.json() == {"error": "No emails provided"}


@pytest.mark.parametrize(
    "body",
    [
        {"emails": None},
        {"emails": "abc"},
        {"emails": {"id": "a"}},
        {"emails": [{"subject": "no id"}]},
        ["not", "an", "object"],
    ],
    ids=["null", "string", "object", "missing-id", "bare-list"],
)
def test_classify_with_malformed_emails_is_bad_request(
    client: TestClient, upstream: StubUpstream, body: object
) -> None:
    response = client.post("/api/classify", json=body)

    assert response.status_code == 400
    assert response.json() == {"error": "No emails provided"}
    assert upstream.requests == []


def test_classify_with_invalid_json_is_bad_request(client: TestClient) -> None:
    response = client.post(
        "/api/classify",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 400
    assert response.json() == {"error": "No emails provided"}


def test_classify_accepts_numeric_ids(client: TestClient) -> None:
    response = client.post("/api/classify", json={"emails": [{"id": 5}]})

    assert response.status_code == 200
    assert response.json() == {"classifications": {"5": "General"}}


def test_classify_without_key_is_server_error(
    settings: AppSettings, upstream: StubUpstream
) -> None:
    no_key = settings.model_copy(update={"llm": LlmSettings(api_key=None)})

    response = _client(no_key, upstream).post(
        "/api/classify", json={"emails": [{"id": "a"}]}
    )

    assert response.status_code == 500
    assert response.json() == {"error": "Missing OpenAI key"}
    assert upstream.requests == []


def test_classify_labels_each_email(
    client: TestClient, upstream: StubUpstream
) -> None:
    upstream.llm_reply = lambda prompt: (
        "Promotions" if "From: shop@example.com" in prompt else "banana"
    )

    response = client.post(
        "/api/classify",
        json={
            "emails": [
                {"id": "a", "from": "shop@example.com", "subject": "Sale"},
                {"id": "b", "subject": "Lunch?", "bodyText": "Are you free?"},
            ]
        },
    )

    assert response.status_code == 200
    assert response.json() == {
        "classifications": {"a": "Promotions", "b": "General"}
    }
    prompts = [
        request.content.decode() for request in upstream.requests_to("api.openai.com")
    ]
    assert any("Are you free?" in prompt for prompt in prompts)
