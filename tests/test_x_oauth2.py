import string
import time
import urllib.parse

import httpx
import pytest

from auth.x_oauth2 import (
    X_AUTHORIZE_URL,
    X_TOKEN_URL,
    TokenRequestError,
    TokenResponse,
    build_authorization_url,
    exchange_code,
    generate_auth_link,
    generate_code_challenge,
    generate_code_verifier,
    refresh_token,
)


def test_code_verifier_length() -> None:
    verifier = generate_code_verifier()

    assert 43 <= len(verifier) <= 128


def test_code_verifier_url_safe() -> None:
    verifier = generate_code_verifier()
    allowed = set(string.ascii_letters + string.digits + "-_")

    assert all(char in allowed for char in verifier)


def test_code_challenge_is_s256() -> None:
    verifier = "dBjftJeZ4CVP-mB92K27uhbUJU1p1r_wW1gFWFOEjXk"

    assert generate_code_challenge(verifier) == "E9Melhoa2OwvFrEMTJguCHaoeK1t8URWbuGJSstw-cM"


def test_build_authorization_url_contains_required_params() -> None:
    url = build_authorization_url(
        client_id="client123",
        redirect_uri="http://127.0.0.1:3000/callback",
        scopes=["tweet.read", "users.read"],
        state="state123",
        code_challenge="challenge123",
    )

    parsed = urllib.parse.urlparse(url)
    query = urllib.parse.parse_qs(parsed.query)

    assert query["client_id"] == ["client123"]
    assert query["redirect_uri"] == ["http://127.0.0.1:3000/callback"]
    assert query["response_type"] == ["code"]
    assert query["code_challenge"] == ["challenge123"]
    assert query["code_challenge_method"] == ["S256"]
    assert query["state"] == ["state123"]
    assert query["scope"] == ["tweet.read users.read"]


def test_generate_auth_link_binds_state_and_verifier() -> None:
    link = generate_auth_link(
        client_id="client123",
        redirect_uri="http://127.0.0.1:3000/callback",
        scopes=["tweet.read", "offline.access"],
    )

    assert link.url.startswith(X_AUTHORIZE_URL)
    query = urllib.parse.parse_qs(urllib.parse.urlparse(link.url).query)
    assert query["state"] == [link.state]
    assert query["code_challenge"] == [generate_code_challenge(link.code_verifier)]


def test_generate_auth_link_state_is_fresh() -> None:
    first = generate_auth_link("client123", "http://127.0.0.1:3000/callback", ["tweet.read"])
    second = generate_auth_link("client123", "http://127.0.0.1:3000/callback", ["tweet.read"])

    assert first.state != second.state
    assert first.code_verifier != second.code_verifier


@pytest.mark.asyncio
async def test_exchange_code_success(httpx_mock) -> None:
    httpx_mock.add_response(
        url=X_TOKEN_URL,
        method="POST",
        json={
            "access_token": "access-1",
            "refresh_token": "refresh-1",
            "expires_in": 7200,
            "scope": "tweet.read",
        },
    )

    token = await exchange_code(
        client_id="id",
        client_secret="secret",
        code="code123",
        redirect_uri="http://127.0.0.1:3000/callback",
        code_verifier="verifier123",
    )

    assert token.access_token == "access-1"
    assert token.refresh_token == "refresh-1"
    assert token.expires_in == 7200
    assert token.expires_at > time.time()

    form = urllib.parse.parse_qs(httpx_mock.get_requests()[0].content.decode())
    assert form["grant_type"] == ["authorization_code"]
    assert form["code_verifier"] == ["verifier123"]
    assert form["redirect_uri"] == ["http://127.0.0.1:3000/callback"]


@pytest.mark.asyncio
async def test_exchange_code_error(httpx_mock) -> None:
    httpx_mock.add_response(url=X_TOKEN_URL, method="POST", status_code=400, text="invalid_grant")

    with pytest.raises(TokenRequestError, match="Token request failed") as excinfo:
        await exchange_code(
            client_id="id",
            client_secret="secret",
            code="bad-code",
            redirect_uri="http://127.0.0.1:3000/callback",
            code_verifier="verifier123",
        )

    assert excinfo.value.status_code == 400
    assert excinfo.value.retryable is False


@pytest.mark.asyncio
async def test_exchange_code_requires_refresh_token(httpx_mock) -> None:
    httpx_mock.add_response(
        url=X_TOKEN_URL,
        method="POST",
        json={"access_token": "access-1", "expires_in": 7200},
    )

    with pytest.raises(TokenRequestError, match="refresh_token"):
        await exchange_code(
            client_id="id",
            client_secret="secret",
            code="code123",
            redirect_uri="http://127.0.0.1:3000/callback",
            code_verifier="verifier123",
        )


@pytest.mark.asyncio
async def test_refresh_token_success(httpx_mock) -> None:
    httpx_mock.add_response(
        url=X_TOKEN_URL,
        method="POST",
        json={
            "access_token": "access-2",
            "refresh_token": "refresh-2",
            "expires_in": 3600,
            "scope": "tweet.read users.read",
        },
    )

    token = await refresh_token(
        client_id="id",
        client_secret="secret",
        refresh_token="refresh-1",
    )

    assert token.access_token == "access-2"
    assert token.refresh_token == "refresh-2"
    assert token.expires_in == 3600

    form = urllib.parse.parse_qs(httpx_mock.get_requests()[0].content.decode())
    assert form["grant_type"] == ["refresh_token"]
    assert form["refresh_token"] == ["refresh-1"]


@pytest.mark.asyncio
async def test_refresh_token_server_error_is_retryable(httpx_mock) -> None:
    httpx_mock.add_response(url=X_TOKEN_URL, method="POST", status_code=503, text="busy")

    with pytest.raises(TokenRequestError) as excinfo:
        await refresh_token(client_id="id", client_secret="secret", refresh_token="refresh-1")

    assert excinfo.value.retryable is True


@pytest.mark.asyncio
async def test_refresh_token_timeout_is_retryable(httpx_mock) -> None:
    httpx_mock.add_exception(httpx.ReadTimeout("timed out"))

    with pytest.raises(TokenRequestError) as excinfo:
        await refresh_token(client_id="id", client_secret="secret", refresh_token="refresh-1")

    assert excinfo.value.status_code is None
    assert excinfo.value.retryable is True


@pytest.mark.asyncio
async def test_refresh_token_malformed_success_body_is_not_retryable(httpx_mock) -> None:
    httpx_mock.add_response(
        url=X_TOKEN_URL,
        method="POST",
        json={"access_token": "access-2", "expires_in": 3600},
    )

    with pytest.raises(TokenRequestError) as excinfo:
        await refresh_token(client_id="id", client_secret="secret", refresh_token="refresh-1")

    assert excinfo.value.status_code is None
    assert excinfo.value.retryable is False


@pytest.mark.parametrize(
    "payload",
    [
        [],
        {"refresh_token": "r", "expires_in": 60},
        {"access_token": "a", "refresh_token": "r"},
        {"access_token": "a", "refresh_token": "r", "expires_in": 60, "scope": 1},
    ],
)
def test_from_payload_rejects_malformed_body_without_retry(payload) -> None:
    with pytest.raises(TokenRequestError) as excinfo:
        TokenResponse.from_payload(payload)

    assert excinfo.value.retryable is False
