from __future__ import annotations

import base64
import hashlib
import secrets
import time
import urllib.parse
from dataclasses import dataclass

import httpx

X_AUTHORIZE_URL = "https://x.com/i/oauth2/authorize"
X_TOKEN_URL = "https://api.x.com/2/oauth2/token"
DEFAULT_TIMEOUT_SECONDS = 30.0


class TokenRequestError(RuntimeError):
    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        retryable: bool | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self._retryable = retryable

    @property
    def retryable(self) -> bool:
        if self._retryable is not None:
            return self._retryable
        # No status means the provider never answered (timeout, connection error).
        return self.status_code is None or self.status_code >= 500


@dataclass
class AuthLink:
    url: str
    state: str
    code_verifier: str


@dataclass
class TokenResponse:
    access_token: str
    refresh_token: str
    expires_in: int
    expires_at: float
    scope: str

    @classmethod
    def from_payload(cls, payload: dict) -> "TokenResponse":
        if not isinstance(payload, dict):
            raise TokenRequestError("Token response must be a JSON object.", retryable=False)

        access_token = payload.get("access_token")
        refresh_token = payload.get("refresh_token")
        expires_in = payload.get("expires_in")
        scope = payload.get("scope", "")

        if not isinstance(access_token, str) or not access_token:
            raise TokenRequestError("Token response missing access_token.", retryable=False)
        if not isinstance(refresh_token, str) or not refresh_token:
            raise TokenRequestError(
                "Token response missing refresh_token; is offline.access in the scopes?",
                retryable=False,
            )
        if not isinstance(expires_in, int):
            raise TokenRequestError("Token response missing expires_in.", retryable=False)
        if not isinstance(scope, str):
            raise TokenRequestError("Token response scope must be a string.", retryable=False)

        return cls(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_in=expires_in,
            expires_at=time.time() + expires_in,
            scope=scope,
        )


def generate_code_verifier() -> str:
    while True:
        verifier = secrets.token_urlsafe(64)
        if 43 <= len(verifier) <= 128:
            return verifier


def generate_code_challenge(verifier: str) -> str:
    digest = hashlib.sha256(verifier.encode("utf-8")).digest()
    return base64.urlsafe_b64encode(digest).decode("utf-8").rstrip("=")


def generate_state() -> str:
    return secrets.token_urlsafe(24)


def build_authorization_url(
    client_id: str,
    redirect_uri: str,
    scopes: list[str],
    state: str,
    code_challenge: str,
) -> str:
    query = {
        "client_id": client_id,
        "redirect_uri": redirect_uri,
        "response_type": "code",
        "code_challenge": code_challenge,
        "code_challenge_method": "S256",
        "state": state,
        "scope": " ".join(scopes),
    }
    return f"{X_AUTHORIZE_URL}?{urllib.parse.urlencode(query)}"


def generate_auth_link(client_id: str, redirect_uri: str, scopes: list[str]) -> AuthLink:
    state = generate_state()
    code_verifier = generate_code_verifier()
    url = build_authorization_url(
        client_id=client_id,
        redirect_uri=redirect_uri,
        scopes=scopes,
        state=state,
        code_challenge=generate_code_challenge(code_verifier),
    )
    return AuthLink(url=url, state=state, code_verifier=code_verifier)


async def _token_request(
    payload: dict[str, str],
    *,
    client: httpx.AsyncClient | None = None,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
) -> TokenResponse:
    own_client = client is None
    http_client = client or httpx.AsyncClient(timeout=timeout)

    try:
        response = await http_client.post(X_TOKEN_URL, data=payload)
        response.raise_for_status()
        body = response.json()
    except httpx.HTTPStatusError as error:
        detail = error.response.text
        raise TokenRequestError(
            f"Token request failed with status {error.response.status_code}: {detail}",
            status_code=error.response.status_code,
        ) from error
    except httpx.HTTPError as error:
        raise TokenRequestError(f"Token request failed: {error!r}") from error
    except ValueError as error:
        raise TokenRequestError(
            "Token request failed: response body is not JSON.",
            status_code=response.status_code,
        ) from error
    finally:
        if own_client:
            await http_client.aclose()

    return TokenResponse.from_payload(body)


async def exchange_code(
    client_id: str,
    client_secret: str,
    code: str,
    redirect_uri: str,
    code_verifier: str,
    *,
    client: httpx.AsyncClient | None = None,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
) -> TokenResponse:
    return await _token_request(
        {
            "grant_type": "authorization_code",
            "client_id": client_id,
            "client_secret": client_secret,
            "code": code,
            "redirect_uri": redirect_uri,
            "code_verifier": code_verifier,
        },
        client=client,
        timeout=timeout,
    )


async def refresh_token(
    client_id: str,
    client_secret: str,
    refresh_token: str,
    *,
    client: httpx.AsyncClient | None = None,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
) -> TokenResponse:
    return await _token_request(
        {
            "grant_type": "refresh_token",
            "client_id": client_id,
            "client_secret": client_secret,
            "refresh_token": refresh_token,
        },
        client=client,
        timeout=timeout,
    )
