from __future__ import annotations

import logging

from auth import x_oauth2
from auth.errors import InvalidRequestError, ProviderExchangeError, UnknownOrExpiredStateError
from auth.pending_registry import PendingAuthRegistry
from auth.token_store import CredentialStore, TokenSet

DEFAULT_SCOPES = ["tweet.read", "tweet.write", "users.read", "offline.access"]

LOGGER = logging.getLogger("xbot.auth")


class AuthFlowCoordinator:
    """Runs the X OAuth2 authorization-code + PKCE handshake for the bot account."""

    def __init__(
        self,
        *,
        client_id: str,
        client_secret: str,
        redirect_uri: str,
        store: CredentialStore,
        pending: PendingAuthRegistry | None = None,
        scopes: list[str] | None = None,
        timeout: float = x_oauth2.DEFAULT_TIMEOUT_SECONDS,
        generate_auth_link_fn=x_oauth2.generate_auth_link,
        exchange_code_fn=x_oauth2.exchange_code,
    ) -> None:
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self.store = store
        self.pending = pending if pending is not None else PendingAuthRegistry()
        self.scopes = scopes or list(DEFAULT_SCOPES)
        self.timeout = timeout

        self._generate_auth_link_fn = generate_auth_link_fn
        self._exchange_code_fn = exchange_code_fn

    def begin_auth(self) -> str:
        link = self._generate_auth_link_fn(
            client_id=self.client_id,
            redirect_uri=self.redirect_uri,
            scopes=self.scopes,
        )
        self.pending.add(link.state, link.code_verifier)

        purged = self.pending.purge_expired()
        if purged:
            LOGGER.info("Purged %s expired pending authorization(s)", purged)
        return link.url

    async def complete_auth(self, state: str | None, code: str | None) -> TokenSet:
        if not state or not code:
            raise InvalidRequestError("Missing code or state.")

        # Consumed before the exchange so a replayed callback can never reuse it.
        pending = self.pending.pop(state)
        if pending is None:
            raise UnknownOrExpiredStateError()

        try:
            exchanged = await self._exchange_code_fn(
                client_id=self.client_id,
                client_secret=self.client_secret,
                code=code,
                redirect_uri=self.redirect_uri,
                code_verifier=pending.code_verifier,
                timeout=self.timeout,
            )
        except Exception as error:
            LOGGER.warning("X authorization code exchange failed: %s", error)
            raise ProviderExchangeError(
                f"Failed to exchange X authorization code: {error}"
            ) from error

        token_set = TokenSet.from_token_response(exchanged)
        await self.store.set(token_set)
        LOGGER.info("X account authenticated; access token expires at %.0f", token_set.expires_at)
        return token_set

    async def logout(self) -> None:
        await self.store.clear()
        LOGGER.info("X credential cleared")
