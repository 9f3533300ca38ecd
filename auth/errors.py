from __future__ import annotations


class AuthError(RuntimeError):
    code = "auth_error"
    status_code = 400


class InvalidRequestError(AuthError):
    code = "invalid_request"
    status_code = 400


class UnknownOrExpiredStateError(AuthError):
    code = "invalid_state"
    status_code = 400

    def __init__(self, message: str = "Unknown or expired state.") -> None:
        super().__init__(message)


class ProviderExchangeError(AuthError):
    code = "x_token_exchange_failed"
    status_code = 502


class NotAuthenticatedError(AuthError):
    code = "not_authenticated"
    status_code = 401

    def __init__(self, message: str = "No X credential held; visit /auth to log in.") -> None:
        super().__init__(message)


class RefreshFailedError(AuthError):
    """Refreshing the X access token failed.

    ``retryable`` is True for network failures and provider 5xx responses,
    where trying again later may succeed. Otherwise the refresh token was
    rejected and the account must go through /auth again.
    """

    code = "refresh_failed"

    def __init__(self, message: str, *, retryable: bool = False) -> None:
        super().__init__(message)
        self.retryable = retryable
        self.status_code = 503 if retryable else 401
