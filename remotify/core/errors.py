"""Exceptions raised by the request dispatcher and the Spotify facade.

Hierarchy:
    RemotifyError (base)
        PreconditionError - request cannot run in the current state
        RemoteError - the Spotify API (or an HTTP fetch) failed
        ContractViolationError - the API answered with an unexpected shape
"""
from typing import Optional


class RemotifyError(Exception):
    """Base exception for every failure surfaced by ``RequestDispatcher.handle``.

    Attributes:
        message: Human-readable error description.
        details: Extra context for logs (ids, urls, original error text).
    """

    def __init__(self, message: str, details: Optional[dict] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        return self.message


class PreconditionError(RemotifyError):
    """The request needs state that is not there, e.g. a player action with no active playback.

    Reported immediately, never retried.
    """


class RemoteError(RemotifyError):
    """A call against the Spotify Web API failed.

    The flags let callers tell the common causes apart without parsing the
    message; the dispatcher itself treats every RemoteError the same way.
    """

    def __init__(
        self,
        message: str,
        details: Optional[dict] = None,
        http_status: Optional[int] = None,
        is_rate_limit: bool = False,
        is_auth_error: bool = False,
        is_not_found: bool = False,
    ) -> None:
        super().__init__(message, details)
        self.http_status = http_status
        self.is_rate_limit = is_rate_limit
        self.is_auth_error = is_auth_error
        self.is_not_found = is_not_found


class ContractViolationError(RemotifyError):
    """The API returned data of the wrong kind (e.g. an artist page for a track search)."""
