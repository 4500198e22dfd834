# ABOUTME: In-process holder for the current Bangumi credentials and Hanime session.
# ABOUTME: Replacing a value triggers persistence through the injected config collaborator.

import logging
from typing import Protocol, runtime_checkable

from animeta.auth.credentials import Credentials, SessionCredential

logger = logging.getLogger(__name__)


@runtime_checkable
class CredentialPersistence(Protocol):
    """The config persistence collaborator, as seen by the token store."""

    def save_credentials(self, credentials: Credentials) -> None: ...

    def save_session(self, session: SessionCredential) -> None: ...


class TokenStore:
    """Holds the process-wide credential values.

    Values are swapped as a whole. Concurrent refreshes race and the last
    write wins, both here and in the persisted copy.
    """

    def __init__(
        self,
        credentials: Credentials | None = None,
        session: SessionCredential | None = None,
        persistence: CredentialPersistence | None = None,
    ) -> None:
        self._credentials = credentials or Credentials()
        self._session = session or SessionCredential()
        self._persistence = persistence

    @property
    def credentials(self) -> Credentials:
        return self._credentials

    @property
    def session(self) -> SessionCredential:
        return self._session

    def replace_credentials(self, credentials: Credentials) -> None:
        """Swap in new credentials and persist them."""
        self._credentials = credentials
        if self._persistence is not None:
            self._persistence.save_credentials(credentials)
            logger.debug("Persisted Bangumi credentials")

    def replace_session(self, session: SessionCredential) -> None:
        """Swap in a new Hanime session and persist it."""
        self._session = session
        if self._persistence is not None:
            self._persistence.save_session(session)
            logger.debug("Persisted Hanime session (%s)", session.kind.value)
