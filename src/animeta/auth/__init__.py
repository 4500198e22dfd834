# ABOUTME: Authentication package for Bangumi OAuth2 credentials and the Hanime session.
# ABOUTME: Exports the credential value types, the token store, and the token manager.

from animeta.auth.bangumi_oauth import BangumiTokenManager, TokenState
from animeta.auth.credentials import Credentials, SessionCredential, SessionKind
from animeta.auth.token_store import TokenStore

__all__ = [
    "BangumiTokenManager",
    "Credentials",
    "SessionCredential",
    "SessionKind",
    "TokenState",
    "TokenStore",
]
