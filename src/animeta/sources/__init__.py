# ABOUTME: Upstream metadata sources: the Bangumi JSON API and the hanime1.me scraper.
# ABOUTME: Exports both clients; parsing lives in the *_parser modules beside them.

from animeta.sources.bangumi import BangumiClient
from animeta.sources.hanime import HanimeClient

__all__ = ["BangumiClient", "HanimeClient"]
