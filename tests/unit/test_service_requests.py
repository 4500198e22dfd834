# ABOUTME: Unit tests for the typed service request structs.
# ABOUTME: Validates that malformed requests are rejected before reaching the core.

import pytest

from animeta.service import (
    AuthorizeRequest,
    ConfigUpdate,
    CookieRequest,
    LoginRequest,
    ScrapeRequest,
)


class TestAuthorizeRequest:
    def test_strips_code(self) -> None:
        assert AuthorizeRequest(" abc ").code == "abc"

    def test_empty_code(self) -> None:
        with pytest.raises(ValueError, match="code"):
            AuthorizeRequest("  ")


class TestLoginRequest:
    def test_valid(self) -> None:
        request = LoginRequest(" me@example.com ", "pw")
        assert request.username == "me@example.com"

    def test_empty_username(self) -> None:
        with pytest.raises(ValueError, match="username"):
            LoginRequest("", "pw")

    def test_empty_password(self) -> None:
        with pytest.raises(ValueError, match="password"):
            LoginRequest("me", "")


class TestCookieRequest:
    def test_strips_header_prefix(self) -> None:
        """A header copied from browser dev tools is accepted."""
        assert CookieRequest("Cookie: hanime1_session=abc").cookie == "hanime1_session=abc"

    def test_plain_cookie(self) -> None:
        assert CookieRequest("a=1; b=2").cookie == "a=1; b=2"

    def test_prefix_only_is_empty(self) -> None:
        with pytest.raises(ValueError):
            CookieRequest("Cookie:")


class TestConfigUpdate:
    def test_all_fields_optional(self) -> None:
        assert ConfigUpdate().client_id is None

    def test_non_positive_timeout(self) -> None:
        with pytest.raises(ValueError, match="search_timeout"):
            ConfigUpdate(search_timeout=-1)

    def test_cannot_disable_both_sources(self) -> None:
        with pytest.raises(ValueError):
            ConfigUpdate(enable_bangumi=False, enable_hanime=False)


class TestScrapeRequest:
    def test_title_only(self) -> None:
        assert ScrapeRequest(title="Frieren").use_bangumi is True

    def test_id_only(self) -> None:
        assert ScrapeRequest(bangumi_id="400602").title == ""

    def test_needs_title_or_id(self) -> None:
        with pytest.raises(ValueError, match="title or bangumi_id"):
            ScrapeRequest(title="  ")

    def test_needs_a_source(self) -> None:
        with pytest.raises(ValueError):
            ScrapeRequest(title="x", use_bangumi=False, use_hanime=False)

    def test_positive_timeout(self) -> None:
        with pytest.raises(ValueError, match="timeout"):
            ScrapeRequest(title="x", timeout=0)
