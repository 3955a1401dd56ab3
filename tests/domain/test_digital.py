"""Unit tests for digital files and download tokens."""

from datetime import timedelta

import pytest

from storefront.domain.exceptions import ValidationError
from storefront.domain.model.digital import DigitalDownloadToken, DigitalFile
from tests.fakes import T0


def _file(fmt: str) -> DigitalFile:
    return DigitalFile(id=1, file_url="https://cdn/x", file_name="x", format=fmt, file_size=1)


class TestContentType:

    def test_epub(self):
        assert _file("epub").content_type == "application/epub+zip"

    def test_case_insensitive(self):
        assert _file("PDF").content_type == "application/pdf"

    def test_unknown_format_falls_back_to_binary(self):
        assert _file("djvu").content_type == "application/octet-stream"


class TestDownloadToken:

    def test_issue(self):
        token = DigitalDownloadToken.issue(7, 3, now=T0, ttl=timedelta(days=30))
        assert len(token.token) == 64
        assert token.expires_at == T0 + timedelta(days=30)
        assert token.created_at == T0
        assert not token.is_consumed

    def test_tokens_are_unique(self):
        a = DigitalDownloadToken.issue(7, 3, now=T0, ttl=timedelta(days=1))
        b = DigitalDownloadToken.issue(7, 3, now=T0, ttl=timedelta(days=1))
        assert a.token != b.token

    def test_non_positive_ttl_rejected(self):
        with pytest.raises(ValidationError):
            DigitalDownloadToken.issue(7, 3, now=T0, ttl=timedelta(0))

    def test_expiry_is_strictly_after(self):
        token = DigitalDownloadToken.issue(7, 3, now=T0, ttl=timedelta(days=1))
        assert not token.is_expired(token.expires_at)
        assert token.is_expired(token.expires_at + timedelta(microseconds=1))

    def test_consumed_token_is_not_live(self):
        token = DigitalDownloadToken.issue(7, 3, now=T0, ttl=timedelta(days=1))
        token.downloaded_at = T0
        assert not token.is_live(T0)
