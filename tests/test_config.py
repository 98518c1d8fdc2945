"""Tests for environment-driven settings."""
import pytest
from pydantic import ValidationError

from shiptrack.core.config import Settings


class TestSettings:

    def test_cors_origins_comma_separated(self):
        s = Settings(CORS_ORIGINS="http://a.example, http://b.example")
        assert s.cors_origins == ["http://a.example", "http://b.example"]

    def test_cors_origins_json_list(self):
        s = Settings(CORS_ORIGINS='["http://a.example"]')
        assert s.cors_origins == ["http://a.example"]

    def test_default_page_size_bounded_by_max(self):
        with pytest.raises(ValidationError):
            Settings(DEFAULT_PAGE_SIZE=50, MAX_PAGE_SIZE=25)

    def test_csv_defaults(self):
        s = Settings()
        assert s.csv_encoding == "utf-8-sig"
        assert s.default_page_size == 20
