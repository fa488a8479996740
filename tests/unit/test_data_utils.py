"""
Tests for text and URL helpers.
"""

from datetime import datetime

import pytest
from hypothesis import given
from hypothesis import strategies as st
from scrapely.utils import data_utils as DataUtils


@pytest.mark.unit
class TestTextHelpers:
    def test_clean_text(self):
        assert DataUtils.clean_text("  a \n\t b  ") == "a b"
        assert DataUtils.clean_text(None) == ""

    @given(st.text())
    def test_clean_text_never_has_double_spaces(self, text):
        cleaned = DataUtils.clean_text(text)
        assert "  " not in cleaned
        assert cleaned == cleaned.strip()

    def test_extract_numbers(self):
        assert DataUtils.extract_numbers("3 items at 4.50 each") == [3.0, 4.5]
        assert DataUtils.extract_numbers(12) == []

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("$1,234.56", 1234.56),
            ("1.234,56 €", 1234.56),
            ("19.99", 19.99),
            ("Price: 45", 45.0),
            ("free", None),
            ("", None),
            (None, None),
        ],
    )
    def test_parse_price(self, raw, expected):
        assert DataUtils.parse_price(raw) == expected

    def test_parse_date(self):
        assert DataUtils.parse_date("2024-03-05") == datetime(2024, 3, 5)
        assert DataUtils.parse_date("not a date") is None
        assert DataUtils.parse_date("") is None

    def test_sanitize_filename(self):
        assert DataUtils.sanitize_filename('a<b>:c"/d|e?.png') == "a_b__c__d_e_.png"

    @pytest.mark.parametrize(
        "value, expected",
        [
            ("42", "integer"),
            ("4.2", "float"),
            ("me@x.io", "email"),
            ("https://x.io", "url"),
            ("2024-01-01", "date"),
            ("", "empty"),
            (None, "empty"),
            ("hello", "string"),
        ],
    )
    def test_detect_type(self, value, expected):
        assert DataUtils.detect_type(value) == expected


@pytest.mark.unit
class TestUrlHelpers:
    def test_get_domain(self):
        assert DataUtils.get_domain("https://Shop.Example:8080/x") == "shop.example"
        assert DataUtils.get_domain(None) is None

    def test_normalize_url_defaults(self):
        assert DataUtils.normalize_url("https://x.io/a?b=1#c") == "https://x.io/a"
        assert DataUtils.normalize_url("https://x.io") == "https://x.io/"

    def test_normalize_url_options(self):
        url = "https://x.io/a/?b=1#c"
        assert DataUtils.normalize_url(url, remove_query=False, remove_fragment=False) == url
        assert DataUtils.normalize_url(url, remove_trailing_slash=True) == "https://x.io/a"

    def test_normalize_url_leaves_relative_alone(self):
        assert DataUtils.normalize_url("/relative?x=1") == "/relative?x=1"

    def test_resolve_and_same_domain(self):
        assert DataUtils.resolve_url("https://x.io/a/b", "../c") == "https://x.io/c"
        assert DataUtils.same_domain("https://x.io/a", "https://x.io/b")
        assert not DataUtils.same_domain("https://x.io", "https://y.io")
        assert not DataUtils.same_domain("/rel", "/rel")

    def test_unique_preserves_order(self):
        assert DataUtils.unique(["b", "a", "b", "c", "a"]) == ["b", "a", "c"]
