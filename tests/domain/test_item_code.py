"""
Tests for item-code normalization.

Covers:
- Left zero-padding to the configured width
- Trimming
- No truncation of long codes
- Rejection of empty codes
"""

import pytest

from recon_kernel.domain.item_code import (
    DEFAULT_CODE_WIDTH,
    normalize_item_code,
    try_normalize_item_code,
)
from recon_kernel.exceptions import InvalidItemCodeError


class TestNormalizeItemCode:
    """Tests for normalize_item_code."""

    def test_pads_short_code(self):
        assert normalize_item_code("42") == "000042"

    def test_trims_before_padding(self):
        assert normalize_item_code("  42 ") == "000042"

    def test_integer_code(self):
        assert normalize_item_code(42) == "000042"

    def test_code_at_width_unchanged(self):
        assert normalize_item_code("123456") == "123456"

    def test_long_code_not_truncated(self):
        """Codes beyond the width pass through unchanged."""
        assert normalize_item_code("1234567890") == "1234567890"

    def test_alphanumeric_code(self):
        assert normalize_item_code("AB1") == "000AB1"

    def test_custom_width(self):
        assert normalize_item_code("7", width=3) == "007"

    def test_default_width(self):
        assert DEFAULT_CODE_WIDTH == 6

    def test_idempotent(self):
        once = normalize_item_code(" 15")
        assert normalize_item_code(once) == once

    @pytest.mark.parametrize("raw", [None, "", "   ", "\t"])
    def test_empty_code_rejected(self, raw):
        with pytest.raises(InvalidItemCodeError) as exc_info:
            normalize_item_code(raw)

        assert exc_info.value.code == "INVALID_ITEM_CODE"


class TestTryNormalizeItemCode:
    """Tests for the non-raising variant."""

    def test_returns_normalized(self):
        assert try_normalize_item_code("9") == "000009"

    def test_returns_none_for_blank(self):
        assert try_normalize_item_code("  ") is None
