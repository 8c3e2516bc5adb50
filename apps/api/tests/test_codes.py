"""Tests for check-in code normalization."""

import pytest

from tripflow_api.ledger.codes import CODE_ALPHABET, generate_code, normalize_code, validate_code


class TestNormalizeCode:
    """Test code canonicalization."""

    def test_strips_separators_and_uppercases(self):
        assert normalize_code(" a7k3-q9zp ") == "A7K3Q9ZP"

    def test_extracts_code_from_qr_url(self):
        assert normalize_code("https://tripflow.app/checkin?event=12&code=a7k3-q9zp") == "A7K3Q9ZP"

    def test_extracts_bare_code_parameter(self):
        assert normalize_code("code=b2c3d4e5") == "B2C3D4E5"

    @pytest.mark.parametrize("raw", [None, "", "   ", "---"])
    def test_empty_input_normalizes_to_empty(self, raw):
        assert normalize_code(raw) == ""

    def test_non_ascii_letters_are_dropped(self):
        assert normalize_code("ÇA7K3Q9ZP") == "A7K3Q9ZP"


class TestValidateCode:
    """Test length rules."""

    def test_too_short_is_rejected_without_raising(self):
        assert validate_code("abc12", 6, 10) is None

    def test_too_long_is_rejected(self):
        assert validate_code("ABCDEFGHJKL", 6, 10) is None

    def test_generic_range_accepts_six_to_ten(self):
        assert validate_code("abc-123", 6, 10) == "ABC123"
        assert validate_code("ABCDEFGHJK", 6, 10) == "ABCDEFGHJK"

    def test_primary_code_must_be_exactly_eight(self):
        assert validate_code("A7K3Q9ZP", 8, 8) == "A7K3Q9ZP"
        assert validate_code("A7K3Q9Z", 8, 8) is None


def test_generate_code_uses_unambiguous_alphabet():
    code = generate_code()
    assert len(code) == 8
    assert all(ch in CODE_ALPHABET for ch in code)
    assert not set("01IO") & set(code)
