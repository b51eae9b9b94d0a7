import pytest

from app.features.wishlist.domain import IdentifierType, InvalidIdentifier
from app.features.wishlist.domain.normalization import (
    normalize_handle,
    normalize_identifier,
    normalize_phone,
)


@pytest.mark.parametrize(
    "raw",
    ["+1 (555) 123-4567", "15551234567", "555-123-4567", "555.123.4567", "5551234567"],
)
def test_phone_formats_collapse_to_ten_digits(raw):
    assert normalize_phone(raw) == "5551234567"


@pytest.mark.parametrize("raw", ["", "123", "555-123-456", "25551234567", "+44 20 7946 0958 1"])
def test_phone_rejects_wrong_digit_count(raw):
    with pytest.raises(InvalidIdentifier):
        normalize_phone(raw)


def test_phone_respects_country_code():
    assert normalize_phone("+44 2079460958", country_code="44") == "2079460958"


def test_handle_drops_at_sign_and_lowercases():
    assert normalize_handle("@John_Doe") == normalize_handle("john_doe") == "john_doe"
    assert normalize_handle("  @Jane.Smith ") == "jane.smith"


@pytest.mark.parametrize("raw", ["", "   ", "@", "john doe"])
def test_handle_rejects_blank_or_spaced(raw):
    with pytest.raises(InvalidIdentifier):
        normalize_handle(raw)


def test_normalize_identifier_dispatches_on_type():
    assert normalize_identifier(IdentifierType.PHONE, "(555) 987-6543") == "5559876543"
    assert normalize_identifier(IdentifierType.HANDLE, "@Someone") == "someone"


def test_invalid_identifier_is_not_recoverable():
    with pytest.raises(InvalidIdentifier) as exc_info:
        normalize_phone("12")

    assert exc_info.value.recoverable is False
    assert exc_info.value.code == "invalid_identifier"
