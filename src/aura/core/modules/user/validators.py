import re

from aura.errors import ValidationError

ALLOWED_COUNTRY_CODE = "+60"
MALAYSIA_PHONE_RE = re.compile(r"^(1)[0-46-9]-*[0-9]{6,7}$")


def validate_country_code(country_code: str) -> None:
    """Only Malaysian numbers are accepted for now."""
    if country_code != ALLOWED_COUNTRY_CODE:
        raise ValidationError("Invalid countryCode. Only allowed for Malaysia")


def validate_phone(country_code: str, phone_no: str) -> None:
    """Validate a phone number without its country code.

    Raises:
        ValidationError: If the country code is not Malaysian or the number
            is not 1, a mobile prefix digit (not 5) and 6-7 more digits, 8-9 digits in all
            with optional dashes after the prefix.
    """
    validate_country_code(country_code)
    if not MALAYSIA_PHONE_RE.fullmatch(phone_no):
        raise ValidationError("Invalid Malaysian phone number format. Must start with 1 and be 9-10 digits")
