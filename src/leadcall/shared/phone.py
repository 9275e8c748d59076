"""Phone number normalization to E.164."""

import re

E164_PATTERN = re.compile(r"^\+[1-9]\d{7,14}$")
_NON_DIGITS = re.compile(r"\D")


def normalize_phone(raw: str | None, default_country_code: str | None = "+91") -> str | None:
    """Normalize user input to E.164.

    Bare 10-digit numbers get the default country code; anything else is
    treated as already carrying its country code.

    Returns:
        The normalized number, or None when the input cannot be made valid.
    """
    if not raw:
        return None

    digits = _NON_DIGITS.sub("", raw)
    if not digits:
        return None

    if raw.strip().startswith("+"):
        normalized = f"+{digits}"
    elif len(digits) == 10 and default_country_code:
        normalized = f"{default_country_code}{digits}"
    else:
        normalized = f"+{digits}"

    return normalized if E164_PATTERN.match(normalized) else None
