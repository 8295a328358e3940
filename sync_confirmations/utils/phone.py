from __future__ import annotations

import re

COUNTRY_CODE = "55"


def _digits(value: str | None) -> str:
    return re.sub(r"\D", "", str(value or ""))


def normalize_phone_br(phone: str | None) -> str | None:
    """Return the canonical +55DDDNXXXXXXXX form, else None.

    Normalization:
    - strip everything but digits
    - drop a leading 55 country code
    - if 10 digits remain, insert the mobile 9 after the area code
    - anything other than 11 digits is unresolvable
    """
    if not phone:
        return None

    digits = _digits(phone)
    if digits.startswith(COUNTRY_CODE):
        digits = digits[len(COUNTRY_CODE):]
    if len(digits) == 10:
        digits = f"{digits[:2]}9{digits[2:]}"
    if len(digits) != 11:
        return None

    return f"+{COUNTRY_CODE}{digits}"


def phone_variants(phone: str | None) -> list[str]:
    """Encodings of the same number the messaging platform may have stored."""
    digits = _digits(phone)
    if not digits:
        return []

    # dict keys keep insertion order while dropping repeats
    variants: dict[str, None] = dict.fromkeys([f"+{digits}", digits])

    if digits.startswith(COUNTRY_CODE):
        national = digits[len(COUNTRY_CODE):]
        variants.update(dict.fromkeys([national, f"+{national}"]))

        area_code = digits[2:4]
        if len(digits) == 13 and digits[4] == "9":
            without_nine = f"{COUNTRY_CODE}{area_code}{digits[5:]}"
            variants.update(dict.fromkeys([without_nine, f"+{without_nine}"]))
        elif len(digits) == 12:
            with_nine = f"{COUNTRY_CODE}{area_code}9{digits[4:]}"
            variants.update(dict.fromkeys([with_nine, f"+{with_nine}"]))

    return list(variants)
