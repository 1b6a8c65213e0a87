"""
Identifier Generator

Admission and upload identifiers are generated in-process from the ``secrets``
module, so no database round-trip or auto-increment is involved.
"""

import re
import secrets
import time

# Crockford base32: no I, L, O or U
CROCKFORD_ALPHABET = "0123456789ABCDEFGHJKMNPQRSTVWXYZ"

ADMISSION_ID_PREFIX = "ADM-"
ADMISSION_ID_LENGTH = 12  # 12 * 5 = 60 bits of entropy

_ADMISSION_ID_PATTERN = re.compile(
    rf"^{ADMISSION_ID_PREFIX}[{CROCKFORD_ALPHABET}]{{{ADMISSION_ID_LENGTH}}}$"
)


def new_admission_id() -> str:
    """Generate a new admission id, e.g. ``ADM-7K2M9QXR4T1B``."""
    body = "".join(secrets.choice(CROCKFORD_ALPHABET) for _ in range(ADMISSION_ID_LENGTH))
    return f"{ADMISSION_ID_PREFIX}{body}"


def new_upload_id() -> str:
    """Generate a new upload id: ``UPL-<epoch millis>-<8 hex chars>``."""
    return f"UPL-{int(time.time() * 1000)}-{secrets.token_hex(4)}"


def is_admission_id(value: str | None) -> bool:
    """Check whether a value has the shape of an admission id issued here."""
    return bool(value) and _ADMISSION_ID_PATTERN.match(value) is not None
