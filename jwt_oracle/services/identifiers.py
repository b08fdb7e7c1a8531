"""Random token identifiers."""

import secrets
import string

ALPHABET = string.ascii_letters + string.digits

# Length of generated jti values
DEFAULT_ID_LENGTH = 10


def generate_id(length: int = DEFAULT_ID_LENGTH) -> str:
    """Return `length` characters drawn uniformly from [A-Za-z0-9].

    The id is a lookup key, not a credential. Returns "" for length <= 0.
    """
    if length <= 0:
        return ""
    return "".join(secrets.choice(ALPHABET) for _ in range(length))
