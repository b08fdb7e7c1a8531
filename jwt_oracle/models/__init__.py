# jwt-oracle Models
from jwt_oracle.models.revocation_record import (
    NEVER_EXPIRES,
    RevocationRecord,
    revocation_table,
)

__all__ = [
    "NEVER_EXPIRES",
    "RevocationRecord",
    "revocation_table",
]
