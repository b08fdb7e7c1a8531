"""jwt-oracle: JWTs whose liveness is tracked in a relational store."""

from jwt_oracle.errors import (
    ClaimValidationError,
    DuplicateKeyError,
    JWTOracleError,
    MalformedTokenError,
    SignatureInvalidError,
    SigningError,
    StoreError,
    TokenDestroyedError,
    TokenExpiredError,
    TokenInvalidError,
    TokenNotActiveError,
    VerificationError,
)
from jwt_oracle.models import NEVER_EXPIRES, RevocationRecord, revocation_table
from jwt_oracle.services import (
    InMemoryRevocationStore,
    RevocationStore,
    SQLAlchemyRevocationStore,
    TokenManager,
    TokenOptions,
    generate_id,
)

__version__ = "1.0.0"

__all__ = [
    "NEVER_EXPIRES",
    "ClaimValidationError",
    "DuplicateKeyError",
    "InMemoryRevocationStore",
    "JWTOracleError",
    "MalformedTokenError",
    "RevocationRecord",
    "RevocationStore",
    "SQLAlchemyRevocationStore",
    "SignatureInvalidError",
    "SigningError",
    "StoreError",
    "TokenDestroyedError",
    "TokenExpiredError",
    "TokenInvalidError",
    "TokenManager",
    "TokenNotActiveError",
    "TokenOptions",
    "VerificationError",
    "generate_id",
    "revocation_table",
]
