# jwt-oracle Services
from jwt_oracle.services.identifiers import generate_id
from jwt_oracle.services.memory_store import InMemoryRevocationStore
from jwt_oracle.services.revocation_store import RevocationStore, SQLAlchemyRevocationStore
from jwt_oracle.services.signing import (
    TokenOptions,
    decode_token,
    parse_duration,
    resolve_options,
    sign_token,
    verify_token,
)
from jwt_oracle.services.token_manager import TokenManager

__all__ = [
    "InMemoryRevocationStore",
    "RevocationStore",
    "SQLAlchemyRevocationStore",
    "TokenManager",
    "TokenOptions",
    "decode_token",
    "generate_id",
    "parse_duration",
    "resolve_options",
    "sign_token",
    "verify_token",
]
