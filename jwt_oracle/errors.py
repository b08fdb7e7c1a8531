"""Exceptions raised by jwt-oracle."""

from datetime import datetime


class JWTOracleError(Exception):
    """Base jwt-oracle error."""

    pass


class SigningError(JWTOracleError):
    """Key material, algorithm or options are unusable for signing."""

    pass


class VerificationError(JWTOracleError):
    """Token failed cryptographic or claim verification."""

    pass


class SignatureInvalidError(VerificationError):
    """Token signature does not match the key."""

    pass


class MalformedTokenError(VerificationError):
    """Token cannot be parsed."""

    pass


class TokenExpiredError(VerificationError):
    """Token's own exp claim is in the past."""

    def __init__(self, message: str = "jwt expired", expired_at: datetime | None = None):
        super().__init__(message)
        self.expired_at = expired_at


class TokenNotActiveError(VerificationError):
    """Token's nbf claim is in the future."""

    def __init__(self, message: str = "jwt not active", not_before: datetime | None = None):
        super().__init__(message)
        self.not_before = not_before


class ClaimValidationError(VerificationError):
    """Audience, issuer, subject or algorithm does not match what was expected."""

    pass


class TokenInvalidError(JWTOracleError):
    """Authentic token that cannot be tracked individually."""

    def __init__(self, message: str = "jti is missing"):
        super().__init__(message)


class TokenDestroyedError(JWTOracleError):
    """Authentic token whose revocation record is gone or expired."""

    def __init__(self, message: str = "token has been destroyed"):
        super().__init__(message)


class StoreError(JWTOracleError):
    """Revocation store failure."""

    pass


class DuplicateKeyError(StoreError):
    """A revocation record already exists for this key."""

    def __init__(self, key: str):
        super().__init__(f"Revocation record already exists: {key}")
        self.key = key
