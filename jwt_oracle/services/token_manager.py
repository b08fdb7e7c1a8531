"""Token lifecycle - issue, verify and revoke JWTs tracked by jti."""

import logging
import math
import time
from collections.abc import Callable, Mapping
from typing import Any

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from jwt_oracle.core import settings as default_settings
from jwt_oracle.core.config import Settings
from jwt_oracle.core.database import create_engine_from_settings, get_session_maker
from jwt_oracle.core.logging import get_logger
from jwt_oracle.errors import TokenDestroyedError, TokenInvalidError
from jwt_oracle.services.identifiers import DEFAULT_ID_LENGTH, generate_id
from jwt_oracle.services.revocation_store import RevocationStore, SQLAlchemyRevocationStore
from jwt_oracle.services.signing import (
    decode_token,
    resolve_options,
    sign_token,
    validate_option_names,
    verify_token,
)


class TokenManager:
    """Issues JWTs and keeps one revocation record per token identifier.

    A token verifies only while its signature is valid AND its record is
    still live in the store. Revoking a token means deleting its record.

    Args:
        store: Revocation store holding the live records
        key_prefix: Prepended to every jti to form the store key
        secret_or_private_key: Default signing key
        secret_or_public_key: Default verification key (falls back to the
            signing key for symmetric algorithms)
        self_clean: Delete expired records after every operation
        logger: Where debug output goes
        clock: Returns the current epoch time in seconds
        **options: Default TokenOptions for every sign/verify call
    """

    def __init__(
        self,
        store: RevocationStore,
        *,
        key_prefix: str | None = None,
        secret_or_private_key: Any = None,
        secret_or_public_key: Any = None,
        self_clean: bool | None = None,
        logger: logging.Logger | None = None,
        clock: Callable[[], float] = time.time,
        **options: Any,
    ):
        validate_option_names(options)
        self.store = store
        self.key_prefix = (
            key_prefix if key_prefix is not None else default_settings.jwt_oracle_key_prefix
        )
        self.secret_or_private_key = secret_or_private_key
        self.secret_or_public_key = secret_or_public_key
        self.self_clean = (
            self_clean if self_clean is not None else default_settings.jwt_oracle_self_clean
        )
        self.logger = logger or get_logger("token_manager")
        self.clock = clock
        self.options: dict[str, Any] = dict(options)
        # Engine created by from_settings(), disposed by close()
        self._engine: AsyncEngine | None = None

    @classmethod
    def from_settings(
        cls,
        config: Settings | None = None,
        store: RevocationStore | None = None,
        **overrides: Any,
    ) -> "TokenManager":
        """Build a manager from Settings, backed by the configured SQL table.

        With non-default settings the manager owns a new engine; call close()
        when done with it. The default settings share the process-wide engine.
        """
        config = config or default_settings
        engine = None
        if store is None:
            if config is default_settings:
                session_maker = get_session_maker()
            else:
                engine = create_engine_from_settings(config)
                session_maker = async_sessionmaker(
                    engine,
                    class_=AsyncSession,
                    expire_on_commit=False,
                )
            store = SQLAlchemyRevocationStore(session_maker, config.jwt_oracle_table_name)

        kwargs: dict[str, Any] = {
            "key_prefix": config.jwt_oracle_key_prefix,
            "secret_or_private_key": config.jwt_secret_key,
            "secret_or_public_key": config.jwt_public_key,
            "self_clean": config.jwt_oracle_self_clean,
            "algorithm": config.jwt_algorithm,
        }
        kwargs.update(overrides)
        manager = cls(store, **kwargs)
        manager._engine = engine
        return manager

    async def close(self) -> None:
        """Dispose the engine from_settings() created, if any."""
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None

    def get_key(self, jti: str) -> str:
        """Store key for a token identifier."""
        return f"{self.key_prefix}{jti}"

    def _now(self) -> int:
        return math.floor(self.clock())

    async def sign(
        self,
        payload: Mapping[str, Any],
        secret_or_private_key: Any = None,
        **options: Any,
    ) -> str:
        """Sign a token and record its jti as live.

        The caller's jti is kept verbatim; otherwise a random one is
        generated. Raises SigningError before anything is written, and
        DuplicateKeyError if the jti is already tracked.
        """
        jti = payload.get("jti") or generate_id(DEFAULT_ID_LENGTH)
        claims = {**payload, "jti": jti}

        token = sign_token(
            claims,
            secret_or_private_key or self.secret_or_private_key,
            resolve_options(self.options, options),
        )

        # We just produced the token, so its exp is trusted as-is
        decoded = decode_token(token) or {}
        exp = decoded.get("exp")
        key = self.get_key(jti)
        if exp is not None:
            await self.store.insert(key, math.floor(exp))
        else:
            await self.store.insert(key)
        self.logger.debug(
            f"Signed token {key}", extra={"token_key": key, "expired_at": exp}
        )

        await self.cleanup()
        return token

    async def verify(
        self,
        token: str,
        secret_or_public_key: Any = None,
        **options: Any,
    ) -> dict[str, Any]:
        """Verify a token's signature and that its jti is still live.

        Cryptographic failures are raised before the store is consulted.
        A clock_timestamp option also decides whether the record is live.
        Raises TokenInvalidError when the token has no jti and
        TokenDestroyedError when its record is gone or expired.
        """
        secret = secret_or_public_key or self.secret_or_public_key or self.secret_or_private_key
        resolved = resolve_options(self.options, options)
        claims = verify_token(token, secret, resolved)

        jti = claims.get("jti")
        if not jti:
            raise TokenInvalidError("jti is missing")

        key = self.get_key(jti)
        # Liveness is judged on the same clock as exp
        if resolved.clock_timestamp is not None:
            now = math.floor(resolved.clock_timestamp)
        else:
            now = self._now()
        record = await self.store.find_live(key, now)
        if record is None:
            self.logger.debug(f"Rejected destroyed token {key}", extra={"token_key": key})
            raise TokenDestroyedError()

        await self.cleanup()
        return claims

    def decode(self, token: str, complete: bool = False) -> dict[str, Any] | None:
        """Decode without verification. Does not touch the store."""
        return decode_token(token, complete=complete)

    async def destroy(self, jti: str) -> bool:
        """Revoke the token with this jti. Deleting an unknown jti is not an error."""
        key = self.get_key(jti)
        removed = await self.store.delete_by_key(key)
        self.logger.debug(
            f"Destroyed token {key}", extra={"token_key": key, "removed": removed}
        )

        await self.cleanup()
        return True

    async def cleanup(self) -> int:
        """Delete expired records. Never raises; returns the number removed."""
        if not self.self_clean:
            return 0

        try:
            removed = await self.store.delete_expired(self._now())
        except Exception:
            self.logger.exception("Failed to clean up expired revocation records")
            return 0

        if removed > 0:
            self.logger.debug(
                f"Cleaned up {removed} expired revocation records", extra={"removed": removed}
            )
        return removed
