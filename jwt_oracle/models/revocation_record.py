"""Revocation records - one live row per issued token identifier."""

from dataclasses import dataclass

from sqlalchemy import BigInteger, Column, MetaData, String, Table, text

from jwt_oracle.core.database import Base

# Largest value a signed 64-bit BIGINT holds; means "does not expire"
NEVER_EXPIRES = 2**63 - 1


@dataclass(frozen=True)
class RevocationRecord:
    """A token identifier that is still considered live until expired_at."""

    key: str
    expired_at: int = NEVER_EXPIRES

    def is_live(self, now: int) -> bool:
        return self.expired_at >= now


def revocation_table(name: str, metadata: MetaData | None = None) -> Table:
    """Return the revocation table called `name`, defining it on first use.

    The table name is configurable per manager, so the table is built with
    SQLAlchemy Core rather than a fixed declarative model.
    """
    metadata = metadata if metadata is not None else Base.metadata
    existing = metadata.tables.get(name)
    if existing is not None:
        return existing
    return Table(
        name,
        metadata,
        Column("key", String(255), primary_key=True),
        Column(
            "expiredAt",
            BigInteger,
            key="expired_at",
            nullable=False,
            default=NEVER_EXPIRES,
            server_default=text(str(NEVER_EXPIRES)),
            index=True,
        ),
    )
