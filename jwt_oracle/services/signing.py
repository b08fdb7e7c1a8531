"""Signing and verification of JWTs on top of PyJWT.

Claim options mirror the usual JWT library knobs: relative ``expires_in`` /
``not_before`` durations are turned into ``exp`` / ``nbf`` claims at sign
time, and ``audience`` / ``issuer`` / ``subject`` are written at sign time and
enforced at verify time.
"""

import math
import re
import time
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, fields
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt
from jwt.exceptions import PyJWTError

from jwt_oracle.errors import (
    ClaimValidationError,
    MalformedTokenError,
    SignatureInvalidError,
    SigningError,
    TokenExpiredError,
    TokenNotActiveError,
)

Duration = int | float | str | timedelta

_UNIT_SECONDS = {
    **dict.fromkeys(("milliseconds", "millisecond", "msecs", "msec", "ms"), 0.001),
    **dict.fromkeys(("seconds", "second", "secs", "sec", "s"), 1),
    **dict.fromkeys(("minutes", "minute", "mins", "min", "m"), 60),
    **dict.fromkeys(("hours", "hour", "hrs", "hr", "h"), 3600),
    **dict.fromkeys(("days", "day", "d"), 86400),
    **dict.fromkeys(("weeks", "week", "w"), 604800),
    **dict.fromkeys(("years", "year", "yrs", "yr", "y"), 31557600),
}

_DURATION_RE = re.compile(
    r"^(?P<amount>-?(?:\d+)?\.?\d+)\s*(?P<unit>"
    + "|".join(sorted(_UNIT_SECONDS, key=len, reverse=True))
    + r")?$",
    re.IGNORECASE,
)

# Option name -> claim it writes at sign time
_CLAIM_OPTIONS = {
    "expires_in": "exp",
    "not_before": "nbf",
    "audience": "aud",
    "issuer": "iss",
    "subject": "sub",
}


@dataclass(frozen=True)
class TokenOptions:
    """Signing and verification options.

    The field defaults are the lowest precedence layer; see resolve_options().
    """

    algorithm: str = "HS256"
    expires_in: Duration | datetime | None = None
    not_before: Duration | datetime | None = None
    audience: str | Sequence[str] | None = None
    issuer: str | Sequence[str] | None = None
    subject: str | None = None
    keyid: str | None = None
    headers: Mapping[str, Any] | None = None
    no_timestamp: bool = False
    # Verification only
    algorithms: Sequence[str] | None = None
    leeway: float | timedelta = 0
    clock_timestamp: float | None = None
    ignore_expiration: bool = False
    ignore_not_before: bool = False


OPTION_NAMES = frozenset(f.name for f in fields(TokenOptions))


def validate_option_names(options: Mapping[str, Any]) -> None:
    """Raise TypeError for option names TokenOptions does not know."""
    unknown = set(options) - OPTION_NAMES
    if unknown:
        raise TypeError(f"Unknown token option(s): {', '.join(sorted(unknown))}")


def resolve_options(*layers: Mapping[str, Any] | None) -> TokenOptions:
    """Merge option layers, lowest precedence first.

    A later layer wins on every key it contains. A None value removes the
    key, so the TokenOptions default applies again.
    """
    merged: dict[str, Any] = {}
    for layer in layers:
        if not layer:
            continue
        validate_option_names(layer)
        for name, value in layer.items():
            if value is None:
                merged.pop(name, None)
            else:
                merged[name] = value
    return TokenOptions(**merged)


def parse_duration(value: Duration) -> float:
    """Convert a duration to seconds.

    Numbers are seconds, strings use ms-style units ("10h", "2 days", "90s"),
    and a string without a unit is milliseconds.
    """
    if isinstance(value, bool):
        raise TypeError("Duration must be a number, string or timedelta")
    if isinstance(value, timedelta):
        return value.total_seconds()
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        match = _DURATION_RE.match(value.strip())
        if not match:
            raise ValueError(f"Invalid duration: {value!r}")
        unit = (match.group("unit") or "ms").lower()
        return float(match.group("amount")) * _UNIT_SECONDS[unit]
    raise TypeError("Duration must be a number, string or timedelta")


def _numeric_claim(name: str, value: Any) -> int | float:
    """Epoch seconds for a caller supplied iat/exp/nbf claim."""
    if isinstance(value, datetime):
        return int(value.timestamp())
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
        raise SigningError(f'"{name}" should be a number of seconds')
    return value


def _timespan(value: Duration | datetime, timestamp: int | float) -> int:
    """Absolute epoch seconds for a relative duration (or absolute datetime)."""
    if isinstance(value, datetime):
        return int(value.timestamp())
    return math.floor(timestamp + parse_duration(value))


def _leeway_seconds(leeway: float | timedelta) -> float:
    if isinstance(leeway, timedelta):
        return leeway.total_seconds()
    return float(leeway)


def sign_token(
    claims: Mapping[str, Any],
    secret_or_private_key: str | bytes | Any,
    options: TokenOptions,
) -> str:
    """Sign claims into a compact JWT.

    Adds ``iat`` unless ``no_timestamp`` is set and derives ``exp`` / ``nbf``
    relative to it. Raises SigningError when the key, algorithm or options
    cannot produce a token.
    """
    if not secret_or_private_key:
        raise SigningError("secret_or_private_key must have a value")

    payload = dict(claims)
    if payload.get("iat") is None:
        payload.pop("iat", None)
    for claim in ("iat", "exp", "nbf"):
        if claim in payload:
            payload[claim] = _numeric_claim(claim, payload[claim])

    if "iat" in payload:
        timestamp = payload["iat"]
    elif options.clock_timestamp is not None:
        timestamp = math.floor(options.clock_timestamp)
    else:
        timestamp = math.floor(time.time())

    if options.no_timestamp:
        payload.pop("iat", None)
    else:
        payload["iat"] = timestamp

    for option_name, claim in _CLAIM_OPTIONS.items():
        value = getattr(options, option_name)
        if value is None:
            continue
        if claim in payload:
            raise SigningError(
                f'Bad "{option_name}" option: the payload already has an "{claim}" property'
            )
        if claim in ("exp", "nbf"):
            try:
                payload[claim] = _timespan(value, timestamp)
            except (TypeError, ValueError) as e:
                raise SigningError(f'Bad "{option_name}" option: {e}') from e
        else:
            payload[claim] = value

    headers = dict(options.headers or {})
    if options.keyid:
        headers["kid"] = options.keyid

    try:
        token = jwt.encode(
            payload,
            secret_or_private_key,
            algorithm=options.algorithm,
            headers=headers or None,
        )
    except (PyJWTError, NotImplementedError, TypeError, ValueError) as e:
        raise SigningError(f"Unable to sign token: {e}") from e
    # PyJWT 2.x returns str; older type stubs may declare bytes
    return str(token)


def _check_time_claims(claims: Mapping[str, Any], now: float, options: TokenOptions) -> None:
    """exp/nbf checks against a caller supplied clock."""
    leeway = _leeway_seconds(options.leeway)

    if not options.ignore_expiration and "exp" in claims:
        exp = claims["exp"]
        if not isinstance(exp, (int, float)) or isinstance(exp, bool):
            raise MalformedTokenError("Expiration Time claim (exp) must be a number")
        if exp <= now - leeway:
            raise TokenExpiredError(expired_at=datetime.fromtimestamp(exp, tz=UTC))

    if not options.ignore_not_before and "nbf" in claims:
        nbf = claims["nbf"]
        if not isinstance(nbf, (int, float)) or isinstance(nbf, bool):
            raise MalformedTokenError("Not Before claim (nbf) must be a number")
        if nbf > now + leeway:
            raise TokenNotActiveError(not_before=datetime.fromtimestamp(nbf, tz=UTC))


def _claim_datetime(token: str, claim: str) -> datetime | None:
    payload = decode_token(token)
    value = payload.get(claim) if payload else None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return datetime.fromtimestamp(value, tz=UTC)
    return None


def verify_token(
    token: str,
    secret_or_public_key: str | bytes | Any,
    options: TokenOptions,
) -> dict[str, Any]:
    """Verify a token's signature and registered claims and return its payload."""
    if not secret_or_public_key:
        raise SignatureInvalidError("secret or public key must be provided")

    now = options.clock_timestamp
    algorithms = list(options.algorithms) if options.algorithms else [options.algorithm]
    audience = options.audience
    if audience is not None and not isinstance(audience, str):
        audience = list(audience)
    issuer = options.issuer
    if issuer is not None and not isinstance(issuer, str):
        issuer = list(issuer)

    kwargs: dict[str, Any] = {}
    if options.subject is not None:
        kwargs["subject"] = options.subject

    try:
        claims = jwt.decode(
            token,
            secret_or_public_key,
            algorithms=algorithms,
            audience=audience,
            issuer=issuer,
            leeway=options.leeway,
            options={
                # A caller supplied clock replaces PyJWT's own time checks
                "verify_exp": now is None and not options.ignore_expiration,
                "verify_nbf": now is None and not options.ignore_not_before,
                # A future iat is not an error, only exp and nbf gate validity
                "verify_iat": False,
                # aud is only enforced when an audience is expected
                "verify_aud": audience is not None,
            },
            **kwargs,
        )
    except jwt.ExpiredSignatureError as e:
        raise TokenExpiredError(expired_at=_claim_datetime(token, "exp")) from e
    except jwt.ImmatureSignatureError as e:
        raise TokenNotActiveError(not_before=_claim_datetime(token, "nbf")) from e
    except jwt.InvalidSignatureError as e:
        raise SignatureInvalidError("invalid signature") from e
    except (
        jwt.InvalidAudienceError,
        jwt.InvalidIssuerError,
        jwt.InvalidAlgorithmError,
        jwt.MissingRequiredClaimError,
    ) as e:
        raise ClaimValidationError(str(e)) from e
    except (jwt.InvalidKeyError, TypeError, ValueError) as e:
        raise SignatureInvalidError(f"invalid key: {e}") from e
    except jwt.DecodeError as e:
        raise MalformedTokenError(f"jwt malformed: {e}") from e
    except PyJWTError as e:
        raise ClaimValidationError(str(e)) from e

    if now is not None:
        _check_time_claims(claims, now, options)
    return claims


def decode_token(token: str, complete: bool = False) -> dict[str, Any] | None:
    """Decode without verifying anything. Never use the result for trust decisions.

    Returns None when the token cannot be parsed. With complete=True the
    result holds "header", "payload" and "signature".
    """
    try:
        if complete:
            return jwt.decode_complete(token, options={"verify_signature": False})
        return jwt.decode(token, options={"verify_signature": False})
    except PyJWTError:
        return None
