"""
Claims token serialization.

A claims record (a row of the shape designated as the claims type) is
turned into a signed JSON Web Token. This module assembles the payload and
fills in default audience, issuer and expiry; signing itself is delegated
to PyJWT or to a caller-supplied signer.

Invariants:
    - Every declared claims column is copied verbatim, except ``exp``
    - ``exp`` is converted to a float when truthy and dropped otherwise; a
      value that is not numeric raises ValueError naming the column
    - Defaults never override an explicit claim: payload value first, then
      the configured sign options, then the fixed default
    - A missing secret fails the serialization call, not the schema build

How to change safely:
    - Changing a fixed default changes what verifiers must accept; keep
      DEFAULT_AUDIENCE and DEFAULT_ISSUER stable
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import timedelta
from typing import TYPE_CHECKING, Any, Callable, Iterable, Mapping, Optional, Sequence, Union

import jwt

from .schema.types import Capability, EntityShape

if TYPE_CHECKING:
    from .config import Settings

logger = logging.getLogger(__name__)

DEFAULT_AUDIENCE = "postgraphile"
DEFAULT_ISSUER = "postgraphile"
DEFAULT_EXPIRES_IN = timedelta(days=1)
EXPIRY_CLAIM = "exp"

Signer = Callable[[dict[str, Any], str, "SignOptions"], str]


class ClaimsConfigurationError(Exception):
    """Claims token signing is not configured (e.g. no secret)."""
    pass


def _seconds(value: Union[int, float, timedelta]) -> float:
    if isinstance(value, timedelta):
        return value.total_seconds()
    return float(value)


@dataclass(frozen=True)
class SignOptions:
    """Global signing defaults.

    Attributes:
        algorithm: JWS algorithm passed to the signer
        audience: Default ``aud`` when the record has none
        issuer: Default ``iss`` when the record has none
        expires_in: Default lifetime (seconds or timedelta) when the record
            has no ``exp``
        subject: ``sub`` to set when the record has none
        not_before: Seconds from now before which the token is invalid
        key_id: ``kid`` header value
    """

    algorithm: str = "HS256"
    audience: Optional[str] = None
    issuer: Optional[str] = None
    expires_in: Union[int, float, timedelta, None] = None
    subject: Optional[str] = None
    not_before: Union[int, float, timedelta, None] = None
    key_id: Optional[str] = None


def sign_with_pyjwt(payload: dict[str, Any], secret: str, options: SignOptions) -> str:
    """Default signer: HMAC/RSA/EC signing through PyJWT."""
    headers = {"kid": options.key_id} if options.key_id else None
    return jwt.encode(payload, secret, algorithm=options.algorithm, headers=headers)


class ClaimsSerializer:
    """Serializes claims records of one shape into signed tokens.

    Example:
        >>> serializer = ClaimsSerializer(("role", "user_id", "exp"), secret="s3cret")
        >>> serializer.assemble_payload({"role": "admin", "user_id": 7, "exp": None})
        {'role': 'admin', 'user_id': 7, 'aud': 'postgraphile', 'iss': 'postgraphile', 'exp': ..., 'iat': ...}
    """

    def __init__(
        self,
        columns: Sequence[str],
        secret: Optional[str],
        sign_options: Optional[SignOptions] = None,
        signer: Optional[Signer] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.columns = tuple(columns)
        self.secret = secret
        self.sign_options = sign_options or SignOptions()
        self.signer = signer or sign_with_pyjwt
        self.clock = clock

    def assemble_payload(self, record: Mapping[str, Any]) -> dict[str, Any]:
        """Build the token payload for a record, defaults included."""
        payload: dict[str, Any] = {}
        for column in self.columns:
            if column == EXPIRY_CLAIM:
                value = record.get(column)
                if value:
                    try:
                        payload[column] = float(value)
                    except (TypeError, ValueError) as e:
                        raise ValueError(
                            f"Claims column '{column}' must be a numeric timestamp, got {value!r}"
                        ) from e
            else:
                payload[column] = record.get(column)

        options = self.sign_options
        now = self.clock()

        if not payload.get("aud"):
            payload["aud"] = options.audience or DEFAULT_AUDIENCE
        if not payload.get("iss"):
            payload["iss"] = options.issuer or DEFAULT_ISSUER
        if not payload.get(EXPIRY_CLAIM):
            expires_in = options.expires_in if options.expires_in else DEFAULT_EXPIRES_IN
            payload[EXPIRY_CLAIM] = int(now + _seconds(expires_in))

        payload.setdefault("iat", int(now))
        if options.subject and not payload.get("sub"):
            payload["sub"] = options.subject
        if options.not_before is not None and "nbf" not in payload:
            payload["nbf"] = int(now + _seconds(options.not_before))
        return payload

    def serialize(self, record: Mapping[str, Any]) -> str:
        """Sign a claims record into a compact token.

        Raises:
            ClaimsConfigurationError: If no secret is configured
        """
        if not self.secret:
            raise ClaimsConfigurationError(
                "Cannot serialize claims token: no JWT secret configured"
            )
        payload = self.assemble_payload(record)
        return self.signer(payload, self.secret, self.sign_options)


def find_claims_shape(
    shapes: Iterable[EntityShape],
    jwt_type: Optional[tuple[str, str]] = None,
) -> Optional[EntityShape]:
    """Find the shape serialized as a claims token.

    A shape qualifies when its (namespace, name) equals jwt_type or when it
    declares the jwt capability. The first match wins.
    """
    for shape in shapes:
        if jwt_type is not None and (shape.namespace, shape.name) == jwt_type:
            return shape
        if Capability.JWT in shape.capabilities:
            return shape
    return None


def claims_serializer_for(
    shapes: Iterable[EntityShape],
    settings: Settings,
    signer: Optional[Signer] = None,
) -> Optional[ClaimsSerializer]:
    """Build the claims serializer for a schema build, if it has a claims type."""
    shape = find_claims_shape(shapes, settings.jwt_type_parts())
    if shape is None:
        return None
    logger.debug(f"Claims token type: {shape.qualified_name}")
    return ClaimsSerializer(
        shape.columns,
        secret=settings.jwt_secret,
        sign_options=settings.sign_options(),
        signer=signer,
    )
