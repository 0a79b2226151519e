"""
Configuration for node identification and claims tokens.

All settings come from environment variables prefixed ``NODEID_`` (or are
passed explicitly). Build options are read once per schema build.

Invariants:
    - Every setting has a default suitable for local development
    - The JWT secret is never logged or included in error messages
    - A missing JWT secret is only an error when a token is serialized

How to change safely:
    - Add new settings with defaults that keep issued identifiers valid
    - Changing v4_use_table_name_for_node_identifier invalidates every
      node ID issued by previous builds
"""

from __future__ import annotations

import logging

from pydantic import Field
from pydantic_settings import BaseSettings

from .claims import SignOptions

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Node identification configuration."""

    # Build options
    v4_use_table_name_for_node_identifier: bool = Field(
        default=False,
        description="Use the pluralized original table name as the node identifier",
    )

    # Claims tokens
    jwt_secret: str | None = Field(default=None, repr=False)
    jwt_algorithm: str = Field(default="HS256")
    jwt_audience: str | None = Field(default=None)
    jwt_issuer: str | None = Field(default=None)
    jwt_expires_in: int | None = Field(default=None, description="Token lifetime in seconds")
    jwt_type: str | None = Field(default=None, description="Claims type as 'schema.type'")

    # Logging
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="text", pattern="^(text|json)$")

    model_config = {"env_prefix": "NODEID_"}

    def sign_options(self) -> SignOptions:
        """Global signing defaults for claims tokens."""
        return SignOptions(
            algorithm=self.jwt_algorithm,
            audience=self.jwt_audience,
            issuer=self.jwt_issuer,
            expires_in=self.jwt_expires_in,
        )

    def jwt_type_parts(self) -> tuple[str, str] | None:
        """Split jwt_type into (namespace, name).

        Raises:
            ValueError: If jwt_type is not of the form 'schema.type'
        """
        if not self.jwt_type:
            return None
        namespace, sep, name = self.jwt_type.partition(".")
        if not sep or not namespace or not name or "." in name:
            raise ValueError(
                f"Invalid jwt_type '{self.jwt_type}'. Expected 'schema.type'"
            )
        return namespace, name

    def log_config(self) -> None:
        """Log configuration (redacting secrets)."""
        logger.info(
            "Node ID configuration loaded",
            extra={
                "v4_use_table_name_for_node_identifier": self.v4_use_table_name_for_node_identifier,
                "jwt_secret_set": bool(self.jwt_secret),
                "jwt_algorithm": self.jwt_algorithm,
                "jwt_type": self.jwt_type,
                "log_level": self.log_level,
            },
        )
