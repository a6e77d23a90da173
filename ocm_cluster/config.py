# Copyright (c) 2025 OptimNow - Jean Latiere. All Rights Reserved.
# Licensed under the Proprietary Software License.
# See LICENSE file in the project root for full license information.

"""Configuration management for the OCM cluster reconciliation engine.

This module handles loading and validating configuration from environment
variables with sensible defaults. Settings are read once per process.
"""

from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Engine settings loaded from environment variables.

    Connection settings are only consumed by the OCM client; the
    lifecycle services receive their collaborators already built.
    """

    # Connection Configuration
    ocm_url: str = Field(
        default="https://api.openshift.com",
        description="Base URL of the OpenShift Cluster Manager API",
        validation_alias=AliasChoices("OCM_URL", "OCM_API_URL"),
    )
    ocm_token: Optional[str] = Field(
        default=None,
        description="OCM offline/refresh token or access token",
        validation_alias="OCM_TOKEN",
    )
    ocm_token_url: str = Field(
        default="https://sso.redhat.com/auth/realms/redhat-external/protocol/openid-connect/token",
        description="OpenID token URL used to exchange refresh tokens",
        validation_alias="OCM_TOKEN_URL",
    )
    ocm_client_id: str = Field(
        default="cloud-services",
        description="OpenID client identifier",
        validation_alias="OCM_CLIENT_ID",
    )
    ocm_insecure: bool = Field(
        default=False,
        description="Disable TLS verification of the OCM API (not for production)",
        validation_alias="OCM_INSECURE",
    )
    ocm_trusted_cas: Optional[str] = Field(
        default=None,
        description="Path to a PEM bundle of trusted certificate authorities",
        validation_alias="OCM_TRUSTED_CAS",
    )
    request_timeout_seconds: float = Field(
        default=30.0,
        description="Timeout for a single OCM API request",
        validation_alias="OCM_REQUEST_TIMEOUT_SECONDS",
        gt=0,
    )

    # Logging Configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)",
        validation_alias="LOG_LEVEL",
    )
    transport_log: Optional[str] = Field(
        default=None,
        description="Transport verbosity override; 'DEBUG' enables request logging",
        validation_alias=AliasChoices("TF_LOG", "OCM_DEBUG"),
    )

    # Lifecycle Configuration
    min_version: str = Field(
        default="4.10",
        description="Minimum supported OpenShift version",
        validation_alias="OCM_MIN_VERSION",
    )
    destroy_timeout_minutes: int = Field(
        default=60,
        description="Default time to wait for a cluster to disappear after delete",
        validation_alias="OCM_DESTROY_TIMEOUT_MINUTES",
        gt=0,
    )
    poll_interval_minutes: float = Field(
        default=2.0,
        description="Interval between deletion status polls",
        validation_alias="OCM_POLL_INTERVAL_MINUTES",
        gt=0,
    )
    thumbprint_timeout_seconds: float = Field(
        default=10.0,
        description="Timeout for the TLS handshake against the OIDC issuer",
        validation_alias="OCM_THUMBPRINT_TIMEOUT_SECONDS",
        gt=0,
    )

    model_config = SettingsConfigDict(
        env_prefix="",  # No prefix for environment variables
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def transport_debug(self) -> bool:
        """True when the transport verbosity override asks for debug output."""
        return (self.transport_log or "").strip().upper() == "DEBUG"


def get_settings() -> Settings:
    """
    Get engine settings.

    Loads settings from environment variables and .env file.

    Returns:
        Settings instance with all configuration values
    """
    return Settings()


# Global settings instance (lazy loaded)
_settings: Optional[Settings] = None


def settings() -> Settings:
    """
    Get the global settings instance.

    Creates the settings instance on first call and caches it.

    Returns:
        Global Settings instance
    """
    global _settings
    if _settings is None:
        _settings = get_settings()
    return _settings
