"""
Pydantic configuration models for provider configs and operation timeouts.

Validates provider configs at initialization time instead of
silently passing bad values to the HTTP client.
"""

from __future__ import annotations

import os
from typing import Any
from pydantic import BaseModel, ConfigDict, Field, model_validator


class IBMPowerConfig(BaseModel):
    """Configuration for the IBM Power Virtual Server API.

    Values are resolved in order:
    1. Explicit values passed in the config dict.
    2. Environment variables (IBMCLOUD_API_KEY / IC_API_KEY,
       IBMCLOUD_IAM_TOKEN / IC_IAM_TOKEN, IBMCLOUD_REGION / IC_REGION,
       IBMCLOUD_PI_CRN).

    Either an API key (exchanged for an IAM token on demand) or a
    pre-issued IAM token is required, as is a region or explicit endpoint.
    """

    model_config = ConfigDict(extra="forbid")

    region: str | None = Field(default=None, description="Power VS region (e.g. 'us-south')")
    api_key: str | None = Field(default=None, description="IBM Cloud API key")
    iam_token: str | None = Field(default=None, description="Pre-issued IAM bearer token")
    crn: str | None = Field(default=None, description="CRN of the Power VS workspace")
    endpoint: str | None = Field(
        default=None, description="Override for the Power VS API base URL"
    )
    iam_endpoint: str = Field(
        default="https://iam.cloud.ibm.com", description="IAM token service base URL"
    )
    request_timeout: float = Field(
        default=60.0, gt=0, description="Default per-request timeout in seconds"
    )

    @model_validator(mode="before")
    @classmethod
    def resolve_from_env(cls, values: dict[str, Any]) -> dict[str, Any]:
        """Fall back to environment variables for missing credentials."""
        env_map = {
            "api_key": ("IBMCLOUD_API_KEY", "IC_API_KEY"),
            "iam_token": ("IBMCLOUD_IAM_TOKEN", "IC_IAM_TOKEN"),
            "region": ("IBMCLOUD_REGION", "IC_REGION"),
            "crn": ("IBMCLOUD_PI_CRN",),
        }
        for field, env_vars in env_map.items():
            if not values.get(field):
                values[field] = next(
                    (os.environ[var] for var in env_vars if os.environ.get(var)), None
                )
        return values

    @model_validator(mode="after")
    def validate_credentials_and_location(self) -> IBMPowerConfig:
        """Ensure the client can authenticate and knows where to connect."""
        if self.api_key is None and self.iam_token is None:
            raise ValueError(
                "An IBM Cloud api_key or iam_token is required. Set it explicitly or via "
                "IBMCLOUD_API_KEY / IBMCLOUD_IAM_TOKEN environment variable."
            )
        if self.region is None and self.endpoint is None:
            raise ValueError(
                "A Power VS region or endpoint is required. Set it explicitly or via "
                "IBMCLOUD_REGION environment variable."
            )
        return self

    @property
    def base_url(self) -> str:
        """Power VS API base URL for the configured region."""
        if self.endpoint:
            return self.endpoint.rstrip("/")
        return f"https://{self.region}.power-iaas.cloud.ibm.com"


class LifecycleTimeouts(BaseModel):
    """Overall time budget, in seconds, for each lifecycle operation."""

    model_config = ConfigDict(extra="forbid")

    create: float = Field(default=60 * 60, gt=0)
    update: float = Field(default=60 * 60, gt=0)
    delete: float = Field(default=60 * 60, gt=0)


# Map provider names to their config models for dynamic validation
CONFIG_REGISTRY: dict[str, type[BaseModel]] = {
    "ibm": IBMPowerConfig,
}


def validate_config(cloud_provider: str, config: dict) -> BaseModel:
    """Validate and return a typed config model for the given provider.

    Args:
        cloud_provider: The cloud provider name (e.g. 'ibm').
        config: Raw configuration dictionary.

    Returns:
        A validated Pydantic config model.

    Raises:
        ValueError: If the provider is unknown.
        pydantic.ValidationError: If the config is invalid.
    """
    model = CONFIG_REGISTRY.get(cloud_provider)
    if model is None:
        raise ValueError(f"No config model registered for provider: {cloud_provider}")
    return model(**config)


__all__ = [
    "IBMPowerConfig",
    "LifecycleTimeouts",
    "CONFIG_REGISTRY",
    "validate_config",
]
