"""Lifecycle controller factory.

Provides :func:`lifecycle_factory`, the single entry-point for building a
:class:`~powerlpar.lifecycle.LifecycleController` wired to a provider's
instance client.  The provider name selects both the config model and the
client class.
"""

from typing import Any, Optional

from powerlpar.base import InstanceClientBlueprint, existing_cloud_providers
from powerlpar.base.config import LifecycleTimeouts, validate_config
from powerlpar.ibm.instance_client import PowerInstanceClient
from powerlpar.lifecycle.controller import LifecycleController


# cloud_provider -> instance client class
_CLIENT_REGISTRY: dict[str, type[InstanceClientBlueprint]] = {
    "ibm": PowerInstanceClient,
}


def lifecycle_factory(
    cloud_provider: existing_cloud_providers,
    config: dict,
    timeouts: Optional[dict[str, Any]] = None,
) -> LifecycleController:
    """
    Build a lifecycle controller for the given cloud provider.
    Args:
        cloud_provider: The cloud provider (e.g., 'ibm').
        config: Configuration dictionary for the provider's instance client.
        timeouts: Optional per-operation budgets in seconds
            (``create``, ``update``, ``delete``).
    Returns:
        A controller whose client is configured from *config*.
    Raises:
        ValueError: If the cloud provider is not supported.
        pydantic.ValidationError: If the config or timeouts are invalid.
    """
    if cloud_provider not in _CLIENT_REGISTRY:
        raise ValueError(f"Unsupported cloud provider: {cloud_provider}")

    client_class = _CLIENT_REGISTRY[cloud_provider]
    configObj = validate_config(cloud_provider, config)
    return LifecycleController(
        client_class(configObj),
        LifecycleTimeouts(**(timeouts or {})),
    )
