"""IBM Power Virtual Server implementation of the instance client blueprint."""

from __future__ import annotations

import time
from typing import Any, NoReturn

import httpx

from powerlpar.base.config import IBMPowerConfig
from powerlpar.base.exceptions import InstanceApiError, InstanceNotFoundError
from powerlpar.base.instance_client import InstanceAction, InstanceClientBlueprint
from powerlpar.base.models import Address, Instance, InstanceRequest
from powerlpar.base.states import HealthStatus, InstanceStatus

_ERROR_MAP: dict[int, type[InstanceApiError]] = {
    404: InstanceNotFoundError,
}

# Refresh IAM tokens this many seconds before they expire.
_TOKEN_REFRESH_MARGIN = 60

_UPDATE_FIELDS = {
    "name": "serverName",
    "memory": "memory",
    "processors": "processors",
    "processor_type": "procType",
    "pin_policy": "pinPolicy",
}


def _describe(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text
    if isinstance(body, dict):
        return str(body.get("description") or body.get("message") or body.get("error") or body)
    return str(body)


def _handle(response: httpx.Response, msg: str) -> NoReturn:
    exc = _ERROR_MAP.get(response.status_code, InstanceApiError)
    raise exc(
        f"{msg}: HTTP {response.status_code} {_describe(response)}",
        status_code=response.status_code,
    )


def _to_instance(payload: dict[str, Any], cloud_instance_id: str) -> Instance:
    """Map a PVMInstance payload onto :class:`Instance`."""
    networks = payload.get("networks") or []
    raw_addresses = payload.get("addresses") or networks
    health = payload.get("health") or {}
    return Instance(
        cloud_instance_id=cloud_instance_id,
        instance_id=payload["pvmInstanceID"],
        name=payload.get("serverName") or "",
        image_id=payload.get("imageID"),
        status=InstanceStatus(payload.get("status")),
        health=HealthStatus(health.get("status")),
        processor_type=payload.get("procType"),
        system_type=payload.get("sysType"),
        memory=payload.get("memory") or 0.0,
        processors=payload.get("processors") or 0.0,
        min_memory=payload.get("minmem"),
        max_memory=payload.get("maxmem"),
        min_processors=payload.get("minproc"),
        max_processors=payload.get("maxproc"),
        network_ids=[n["networkID"] for n in networks if n and n.get("networkID")],
        volume_ids=payload.get("volumeIDs") or [],
        addresses=[
            Address(
                ip=a.get("ip") or a.get("ipAddress"),
                mac_address=a.get("macAddress"),
                network_id=a.get("networkID"),
                network_name=a.get("networkName"),
                type=a.get("type"),
                external_ip=a.get("externalIP"),
            )
            for a in raw_addresses
            if a
        ],
        pin_policy=payload.get("pinPolicy"),
        migratable=payload.get("migratable"),
        progress=payload.get("progress"),
    )


def _create_body(request: InstanceRequest) -> dict[str, Any]:
    body: dict[str, Any] = {
        "serverName": request.name,
        "imageID": request.image_id,
        "procType": request.processor_type,
        "sysType": request.system_type,
        "memory": request.memory,
        "processors": request.processors,
        "keyPairName": request.ssh_key_name,
        "networkIDs": list(request.network_ids),
        "replicants": request.replicants,
        "replicantNamingScheme": request.replication_scheme,
        "replicantAffinityPolicy": request.replication_policy,
        "userData": request.user_data,
    }
    if request.volume_ids:
        body["volumeIDs"] = list(request.volume_ids)
    if request.pin_policy in ("soft", "hard"):
        body["pinPolicy"] = request.pin_policy
    return body


class PowerInstanceClient(InstanceClientBlueprint):
    """Power VS ``pvm-instances`` API client.

    Attributes:
        config: Validated provider configuration.
        http: httpx client used for every request.
    """

    def __init__(self, config: IBMPowerConfig, http: httpx.Client | None = None) -> None:
        """Initialize the HTTP client.

        Args:
            config: Power VS configuration (region or endpoint, api key or
                IAM token, workspace CRN).
            http: Pre-built httpx client, mainly for tests.
        """
        self.config = config
        self.http = http or httpx.Client(timeout=config.request_timeout)
        self._token: str | None = config.iam_token
        self._token_expires: float | None = None

    def _bearer_token(self) -> str:
        """Return a valid IAM token, exchanging the API key when needed."""
        if self.config.api_key is None:
            if self._token is None:
                raise InstanceApiError("No IAM token or API key configured")
            return self._token
        if (
            self._token is not None
            and self._token_expires is not None
            and time.time() < self._token_expires - _TOKEN_REFRESH_MARGIN
        ):
            return self._token
        try:
            resp = self.http.post(
                f"{self.config.iam_endpoint.rstrip('/')}/identity/token",
                data={
                    "grant_type": "urn:ibm:params:oauth:grant-type:apikey",
                    "apikey": self.config.api_key,
                },
                headers={"Accept": "application/json"},
            )
        except httpx.HTTPError as e:
            raise InstanceApiError("Failed to obtain an IAM token") from e
        if resp.is_error:
            _handle(resp, "Failed to obtain an IAM token")
        try:
            token = resp.json()
            access_token = str(token["access_token"])
            expires_in = float(token.get("expires_in", 3600))
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            raise InstanceApiError(
                f"Failed to obtain an IAM token: malformed response ({e!r})",
                status_code=resp.status_code,
            ) from e
        self._token = access_token
        self._token_expires = time.time() + expires_in
        return self._token

    def _url(self, cloud_instance_id: str, *parts: str) -> str:
        path = "/".join(
            ("pcloud/v1/cloud-instances", cloud_instance_id, "pvm-instances") + parts
        )
        return f"{self.config.base_url}/{path}"

    def _request(
        self,
        method: str,
        url: str,
        msg: str,
        *,
        timeout: float | None = None,
        **kwargs: Any,
    ) -> httpx.Response:
        headers = {
            "Authorization": f"Bearer {self._bearer_token()}",
            "Accept": "application/json",
        }
        if self.config.crn:
            headers["CRN"] = self.config.crn
        try:
            resp = self.http.request(
                method,
                url,
                headers=headers,
                timeout=timeout if timeout is not None else self.config.request_timeout,
                **kwargs,
            )
        except httpx.HTTPError as e:
            raise InstanceApiError(f"{msg}: {e}") from e
        if resp.is_error:
            _handle(resp, msg)
        return resp

    def create_instances(self, request: InstanceRequest) -> list[Instance]:
        """Create ``request.replicants`` instances in one call.

        Returns:
            One snapshot per created instance.

        Raises:
            InstanceApiError: On Power VS API failure.
        """
        resp = self._request(
            "POST",
            self._url(request.cloud_instance_id),
            f"Failed to provision instance '{request.name}'",
            json=_create_body(request),
        )
        payload = resp.json()
        if isinstance(payload, dict):
            payload = [payload]
        return [_to_instance(item, request.cloud_instance_id) for item in payload]

    def get_instance(
        self,
        instance_id: str,
        cloud_instance_id: str,
        *,
        timeout: float | None = None,
    ) -> Instance:
        """Get the current snapshot of one instance.

        Raises:
            InstanceNotFoundError: If the instance does not exist.
        """
        resp = self._request(
            "GET",
            self._url(cloud_instance_id, instance_id),
            f"Failed to get instance '{instance_id}'",
            timeout=timeout,
        )
        return _to_instance(resp.json(), cloud_instance_id)

    def update_instance(
        self,
        instance_id: str,
        cloud_instance_id: str,
        changes: dict[str, Any],
    ) -> dict[str, Any]:
        """Send a partial update (``PUT``) for one instance.

        Args:
            changes: Any of ``name``, ``memory``, ``processors``,
                ``processor_type``, ``pin_policy``.

        Raises:
            ValueError: On an unknown change key.
            InstanceNotFoundError: If the instance does not exist.
        """
        unknown = set(changes) - set(_UPDATE_FIELDS)
        if unknown:
            raise ValueError(f"Unsupported update fields: {sorted(unknown)}")
        body = {_UPDATE_FIELDS[key]: value for key, value in changes.items()}
        resp = self._request(
            "PUT",
            self._url(cloud_instance_id, instance_id),
            f"Failed to update instance '{instance_id}'",
            json=body,
        )
        return resp.json() if resp.content else {}

    def perform_action(
        self, instance_id: str, cloud_instance_id: str, action: InstanceAction
    ) -> None:
        """Request a power action on one instance.

        Raises:
            InstanceNotFoundError: If the instance does not exist.
        """
        self._request(
            "POST",
            self._url(cloud_instance_id, instance_id, "action"),
            f"Failed to {InstanceAction(action).value} instance '{instance_id}'",
            json={"action": InstanceAction(action).value},
        )

    def delete_instance(self, instance_id: str, cloud_instance_id: str) -> None:
        """Request deletion of one instance.

        Raises:
            InstanceNotFoundError: If the instance does not exist.
        """
        self._request(
            "DELETE",
            self._url(cloud_instance_id, instance_id),
            f"Failed to delete instance '{instance_id}'",
        )
