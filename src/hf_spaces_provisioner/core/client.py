"""Hugging Face Hub client for space management calls."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Protocol

import requests
from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic import ValidationError as PydanticValidationError

from hf_spaces_provisioner.core.errors import DecodeError, RemoteRejected, TransportError
from hf_spaces_provisioner.resources.space import renamed_identity, split_identity

if TYPE_CHECKING:
    from hf_spaces_provisioner.resources.space import SpaceResource

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT = "https://huggingface.co"


class SpaceInfo(BaseModel):
    """Read-only view of a space as returned by ``GET /api/spaces/{id}``."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    author: str
    private: bool
    last_modified: str | None = Field(default=None, alias="lastModified")
    likes: int = 0
    sdk: str | None = None
    hardware: str | None = None
    storage: str | None = None
    sleep_time: int | None = Field(default=None, alias="sleepTime")

    @model_validator(mode="before")
    @classmethod
    def _flatten_runtime(cls, data: Any) -> Any:
        # Newer Hub responses nest live settings under "runtime".
        if not isinstance(data, dict) or not isinstance(data.get("runtime"), dict):
            return data
        runtime = data["runtime"]
        data = dict(data)
        hardware = runtime.get("hardware")
        if "hardware" not in data and isinstance(hardware, dict):
            data["hardware"] = hardware.get("requested") or hardware.get("current")
        if "storage" not in data and runtime.get("storage") is not None:
            storage = runtime["storage"]
            data["storage"] = storage.get("requested") if isinstance(storage, dict) else storage
        if "sleepTime" not in data and runtime.get("gcTimeout") is not None:
            data["sleepTime"] = runtime["gcTimeout"]
        return data

    @property
    def name(self) -> str:
        return split_identity(self.id)[1]


class RemoteResourceClient(Protocol):
    """Capability set the reconciler needs from the Hub."""

    def create(self, spec: SpaceResource) -> str: ...

    def rename(self, identity: str, new_name: str) -> str: ...

    def set_visibility(self, identity: str, private: bool) -> None: ...

    def set_hardware(self, identity: str, tier: str) -> None: ...

    def set_storage(self, identity: str, tier: str) -> None: ...

    def set_sleep_time(self, identity: str, seconds: int) -> None: ...

    def add_secret(self, identity: str, key: str, value: str) -> None: ...

    def remove_secret(self, identity: str, key: str) -> None: ...

    def list_secret_keys(self, identity: str) -> list[str]: ...

    def add_variable(self, identity: str, key: str, value: str) -> None: ...

    def remove_variable(self, identity: str, key: str) -> None: ...

    def list_variable_keys(self, identity: str) -> list[str]: ...

    def delete(self, identity: str) -> None: ...

    def fetch_by_id(self, identity: str) -> SpaceInfo: ...


class HubClient:
    """Synchronous client for the Hub space management endpoints.

    Every call either returns the decoded payload or raises one of
    :class:`TransportError`, :class:`RemoteRejected` or :class:`DecodeError`.
    Nothing is retried.
    """

    def __init__(
        self,
        session: requests.Session,
        *,
        endpoint: str = DEFAULT_ENDPOINT,
        timeout: float | None = None,
    ) -> None:
        self._session = session
        self._endpoint = endpoint.rstrip("/")
        self._timeout = timeout

    @property
    def endpoint(self) -> str:
        return self._endpoint

    def _request(
        self,
        operation: str,
        method: str,
        path: str,
        *,
        body: dict[str, Any] | None = None,
    ) -> requests.Response:
        url = f"{self._endpoint}{path}"
        logger.debug("%s %s (%s)", method, url, operation)
        try:
            resp = self._session.request(method, url, json=body, timeout=self._timeout)
        except requests.RequestException as exc:
            raise TransportError(operation, str(exc)) from exc
        logger.debug("%s %s -> %d", method, url, resp.status_code)
        if not 200 <= resp.status_code < 300:
            raise RemoteRejected(operation, resp.status_code, resp.text)
        return resp

    @staticmethod
    def _decode(operation: str, resp: requests.Response) -> Any:
        try:
            return resp.json()
        except ValueError as exc:
            raise DecodeError(operation, str(exc)) from exc

    # -- repository lifecycle ------------------------------------------------

    def create(self, spec: SpaceResource) -> str:
        body: dict[str, Any] = {"type": "space", "name": spec.name}
        optional = {
            "private": spec.private,
            "sdk": spec.sdk,
            "template": spec.template,
            "hardware": spec.hardware,
            "storage": spec.storage,
            "sleepTime": spec.sleep_time,
        }
        body.update({k: v for k, v in optional.items() if v is not None})

        resp = self._request("create space", "POST", "/api/repos/create", body=body)
        data = self._decode("create space", resp)
        identity = data.get("name") if isinstance(data, dict) else None
        if not isinstance(identity, str) or not identity:
            raise DecodeError("create space", "missing space name in response")
        logger.info("Created space %s", identity)
        return identity

    def rename(self, identity: str, new_name: str) -> str:
        to_repo = renamed_identity(identity, new_name)
        self._request(
            "rename space",
            "POST",
            "/api/repos/move",
            body={"fromRepo": identity, "toRepo": to_repo, "type": "space"},
        )
        logger.info("Renamed space %s -> %s", identity, to_repo)
        return to_repo

    def delete(self, identity: str) -> None:
        owner, name = split_identity(identity)
        body: dict[str, Any] = {"type": "space", "name": name}
        if owner:
            body["organization"] = owner
        self._request("delete space", "DELETE", "/api/repos/delete", body=body)
        logger.info("Deleted space %s", identity)

    def fetch_by_id(self, identity: str) -> SpaceInfo:
        resp = self._request("read space", "GET", f"/api/spaces/{identity}")
        data = self._decode("read space", resp)
        try:
            return SpaceInfo.model_validate(data)
        except PydanticValidationError as exc:
            raise DecodeError("read space", str(exc)) from exc

    # -- settings ------------------------------------------------------------

    def set_visibility(self, identity: str, private: bool) -> None:
        self._request(
            "update space visibility",
            "PUT",
            f"/api/spaces/{identity}/settings",
            body={"private": private},
        )

    def _set_runtime(
        self, operation: str, identity: str, setting: str, body: dict[str, Any]
    ) -> None:
        # The Hub answers with the updated runtime; a body that is not JSON is an error.
        resp = self._request(operation, "POST", f"/api/spaces/{identity}/{setting}", body=body)
        self._decode(operation, resp)

    def set_hardware(self, identity: str, tier: str) -> None:
        self._set_runtime("update space hardware", identity, "hardware", {"flavor": tier})

    def set_storage(self, identity: str, tier: str) -> None:
        self._set_runtime("update space storage", identity, "storage", {"tier": tier})

    def set_sleep_time(self, identity: str, seconds: int) -> None:
        self._set_runtime("update space sleep time", identity, "sleeptime", {"seconds": seconds})

    # -- secrets and variables -----------------------------------------------

    def _add_entry(self, kind: str, identity: str, key: str, value: str) -> None:
        self._request(
            f"add {kind}",
            "POST",
            f"/api/spaces/{identity}/{kind}s",
            body={"key": key, "value": value},
        )

    def _remove_entry(self, kind: str, identity: str, key: str) -> None:
        self._request(
            f"delete {kind}",
            "DELETE",
            f"/api/spaces/{identity}/{kind}s",
            body={"key": key},
        )

    def _list_keys(self, kind: str, identity: str) -> list[str]:
        operation = f"list {kind}s"
        resp = self._request(operation, "GET", f"/api/spaces/{identity}/{kind}s")
        data = self._decode(operation, resp)
        if isinstance(data, dict):
            return sorted(data)
        if isinstance(data, list) and all(
            isinstance(item, dict) and isinstance(item.get("key"), str) for item in data
        ):
            return sorted(item["key"] for item in data)
        raise DecodeError(operation, f"unexpected payload type {type(data).__name__}")

    def add_secret(self, identity: str, key: str, value: str) -> None:
        self._add_entry("secret", identity, key, value)

    def remove_secret(self, identity: str, key: str) -> None:
        self._remove_entry("secret", identity, key)

    def list_secret_keys(self, identity: str) -> list[str]:
        return self._list_keys("secret", identity)

    def add_variable(self, identity: str, key: str, value: str) -> None:
        self._add_entry("variable", identity, key, value)

    def remove_variable(self, identity: str, key: str) -> None:
        self._remove_entry("variable", identity, key)

    def list_variable_keys(self, identity: str) -> list[str]:
        return self._list_keys("variable", identity)
