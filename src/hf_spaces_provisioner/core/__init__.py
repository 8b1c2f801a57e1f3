"""Core infrastructure components for hf-spaces-provisioner."""

from hf_spaces_provisioner.core.client import HubClient, RemoteResourceClient, SpaceInfo
from hf_spaces_provisioner.core.errors import DecodeError, RemoteError, RemoteRejected, TransportError
from hf_spaces_provisioner.core.provider import HubProvider, TokenAuth
from hf_spaces_provisioner.core.state import SpaceState, State

__all__ = [
    "DecodeError",
    "HubClient",
    "HubProvider",
    "RemoteError",
    "RemoteRejected",
    "RemoteResourceClient",
    "SpaceInfo",
    "SpaceState",
    "State",
    "TokenAuth",
    "TransportError",
]
