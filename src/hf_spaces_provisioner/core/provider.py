"""Hub provider - connection configuration for the Hugging Face Hub."""

from functools import cached_property
from typing import Self

import requests
from pydantic import BaseModel, ConfigDict, SecretStr

from hf_spaces_provisioner import __version__
from hf_spaces_provisioner.core.client import DEFAULT_ENDPOINT, HubClient, RemoteResourceClient


class TokenAuth(BaseModel):
    """Bearer token authentication for the Hub."""

    token: SecretStr


class HubProvider(BaseModel):
    """Connection configuration for the Hub.

    Provide ``auth`` to build an authenticated :class:`HubClient`, or use
    :meth:`from_client` to inject any object implementing the client
    protocol (tests, alternative transports).

    Examples:
        provider = HubProvider(auth=TokenAuth(token="hf_..."))

        provider = HubProvider.from_client(FakeClient())
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    endpoint: str = DEFAULT_ENDPOINT
    auth: TokenAuth | None = None
    timeout: float | None = None

    _injected_client: RemoteResourceClient | None = None

    @classmethod
    def from_client(cls, client: RemoteResourceClient) -> Self:
        """Create a provider around an already constructed client."""
        provider = cls.model_construct()
        provider._injected_client = client
        return provider

    def _session(self) -> requests.Session:
        assert self.auth is not None
        session = requests.Session()
        session.headers["Authorization"] = f"Bearer {self.auth.token.get_secret_value()}"
        session.headers["User-Agent"] = f"hf-spaces-provisioner/{__version__}"
        return session

    @cached_property
    def client(self) -> RemoteResourceClient:
        """Get the Hub client."""
        if self._injected_client is not None:
            return self._injected_client

        if self.auth is None:
            raise ValueError(
                "Either provide auth, or use HubProvider.from_client() to inject a client"
            )

        return HubClient(self._session(), endpoint=self.endpoint, timeout=self.timeout)
