"""Per-region client handles for one provisioning run."""

from __future__ import annotations

import asyncio
from typing import Any, Callable

import boto3

from ..config import DEFAULT_HOME_REGION, Settings
from .ec2 import Ec2Api
from .efs import EfsApi
from .tagging import TaggingApi

ClientFactory = Callable[[str, str], Any]


def boto3_client_factory(endpoint_url: str | None = None) -> ClientFactory:
    """Build boto3 clients from the default credential chain."""
    session = boto3.session.Session()

    def factory(service: str, location: str) -> Any:
        return session.client(service, region_name=location, endpoint_url=endpoint_url)

    return factory


class CloudSession:
    """Entry point to the provider for every builder and teardown step.

    Only clients are kept here; resource state is always re-queried.
    """

    def __init__(
        self,
        client_factory: ClientFactory | None = None,
        home_region: str = DEFAULT_HOME_REGION,
    ) -> None:
        self._client_factory = client_factory or boto3_client_factory()
        self.home_region = home_region
        self._clients: dict[tuple[str, str], Any] = {}
        self._election_locks: dict[str, asyncio.Lock] = {}

    @classmethod
    def from_settings(cls, settings: Settings) -> "CloudSession":
        return cls(
            client_factory=boto3_client_factory(settings.endpoint_url),
            home_region=settings.home_region,
        )

    def client(self, service: str, location: str) -> Any:
        key = (service, location)
        if key not in self._clients:
            self._clients[key] = self._client_factory(service, location)
        return self._clients[key]

    def ec2(self, location: str) -> Ec2Api:
        return Ec2Api(self.client("ec2", location), location)

    def efs(self, location: str) -> EfsApi:
        return EfsApi(self.client("efs", location), location)

    def tagging(self, location: str) -> TaggingApi:
        return TaggingApi(self.client("resourcegroupstaggingapi", location), location)

    async def regions(self) -> list[str]:
        """Regions enabled for the account."""
        return await self.ec2(self.home_region).regions()

    def election_lock(self, cluster_id: str) -> asyncio.Lock:
        """Serializes core-region election for a cluster within this process."""
        if cluster_id not in self._election_locks:
            self._election_locks[cluster_id] = asyncio.Lock()
        return self._election_locks[cluster_id]
