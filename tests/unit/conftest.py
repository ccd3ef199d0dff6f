from __future__ import annotations

import pytest

from sye_aws import CloudSession, RegionDescriptor, Settings, SubnetRef
from sye_aws.security_groups import build_security_groups
from sye_aws.vpc import build_region
from tests.unit.fakes import FakeCloud

CLUSTER_ID = "sye-test"
CORE_LOCATION = "eu-west-1"
OTHER_LOCATION = "us-west-2"


@pytest.fixture
def cloud() -> FakeCloud:
    return FakeCloud()


@pytest.fixture
def session(cloud: FakeCloud) -> CloudSession:
    return CloudSession(client_factory=cloud.client_factory, home_region="us-east-1")


@pytest.fixture
def settings() -> Settings:
    return Settings(
        poll_interval=0,
        file_system_poll_interval=0,
        network_timeout=5,
        file_system_timeout=5,
        mount_target_timeout=5,
        mount_target_delete_timeout=5,
        tag_propagation_timeout=5,
    )


@pytest.fixture
def provision(session: CloudSession, settings: Settings):
    """Build the fabric and security groups of a region, without peering."""

    async def _provision(location: str, cluster_id: str = CLUSTER_ID) -> RegionDescriptor:
        fabric = await build_region(session, cluster_id, location, settings)
        group_ids = await build_security_groups(
            session.ec2(location), cluster_id, fabric.vpc.id
        )
        return RegionDescriptor(
            location=location,
            vpc_id=fabric.vpc.id,
            subnets=[SubnetRef.from_subnet(s) for s in fabric.subnets],
            security_groups=group_ids,
        )

    return _provision
