import logging

import pytest

from sye_aws import CloudSession
from sye_aws.config import DEFAULT_GROUP
from sye_aws.errors import ErrorKind, ProviderError
from sye_aws.region import region_add
from sye_aws.teardown import _ignore_missing, teardown_region
from tests.unit.conftest import CLUSTER_ID, CORE_LOCATION, OTHER_LOCATION
from tests.unit.fakes import FakeCloud

CLUSTER_TAGS = [
    {"Key": "SyeClusterId", "Value": CLUSTER_ID},
    {"Key": "SyeCluster_sye-test", "Value": ""},
]


@pytest.mark.asyncio
async def test_teardown_removes_every_resource(cloud, session, settings):
    await region_add(CLUSTER_ID, CORE_LOCATION, session, settings)

    await teardown_region(session, CLUSTER_ID, CORE_LOCATION, settings)

    assert cloud.resource_count(CORE_LOCATION) == 0


@pytest.mark.asyncio
async def test_teardown_of_partial_region(cloud, session, settings):
    # Network, one subnet and one group: a build that failed early
    raw_ec2 = cloud.client_factory("ec2", CORE_LOCATION)
    vpc = raw_ec2.create_vpc(CidrBlock="10.0.0.0/16", AmazonProvidedIpv6CidrBlock=True)
    vpc_id = vpc["Vpc"]["VpcId"]
    subnet_id = raw_ec2.create_subnet(
        VpcId=vpc_id, AvailabilityZone="eu-west-1a", CidrBlock="10.0.0.0/20"
    )["Subnet"]["SubnetId"]
    group_id = raw_ec2.create_security_group(
        VpcId=vpc_id, GroupName=DEFAULT_GROUP, Description="default"
    )["GroupId"]
    raw_ec2.create_tags(Resources=[vpc_id, subnet_id, group_id], Tags=CLUSTER_TAGS)

    await teardown_region(session, CLUSTER_ID, CORE_LOCATION, settings)

    assert cloud.resource_count(CORE_LOCATION) == 0


@pytest.mark.asyncio
async def test_teardown_removes_detached_gateways(cloud, session, settings):
    await region_add(CLUSTER_ID, CORE_LOCATION, session, settings)
    # A gateway created and tagged by a run that stopped before attaching it
    raw_ec2 = cloud.client_factory("ec2", CORE_LOCATION)
    gateway_id = raw_ec2.create_internet_gateway()["InternetGateway"]["InternetGatewayId"]
    raw_ec2.create_tags(Resources=[gateway_id], Tags=CLUSTER_TAGS)

    await teardown_region(session, CLUSTER_ID, CORE_LOCATION, settings)

    assert cloud.resource_count(CORE_LOCATION) == 0


@pytest.mark.asyncio
async def test_detached_gateway_is_removed_without_network(cloud, session, settings):
    raw_ec2 = cloud.client_factory("ec2", CORE_LOCATION)
    ours, theirs = (
        raw_ec2.create_internet_gateway()["InternetGateway"]["InternetGatewayId"]
        for _ in range(2)
    )
    raw_ec2.create_tags(Resources=[ours], Tags=CLUSTER_TAGS)
    raw_ec2.create_tags(Resources=[theirs], Tags=[{"Key": "SyeClusterId", "Value": "other"}])

    await teardown_region(session, CLUSTER_ID, CORE_LOCATION, settings)

    assert list(cloud.state[CORE_LOCATION].internet_gateways) == [theirs]


@pytest.mark.asyncio
async def test_teardown_without_network_warns(cloud, session, settings, caplog):
    with caplog.at_level(logging.WARNING, logger="sye_aws.teardown"):
        await teardown_region(session, CLUSTER_ID, CORE_LOCATION, settings)

    assert "No VPCs found for cluster sye-test in eu-west-1" in caplog.text
    assert not cloud.mutations()


@pytest.mark.asyncio
async def test_repeated_teardown_is_harmless(cloud, session, settings):
    await region_add(CLUSTER_ID, CORE_LOCATION, session, settings)
    await teardown_region(session, CLUSTER_ID, CORE_LOCATION, settings)
    mutations = len(cloud.mutations())

    await teardown_region(session, CLUSTER_ID, CORE_LOCATION, settings)

    assert len(cloud.mutations()) == mutations


@pytest.mark.asyncio
async def test_teardown_skips_file_system_where_unavailable(settings, caplog):
    cloud = FakeCloud(efs_unavailable={OTHER_LOCATION})
    session = CloudSession(client_factory=cloud.client_factory)
    await region_add(CLUSTER_ID, OTHER_LOCATION, session, settings)

    with caplog.at_level(logging.WARNING, logger="sye_aws.teardown"):
        await teardown_region(session, CLUSTER_ID, OTHER_LOCATION, settings)

    assert "EFS not available in region us-west-2" in caplog.text
    assert cloud.resource_count(OTHER_LOCATION) == 0


class TestIgnoreMissing:
    @staticmethod
    async def _raise(kind: ErrorKind) -> None:
        raise ProviderError("delete_subnet", kind, "Code", "message")

    @pytest.mark.asyncio
    async def test_swallows_not_found(self):
        await _ignore_missing(self._raise(ErrorKind.NOT_FOUND), "subnet")

    @pytest.mark.asyncio
    async def test_propagates_other_failures(self):
        with pytest.raises(ProviderError):
            await _ignore_missing(self._raise(ErrorKind.FATAL), "subnet")
