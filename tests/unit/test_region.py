import logging

import pytest

from sye_aws import CloudSession, RegionNotFound, tags
from sye_aws.config import DEFAULT_GROUP, MOUNT_TARGET_GROUP, SECURITY_GROUP_CATALOG
from sye_aws.region import (
    cluster_delete,
    cluster_regions,
    describe_region,
    region_add,
    region_delete,
)
from tests.unit.conftest import CLUSTER_ID, CORE_LOCATION, OTHER_LOCATION
from tests.unit.fakes import FakeCloud


async def _default_group_sources(session, region) -> frozenset[str]:
    groups = await tags.security_groups(
        session.ec2(region.location), CLUSTER_ID, region.vpc_id
    )
    return groups[DEFAULT_GROUP].ipv6_ingress_cidrs


class TestRegionAdd:
    @pytest.mark.asyncio
    async def test_returns_region_descriptor(self, cloud, session, settings):
        region = await region_add(CLUSTER_ID, CORE_LOCATION, session, settings)

        assert region.location == CORE_LOCATION
        assert region.vpc_id in cloud.state[CORE_LOCATION].vpcs
        assert [s.name for s in region.subnets] == ["sye-test-a", "sye-test-b", "sye-test-c"]
        assert len(region.ipv6_cidr_blocks) == 3
        assert set(region.security_groups) == {*SECURITY_GROUP_CATALOG, MOUNT_TARGET_GROUP}
        assert region.to_dict()["subnets"][0]["name"] == "sye-test-a"

    @pytest.mark.asyncio
    async def test_second_run_changes_nothing(self, cloud, session, settings):
        first = await region_add(CLUSTER_ID, CORE_LOCATION, session, settings)
        mutations = len(cloud.mutations())

        second = await region_add(CLUSTER_ID, CORE_LOCATION, session, settings)

        assert second == first
        assert cloud.mutations()[mutations:] == []

    @pytest.mark.asyncio
    async def test_without_shared_file_system(self, cloud, session, settings):
        settings = settings.model_copy(update={"shared_file_system": False})

        region = await region_add(CLUSTER_ID, CORE_LOCATION, session, settings)

        assert MOUNT_TARGET_GROUP not in region.security_groups
        assert not [loc for loc, op, _ in cloud.calls if op == "describe_file_systems"]

    @pytest.mark.asyncio
    async def test_region_without_file_system_service(self, settings, caplog):
        cloud = FakeCloud(efs_unavailable={OTHER_LOCATION})
        session = CloudSession(client_factory=cloud.client_factory)

        with caplog.at_level(logging.WARNING, logger="sye_aws.region"):
            region = await region_add(CLUSTER_ID, OTHER_LOCATION, session, settings)

        assert (
            "EFS not available in region us-west-2. /sharedData will not be available."
            in caplog.text
        )
        assert MOUNT_TARGET_GROUP not in region.security_groups
        assert not cloud.state[OTHER_LOCATION].file_systems

    @pytest.mark.asyncio
    async def test_slow_file_system_does_not_fail_region(self, cloud, session, settings):
        cloud.settle_polls["file_system"] = 10**9
        settings = settings.model_copy(update={"file_system_timeout": 0.05})

        region = await region_add(CLUSTER_ID, CORE_LOCATION, session, settings)

        assert len(region.subnets) == 3
        assert len(cloud.state[CORE_LOCATION].file_systems) == 1
        assert not cloud.state[CORE_LOCATION].mount_targets

    @pytest.mark.asyncio
    async def test_peers_new_region_with_core(self, session, settings):
        core = await region_add(CLUSTER_ID, CORE_LOCATION, session, settings)
        other = await region_add(CLUSTER_ID, OTHER_LOCATION, session, settings)

        assert await _default_group_sources(session, core) == set(
            core.ipv6_cidr_blocks + other.ipv6_cidr_blocks
        )
        assert await _default_group_sources(session, other) == set(core.ipv6_cidr_blocks)


@pytest.mark.asyncio
async def test_describe_region_matches_region_add(session, settings):
    added = await region_add(CLUSTER_ID, CORE_LOCATION, session, settings)

    assert await describe_region(session, CLUSTER_ID, CORE_LOCATION) == added


@pytest.mark.asyncio
async def test_describe_unknown_region(session):
    with pytest.raises(RegionNotFound):
        await describe_region(session, CLUSTER_ID, OTHER_LOCATION)


@pytest.mark.asyncio
async def test_deleting_region_revokes_core_rules_first(cloud, session, settings):
    core = await region_add(CLUSTER_ID, CORE_LOCATION, session, settings)
    other = await region_add(CLUSTER_ID, OTHER_LOCATION, session, settings)
    calls_before = len(cloud.calls)

    await region_delete(CLUSTER_ID, OTHER_LOCATION, session, settings)

    calls = cloud.calls[calls_before:]
    for subnet in other.subnets:
        revoke = next(
            i
            for i, (loc, op, kwargs) in enumerate(calls)
            if loc == CORE_LOCATION
            and op == "revoke_security_group_ingress"
            and kwargs["IpPermissions"][0]["Ipv6Ranges"][0]["CidrIpv6"]
            == subnet.ipv6_cidr_block
        )
        delete = next(
            i
            for i, (loc, op, kwargs) in enumerate(calls)
            if op == "delete_subnet" and kwargs["SubnetId"] == subnet.id
        )
        assert revoke < delete

    assert cloud.resource_count(OTHER_LOCATION) == 0
    assert await _default_group_sources(session, core) == set(core.ipv6_cidr_blocks)


@pytest.mark.asyncio
async def test_cluster_regions(session, settings):
    assert await cluster_regions(session, CLUSTER_ID) == []

    await region_add(CLUSTER_ID, OTHER_LOCATION, session, settings)
    await region_add(CLUSTER_ID, CORE_LOCATION, session, settings)

    assert await cluster_regions(session, CLUSTER_ID) == [CORE_LOCATION, OTHER_LOCATION]


@pytest.mark.asyncio
async def test_cluster_delete_tears_down_core_last(cloud, session, settings):
    await region_add(CLUSTER_ID, CORE_LOCATION, session, settings)
    await region_add(CLUSTER_ID, OTHER_LOCATION, session, settings)

    deleted = await cluster_delete(CLUSTER_ID, session, settings)

    assert deleted == [CORE_LOCATION, OTHER_LOCATION]
    vpc_deletions = [loc for loc, op, _ in cloud.calls if op == "delete_vpc"]
    assert vpc_deletions == [OTHER_LOCATION, CORE_LOCATION]
    assert cloud.resource_count(CORE_LOCATION) == 0
    assert cloud.resource_count(OTHER_LOCATION) == 0
    assert await cluster_regions(session, CLUSTER_ID) == []
