import pytest

from sye_aws import CloudSession, Settings


def test_clients_are_cached_per_service_and_region(session):
    assert session.client("ec2", "eu-west-1") is session.client("ec2", "eu-west-1")
    assert session.client("ec2", "eu-west-1") is not session.client("ec2", "us-west-2")
    assert session.client("efs", "eu-west-1") is not session.client("ec2", "eu-west-1")


def test_adapters_carry_their_region(session):
    assert session.ec2("us-west-2").location == "us-west-2"
    assert session.efs("us-west-2").location == "us-west-2"
    assert session.tagging("us-west-2").location == "us-west-2"


def test_one_election_lock_per_cluster(session):
    assert session.election_lock("a") is session.election_lock("a")
    assert session.election_lock("a") is not session.election_lock("b")


def test_from_settings_uses_home_region():
    session = CloudSession.from_settings(
        Settings(home_region="eu-north-1", endpoint_url="http://localhost:4566")
    )

    assert session.home_region == "eu-north-1"


@pytest.mark.asyncio
async def test_regions_are_listed_from_home_region(cloud, session):
    assert await session.regions() == sorted(cloud.regions)
    assert [loc for loc, op, _ in cloud.calls if op == "describe_regions"] == [
        "us-east-1"
    ]
