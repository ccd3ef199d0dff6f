"""Tagging contract and tag-filtered discovery.

Tags are the only record of what belongs to a cluster: every resource this
package creates carries ``Name``, ``SyeClusterId=<id>`` and ``SyeCluster_<id>``,
and every lookup below filters on them instead of remembering identifiers.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Mapping

from .config import CLUSTER_ID_TAG, NAME_TAG, cluster_tag_key, core_region_tag_key
from .errors import RegionNotFound
from .provider import (
    CloudSession,
    Ec2Api,
    InternetGateway,
    RouteTable,
    SecurityGroup,
    Subnet,
    TaggedResource,
    Vpc,
)

logger = logging.getLogger(__name__)


def cluster_tags(
    cluster_id: str, name: str, extra_tags: Mapping[str, str] | None = None
) -> dict[str, str]:
    return {
        NAME_TAG: name,
        CLUSTER_ID_TAG: cluster_id,
        cluster_tag_key(cluster_id): "",
        **(extra_tags or {}),
    }


async def tag_resource(
    ec2: Ec2Api,
    resource_id: str,
    cluster_id: str,
    name: str,
    extra_tags: Mapping[str, str] | None = None,
) -> None:
    await ec2.create_tags([resource_id], cluster_tags(cluster_id, name, extra_tags))


def _cluster_filter(cluster_id: str) -> dict:
    return {"Name": f"tag:{CLUSTER_ID_TAG}", "Values": [cluster_id]}


def _vpc_filter(vpc_id: str) -> dict:
    return {"Name": "vpc-id", "Values": [vpc_id]}


async def find_cluster_vpcs(ec2: Ec2Api, cluster_id: str) -> list[Vpc]:
    return await ec2.find_vpcs(
        [{"Name": "tag-key", "Values": [cluster_tag_key(cluster_id)]}]
    )


async def get_cluster_vpc(ec2: Ec2Api, cluster_id: str) -> Vpc:
    """Return the cluster's network in the region, raising if there is none."""
    vpcs = await find_cluster_vpcs(ec2, cluster_id)
    if not vpcs:
        raise RegionNotFound(cluster_id, ec2.location)
    if len(vpcs) > 1:
        logger.warning(
            "Expected 1 VPC for cluster %s in %s, but found %d",
            cluster_id,
            ec2.location,
            len(vpcs),
        )
    return vpcs[0]


async def find_subnet(ec2: Ec2Api, vpc_id: str, name: str) -> Subnet | None:
    subnets = await ec2.find_subnets(
        [_vpc_filter(vpc_id), {"Name": f"tag:{NAME_TAG}", "Values": [name]}]
    )
    return subnets[0] if subnets else None


async def find_cluster_subnets(ec2: Ec2Api, cluster_id: str, vpc_id: str) -> list[Subnet]:
    subnets = await ec2.find_subnets([_cluster_filter(cluster_id), _vpc_filter(vpc_id)])
    return sorted(subnets, key=lambda s: s.availability_zone)


async def find_vpc_subnets(ec2: Ec2Api, vpc_id: str) -> list[Subnet]:
    """Every subnet in the network, tagged or not."""
    return await ec2.find_subnets([_vpc_filter(vpc_id)])


async def security_groups(
    ec2: Ec2Api, cluster_id: str, vpc_id: str
) -> dict[str, SecurityGroup]:
    """Cluster security groups in the network, keyed by group name."""
    groups = await ec2.find_security_groups(
        [_cluster_filter(cluster_id), _vpc_filter(vpc_id)]
    )
    return {g.name: g for g in groups}


async def find_attached_internet_gateways(
    ec2: Ec2Api, vpc_id: str
) -> list[InternetGateway]:
    return await ec2.find_internet_gateways(
        [{"Name": "attachment.vpc-id", "Values": [vpc_id]}]
    )


async def find_cluster_internet_gateways(
    ec2: Ec2Api, cluster_id: str
) -> list[InternetGateway]:
    """Tagged gateways in the region, attached or not."""
    return await ec2.find_internet_gateways([_cluster_filter(cluster_id)])


async def find_route_tables(
    ec2: Ec2Api, cluster_id: str, vpc_id: str
) -> list[RouteTable]:
    return await ec2.find_route_tables([_cluster_filter(cluster_id), _vpc_filter(vpc_id)])


async def find_tagged_resources(
    session: CloudSession, tag_key: str, resource_types: list[str]
) -> list[TaggedResource]:
    """Query the tagging index of every enabled region concurrently."""
    regions = await session.regions()
    results = await asyncio.gather(
        *(session.tagging(r).find_resources(tag_key, resource_types) for r in regions)
    )
    return [resource for found in results for resource in found]


async def find_core_region_subnets(
    session: CloudSession, cluster_id: str
) -> list[TaggedResource]:
    return await find_tagged_resources(
        session, core_region_tag_key(cluster_id), ["ec2:subnet"]
    )


async def find_cluster_locations(session: CloudSession, cluster_id: str) -> list[str]:
    """Regions holding a network tagged for the cluster."""
    resources = await find_tagged_resources(
        session, cluster_tag_key(cluster_id), ["ec2:vpc"]
    )
    return sorted({r.location for r in resources})
