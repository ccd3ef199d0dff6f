"""Network fabric for one region: VPC, per-zone subnets, gateway and routing."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from .. import tags
from ..config import CLUSTER_ID_TAG, IPV4_ANY, IPV6_ANY, ROUTE_TABLE_NAME, Settings
from ..errors import ProviderError, SyeAwsError
from ..provider import (
    AvailabilityZone,
    CloudSession,
    Ec2Api,
    InternetGateway,
    RouteTable,
    Subnet,
    Vpc,
)
from ..wait import await_condition
from .addressing import zone_cidrs

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NetworkFabric:
    location: str
    vpc: Vpc
    internet_gateway: InternetGateway
    route_table: RouteTable
    subnets: list[Subnet]


def subnet_name(cluster_id: str, zone: AvailabilityZone) -> str:
    return f"{cluster_id}-{zone.suffix}"


async def _wait_for_vpc(ec2: Ec2Api, vpc_id: str, settings: Settings) -> Vpc:
    latest: dict[str, Vpc] = {}

    async def refresh() -> Vpc | None:
        vpc = await ec2.describe_vpc(vpc_id)
        if vpc is not None:
            latest["vpc"] = vpc
        return vpc

    async def ipv6_associated() -> bool:
        vpc = await refresh()
        return vpc is not None and vpc.ipv6_state == "associated"

    async def available() -> bool:
        vpc = await refresh()
        return vpc is not None and vpc.state == "available"

    await await_condition(
        ipv6_associated,
        settings.poll_interval,
        settings.network_timeout,
        f"IPv6 CIDR block of {vpc_id} to be associated",
    )
    await await_condition(
        available,
        settings.poll_interval,
        settings.network_timeout,
        f"{vpc_id} to be available",
    )
    return latest["vpc"]


async def ensure_vpc(
    ec2: Ec2Api, cluster_id: str, settings: Settings
) -> Vpc:
    """Reuse the cluster's tagged VPC or create one, then wait for it to settle."""
    existing = await tags.find_cluster_vpcs(ec2, cluster_id)
    if existing:
        if len(existing) > 1:
            logger.warning(
                "Expected 1 VPC for cluster %s in %s, but found %d",
                cluster_id,
                ec2.location,
                len(existing),
            )
        vpc = existing[0]
        logger.debug("Reusing VPC %s in %s", vpc.id, ec2.location)
    else:
        vpc = await ec2.create_vpc(settings.base_cidr)
        # Tag first so an interrupted run can still discover the VPC
        await tags.tag_resource(ec2, vpc.id, cluster_id, cluster_id)
        await ec2.enable_dns_hostnames(vpc.id)
        logger.info("Created VPC %s (%s) in %s", vpc.id, settings.base_cidr, ec2.location)
    return await _wait_for_vpc(ec2, vpc.id, settings)


async def ensure_internet_gateway(
    ec2: Ec2Api, cluster_id: str, vpc_id: str
) -> InternetGateway:
    gateways = await tags.find_cluster_internet_gateways(ec2, cluster_id)
    for gateway in gateways:
        if vpc_id in gateway.attached_vpc_ids:
            return gateway
    # A gateway left detached by an interrupted run is attached rather than replaced
    detached = [g for g in gateways if not g.attached_vpc_ids]
    if detached:
        gateway = detached[0]
    else:
        gateway = await ec2.create_internet_gateway()
        await tags.tag_resource(ec2, gateway.id, cluster_id, cluster_id)
    await ec2.attach_internet_gateway(gateway.id, vpc_id)
    logger.debug("Attached internet gateway %s to %s", gateway.id, vpc_id)
    return gateway


async def ensure_route_table(
    ec2: Ec2Api, cluster_id: str, vpc_id: str, gateway_id: str
) -> RouteTable:
    """Route table with default IPv4 and IPv6 routes through the gateway."""
    existing = await tags.find_route_tables(ec2, cluster_id, vpc_id)
    if existing:
        route_table = existing[0]
    else:
        route_table = await ec2.create_route_table(vpc_id)
        await tags.tag_resource(ec2, route_table.id, cluster_id, ROUTE_TABLE_NAME)
        logger.debug("Created route table %s in %s", route_table.id, vpc_id)

    missing = []
    if not route_table.has_route(gateway_id, cidr_block=IPV4_ANY):
        missing.append(ec2.create_route(route_table.id, gateway_id, cidr_block=IPV4_ANY))
    if not route_table.has_route(gateway_id, ipv6_cidr_block=IPV6_ANY):
        missing.append(
            ec2.create_route(route_table.id, gateway_id, ipv6_cidr_block=IPV6_ANY)
        )
    await asyncio.gather(*missing)
    return route_table


async def _wait_for_subnet(ec2: Ec2Api, subnet_id: str, settings: Settings) -> Subnet:
    latest: dict[str, Subnet] = {}

    async def available() -> bool:
        subnet = await ec2.describe_subnet(subnet_id)
        if subnet is None:
            return False
        latest["subnet"] = subnet
        return subnet.state == "available"

    await await_condition(
        available,
        settings.poll_interval,
        settings.network_timeout,
        f"subnet {subnet_id} to be available",
    )
    return latest["subnet"]


async def ensure_subnet(
    ec2: Ec2Api,
    cluster_id: str,
    vpc: Vpc,
    zone: AvailabilityZone,
    cidr_blocks: tuple[str, str],
    route_table: RouteTable,
    settings: Settings,
) -> Subnet:
    """Subnet for one zone with its precomputed (IPv4, IPv6) blocks."""
    name = subnet_name(cluster_id, zone)
    subnet = await tags.find_subnet(ec2, vpc.id, name)
    if subnet is None:
        cidr_block, ipv6_cidr_block = cidr_blocks
        matches = await ec2.find_subnets(
            [
                {"Name": "vpc-id", "Values": [vpc.id]},
                {"Name": "cidr-block", "Values": [cidr_block]},
            ]
        )
        # Only a subnet created but never tagged by an interrupted run in this zone
        untagged = [
            s
            for s in matches
            if CLUSTER_ID_TAG not in s.tags and s.availability_zone == zone.name
        ]
        if untagged:
            subnet_id = untagged[0].id
            logger.debug("Adopting untagged subnet %s as %s", subnet_id, name)
        else:
            logger.debug("Creating subnet %s %s %s", name, cidr_block, ipv6_cidr_block)
            created = await ec2.create_subnet(
                vpc.id, zone.name, cidr_block, ipv6_cidr_block
            )
            subnet_id = created.id
        await tags.tag_resource(ec2, subnet_id, cluster_id, name)
        subnet = await _wait_for_subnet(ec2, subnet_id, settings)

    if not subnet.map_public_ip_on_launch:
        await ec2.map_public_ip_on_launch(subnet.id)
    if subnet.id not in route_table.associated_subnet_ids:
        try:
            await ec2.associate_route_table(route_table.id, subnet.id)
        except ProviderError as e:
            if not e.already_exists:
                raise
    return subnet


async def build_region(
    session: CloudSession, cluster_id: str, location: str, settings: Settings
) -> NetworkFabric:
    """Create or heal the network fabric of one region.

    Every resource is tagged as soon as it exists, so discovery right after this
    returns (or after an interrupted run) finds all of them.
    """
    ec2 = session.ec2(location)
    zones, vpc = await asyncio.gather(
        ec2.availability_zones(), ensure_vpc(ec2, cluster_id, settings)
    )
    if vpc.ipv6_cidr_block is None:
        raise SyeAwsError(f"VPC {vpc.id} in {location} has no IPv6 CIDR block")

    gateway = await ensure_internet_gateway(ec2, cluster_id, vpc.id)
    route_table = await ensure_route_table(ec2, cluster_id, vpc.id, gateway.id)

    logger.info(
        "Creating subnets in availability zones %s",
        ", ".join(zone.suffix for zone in zones),
    )
    # Addressed from the VPC as it exists, which may predate the current settings
    cidrs = zone_cidrs(
        vpc.cidr_block,
        vpc.ipv6_cidr_block,
        len(zones),
        settings.subnet_prefix,
        settings.ipv6_subnet_prefix,
    )
    subnets = await asyncio.gather(
        *(
            ensure_subnet(ec2, cluster_id, vpc, zone, blocks, route_table, settings)
            for zone, blocks in zip(zones, cidrs)
        )
    )
    return NetworkFabric(
        location=location,
        vpc=vpc,
        internet_gateway=gateway,
        route_table=route_table,
        subnets=list(subnets),
    )
