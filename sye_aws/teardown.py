"""Reverse-order teardown of a region, tolerant of partially deleted state."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable

from . import tags
from .config import DEFAULT_GROUP, MOUNT_TARGET_GROUP, Settings
from .core_region import get_core_region, revoke_inbound_ipv6
from .errors import ProviderError
from .provider import CloudSession, Ec2Api, Subnet, Vpc
from .shared_fs import delete_shared_file_system, file_system_available

logger = logging.getLogger(__name__)


async def _ignore_missing(call: Awaitable[None], description: str) -> None:
    try:
        await call
    except ProviderError as e:
        if not e.not_found:
            raise
        logger.debug("%s was already removed", description)


async def _delete_subnet(
    session: CloudSession,
    ec2: Ec2Api,
    subnet: Subnet,
    core_location: str | None,
    core_group_id: str | None,
) -> None:
    # Revoke while the subnet still exists; the rule is keyed to its block
    if core_group_id and subnet.ipv6_cidr_block:
        await revoke_inbound_ipv6(
            session.ec2(core_location), core_group_id, subnet.ipv6_cidr_block
        )
    logger.debug("Deleting subnet %s", subnet.id)
    await _ignore_missing(ec2.delete_subnet(subnet.id), f"subnet {subnet.id}")


async def _delete_internet_gateway(ec2: Ec2Api, gateway_id: str, vpc_id: str) -> None:
    logger.debug("Detaching internet gateway %s from %s", gateway_id, vpc_id)
    await _ignore_missing(
        ec2.detach_internet_gateway(gateway_id, vpc_id), f"attachment of {gateway_id}"
    )
    await _ignore_missing(
        ec2.delete_internet_gateway(gateway_id), f"internet gateway {gateway_id}"
    )


async def delete_detached_internet_gateways(ec2: Ec2Api, cluster_id: str) -> None:
    """Delete tagged gateways an interrupted build left attached to nothing."""
    gateways = await tags.find_cluster_internet_gateways(ec2, cluster_id)
    await asyncio.gather(
        *(
            _ignore_missing(
                ec2.delete_internet_gateway(g.id), f"internet gateway {g.id}"
            )
            for g in gateways
            if not g.attached_vpc_ids
        )
    )


async def teardown_vpc(
    session: CloudSession, ec2: Ec2Api, cluster_id: str, vpc: Vpc
) -> None:
    """Delete everything in one cluster network, then the network itself."""
    subnets = await tags.find_vpc_subnets(ec2, vpc.id)
    core = await get_core_region(session, cluster_id)
    core_group_id = core.security_groups.get(DEFAULT_GROUP) if core else None
    await asyncio.gather(
        *(
            _delete_subnet(
                session,
                ec2,
                subnet,
                core.location if core else None,
                core_group_id,
            )
            for subnet in subnets
        )
    )

    groups = await tags.security_groups(ec2, cluster_id, vpc.id)
    # The mount target group references the signalling group
    mount_group = groups.pop(MOUNT_TARGET_GROUP, None)
    if mount_group is not None:
        await _ignore_missing(
            ec2.delete_security_group(mount_group.id), f"group {MOUNT_TARGET_GROUP}"
        )
    await asyncio.gather(
        *(
            _ignore_missing(ec2.delete_security_group(g.id), f"group {name}")
            for name, g in groups.items()
        )
    )

    gateways = await tags.find_attached_internet_gateways(ec2, vpc.id)
    await asyncio.gather(
        *(_delete_internet_gateway(ec2, g.id, vpc.id) for g in gateways)
    )

    route_tables = await tags.find_route_tables(ec2, cluster_id, vpc.id)
    await asyncio.gather(
        *(
            _ignore_missing(ec2.delete_route_table(rt.id), f"route table {rt.id}")
            for rt in route_tables
        )
    )

    logger.debug("Deleting VPC %s", vpc.id)
    await _ignore_missing(ec2.delete_vpc(vpc.id), f"VPC {vpc.id}")


async def teardown_region(
    session: CloudSession, cluster_id: str, location: str, settings: Settings
) -> None:
    """Delete the cluster's resources in ``location``, in reverse build order.

    Works from whatever discovery finds now, so it completes after a failed
    build or a failed earlier teardown.
    """
    if await file_system_available(session, location):
        await delete_shared_file_system(session, cluster_id, location, settings)
    else:
        logger.warning(
            "EFS not available in region %s. Skipping shared file system.", location
        )

    ec2 = session.ec2(location)
    vpcs = await tags.find_cluster_vpcs(ec2, cluster_id)
    if vpcs:
        await asyncio.gather(
            *(teardown_vpc(session, ec2, cluster_id, vpc) for vpc in vpcs)
        )
    else:
        logger.warning("No VPCs found for cluster %s in %s", cluster_id, location)
    await delete_detached_internet_gateways(ec2, cluster_id)
    if vpcs:
        logger.info("Deleted region %s of cluster %s", location, cluster_id)
