"""Adding and removing cluster regions."""

from __future__ import annotations

import asyncio
import logging

from . import tags
from .config import Settings
from .core_region import core_region_location, sync_core_region_peering
from .descriptors import RegionDescriptor, SubnetRef
from .provider import CloudSession
from .security_groups import build_security_groups
from .shared_fs import build_shared_file_system, file_system_available
from .teardown import teardown_region
from .vpc import build_region

logger = logging.getLogger(__name__)


def _resolve(
    session: CloudSession | None, settings: Settings | None
) -> tuple[CloudSession, Settings]:
    settings = settings or Settings()
    return session or CloudSession.from_settings(settings), settings


async def describe_region(
    session: CloudSession, cluster_id: str, location: str
) -> RegionDescriptor:
    """Descriptor of an existing region, built from discovery alone.

    Raises:
        RegionNotFound: No network is tagged for the cluster in ``location``.
    """
    ec2 = session.ec2(location)
    vpc = await tags.get_cluster_vpc(ec2, cluster_id)
    subnets, groups = await asyncio.gather(
        tags.find_cluster_subnets(ec2, cluster_id, vpc.id),
        tags.security_groups(ec2, cluster_id, vpc.id),
    )
    return RegionDescriptor(
        location=location,
        vpc_id=vpc.id,
        subnets=[SubnetRef.from_subnet(s) for s in subnets],
        security_groups={name: g.id for name, g in groups.items()},
    )


async def region_add(
    cluster_id: str,
    location: str,
    session: CloudSession | None = None,
    settings: Settings | None = None,
) -> RegionDescriptor:
    """Build or heal the networking of one cluster region.

    Network fabric, security groups, core region peering and the shared file
    system are set up strictly in that order. Re-running after a failure skips
    whatever already exists.
    """
    session, settings = _resolve(session, settings)
    logger.info("Adding region %s to cluster %s", location, cluster_id)

    fabric = await build_region(session, cluster_id, location, settings)
    group_ids = await build_security_groups(
        session.ec2(location), cluster_id, fabric.vpc.id
    )
    region = RegionDescriptor(
        location=location,
        vpc_id=fabric.vpc.id,
        subnets=[SubnetRef.from_subnet(s) for s in fabric.subnets],
        security_groups=group_ids,
    )

    await sync_core_region_peering(session, cluster_id, region, settings)

    if not settings.shared_file_system:
        logger.debug("Shared file system disabled")
    elif await file_system_available(session, location):
        await build_shared_file_system(
            session, cluster_id, location, fabric.vpc.id, fabric.subnets, settings
        )
    else:
        logger.warning(
            "EFS not available in region %s. /sharedData will not be available.",
            location,
        )

    return await describe_region(session, cluster_id, location)


async def region_delete(
    cluster_id: str,
    location: str,
    session: CloudSession | None = None,
    settings: Settings | None = None,
) -> None:
    """Tear down one cluster region using fresh discovery."""
    session, settings = _resolve(session, settings)
    logger.info("Deleting region %s from cluster %s", location, cluster_id)
    await teardown_region(session, cluster_id, location, settings)


async def cluster_regions(session: CloudSession, cluster_id: str) -> list[str]:
    """Regions holding a network tagged for the cluster."""
    return await tags.find_cluster_locations(session, cluster_id)


async def cluster_delete(
    cluster_id: str,
    session: CloudSession | None = None,
    settings: Settings | None = None,
) -> list[str]:
    """Tear down every region of the cluster, the core region last.

    Returns:
        The regions that were torn down.
    """
    session, settings = _resolve(session, settings)
    locations = await cluster_regions(session, cluster_id)
    core = await core_region_location(session, cluster_id)
    others = [loc for loc in locations if loc != core]

    await asyncio.gather(
        *(teardown_region(session, cluster_id, loc, settings) for loc in others)
    )
    if core is not None and core in locations:
        await teardown_region(session, cluster_id, core, settings)
    return locations
