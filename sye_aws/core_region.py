"""Core region election and cross-region IPv6 peering rules.

One region per cluster is the core: its subnets carry the ``SyeCore_<cluster>``
tag. Its ``sye-default`` group admits IPv6 from every other region's subnets
and every other region's ``sye-default`` admits IPv6 from the core's subnets.
No other pair of regions can reach each other over IPv6.

Election is serialized within one process only. Two processes adding regions
to the same cluster at the same moment can both elect themselves; readers then
pick the lowest region name, so every caller still agrees on one core.
"""

from __future__ import annotations

import asyncio
import logging

from . import tags
from .config import DEFAULT_GROUP, Settings, core_region_tag_key
from .descriptors import RegionDescriptor, SubnetRef
from .errors import ProviderError, SyeAwsError
from .provider import CloudSession, Ec2Api, TaggedResource
from .security_groups import authorize_ingress, ipv6_ingress
from .wait import await_condition

logger = logging.getLogger(__name__)


async def _core_region_subnets(
    session: CloudSession, cluster_id: str
) -> tuple[str, list[TaggedResource]] | None:
    resources = await tags.find_core_region_subnets(session, cluster_id)
    if not resources:
        return None
    locations = sorted({r.location for r in resources})
    if len(locations) > 1:
        logger.warning(
            "Cluster %s has core region tags in %s; using %s",
            cluster_id,
            ", ".join(locations),
            locations[0],
        )
    location = locations[0]
    return location, [r for r in resources if r.location == location]


async def core_region_location(session: CloudSession, cluster_id: str) -> str | None:
    found = await _core_region_subnets(session, cluster_id)
    return found[0] if found else None


async def is_core_region(session: CloudSession, cluster_id: str, location: str) -> bool:
    return await core_region_location(session, cluster_id) == location


async def get_core_region(
    session: CloudSession, cluster_id: str
) -> RegionDescriptor | None:
    """Descriptor of the cluster's core region, or None before election."""
    found = await _core_region_subnets(session, cluster_id)
    if found is None:
        return None
    location, resources = found
    ec2 = session.ec2(location)
    subnets = await asyncio.gather(
        *(ec2.describe_subnet(r.resource_id) for r in resources)
    )
    # The tagging index can still list subnets that were just deleted
    subnets = sorted(
        (s for s in subnets if s is not None), key=lambda s: s.availability_zone
    )
    if not subnets:
        return None
    vpc_id = subnets[0].vpc_id
    groups = await tags.security_groups(ec2, cluster_id, vpc_id)
    core = RegionDescriptor(
        location=location,
        vpc_id=vpc_id,
        subnets=[SubnetRef.from_subnet(s) for s in subnets],
        security_groups={name: g.id for name, g in groups.items()},
    )
    logger.debug("Core region %s", core)
    return core


async def ensure_core_region(
    session: CloudSession,
    cluster_id: str,
    location: str,
    subnets: list[SubnetRef],
    settings: Settings,
) -> RegionDescriptor:
    """Return the core region, electing ``location`` if none is tagged yet."""
    async with session.election_lock(cluster_id):
        core = await get_core_region(session, cluster_id)
        if core is not None:
            logger.debug("Core region already exists: %s", core.location)
            return core
        if not subnets:
            raise SyeAwsError(
                f"Cannot elect {location} as core region of {cluster_id}: no subnets"
            )

        logger.info("Electing %s as core region of cluster %s", location, cluster_id)
        ec2 = session.ec2(location)
        marker = {core_region_tag_key(cluster_id): ""}
        await asyncio.gather(
            *(tags.tag_resource(ec2, s.id, cluster_id, s.name, marker) for s in subnets)
        )

        # The tagging index is eventually consistent
        elected: dict[str, RegionDescriptor] = {}

        async def visible() -> bool:
            core = await get_core_region(session, cluster_id)
            if core is not None:
                elected["core"] = core
            return core is not None

        await await_condition(
            visible,
            settings.poll_interval,
            settings.tag_propagation_timeout,
            f"core region tag of cluster {cluster_id} to be visible",
        )
        return elected["core"]


async def _authorize_ipv6(ec2: Ec2Api, group_id: str, cidr: str) -> None:
    logger.debug("Authorizing IPv6 ingress from %s on %s", cidr, group_id)
    await authorize_ingress(ec2, group_id, ipv6_ingress(cidr))


async def allow_inbound_ipv6(
    ec2: Ec2Api,
    cluster_id: str,
    vpc_id: str,
    group_name: str,
    subnets: list[SubnetRef],
) -> None:
    """Open all-protocol IPv6 ingress on ``group_name`` for each subnet's block."""
    groups = await tags.security_groups(ec2, cluster_id, vpc_id)
    group = groups.get(group_name)
    if group is None:
        raise SyeAwsError(
            f"Security group {group_name} not found in {vpc_id} ({ec2.location})"
        )
    cidrs = dict.fromkeys(s.ipv6_cidr_block for s in subnets if s.ipv6_cidr_block)
    await asyncio.gather(
        *(
            _authorize_ipv6(ec2, group.id, cidr)
            for cidr in cidrs
            if cidr not in group.ipv6_ingress_cidrs
        )
    )


async def revoke_inbound_ipv6(ec2: Ec2Api, group_id: str, cidr: str) -> bool:
    """Remove the IPv6 ingress rule for ``cidr``; False if it was already gone."""
    logger.debug("Revoking IPv6 ingress from %s on %s", cidr, group_id)
    try:
        await ec2.revoke_ingress(group_id, [ipv6_ingress(cidr)])
    except ProviderError as e:
        # Removed by an earlier teardown that failed later on
        if e.not_found:
            return False
        raise
    return True


async def sync_core_region_peering(
    session: CloudSession,
    cluster_id: str,
    region: RegionDescriptor,
    settings: Settings,
) -> RegionDescriptor:
    """Peer ``region`` with the core region over IPv6, in both directions.

    Returns:
        The core region descriptor.
    """
    core = await ensure_core_region(
        session, cluster_id, region.location, region.subnets, settings
    )
    peerings = [
        allow_inbound_ipv6(
            session.ec2(core.location),
            cluster_id,
            core.vpc_id,
            DEFAULT_GROUP,
            region.subnets,
        )
    ]
    if region.location != core.location:
        peerings.append(
            allow_inbound_ipv6(
                session.ec2(region.location),
                cluster_id,
                region.vpc_id,
                DEFAULT_GROUP,
                core.subnets,
            )
        )
    await asyncio.gather(*peerings)
    logger.info(
        "Region %s is reachable from core region %s over IPv6",
        region.location,
        core.location,
    )
    return core
