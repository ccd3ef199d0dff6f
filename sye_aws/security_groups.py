"""Named security groups for a region and their static ingress rules."""

from __future__ import annotations

import asyncio
import logging

from . import tags
from .config import IPV4_ANY, SECURITY_GROUP_CATALOG
from .errors import ProviderError
from .provider import Ec2Api, IngressRule, SecurityGroup

logger = logging.getLogger(__name__)


def world_ingress(protocol: str, from_port: int, to_port: int) -> dict:
    return IngressRule(protocol, from_port, to_port, cidr=IPV4_ANY).to_api()


def group_ingress(protocol: str, port: int, source_group_id: str) -> dict:
    return IngressRule(protocol, port, port, source_group_id=source_group_id).to_api()


def ipv6_ingress(cidr: str) -> dict:
    """All-protocol ingress from one IPv6 block."""
    return IngressRule("-1", ipv6_cidr=cidr).to_api()


async def authorize_ingress(ec2: Ec2Api, group_id: str, permission: dict) -> None:
    """Add one ingress rule, accepting a rule that is already there."""
    # One rule per call: a duplicate fails the whole request
    try:
        await ec2.authorize_ingress(group_id, [permission])
    except ProviderError as e:
        if not e.already_exists:
            raise


def group_description(name: str) -> str:
    return name.removeprefix("sye-")


async def ensure_security_group(
    ec2: Ec2Api,
    cluster_id: str,
    vpc_id: str,
    name: str,
    permissions: list[dict],
    existing: dict[str, SecurityGroup] | None = None,
) -> str:
    """Create the group with its ingress rules unless it already exists.

    Args:
        existing: Groups already discovered in the network; queried when omitted.

    Returns:
        The group id.
    """
    if existing is None:
        existing = await tags.security_groups(ec2, cluster_id, vpc_id)
    if name in existing:
        logger.debug("Security group %s already exists in %s", name, vpc_id)
        return existing[name].id

    try:
        group_id = await ec2.create_security_group(
            vpc_id, name, group_description(name)
        )
    except ProviderError as e:
        if not e.already_exists:
            raise
        # Created by an earlier run that stopped before tagging it
        untagged = await ec2.find_security_groups(
            [
                {"Name": "vpc-id", "Values": [vpc_id]},
                {"Name": "group-name", "Values": [name]},
            ]
        )
        if not untagged:
            raise
        group_id = untagged[0].id
    await tags.tag_resource(ec2, group_id, cluster_id, name)
    await asyncio.gather(*(authorize_ingress(ec2, group_id, p) for p in permissions))
    logger.debug("Created security group %s (%s)", name, group_id)
    return group_id


async def build_security_groups(
    ec2: Ec2Api, cluster_id: str, vpc_id: str
) -> dict[str, str]:
    """Create the missing groups of the catalog in parallel.

    Returns:
        Group ids keyed by name.
    """
    existing = await tags.security_groups(ec2, cluster_id, vpc_id)
    names = list(SECURITY_GROUP_CATALOG)
    group_ids = await asyncio.gather(
        *(
            ensure_security_group(
                ec2,
                cluster_id,
                vpc_id,
                name,
                [world_ingress(*rule) for rule in SECURITY_GROUP_CATALOG[name]],
                existing,
            )
            for name in names
        )
    )
    return dict(zip(names, group_ids))
