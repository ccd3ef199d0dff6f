"""Cluster-wide shared file system with one mount target per subnet."""

from __future__ import annotations

import asyncio
import logging

from . import tags
from .config import MOUNT_TARGET_GROUP, NFS_PORT, SIGNALLING_GROUP, Settings
from .errors import ConditionTimeout, SyeAwsError
from .provider import CloudSession, EfsApi, FileSystem, Subnet
from .security_groups import ensure_security_group, group_ingress
from .wait import await_condition

logger = logging.getLogger(__name__)


async def file_system_available(session: CloudSession, location: str) -> bool:
    """Whether the managed NFS service answers in ``location``."""
    return await session.efs(location).probe()


async def find_file_system(efs: EfsApi, cluster_id: str) -> FileSystem | None:
    file_systems = await efs.find_file_systems(creation_token=cluster_id)
    return file_systems[0] if file_systems else None


async def ensure_file_system(efs: EfsApi, cluster_id: str) -> FileSystem:
    """The cluster's file system, keyed by the cluster id as creation token."""
    file_system = await find_file_system(efs, cluster_id)
    if file_system is not None:
        logger.debug("Reusing file system %s", file_system.id)
        return file_system
    file_system = await efs.create_file_system(creation_token=cluster_id)
    await efs.tag_file_system(file_system.id, tags.cluster_tags(cluster_id, cluster_id))
    logger.info("Created file system %s in %s", file_system.id, efs.location)
    return file_system


async def _wait_best_effort(
    predicate, interval: float, timeout: float, description: str, failure: str
) -> bool:
    try:
        await await_condition(predicate, interval, timeout, description)
    except ConditionTimeout as e:
        logger.warning("%s: %s", failure, e)
        return False
    return True


async def build_shared_file_system(
    session: CloudSession,
    cluster_id: str,
    location: str,
    vpc_id: str,
    subnets: list[Subnet],
    settings: Settings,
) -> FileSystem:
    """Create the file system and mount targets for ``subnets``.

    The service must be available in ``location``. Timeouts waiting for the
    file system or mount targets only log a warning: the shared file system is
    not required for the rest of the region to work. Mount targets are left for
    a later run when the file system is not available in time.
    """
    ec2 = session.ec2(location)
    efs = session.efs(location)

    groups = await tags.security_groups(ec2, cluster_id, vpc_id)
    if SIGNALLING_GROUP not in groups:
        raise SyeAwsError(f"Security group {SIGNALLING_GROUP} not found in {vpc_id}")
    # NFS only from instances in the signalling group
    mount_group_id = await ensure_security_group(
        ec2,
        cluster_id,
        vpc_id,
        MOUNT_TARGET_GROUP,
        [group_ingress("tcp", NFS_PORT, groups[SIGNALLING_GROUP].id)],
        groups,
    )

    file_system = await ensure_file_system(efs, cluster_id)

    async def file_system_ready() -> bool:
        current = await efs.describe_file_system(file_system.id)
        return current is not None and current.state == "available"

    ready = await _wait_best_effort(
        file_system_ready,
        settings.file_system_poll_interval,
        settings.file_system_timeout,
        f"file system {file_system.id} to be available",
        "Failed to create elastic file system",
    )
    if not ready:
        # Mount targets can only be created on an available file system
        logger.warning(
            "Skipping mount targets of %s in %s until it is available",
            file_system.id,
            location,
        )
        return file_system

    existing = {mt.subnet_id for mt in await efs.mount_targets(file_system.id)}
    await asyncio.gather(
        *(
            efs.create_mount_target(file_system.id, subnet.id, [mount_group_id])
            for subnet in subnets
            if subnet.id not in existing
        )
    )

    async def mount_targets_ready() -> bool:
        mount_targets = await efs.mount_targets(file_system.id)
        return all(mt.state == "available" for mt in mount_targets)

    await _wait_best_effort(
        mount_targets_ready,
        settings.file_system_poll_interval,
        settings.mount_target_timeout,
        f"mount targets of {file_system.id} to be available",
        "Failed to create mount targets",
    )
    return file_system


async def delete_shared_file_system(
    session: CloudSession, cluster_id: str, location: str, settings: Settings
) -> bool:
    """Delete mount targets, the file system and the mount target group.

    Returns:
        True once the file system is deleted. False when the cluster has none,
        or when its mount targets were still being deleted at the timeout.
    """
    efs = session.efs(location)
    file_system = await find_file_system(efs, cluster_id)
    if file_system is None:
        logger.debug("Elastic file system for %s does not exist", cluster_id)
        return False

    mount_targets = await efs.mount_targets(file_system.id)
    if mount_targets:
        await asyncio.gather(*(efs.delete_mount_target(mt.id) for mt in mount_targets))

        async def mount_targets_gone() -> bool:
            return not await efs.mount_targets(file_system.id)

        gone = await _wait_best_effort(
            mount_targets_gone,
            settings.file_system_poll_interval,
            settings.mount_target_delete_timeout,
            f"mount targets of {file_system.id} to be deleted",
            "Failed to delete mount targets",
        )
        if not gone:
            logger.warning(
                "Leaving file system %s in %s while its mount targets are deleted",
                file_system.id,
                location,
            )
            return False

    await efs.delete_file_system(file_system.id)
    logger.info("Deleted file system %s in %s", file_system.id, location)

    ec2 = session.ec2(location)
    for vpc in await tags.find_cluster_vpcs(ec2, cluster_id):
        groups = await tags.security_groups(ec2, cluster_id, vpc.id)
        if MOUNT_TARGET_GROUP in groups:
            await ec2.delete_security_group(groups[MOUNT_TARGET_GROUP].id)
    return True
