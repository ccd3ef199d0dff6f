"""Managed NFS (EFS) adapter."""

from __future__ import annotations

from typing import Mapping

from ..errors import ProviderError
from .base import AwsApi
from .models import FileSystem, MountTarget, tags_to_api


class EfsApi(AwsApi):
    """EFS calls for one region, returning typed records."""

    async def probe(self) -> bool:
        """Return False when the service has no endpoint in this region."""
        try:
            await self._call("describe_file_systems", MaxItems=1)
        except ProviderError as e:
            if e.capability_absent:
                return False
            raise
        return True

    async def find_file_systems(self, creation_token: str) -> list[FileSystem]:
        file_systems = await self._paginate(
            "describe_file_systems", "FileSystems", CreationToken=creation_token
        )
        return [FileSystem.from_api(fs) for fs in file_systems]

    async def describe_file_system(self, file_system_id: str) -> FileSystem | None:
        try:
            result = await self._call(
                "describe_file_systems", FileSystemId=file_system_id
            )
        except ProviderError as e:
            if e.not_found:
                return None
            raise
        file_systems = result["FileSystems"]
        return FileSystem.from_api(file_systems[0]) if file_systems else None

    async def create_file_system(self, creation_token: str) -> FileSystem:
        result = await self._call("create_file_system", CreationToken=creation_token)
        return FileSystem.from_api(result)

    async def tag_file_system(self, file_system_id: str, tags: Mapping[str, str]) -> None:
        await self._call(
            "tag_resource", ResourceId=file_system_id, Tags=tags_to_api(tags)
        )

    async def delete_file_system(self, file_system_id: str) -> None:
        await self._call("delete_file_system", FileSystemId=file_system_id)

    async def mount_targets(self, file_system_id: str) -> list[MountTarget]:
        result = await self._call(
            "describe_mount_targets", FileSystemId=file_system_id
        )
        return [MountTarget.from_api(mt) for mt in result["MountTargets"]]

    async def create_mount_target(
        self, file_system_id: str, subnet_id: str, security_group_ids: list[str]
    ) -> MountTarget:
        result = await self._call(
            "create_mount_target",
            FileSystemId=file_system_id,
            SubnetId=subnet_id,
            SecurityGroups=security_group_ids,
        )
        return MountTarget.from_api(result)

    async def delete_mount_target(self, mount_target_id: str) -> None:
        await self._call("delete_mount_target", MountTargetId=mount_target_id)
