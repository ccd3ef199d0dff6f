"""Resource tagging index adapter."""

from __future__ import annotations

from .base import AwsApi
from .models import TaggedResource


class TaggingApi(AwsApi):
    async def find_resources(
        self, tag_key: str, resource_types: list[str]
    ) -> list[TaggedResource]:
        """Return resources in this region carrying ``tag_key`` with any value."""
        resources = await self._paginate(
            "get_resources",
            "ResourceTagMappingList",
            TagFilters=[{"Key": tag_key}],
            ResourceTypeFilters=resource_types,
        )
        return [TaggedResource.from_api(r) for r in resources]
