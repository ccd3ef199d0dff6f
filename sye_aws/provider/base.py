"""Async wrapper around synchronous boto3 clients."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from ..errors import ProviderError

logger = logging.getLogger(__name__)


class AwsApi:
    """Base for the per-service adapters.

    Every call runs the blocking boto3 method in a worker thread and turns
    botocore failures into a classified ProviderError.
    """

    def __init__(self, client: Any, location: str) -> None:
        self._client = client
        self.location = location

    async def _call(self, operation: str, **kwargs) -> dict:
        method = getattr(self._client, operation)
        logger.debug("%s %s %s", self.location, operation, kwargs)
        try:
            return await asyncio.to_thread(method, **kwargs)
        except (ClientError, BotoCoreError) as e:
            raise ProviderError.from_boto(operation, e) from e

    async def _paginate(self, operation: str, result_key: str, **kwargs) -> list[dict]:
        def collect() -> list[dict]:
            paginator = self._client.get_paginator(operation)
            return [
                item
                for page in paginator.paginate(**kwargs)
                for item in page.get(result_key, [])
            ]

        logger.debug("%s %s %s", self.location, operation, kwargs)
        try:
            return await asyncio.to_thread(collect)
        except (ClientError, BotoCoreError) as e:
            raise ProviderError.from_boto(operation, e) from e
