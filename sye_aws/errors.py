"""Error taxonomy for provider calls and convergence waits."""

from __future__ import annotations

import enum

from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    EndpointConnectionError,
    UnknownEndpointError,
)


class ErrorKind(enum.Enum):
    """Stable classification of provider failures."""

    ALREADY_EXISTS = "already-exists"
    NOT_FOUND = "not-found"
    CAPABILITY_ABSENT = "capability-absent"
    FATAL = "fatal"


_ALREADY_EXISTS_CODES = frozenset(
    {
        "InvalidPermission.Duplicate",
        "InvalidGroup.Duplicate",
        "RouteAlreadyExists",
        "Resource.AlreadyAssociated",
        "FileSystemAlreadyExists",
        "MountTargetConflict",
    }
)

_NOT_FOUND_CODES = frozenset(
    {
        "FileSystemNotFound",
        "MountTargetNotFound",
        "Gateway.NotAttached",
    }
)

_CAPABILITY_ABSENT_CODES = frozenset({"UnknownEndpoint"})


def classify_code(code: str) -> ErrorKind:
    """Map a provider error code to an ErrorKind."""
    if code in _ALREADY_EXISTS_CODES:
        return ErrorKind.ALREADY_EXISTS
    if code in _NOT_FOUND_CODES or code.endswith(".NotFound"):
        return ErrorKind.NOT_FOUND
    if code in _CAPABILITY_ABSENT_CODES:
        return ErrorKind.CAPABILITY_ABSENT
    return ErrorKind.FATAL


class SyeAwsError(Exception):
    """Base class for every error raised by sye_aws."""


class ProviderError(SyeAwsError):
    """A cloud provider call failed."""

    def __init__(
        self, operation: str, kind: ErrorKind, code: str, message: str
    ) -> None:
        super().__init__(f"{operation} failed ({code}): {message}")
        self.operation = operation
        self.kind = kind
        self.code = code
        self.message = message

    @classmethod
    def from_boto(cls, operation: str, exc: Exception) -> "ProviderError":
        """Classify a botocore exception raised by ``operation``."""
        if isinstance(exc, ClientError):
            error = exc.response.get("Error", {})
            code = error.get("Code", "Unknown")
            return cls(operation, classify_code(code), code, error.get("Message", str(exc)))
        if isinstance(exc, (EndpointConnectionError, UnknownEndpointError)):
            return cls(
                operation, ErrorKind.CAPABILITY_ABSENT, "UnknownEndpoint", str(exc)
            )
        if isinstance(exc, BotoCoreError):
            return cls(operation, ErrorKind.FATAL, type(exc).__name__, str(exc))
        raise TypeError(f"Not a botocore exception: {exc!r}")

    @property
    def already_exists(self) -> bool:
        return self.kind is ErrorKind.ALREADY_EXISTS

    @property
    def not_found(self) -> bool:
        return self.kind is ErrorKind.NOT_FOUND

    @property
    def capability_absent(self) -> bool:
        return self.kind is ErrorKind.CAPABILITY_ABSENT


class ConditionTimeout(SyeAwsError):
    """A convergence wait did not observe its condition before the ceiling."""

    def __init__(self, description: str, timeout: float) -> None:
        super().__init__(f"Timed out after {timeout:g}s waiting for {description}")
        self.description = description
        self.timeout = timeout


class RegionNotFound(SyeAwsError):
    """No network tagged for the cluster exists in the region."""

    def __init__(self, cluster_id: str, location: str) -> None:
        super().__init__(f"No VPCs found for cluster {cluster_id} in {location}")
        self.cluster_id = cluster_id
        self.location = location
