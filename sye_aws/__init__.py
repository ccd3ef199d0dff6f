"""Region networking for multi-region Sye clusters on AWS."""

from .config import Settings, load_settings
from .descriptors import RegionDescriptor, SubnetRef
from .errors import (
    ConditionTimeout,
    ErrorKind,
    ProviderError,
    RegionNotFound,
    SyeAwsError,
)
from .log import setup_logger
from .provider import CloudSession
from .region import (
    cluster_delete,
    cluster_regions,
    describe_region,
    region_add,
    region_delete,
)

__all__ = [
    "CloudSession",
    "ConditionTimeout",
    "ErrorKind",
    "ProviderError",
    "RegionDescriptor",
    "RegionNotFound",
    "Settings",
    "SubnetRef",
    "SyeAwsError",
    "cluster_delete",
    "cluster_regions",
    "describe_region",
    "load_settings",
    "region_add",
    "region_delete",
    "setup_logger",
]
