"""Region network fabric."""

from .addressing import ipv4_subnet, ipv6_subnet, zone_cidrs
from .fabric import NetworkFabric, build_region, subnet_name

__all__ = [
    "NetworkFabric",
    "build_region",
    "ipv4_subnet",
    "ipv6_subnet",
    "subnet_name",
    "zone_cidrs",
]
