"""Deterministic per-zone subnet addressing."""

from __future__ import annotations

import ipaddress

from ..config import DEFAULT_IPV6_SUBNET_PREFIX, DEFAULT_SUBNET_PREFIX


def ipv4_subnet(base_cidr: str, index: int, prefix: int = DEFAULT_SUBNET_PREFIX) -> str:
    """Return the ``index``-th /``prefix`` block of ``base_cidr``.

    With the defaults, zone 0 gets ``10.0.0.0/20``, zone 1 ``10.0.16.0/20`` and so on.
    """
    network = ipaddress.IPv4Network(base_cidr)
    return _nth_subnet(network, index, prefix)


def ipv6_subnet(
    vpc_ipv6_cidr: str, index: int, prefix: int = DEFAULT_IPV6_SUBNET_PREFIX
) -> str:
    """Return the ``index``-th /``prefix`` block of the network's IPv6 range."""
    network = ipaddress.IPv6Network(vpc_ipv6_cidr)
    return _nth_subnet(network, index, prefix)


def _nth_subnet(
    network: ipaddress.IPv4Network | ipaddress.IPv6Network, index: int, prefix: int
) -> str:
    if prefix < network.prefixlen:
        raise ValueError(
            f"Subnet prefix /{prefix} is too small for network {network}"
        )
    capacity = 1 << (prefix - network.prefixlen)
    if not 0 <= index < capacity:
        raise ValueError(
            f"Network {network} cannot provide subnet #{index}: "
            f"only {capacity} /{prefix} blocks fit"
        )
    block_size = 1 << (network.max_prefixlen - prefix)
    address = network.network_address + index * block_size
    return str(ipaddress.ip_network((address, prefix)))


def zone_cidrs(
    base_cidr: str,
    vpc_ipv6_cidr: str,
    zone_count: int,
    prefix: int = DEFAULT_SUBNET_PREFIX,
    ipv6_prefix: int = DEFAULT_IPV6_SUBNET_PREFIX,
) -> list[tuple[str, str]]:
    """(IPv4, IPv6) block pairs for zones ``0..zone_count-1``, in zone order."""
    return [
        (
            ipv4_subnet(base_cidr, index, prefix),
            ipv6_subnet(vpc_ipv6_cidr, index, ipv6_prefix),
        )
        for index in range(zone_count)
    ]
