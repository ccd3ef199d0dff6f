"""Configuration constants and settings for region provisioning."""

from __future__ import annotations

import ipaddress
from pathlib import Path

import yaml
from pydantic import BaseModel, model_validator

# Tagging contract
NAME_TAG = "Name"
CLUSTER_ID_TAG = "SyeClusterId"
CLUSTER_TAG_PREFIX = "SyeCluster_"
CORE_REGION_TAG_PREFIX = "SyeCore_"
ROUTE_TABLE_NAME = "sye-cluster-route-table"

# Addressing
DEFAULT_BASE_CIDR = "10.0.0.0/16"
DEFAULT_SUBNET_PREFIX = 20
DEFAULT_IPV6_SUBNET_PREFIX = 64
# Amazon-provided VPC IPv6 blocks are always /56
VPC_IPV6_PREFIX = 56
IPV4_ANY = "0.0.0.0/0"
IPV6_ANY = "::/0"

# Security group names
DEFAULT_GROUP = "sye-default"
SIGNALLING_GROUP = "sye-egress-pitcher"
FRONTEND_GROUP = "sye-frontend-balancer"
PLAYOUT_MANAGEMENT_GROUP = "sye-playout-management"
CONNECT_BROKER_GROUP = "sye-connect-broker"
MOUNT_TARGET_GROUP = "efs-mount-target"

NFS_PORT = 2049

# Ingress open to the world, per group: (protocol, from_port, to_port)
SECURITY_GROUP_CATALOG: dict[str, list[tuple[str, int, int]]] = {
    DEFAULT_GROUP: [("tcp", 22, 22)],
    SIGNALLING_GROUP: [("udp", 2123, 2123)],
    FRONTEND_GROUP: [("tcp", 80, 80), ("tcp", 443, 443)],
    PLAYOUT_MANAGEMENT_GROUP: [("tcp", 81, 81), ("tcp", 4433, 4433)],
    CONNECT_BROKER_GROUP: [("tcp", 2505, 2505)],
}

# Convergence waits (seconds)
DEFAULT_POLL_INTERVAL = 2.0
DEFAULT_FILE_SYSTEM_POLL_INTERVAL = 5.0
DEFAULT_FILE_SYSTEM_TIMEOUT = 2 * 60.0
DEFAULT_MOUNT_TARGET_TIMEOUT = 5 * 60.0
DEFAULT_MOUNT_TARGET_DELETE_TIMEOUT = 2 * 60.0
DEFAULT_TAG_PROPAGATION_TIMEOUT = 60.0

DEFAULT_HOME_REGION = "us-east-1"


def cluster_tag_key(cluster_id: str) -> str:
    return f"{CLUSTER_TAG_PREFIX}{cluster_id}"


def core_region_tag_key(cluster_id: str) -> str:
    return f"{CORE_REGION_TAG_PREFIX}{cluster_id}"


class Settings(BaseModel):
    """Tunables for building and tearing down a region."""

    base_cidr: str = DEFAULT_BASE_CIDR
    subnet_prefix: int = DEFAULT_SUBNET_PREFIX
    ipv6_subnet_prefix: int = DEFAULT_IPV6_SUBNET_PREFIX
    poll_interval: float = DEFAULT_POLL_INTERVAL
    file_system_poll_interval: float = DEFAULT_FILE_SYSTEM_POLL_INTERVAL
    # None leaves network convergence waits unbounded
    network_timeout: float | None = None
    file_system_timeout: float = DEFAULT_FILE_SYSTEM_TIMEOUT
    mount_target_timeout: float = DEFAULT_MOUNT_TARGET_TIMEOUT
    mount_target_delete_timeout: float = DEFAULT_MOUNT_TARGET_DELETE_TIMEOUT
    tag_propagation_timeout: float = DEFAULT_TAG_PROPAGATION_TIMEOUT
    shared_file_system: bool = True
    home_region: str = DEFAULT_HOME_REGION
    endpoint_url: str | None = None

    @model_validator(mode="after")
    def validate_addressing(self):
        try:
            network = ipaddress.IPv4Network(self.base_cidr)
        except ValueError as e:
            raise ValueError(f"base_cidr '{self.base_cidr}' is not an IPv4 network: {e}")
        if not network.prefixlen < self.subnet_prefix <= 28:
            raise ValueError(
                f"subnet_prefix /{self.subnet_prefix} must be longer than "
                f"/{network.prefixlen} and at most /28"
            )
        if not VPC_IPV6_PREFIX < self.ipv6_subnet_prefix <= 64:
            raise ValueError(
                f"ipv6_subnet_prefix /{self.ipv6_subnet_prefix} must be longer than "
                f"/{VPC_IPV6_PREFIX} and at most /64"
            )
        return self


def load_settings(path: str | Path | None = None) -> Settings:
    """Load settings from an optional YAML file."""
    if path is None:
        return Settings()
    data = yaml.safe_load(Path(path).read_text()) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Settings file {path} must contain a mapping")
    return Settings(**data)
