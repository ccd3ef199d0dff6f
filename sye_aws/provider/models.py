"""Typed records built from raw provider responses."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Mapping


def tags_from_api(items: Iterable[Mapping] | None) -> dict[str, str]:
    """Convert a ``[{"Key": ..., "Value": ...}]`` list to a dict."""
    return {item["Key"]: item.get("Value", "") for item in items or []}


def tags_to_api(tags: Mapping[str, str]) -> list[dict[str, str]]:
    return [{"Key": k, "Value": v} for k, v in tags.items()]


@dataclass(frozen=True)
class AvailabilityZone:
    name: str
    region: str
    state: str = "available"

    @property
    def suffix(self) -> str:
        """Zone letter(s) after the region name, e.g. ``a`` for ``eu-west-1a``."""
        if self.name.startswith(self.region):
            return self.name[len(self.region):]
        return self.name[-1]

    @classmethod
    def from_api(cls, data: Mapping) -> "AvailabilityZone":
        return cls(
            name=data["ZoneName"],
            region=data["RegionName"],
            state=data.get("State", "available"),
        )


@dataclass(frozen=True)
class Vpc:
    id: str
    cidr_block: str
    state: str
    ipv6_cidr_block: str | None = None
    ipv6_state: str | None = None
    tags: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_api(cls, data: Mapping) -> "Vpc":
        associations = data.get("Ipv6CidrBlockAssociationSet") or []
        ipv6 = associations[0] if associations else {}
        return cls(
            id=data["VpcId"],
            cidr_block=data.get("CidrBlock", ""),
            state=data.get("State", "pending"),
            ipv6_cidr_block=ipv6.get("Ipv6CidrBlock"),
            ipv6_state=ipv6.get("Ipv6CidrBlockState", {}).get("State"),
            tags=tags_from_api(data.get("Tags")),
        )


@dataclass(frozen=True)
class Subnet:
    id: str
    vpc_id: str
    availability_zone: str
    cidr_block: str
    state: str
    ipv6_cidr_block: str | None = None
    map_public_ip_on_launch: bool = False
    tags: dict[str, str] = field(default_factory=dict)

    @property
    def name(self) -> str | None:
        return self.tags.get("Name")

    @classmethod
    def from_api(cls, data: Mapping) -> "Subnet":
        associations = data.get("Ipv6CidrBlockAssociationSet") or []
        return cls(
            id=data["SubnetId"],
            vpc_id=data["VpcId"],
            availability_zone=data.get("AvailabilityZone", ""),
            cidr_block=data.get("CidrBlock", ""),
            state=data.get("State", "pending"),
            ipv6_cidr_block=associations[0]["Ipv6CidrBlock"] if associations else None,
            map_public_ip_on_launch=bool(data.get("MapPublicIpOnLaunch", False)),
            tags=tags_from_api(data.get("Tags")),
        )


@dataclass(frozen=True)
class SecurityGroup:
    id: str
    name: str
    vpc_id: str
    # Sources of all-protocol IPv6 ingress rules
    ipv6_ingress_cidrs: frozenset[str] = frozenset()
    tags: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_api(cls, data: Mapping) -> "SecurityGroup":
        cidrs = {
            r["CidrIpv6"]
            for perm in data.get("IpPermissions") or []
            if perm.get("IpProtocol") == "-1"
            for r in perm.get("Ipv6Ranges") or []
        }
        return cls(
            id=data["GroupId"],
            name=data["GroupName"],
            vpc_id=data.get("VpcId", ""),
            ipv6_ingress_cidrs=frozenset(cidrs),
            tags=tags_from_api(data.get("Tags")),
        )


@dataclass(frozen=True)
class InternetGateway:
    id: str
    attached_vpc_ids: tuple[str, ...] = ()
    tags: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_api(cls, data: Mapping) -> "InternetGateway":
        return cls(
            id=data["InternetGatewayId"],
            attached_vpc_ids=tuple(
                a["VpcId"] for a in data.get("Attachments") or [] if "VpcId" in a
            ),
            tags=tags_from_api(data.get("Tags")),
        )


@dataclass(frozen=True)
class Route:
    destination_cidr_block: str | None = None
    destination_ipv6_cidr_block: str | None = None
    gateway_id: str | None = None

    @classmethod
    def from_api(cls, data: Mapping) -> "Route":
        return cls(
            destination_cidr_block=data.get("DestinationCidrBlock"),
            destination_ipv6_cidr_block=data.get("DestinationIpv6CidrBlock"),
            gateway_id=data.get("GatewayId"),
        )


@dataclass(frozen=True)
class RouteTable:
    id: str
    vpc_id: str
    routes: tuple[Route, ...] = ()
    associated_subnet_ids: frozenset[str] = frozenset()
    tags: dict[str, str] = field(default_factory=dict)

    def has_route(
        self,
        gateway_id: str,
        cidr_block: str | None = None,
        ipv6_cidr_block: str | None = None,
    ) -> bool:
        return any(
            r.gateway_id == gateway_id
            and r.destination_cidr_block == cidr_block
            and r.destination_ipv6_cidr_block == ipv6_cidr_block
            for r in self.routes
        )

    @classmethod
    def from_api(cls, data: Mapping) -> "RouteTable":
        return cls(
            id=data["RouteTableId"],
            vpc_id=data["VpcId"],
            routes=tuple(Route.from_api(r) for r in data.get("Routes") or []),
            associated_subnet_ids=frozenset(
                a["SubnetId"] for a in data.get("Associations") or [] if a.get("SubnetId")
            ),
            tags=tags_from_api(data.get("Tags")),
        )


@dataclass(frozen=True)
class FileSystem:
    id: str
    creation_token: str
    state: str
    name: str | None = None
    tags: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_api(cls, data: Mapping) -> "FileSystem":
        return cls(
            id=data["FileSystemId"],
            creation_token=data.get("CreationToken", ""),
            state=data.get("LifeCycleState", "creating"),
            name=data.get("Name"),
            tags=tags_from_api(data.get("Tags")),
        )


@dataclass(frozen=True)
class MountTarget:
    id: str
    file_system_id: str
    subnet_id: str
    state: str

    @classmethod
    def from_api(cls, data: Mapping) -> "MountTarget":
        return cls(
            id=data["MountTargetId"],
            file_system_id=data["FileSystemId"],
            subnet_id=data["SubnetId"],
            state=data.get("LifeCycleState", "creating"),
        )


@dataclass(frozen=True)
class TaggedResource:
    """Entry from the resource tagging index."""

    arn: str
    tags: dict[str, str] = field(default_factory=dict)

    @property
    def location(self) -> str:
        # arn:aws:ec2:<region>:<account>:subnet/subnet-123
        return self.arn.split(":")[3]

    @property
    def resource_type(self) -> str:
        return self.arn.split(":", 5)[5].split("/")[0]

    @property
    def resource_id(self) -> str:
        return self.arn.split("/")[-1]

    @classmethod
    def from_api(cls, data: Mapping) -> "TaggedResource":
        return cls(arn=data["ResourceARN"], tags=tags_from_api(data.get("Tags")))


@dataclass(frozen=True)
class IngressRule:
    """One ingress rule with a single source."""

    protocol: str
    from_port: int | None = None
    to_port: int | None = None
    cidr: str | None = None
    ipv6_cidr: str | None = None
    source_group_id: str | None = None

    def to_api(self) -> dict:
        """The rule as an ``IpPermissions`` entry."""
        permission: dict = {"IpProtocol": self.protocol}
        if self.from_port is not None:
            permission["FromPort"] = self.from_port
            permission["ToPort"] = (
                self.to_port if self.to_port is not None else self.from_port
            )
        if self.cidr:
            permission["IpRanges"] = [{"CidrIp": self.cidr}]
        if self.ipv6_cidr:
            permission["Ipv6Ranges"] = [{"CidrIpv6": self.ipv6_cidr}]
        if self.source_group_id:
            permission["UserIdGroupPairs"] = [{"GroupId": self.source_group_id}]
        return permission
