"""Region descriptors handed to the cluster bring-up workflow."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field

from .provider import Subnet


@dataclass(frozen=True)
class SubnetRef:
    id: str
    name: str
    ipv6_cidr_block: str | None = None

    @classmethod
    def from_subnet(cls, subnet: Subnet) -> "SubnetRef":
        return cls(
            id=subnet.id,
            name=subnet.name or subnet.id,
            ipv6_cidr_block=subnet.ipv6_cidr_block,
        )


@dataclass(frozen=True)
class RegionDescriptor:
    """One cluster region: its location, network, subnets and security groups."""

    location: str
    vpc_id: str
    subnets: list[SubnetRef] = field(default_factory=list)
    security_groups: dict[str, str] = field(default_factory=dict)

    @property
    def ipv6_cidr_blocks(self) -> list[str]:
        return [s.ipv6_cidr_block for s in self.subnets if s.ipv6_cidr_block]

    def to_dict(self) -> dict:
        return asdict(self)
