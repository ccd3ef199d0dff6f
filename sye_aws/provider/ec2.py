"""EC2 adapter: networks, subnets, gateways, route tables and security groups."""

from __future__ import annotations

from typing import Mapping

from ..errors import ProviderError
from .base import AwsApi
from .models import (
    AvailabilityZone,
    InternetGateway,
    RouteTable,
    SecurityGroup,
    Subnet,
    Vpc,
    tags_to_api,
)

Filters = list[dict]


class Ec2Api(AwsApi):
    """EC2 calls for one region, returning typed records."""

    async def regions(self) -> list[str]:
        result = await self._call("describe_regions")
        return sorted(r["RegionName"] for r in result["Regions"])

    async def availability_zones(self) -> list[AvailabilityZone]:
        result = await self._call(
            "describe_availability_zones",
            Filters=[
                {"Name": "state", "Values": ["available"]},
                {"Name": "zone-type", "Values": ["availability-zone"]},
            ],
        )
        zones = [AvailabilityZone.from_api(az) for az in result["AvailabilityZones"]]
        return sorted(zones, key=lambda az: az.name)

    async def create_tags(self, resource_ids: list[str], tags: Mapping[str, str]) -> None:
        await self._call("create_tags", Resources=resource_ids, Tags=tags_to_api(tags))

    # VPCs

    async def create_vpc(self, cidr_block: str) -> Vpc:
        result = await self._call(
            "create_vpc", CidrBlock=cidr_block, AmazonProvidedIpv6CidrBlock=True
        )
        return Vpc.from_api(result["Vpc"])

    async def enable_dns_hostnames(self, vpc_id: str) -> None:
        await self._call(
            "modify_vpc_attribute", VpcId=vpc_id, EnableDnsHostnames={"Value": True}
        )

    async def describe_vpc(self, vpc_id: str) -> Vpc | None:
        try:
            vpcs = await self._paginate("describe_vpcs", "Vpcs", VpcIds=[vpc_id])
        except ProviderError as e:
            if e.not_found:
                return None
            raise
        return Vpc.from_api(vpcs[0]) if vpcs else None

    async def find_vpcs(self, filters: Filters) -> list[Vpc]:
        vpcs = await self._paginate("describe_vpcs", "Vpcs", Filters=filters)
        return [Vpc.from_api(v) for v in vpcs]

    async def delete_vpc(self, vpc_id: str) -> None:
        await self._call("delete_vpc", VpcId=vpc_id)

    # Subnets

    async def create_subnet(
        self, vpc_id: str, zone: str, cidr_block: str, ipv6_cidr_block: str
    ) -> Subnet:
        result = await self._call(
            "create_subnet",
            VpcId=vpc_id,
            AvailabilityZone=zone,
            CidrBlock=cidr_block,
            Ipv6CidrBlock=ipv6_cidr_block,
        )
        return Subnet.from_api(result["Subnet"])

    async def describe_subnet(self, subnet_id: str) -> Subnet | None:
        try:
            subnets = await self._paginate(
                "describe_subnets", "Subnets", SubnetIds=[subnet_id]
            )
        except ProviderError as e:
            if e.not_found:
                return None
            raise
        return Subnet.from_api(subnets[0]) if subnets else None

    async def find_subnets(self, filters: Filters) -> list[Subnet]:
        subnets = await self._paginate("describe_subnets", "Subnets", Filters=filters)
        return [Subnet.from_api(s) for s in subnets]

    async def map_public_ip_on_launch(self, subnet_id: str) -> None:
        await self._call(
            "modify_subnet_attribute",
            SubnetId=subnet_id,
            MapPublicIpOnLaunch={"Value": True},
        )

    async def delete_subnet(self, subnet_id: str) -> None:
        await self._call("delete_subnet", SubnetId=subnet_id)

    # Internet gateways

    async def create_internet_gateway(self) -> InternetGateway:
        result = await self._call("create_internet_gateway")
        return InternetGateway.from_api(result["InternetGateway"])

    async def attach_internet_gateway(self, gateway_id: str, vpc_id: str) -> None:
        await self._call(
            "attach_internet_gateway", InternetGatewayId=gateway_id, VpcId=vpc_id
        )

    async def find_internet_gateways(self, filters: Filters) -> list[InternetGateway]:
        gateways = await self._paginate(
            "describe_internet_gateways", "InternetGateways", Filters=filters
        )
        return [InternetGateway.from_api(g) for g in gateways]

    async def detach_internet_gateway(self, gateway_id: str, vpc_id: str) -> None:
        await self._call(
            "detach_internet_gateway", InternetGatewayId=gateway_id, VpcId=vpc_id
        )

    async def delete_internet_gateway(self, gateway_id: str) -> None:
        await self._call("delete_internet_gateway", InternetGatewayId=gateway_id)

    # Route tables

    async def create_route_table(self, vpc_id: str) -> RouteTable:
        result = await self._call("create_route_table", VpcId=vpc_id)
        return RouteTable.from_api(result["RouteTable"])

    async def create_route(
        self,
        route_table_id: str,
        gateway_id: str,
        cidr_block: str | None = None,
        ipv6_cidr_block: str | None = None,
    ) -> None:
        destination = (
            {"DestinationCidrBlock": cidr_block}
            if cidr_block
            else {"DestinationIpv6CidrBlock": ipv6_cidr_block}
        )
        await self._call(
            "create_route",
            RouteTableId=route_table_id,
            GatewayId=gateway_id,
            **destination,
        )

    async def associate_route_table(self, route_table_id: str, subnet_id: str) -> None:
        await self._call(
            "associate_route_table", RouteTableId=route_table_id, SubnetId=subnet_id
        )

    async def find_route_tables(self, filters: Filters) -> list[RouteTable]:
        tables = await self._paginate(
            "describe_route_tables", "RouteTables", Filters=filters
        )
        return [RouteTable.from_api(t) for t in tables]

    async def delete_route_table(self, route_table_id: str) -> None:
        await self._call("delete_route_table", RouteTableId=route_table_id)

    # Security groups

    async def create_security_group(
        self, vpc_id: str, name: str, description: str
    ) -> str:
        result = await self._call(
            "create_security_group",
            VpcId=vpc_id,
            GroupName=name,
            Description=description,
        )
        return result["GroupId"]

    async def authorize_ingress(self, group_id: str, permissions: list[dict]) -> None:
        await self._call(
            "authorize_security_group_ingress",
            GroupId=group_id,
            IpPermissions=permissions,
        )

    async def revoke_ingress(self, group_id: str, permissions: list[dict]) -> None:
        await self._call(
            "revoke_security_group_ingress",
            GroupId=group_id,
            IpPermissions=permissions,
        )

    async def find_security_groups(self, filters: Filters) -> list[SecurityGroup]:
        groups = await self._paginate(
            "describe_security_groups", "SecurityGroups", Filters=filters
        )
        return [SecurityGroup.from_api(g) for g in groups]

    async def delete_security_group(self, group_id: str) -> None:
        await self._call("delete_security_group", GroupId=group_id)
