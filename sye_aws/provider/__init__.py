"""Typed async adapters over the AWS APIs."""

from .ec2 import Ec2Api
from .efs import EfsApi
from .models import (
    AvailabilityZone,
    FileSystem,
    IngressRule,
    InternetGateway,
    MountTarget,
    Route,
    RouteTable,
    SecurityGroup,
    Subnet,
    TaggedResource,
    Vpc,
)
from .session import CloudSession, boto3_client_factory
from .tagging import TaggingApi

__all__ = [
    "AvailabilityZone",
    "CloudSession",
    "Ec2Api",
    "EfsApi",
    "FileSystem",
    "IngressRule",
    "InternetGateway",
    "MountTarget",
    "Route",
    "RouteTable",
    "SecurityGroup",
    "Subnet",
    "TaggedResource",
    "TaggingApi",
    "Vpc",
    "boto3_client_factory",
]
