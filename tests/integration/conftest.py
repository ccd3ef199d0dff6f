from __future__ import annotations

import uuid

import boto3
import pytest
from testcontainers.localstack import LocalStackContainer

from sye_aws import CloudSession, Settings
from sye_aws.provider import boto3_client_factory

AWS_REGION = "us-east-1"
AWS_ACCESS_KEY_ID = "test"
AWS_SECRET_ACCESS_KEY = "test"


@pytest.fixture(scope="session", autouse=True)
def localstack_container() -> LocalStackContainer:
    with LocalStackContainer("localstack/localstack:latest").with_services(
        "ec2", "sts", "resourcegroupstaggingapi"
    ) as localstack:
        yield localstack


@pytest.fixture(scope="session", autouse=True)
def localstack_endpoint(localstack_container: LocalStackContainer) -> str:
    return localstack_container.get_url()


@pytest.fixture(scope="session", autouse=True)
def localstack_env(localstack_endpoint: str) -> dict[str, str]:
    with pytest.MonkeyPatch.context() as mp:
        mp.setenv("AWS_ACCESS_KEY_ID", AWS_ACCESS_KEY_ID)
        mp.setenv("AWS_SECRET_ACCESS_KEY", AWS_SECRET_ACCESS_KEY)
        mp.setenv("AWS_REGION", AWS_REGION)
        mp.setenv("AWS_DEFAULT_REGION", AWS_REGION)
        yield


@pytest.fixture(scope="session")
def ec2_client(localstack_endpoint: str):
    return boto3.client(
        "ec2",
        endpoint_url=localstack_endpoint,
        region_name=AWS_REGION,
        aws_access_key_id=AWS_ACCESS_KEY_ID,
        aws_secret_access_key=AWS_SECRET_ACCESS_KEY,
    )


@pytest.fixture
def settings(localstack_endpoint: str) -> Settings:
    # LocalStack community has no EFS endpoint
    return Settings(
        endpoint_url=localstack_endpoint,
        home_region=AWS_REGION,
        poll_interval=0.5,
        network_timeout=60,
        tag_propagation_timeout=30,
        shared_file_system=False,
    )


@pytest.fixture
def session(settings: Settings, localstack_env) -> CloudSession:
    return CloudSession(
        client_factory=boto3_client_factory(settings.endpoint_url),
        home_region=settings.home_region,
    )


@pytest.fixture
def cluster_id() -> str:
    return f"sye-it-{uuid.uuid4().hex[:8]}"
