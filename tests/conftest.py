"""Shared fixtures: the packaged environment table and a mocked boto3 session."""

from unittest.mock import MagicMock

import pytest

from datawise.config import DeploymentConfig, EnvironmentProfile, load_deployment_config


@pytest.fixture
def config() -> DeploymentConfig:
    return load_deployment_config()


@pytest.fixture
def testing_profile(config: DeploymentConfig) -> EnvironmentProfile:
    return config.profiles["testing"]


@pytest.fixture
def ec2() -> MagicMock:
    client = MagicMock()
    client.waiter_names = ["instance_running"]
    client.run_instances.side_effect = [
        {"Instances": [{"InstanceId": "i-0001"}]},
        {"Instances": [{"InstanceId": "i-0002"}]},
    ]
    client.describe_instances.return_value = {
        "Reservations": [
            {
                "Instances": [
                    {"InstanceId": "i-0001", "PublicIpAddress": "203.0.113.10"},
                    {"InstanceId": "i-0002"},
                ]
            }
        ]
    }
    return client


@pytest.fixture
def s3() -> MagicMock:
    return MagicMock()
