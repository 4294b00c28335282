"""Environment table loading, validation, and environment resolution."""

from collections.abc import Mapping, MutableMapping
from dataclasses import dataclass
from enum import Enum
import os
from pathlib import Path
from typing import Any

import yaml

from datawise.errors import ConfigurationError, InvalidEnvironmentError
from datawise.validation.validator import validate_environment_table

CONFIG_PATH_ENV = "DATAWISE_CONFIG_PATH"
REGION_ENV = "AWS_DEFAULT_REGION"
ENVIRONMENTS = ("local", "testing", "production")
KEY_PAIR_PREFIX = "datawise-key"
KEY_DIR_ENV = "DATAWISE_KEY_DIR"


def _default_config_path() -> Path:
    return Path(__file__).resolve().parent / "environments.yaml"


class Department(str, Enum):
    """Departments that get a data bucket each."""

    MARKETING = "Marketing"
    SALES = "Sales"
    HR = "HR"
    OPERATIONS = "Operations"
    MEDIA = "Media"


@dataclass(frozen=True)
class EnvironmentProfile:
    """Resolved deployment environment: where and how big."""

    name: str
    region: str
    instance_type: str
    key_pair_name: str


@dataclass(frozen=True)
class DeploymentConfig:
    """Parsed and validated environments.yaml."""

    company: str
    project: str
    profiles: dict[str, EnvironmentProfile]
    images: dict[str, str]
    default_region: str = "us-east-1"
    instance_count: int = 2
    login_user: str = "ec2-user"
    departments: tuple[Department, ...] = tuple(Department)
    folders: tuple[str, ...] = ("raw/", "processed/", "analysis/")

    @classmethod
    def from_dict(cls, data: dict[str, Any], source: str = "environments.yaml") -> "DeploymentConfig":
        """Build a config from an already-parsed table; validates against the schema."""
        validate_environment_table(data, source)

        instances = data["instances"]
        buckets = data["buckets"]
        profiles = {
            name: EnvironmentProfile(
                name=name,
                region=env["region"],
                instance_type=env["instanceType"],
                key_pair_name=f"{KEY_PAIR_PREFIX}-{name}",
            )
            for name, env in data["environments"].items()
        }
        return cls(
            company=data["company"],
            project=data["project"],
            profiles=profiles,
            images=dict(instances["images"]),
            default_region=data.get("defaultRegion", "us-east-1"),
            instance_count=instances["count"],
            login_user=instances.get("loginUser", "ec2-user"),
            departments=tuple(Department(d) for d in buckets["departments"]),
            folders=tuple(buckets["folders"]),
        )

    @classmethod
    def from_file(cls, path: str | Path) -> "DeploymentConfig":
        """Load and validate an environments.yaml from file path."""
        path = Path(path)
        if not path.exists():
            raise ConfigurationError(f"Environment table not found: {path}")

        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
        if not isinstance(data, dict):
            raise ConfigurationError(f"Environment table is not a mapping: {path}")
        return cls.from_dict(data, str(path))


def load_deployment_config(path: str | Path | None = None) -> DeploymentConfig:
    """Load the environment table.

    Uses path if given, else DATAWISE_CONFIG_PATH, else the table shipped with the package.
    """
    if path is None:
        path = os.environ.get(CONFIG_PATH_ENV) or _default_config_path()
    return DeploymentConfig.from_file(path)


def validate_environment_label(label: str) -> None:
    if label not in ENVIRONMENTS:
        raise InvalidEnvironmentError(
            "Invalid environment specified. Please use 'local', 'testing', or 'production'."
        )


def resolve_environment(label: str, config: DeploymentConfig | None = None) -> EnvironmentProfile:
    """Map an environment label to its profile.

    Raises:
        InvalidEnvironmentError: label is not local, testing or production.
    """
    validate_environment_label(label)
    if config is None:
        config = load_deployment_config()
    return config.profiles[label]


def activate_environment(
    profile: EnvironmentProfile,
    environ: MutableMapping[str, str] | None = None,
) -> None:
    """Export the profile's region for every SDK call that follows."""
    if environ is None:
        environ = os.environ
    print(f"Running script for {profile.name.capitalize()} Environment...")
    environ[REGION_ENV] = profile.region
    print(f"Using AWS region: {profile.region}")
    print(f"Using instance type: {profile.instance_type}")


def key_directory(environ: Mapping[str, str] | None = None) -> Path:
    """Where private key files go: DATAWISE_KEY_DIR, else the working directory."""
    if environ is None:
        environ = os.environ
    return Path(environ.get(KEY_DIR_ENV) or Path.cwd())
