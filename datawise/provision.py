"""Provisioning workflow: preflight, key pair, instances, then department buckets.

Each step must succeed before the next one starts, except bucket creation,
which is best-effort per bucket.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

import boto3

from datawise.compute.instances import create_instances, describe_connection_info
from datawise.compute.key_pair import ensure_key_pair
from datawise.config import DeploymentConfig, EnvironmentProfile
from datawise.preflight import run_preflight
from datawise.results import ProvisionResult, count_succeeded
from datawise.storage.buckets import create_department_buckets


@dataclass
class ProvisionReport:
    """What a run created."""

    key_pair: ProvisionResult
    instance_ids: list[str] = field(default_factory=list)
    buckets: list[ProvisionResult] = field(default_factory=list)

    @property
    def buckets_created(self) -> int:
        return count_succeeded(self.buckets)


def provision_environment(
    session: boto3.session.Session,
    profile: EnvironmentProfile,
    config: DeploymentConfig,
    key_dir: str | Path,
    environ: Mapping[str, str] | None = None,
) -> ProvisionReport:
    """Run every step for one environment.

    Raises:
        ProvisioningError: preflight, key pair, or instance step failed. Nothing
            created before the failure is cleaned up.
    """
    run_preflight(session, environ, profile.region)

    ec2 = session.client("ec2", region_name=profile.region)
    key_pair = ensure_key_pair(ec2, profile.key_pair_name, key_dir)

    instance_ids = create_instances(ec2, profile, config)
    describe_connection_info(ec2, instance_ids, profile.key_pair_name, config.login_user)

    s3 = session.client("s3", region_name=profile.region)
    buckets = create_department_buckets(s3, profile, config)

    return ProvisionReport(key_pair=key_pair, instance_ids=instance_ids, buckets=buckets)
