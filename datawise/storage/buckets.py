"""Department S3 buckets with tags and a raw/processed/analysis folder layout."""

from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from datawise.config import DeploymentConfig, Department, EnvironmentProfile
from datawise.results import ProvisionResult, count_succeeded


def bucket_name(company: str, department: Department | str, environment: str) -> str:
    """Real bucket name, e.g. datawise-marketing-testing-data-bucket."""
    dept = department.value if isinstance(department, Department) else department
    return f"{company}-{dept}-{environment}-data-bucket".lower()


def create_bucket(s3: Any, name: str, region: str, default_region: str = "us-east-1") -> None:
    """CreateBucket; every region except the provider default needs a location constraint."""
    kwargs: dict[str, Any] = {"Bucket": name}
    if region != default_region:
        kwargs["CreateBucketConfiguration"] = {"LocationConstraint": region}
    s3.create_bucket(**kwargs)


def tag_bucket(s3: Any, name: str, tags: dict[str, str]) -> None:
    s3.put_bucket_tagging(
        Bucket=name,
        Tagging={"TagSet": [{"Key": k, "Value": v} for k, v in tags.items()]},
    )


def create_folders(s3: Any, name: str, folders: tuple[str, ...]) -> None:
    """S3 has no directories; an empty object per prefix stands in for one."""
    for key in folders:
        s3.put_object(Bucket=name, Key=key, Body=b"")


def provision_department_bucket(
    s3: Any,
    department: Department,
    profile: EnvironmentProfile,
    config: DeploymentConfig,
) -> ProvisionResult:
    """Create, tag, and lay out one bucket. Only a failed create marks it failed."""
    name = bucket_name(config.company, department, profile.name)
    print(f"Creating S3 bucket: {name}")
    try:
        create_bucket(s3, name, profile.region, config.default_region)
    except (BotoCoreError, ClientError) as e:
        print(f"Failed to create S3 bucket '{name}'. It might already exist. ({e})")
        return ProvisionResult(resource=name, ok=False, message=str(e))
    print(f"S3 bucket '{name}' created successfully.")

    try:
        tag_bucket(
            s3,
            name,
            {
                "Department": department.value,
                "Environment": profile.name,
                "Project": config.project,
            },
        )
    except (BotoCoreError, ClientError) as e:
        print(f"Warning: tagging S3 bucket '{name}' failed: {e}")

    try:
        create_folders(s3, name, config.folders)
    except (BotoCoreError, ClientError) as e:
        print(f"Warning: creating folders in S3 bucket '{name}' failed: {e}")

    return ProvisionResult(resource=name, ok=True, message="created")


def create_department_buckets(
    s3: Any,
    profile: EnvironmentProfile,
    config: DeploymentConfig,
) -> list[ProvisionResult]:
    """One bucket per department. Failures are reported and skipped, never rolled back."""
    print(f"Creating S3 buckets for {profile.name} environment...")
    results = [provision_department_bucket(s3, dept, profile, config) for dept in config.departments]
    departments = " ".join(d.value for d in config.departments)
    print(f"Created {count_succeeded(results)} S3 buckets for departments: {departments}")
    return results
