"""EC2 instances for an environment: create, wait until running, print connection info."""

from typing import Any

from botocore.exceptions import BotoCoreError, ClientError, WaiterError

from datawise.config import DeploymentConfig, EnvironmentProfile
from datawise.errors import InstanceError


def image_for_region(region: str, config: DeploymentConfig) -> str:
    """Return the AMI for region; only regions in the image table are supported."""
    image_id = config.images.get(region)
    if image_id is None:
        raise InstanceError(f"Unsupported region: {region}")
    return image_id


def instance_tags(instance_name: str, profile: EnvironmentProfile, config: DeploymentConfig) -> list[dict[str, str]]:
    return [
        {"Key": "Name", "Value": instance_name},
        {"Key": "Environment", "Value": profile.name},
        {"Key": "Project", "Value": config.project},
    ]


def wait_for_running(ec2: Any, instance_ids: list[str]) -> None:
    """Block until every instance reports running."""
    print("Waiting for instances to be in running state...")
    try:
        ec2.get_waiter("instance_running").wait(InstanceIds=instance_ids)
    except (WaiterError, BotoCoreError, ClientError) as e:
        raise InstanceError(f"Instances did not reach running state: {e}") from e
    print("All instances are now running.")


def create_instances(ec2: Any, profile: EnvironmentProfile, config: DeploymentConfig) -> list[str]:
    """Create config.instance_count instances one at a time and wait for them to run.

    Stops at the first failure; instances already created are left in place.

    Raises:
        InstanceError: unsupported region (nothing is created), a failed
            RunInstances call, or the running wait failing.
    """
    print(f"Creating EC2 instances for {profile.name} environment...")
    image_id = image_for_region(profile.region, config)

    instance_ids: list[str] = []
    for i in range(1, config.instance_count + 1):
        instance_name = f"{config.company}-{profile.name}-instance-{i}"
        print(f"Creating instance: {instance_name}")
        try:
            response = ec2.run_instances(
                ImageId=image_id,
                InstanceType=profile.instance_type,
                KeyName=profile.key_pair_name,
                MinCount=1,
                MaxCount=1,
                TagSpecifications=[
                    {
                        "ResourceType": "instance",
                        "Tags": instance_tags(instance_name, profile, config),
                    }
                ],
            )
        except (BotoCoreError, ClientError) as e:
            raise InstanceError(f"Failed to create EC2 instance: {instance_name} ({e})") from e

        instances = response.get("Instances") or []
        instance_id = instances[0].get("InstanceId") if instances else None
        if not instance_id:
            raise InstanceError(f"Failed to create EC2 instance: {instance_name} (no instance id returned)")
        print(f"EC2 instance created successfully: {instance_id}")
        instance_ids.append(instance_id)

    if instance_ids:
        wait_for_running(ec2, instance_ids)
    return instance_ids


def describe_connection_info(
    ec2: Any,
    instance_ids: list[str],
    key_name: str,
    login_user: str = "ec2-user",
) -> dict[str, str | None]:
    """Print an ssh command per instance and return instance id -> public IP.

    Instances without a public IP map to None. A failed describe call only
    prints the generic instructions; the instances are already running.
    """
    public_ips: dict[str, str | None] = {instance_id: None for instance_id in instance_ids}
    if not instance_ids:
        return public_ips
    try:
        response = ec2.describe_instances(InstanceIds=instance_ids)
    except (BotoCoreError, ClientError) as e:
        print(f"Warning: could not describe instances: {e}")
    else:
        for reservation in response.get("Reservations", []):
            for instance in reservation.get("Instances", []):
                if instance.get("InstanceId") in public_ips:
                    public_ips[instance["InstanceId"]] = instance.get("PublicIpAddress")

    print("")
    print("To connect to your instances, use:")
    for instance_id, ip in public_ips.items():
        print(f"  {instance_id}: ssh -i {key_name}.pem {login_user}@{ip or '<instance-public-ip>'}")
    print("")
    if not all(public_ips.values()):
        print("Replace <instance-public-ip> with the actual public IP address of your instance.")
    return public_ips
