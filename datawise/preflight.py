"""Preflight: confirm the AWS SDK is usable and credentials resolve before touching anything.

Both checks must pass. Neither is retried; a failure stops the run with exit code 1.
"""

from collections.abc import Mapping
import os
from typing import Any

import boto3
import botocore
from botocore.exceptions import BotoCoreError, ClientError

from datawise.errors import PreflightError

# Operations and waiters the run calls, per service.
REQUIRED_OPERATIONS: dict[str, tuple[str, ...]] = {
    "ec2": ("describe_key_pairs", "create_key_pair", "run_instances", "describe_instances"),
    "s3": ("create_bucket", "put_bucket_tagging", "put_object"),
    "sts": ("get_caller_identity",),
}
REQUIRED_WAITERS: dict[str, tuple[str, ...]] = {"ec2": ("instance_running",)}
CREDENTIAL_ENV_VARS = ("AWS_PROFILE", "AWS_ACCESS_KEY_ID")


def check_provider_sdk(session: boto3.session.Session, region: str | None = None) -> None:
    """Fail unless the SDK can build a client for every service the run calls.

    Clients are built locally; no request is sent. This catches a missing
    region, a missing service model, and a botocore too old to expose an
    operation or waiter used later in the run.
    """
    problems: list[str] = []
    for service, operations in REQUIRED_OPERATIONS.items():
        try:
            client = session.client(service, region_name=region)
        except BotoCoreError as e:
            problems.append(f"{service}: {e}")
            continue
        problems.extend(f"{service}: no operation {op}" for op in operations if not hasattr(client, op))
        waiters = REQUIRED_WAITERS.get(service, ())
        if waiters:
            available = set(client.waiter_names)
            problems.extend(f"{service}: no waiter {w}" for w in waiters if w not in available)
    if problems:
        raise PreflightError(
            "AWS SDK is not usable for this run:\n  "
            + "\n  ".join(problems)
            + "\nPlease install or upgrade boto3 before proceeding."
        )
    print(f"AWS SDK is available (boto3 {boto3.__version__}, botocore {botocore.__version__}).")


def check_credentials(
    session: boto3.session.Session,
    environ: Mapping[str, str] | None = None,
) -> dict[str, Any] | None:
    """Confirm credentials are resolvable.

    Explicit profile or access key variables are trusted as-is. Otherwise the
    default credential chain is checked with sts:GetCallerIdentity and the
    identity is returned.
    """
    if environ is None:
        environ = os.environ
    if any(environ.get(var) for var in CREDENTIAL_ENV_VARS):
        print("AWS credentials are configured.")
        return None

    print("Warning: AWS profile environment variable is not set.")
    print("Checking for default credentials...")
    try:
        identity = session.client("sts").get_caller_identity()
    except (BotoCoreError, ClientError) as e:
        raise PreflightError(
            "No AWS credentials found. Please configure AWS CLI or set AWS environment variables."
        ) from e
    print(f"Using credentials for {identity.get('Arn', 'unknown identity')}")
    return identity


def run_preflight(
    session: boto3.session.Session,
    environ: Mapping[str, str] | None = None,
    region: str | None = None,
) -> None:
    check_provider_sdk(session, region)
    check_credentials(session, environ)
