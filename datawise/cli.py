"""
DataWise environment setup: provisions EC2 instances and department S3 buckets
for one deployment environment.

Usage:
    datawise <environment>

Valid environments: local, testing, production.
Exit codes: 0 success, 1 usage or provisioning failure, 2 invalid environment.
"""

import sys

import boto3
from botocore.exceptions import BotoCoreError

from datawise.config import (
    ENVIRONMENTS,
    activate_environment,
    key_directory,
    load_deployment_config,
    resolve_environment,
    validate_environment_label,
)
from datawise.errors import ConfigurationError, InvalidEnvironmentError, ProvisioningError
from datawise.provision import provision_environment

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INVALID_ENVIRONMENT = 2
BANNER_WIDTH = 48


def _banner(message: str) -> None:
    print("=" * BANNER_WIDTH)
    print(message)
    print("=" * BANNER_WIDTH)


def _usage() -> None:
    print("Usage: datawise <environment>")
    print(f"Valid environments: {', '.join(ENVIRONMENTS)}")


def main(argv: list[str] | None = None) -> None:
    args = sys.argv[1:] if argv is None else argv

    _banner("DataWise Solutions - AWS Environment Setup")

    if len(args) != 1:
        _usage()
        sys.exit(EXIT_FAILURE)
    label = args[0]

    try:
        validate_environment_label(label)
    except InvalidEnvironmentError as e:
        print(e, file=sys.stderr)
        sys.exit(EXIT_INVALID_ENVIRONMENT)

    try:
        config = load_deployment_config()
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(EXIT_FAILURE)
    profile = resolve_environment(label, config)
    activate_environment(profile)

    try:
        session = boto3.session.Session(region_name=profile.region)
        provision_environment(session, profile, config, key_directory())
    except ProvisioningError as e:
        print(f"Error: {e}", file=sys.stderr)
        print("Exiting.", file=sys.stderr)
        sys.exit(EXIT_FAILURE)
    except BotoCoreError as e:
        # e.g. AWS_PROFILE names a profile that is not configured
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(EXIT_FAILURE)

    _banner(f"Environment setup completed for {profile.name}")
    sys.exit(EXIT_OK)


if __name__ == "__main__":
    main()
