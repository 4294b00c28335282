"""EC2 key pair: reuse the environment's key if present, otherwise create it and save the private key."""

import os
from pathlib import Path
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from datawise.errors import KeyPairError
from datawise.results import ProvisionResult

KEY_NOT_FOUND = "InvalidKeyPair.NotFound"
KEY_FILE_MODE = 0o600


def key_file_path(key_name: str, key_dir: str | Path) -> Path:
    return Path(key_dir) / f"{key_name}.pem"


def key_pair_exists(ec2: Any, key_name: str) -> bool:
    """Return True if a key pair with this name exists in the client's region."""
    try:
        ec2.describe_key_pairs(KeyNames=[key_name])
    except ClientError as e:
        if e.response.get("Error", {}).get("Code") == KEY_NOT_FOUND:
            return False
        raise KeyPairError(f"Could not look up key pair '{key_name}': {e}") from e
    except BotoCoreError as e:
        raise KeyPairError(f"Could not look up key pair '{key_name}': {e}") from e
    return True


def _write_private_key(path: Path, material: str) -> None:
    """Write key material readable and writable by the owner only.

    A file left behind by a deleted key pair is removed first, whatever its
    mode, and the new file is created exclusively with 0600 so the key is
    never on disk with wider permissions.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    path.unlink(missing_ok=True)
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, KEY_FILE_MODE)
    with os.fdopen(fd, "w", encoding="utf-8") as f:
        # pin the mode regardless of umask
        os.fchmod(f.fileno(), KEY_FILE_MODE)
        f.write(material)


def ensure_key_pair(ec2: Any, key_name: str, key_dir: str | Path) -> ProvisionResult:
    """Make sure key_name exists remotely.

    An existing key pair is left alone (no create call). A missing one is
    created as RSA/PEM and its private key is saved to <key_dir>/<key_name>.pem.

    Raises:
        KeyPairError: lookup, creation, or saving the private key failed.
    """
    print(f"Checking for key pair: {key_name}")
    if key_pair_exists(ec2, key_name):
        print(f"Key pair '{key_name}' already exists.")
        return ProvisionResult(resource=key_name, ok=True, message="already exists")

    print(f"Key pair '{key_name}' does not exist. Creating now...")
    try:
        response = ec2.create_key_pair(KeyName=key_name, KeyType="rsa", KeyFormat="pem")
    except (BotoCoreError, ClientError) as e:
        raise KeyPairError(f"Failed to create key pair '{key_name}': {e}") from e

    material = response.get("KeyMaterial")
    if not material:
        raise KeyPairError(f"Failed to create key pair '{key_name}': no key material returned")

    path = key_file_path(key_name, key_dir)
    try:
        _write_private_key(path, material)
    except OSError as e:
        # a key pair without its saved private key is unusable
        try:
            ec2.delete_key_pair(KeyName=key_name)
        except (BotoCoreError, ClientError) as cleanup_error:
            raise KeyPairError(
                f"Key pair '{key_name}' created but saving {path} failed: {e}. "
                f"Deleting the unusable key pair also failed: {cleanup_error}"
            ) from e
        raise KeyPairError(
            f"Key pair '{key_name}' created but saving {path} failed: {e}. The key pair was deleted."
        ) from e

    print(f"Key pair '{key_name}' created successfully and private key saved to {path}")
    print(
        "WARNING: Save this private key file in a secure location. "
        "You will need it to connect to your EC2 instances."
    )
    return ProvisionResult(resource=key_name, ok=True, message=f"created, private key at {path}")
