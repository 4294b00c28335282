"""Check an environment table against the schema its apiVersion names.

apiVersion is '<group>/<version>', e.g. 'datawise.io/v1'. The version picks
datawise/schema/environments-<version>.json, so a new table version only
needs a new schema file next to the existing ones.
"""

import json
from pathlib import Path
import re
from typing import Any

import jsonschema
from jsonschema.exceptions import relevance

from datawise.errors import ConfigurationError

API_VERSION_RE = re.compile(r"^datawise\.io/(?P<version>v[0-9]+)$")
SCHEMA_DIR = Path(__file__).resolve().parent.parent / "schema"
MAX_REPORTED_ERRORS = 10


def schema_path(api_version: str) -> Path:
    match = API_VERSION_RE.match(api_version)
    if match is None:
        raise ConfigurationError(f"Unsupported apiVersion: {api_version} (expected datawise.io/v<N>)")
    return SCHEMA_DIR / f"environments-{match['version']}.json"


def load_schema(api_version: str) -> dict[str, Any]:
    """Load the schema for api_version.

    Raises:
        ConfigurationError: the apiVersion is malformed or no schema ships for it.
    """
    path = schema_path(api_version)
    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError as e:
        raise ConfigurationError(f"Unsupported apiVersion: {api_version} (no schema {path.name})") from e


def _location(err: jsonschema.ValidationError) -> str:
    return ".".join(str(p) for p in err.absolute_path) or "(root)"


def validate_environment_table(data: dict[str, Any], source: str = "environments.yaml") -> None:
    """Validate a parsed environment table.

    Every violation is collected, most relevant first, and reported together
    with its dotted location (e.g. 'buckets.departments.5').

    Raises:
        ConfigurationError: apiVersion is missing or unsupported, or the table
            does not match its schema.
    """
    api_version = data.get("apiVersion")
    if not api_version:
        raise ConfigurationError(f"{source}: missing required field: apiVersion")
    schema = load_schema(str(api_version))
    errors = sorted(jsonschema.Draft202012Validator(schema).iter_errors(data), key=relevance, reverse=True)
    if not errors:
        return
    lines = [f"{source} does not match schema {api_version}:"]
    lines.extend(f"  {_location(err)}: {err.message}" for err in errors[:MAX_REPORTED_ERRORS])
    if len(errors) > MAX_REPORTED_ERRORS:
        lines.append(f"  ... {len(errors) - MAX_REPORTED_ERRORS} more")
    raise ConfigurationError("\n".join(lines))
