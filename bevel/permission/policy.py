"""
Permission policy validation and loading.

A policy maps exact qualified names ("git.push") or skill wildcards
("git.*") to permission levels. Policy files are YAML, either a bare
mapping or a mapping under a top-level "permissions" key:

    permissions:
      fs.*: allow
      fs.remove: ask
      shell.*: deny
"""

import re
from pathlib import Path
from typing import Any, Mapping

import yaml
from pydantic import TypeAdapter, ValidationError

from bevel.permission.exceptions import PolicyError
from bevel.permission.resolver import PermissionPolicy
from bevel.utils.logging import get_logger

logger = get_logger(__name__)

_policy_adapter = TypeAdapter(PermissionPolicy)

# "<skill>.<operation>" or "<skill>.*"
_KEY_RE = re.compile(r"^[^.]+\.([^.]+|\*)$")


def validate_policy(policy: Mapping[str, Any]) -> PermissionPolicy:
    """
    Validate a policy mapping and return it as a plain dict.

    Keys that can never match a qualified name are kept but logged.

    Raises:
        PolicyError: If a key is not a string or a level is unknown
    """
    try:
        validated = _policy_adapter.validate_python(dict(policy))
    except ValidationError as e:
        raise PolicyError(f"Invalid permission policy: {e}") from e

    for key in validated:
        if not _KEY_RE.match(key):
            logger.warning("policy_key_unmatchable", key=key)

    return validated


def load_policy(path: str | Path) -> PermissionPolicy:
    """
    Load a permission policy from a YAML file.

    Raises:
        PolicyError: If the file cannot be read, parsed or validated
    """
    policy_path = Path(path).expanduser()
    try:
        content = policy_path.read_text(encoding="utf-8")
    except OSError as e:
        raise PolicyError(f"Failed to read {policy_path}: {e}") from e

    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise PolicyError(f"Invalid YAML in {policy_path}: {e}") from e

    if data is None:
        data = {}
    if isinstance(data, dict) and isinstance(data.get("permissions"), dict):
        data = data["permissions"]
    if not isinstance(data, dict):
        raise PolicyError(f"Policy must be a mapping in {policy_path}")

    policy = validate_policy(data)
    logger.debug("policy_loaded", path=str(policy_path), entries=len(policy))
    return policy


__all__ = ["load_policy", "validate_policy"]
