"""Authorisation policies: which token claims grant access to which paths."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional, Union

import yaml

from .collection_utils import contains, has_matching_element, to_string_list

logger = logging.getLogger(__name__)


class PolicyError(Exception):
    """Raised when an auth policy file cannot be read or understood."""


class PolicyClaims(dict):
    """Claim names mapped to the values any one of which satisfies the policy."""

    def fulfilled(
        self,
        token_claims: Mapping[str, Any],
        placeholder_values: Optional[Mapping[str, str]] = None,
    ) -> bool:
        """True when the token satisfies at least one policy claim, or there are none."""
        if not self:
            return True
        placeholders = placeholder_values or {}
        for name, values in self.items():
            name = resolve_template(name, placeholders)
            values = resolve_templates(values, placeholders)
            if name not in token_claims:
                continue
            claim = token_claims[name]
            if isinstance(claim, str):
                if contains(values, claim):
                    return True
            elif isinstance(claim, bool):
                if contains(values, "true" if claim else "false"):
                    return True
            elif isinstance(claim, int):
                if contains(values, str(claim)):
                    return True
            elif isinstance(claim, (list, tuple)):
                try:
                    claim_strings = to_string_list(claim)
                except TypeError as err:
                    logger.info("unsupported jwt claims type: %r (%s)", claim, err)
                    continue
                if has_matching_element(values, claim_strings):
                    return True
            else:
                logger.info("jwt claim values of type %s are not supported", type(claim).__name__)
        return False


@dataclass
class PathPolicy:
    """Claims required for requests to a path, optionally limited to some HTTP methods."""

    path: str = ""
    http_methods: Optional[list[str]] = None
    claims: PolicyClaims = field(default_factory=PolicyClaims)


def resolve_template(value: str, placeholder_values: Mapping[str, str]) -> str:
    """Replace a ':name' placeholder with its value; other values are returned unchanged."""
    if value.startswith(":"):
        return (placeholder_values or {}).get(value[1:], "")
    return value


def resolve_templates(values: Iterable[str], placeholder_values: Mapping[str, str]) -> list[str]:
    """Resolve each value with resolve_template."""
    return [resolve_template(value, placeholder_values) for value in values]


def _scalar(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (str, int, float)):
        return str(value)
    raise ValueError(f"expected a scalar value, got {value!r}")


def _string_list(value: Any) -> Optional[list[str]]:
    if value is None:
        return None
    if not isinstance(value, list):
        raise ValueError(f"expected a list, got {value!r}")
    return [_scalar(item) for item in value]


def _claims(value: Any) -> PolicyClaims:
    if value is None:
        return PolicyClaims()
    if not isinstance(value, dict):
        raise ValueError(f"expected a mapping of claims, got {value!r}")
    return PolicyClaims({_scalar(name): _string_list(values) or [] for name, values in value.items()})


def _path_policy(entry: Any) -> PathPolicy:
    if entry is None:
        return PathPolicy()
    if not isinstance(entry, dict):
        raise ValueError(f"expected a mapping for each path policy, got {entry!r}")
    return PathPolicy(
        path=_scalar(entry.get("path")),
        http_methods=_string_list(entry.get("methods")),
        claims=_claims(entry.get("claims")),
    )


def load_path_policies(policy_path: Union[str, Path]) -> list[PathPolicy]:
    """Read the list of path policies from a YAML file."""
    try:
        text = Path(policy_path).read_text(encoding="utf-8")
    except OSError as err:
        raise PolicyError(f'failed to load auth policy file "{policy_path}": {err}') from err
    try:
        data = yaml.safe_load(text)
        if data is None:
            return []
        if not isinstance(data, list):
            raise ValueError(f"expected a list of path policies, got {data!r}")
        return [_path_policy(entry) for entry in data]
    except (yaml.YAMLError, ValueError) as err:
        raise PolicyError(f'failed to deserialise auth policy file "{policy_path}": {err}') from err