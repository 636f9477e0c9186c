"""
Response parsing for administrative shell output.

The shell wraps its JSON payload in banners and diagnostics. extract_json()
takes everything from the first ``{`` to the last ``}`` and decodes it; this
is a heuristic, not a tokenizer. The typed projections validate the decoded
document with pydantic.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from clustershift.exceptions import ParseError
from clustershift.mongo.models import MemberConfig, MemberRole, MemberStatus

logger = logging.getLogger(__name__)


class ConfigMemberDocument(BaseModel):
    """A ``members[]`` entry of ``rs.conf()``."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    id: int = Field(default=0, alias="_id")
    host: str
    priority: float = 1.0


class ReplicaSetConfigDocument(BaseModel):
    """The subset of ``rs.conf()`` clustershift reads."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    id: str | None = Field(default=None, alias="_id")
    members: list[ConfigMemberDocument] = Field(default_factory=list)


class StatusMemberDocument(BaseModel):
    """A ``members[]`` entry of ``rs.status()``."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    name: str
    state_str: str = Field(alias="stateStr")


class ReplicaSetStatusDocument(BaseModel):
    """The subset of ``rs.status()`` clustershift reads."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    set: str | None = None
    members: list[StatusMemberDocument] = Field(default_factory=list)


def extract_json(text: str) -> dict[str, Any]:
    """
    Extract the single JSON object embedded in shell output.

    Args:
        text: Raw shell output.

    Returns:
        The decoded object.

    Raises:
        ParseError: If either delimiter is missing, they are out of order,
            or the enclosed text does not decode.

    Example:
        >>> extract_json('Connecting...\\n{"members":[{"host":"a:27017"}]}\\nbye')
        {'members': [{'host': 'a:27017'}]}
    """
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end == -1:
        raise ParseError("No JSON object found in shell output", output=text)
    if end < start:
        raise ParseError("Malformed JSON object in shell output", output=text)

    payload = text[start : end + 1]
    try:
        value = json.loads(payload)
    except json.JSONDecodeError as exc:
        raise ParseError(f"Shell output is not valid JSON: {exc}", output=text) from exc
    return value


def _validate(model: type[BaseModel], document: dict[str, Any], what: str) -> Any:
    try:
        return model.model_validate(document)
    except ValidationError as exc:
        raise ParseError(f"Unexpected {what} document: {exc}", output=json.dumps(document)) from exc


def parse_config_members(document: dict[str, Any]) -> list[MemberConfig]:
    """Decode the members of a replica-set configuration document, in order."""
    config = _validate(ReplicaSetConfigDocument, document, "replica-set config")
    return [MemberConfig(member_id=m.id, host=m.host, priority=m.priority) for m in config.members]


def parse_member_list(document: dict[str, Any]) -> list[str]:
    """Member hosts of a replica-set configuration document, in order."""
    return [member.host for member in parse_config_members(document)]


def parse_status(document: dict[str, Any]) -> list[MemberStatus]:
    """Decode ``(host, role)`` pairs from a replica-set status document."""
    status = _validate(ReplicaSetStatusDocument, document, "replica-set status")
    return [
        MemberStatus(host=m.name, role=MemberRole.from_state_str(m.state_str))
        for m in status.members
    ]


__all__ = [
    "ConfigMemberDocument",
    "ReplicaSetConfigDocument",
    "StatusMemberDocument",
    "ReplicaSetStatusDocument",
    "extract_json",
    "parse_config_members",
    "parse_member_list",
    "parse_status",
]
