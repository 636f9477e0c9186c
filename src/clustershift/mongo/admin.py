"""
Administrative protocol over a Command Channel.

ReplicaSetAdmin builds the literal shell expressions clustershift sends and
reads answers back from their output:

    JSON.stringify(rs.conf())       configuration as JSON
    JSON.stringify(rs.status())     status as JSON
    rs.add("<host>")                add member
    rs.remove("<host>")             remove member
    cfg = rs.conf(); ...; rs.reconfig(cfg, {force: true})
                                    set priorities / overwrite hosts

Host strings are quoted with ``json.dumps`` so they are valid JavaScript
string literals. Multi-line scripts are collapsed to a single line before
being sent.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Mapping, Sequence

from clustershift.exceptions import StateError
from clustershift.mongo.channel import CommandChannel
from clustershift.mongo.models import (
    MemberConfig,
    MemberRole,
    MemberStatus,
    ReplicaSetMember,
)
from clustershift.mongo.parser import (
    extract_json,
    parse_config_members,
    parse_status,
)
from clustershift.observability import (
    ATTR_MEMBER_COUNT,
    ATTR_MEMBER_HOST,
    ATTR_PRIMARY_HOST,
    Tracer,
    create_tracer,
)

logger = logging.getLogger(__name__)

CONFIG_COMMAND = "JSON.stringify(rs.conf())"
STATUS_COMMAND = "JSON.stringify(rs.status())"

SET_PRIORITIES_SCRIPT = """
cfg = rs.conf();
var priorities = {priorities};
cfg.members.forEach(function (m) {{
  if (priorities.hasOwnProperty(m.host)) {{
    m.priority = priorities[m.host];
  }}
}});
rs.reconfig(cfg, {{force: true}});
"""

OVERWRITE_HOSTS_SCRIPT = """
cfg = rs.conf();
var hosts = {hosts};
for (var i = 0; i < hosts.length; i++) {{
  cfg.members[i].host = hosts[i];
}}
rs.reconfig(cfg, {{force: true}});
"""


def compact_script(script: str) -> str:
    """Collapse all whitespace runs to single spaces."""
    return re.sub(r"\s+", " ", script).strip()


class ReplicaSetAdmin:
    """
    Replica-set administration through a CommandChannel.

    Every method addresses one host explicitly. Reads work against any
    member; mutations must be addressed to the current primary, otherwise the
    engine rejects them and the channel raises ExecutionError.

    Args:
        channel: Channel to evaluate commands through.
        tracer: Optional custom tracer.
        enable_tracing: Whether to create a tracer when none is given.

    Example:
        >>> admin = ReplicaSetAdmin(channel)
        >>> primary = admin.primary_host("mongo.db.svc.cluster.local:27017")
        >>> admin.add_member(primary, "mongo-0.target.mongo.db.svc.clusterset.local:27017")
    """

    def __init__(
        self,
        channel: CommandChannel,
        *,
        tracer: Tracer | None = None,
        enable_tracing: bool = True,
    ) -> None:
        self._channel = channel
        self._tracer = tracer or create_tracer(__name__, enable_tracing)

    @property
    def channel(self) -> CommandChannel:
        return self._channel

    # -- reads --------------------------------------------------------------

    def config_members(self, host: str) -> list[MemberConfig]:
        """Members of the live configuration, in configuration order."""
        output = self._channel.execute(host, CONFIG_COMMAND)
        return parse_config_members(extract_json(output))

    def member_hosts(self, host: str) -> list[str]:
        """Hosts of the live configuration, in configuration order."""
        return [member.host for member in self.config_members(host)]

    def status(self, host: str) -> list[MemberStatus]:
        """Role of every member as reported by the replica set."""
        output = self._channel.execute(host, STATUS_COMMAND)
        return parse_status(extract_json(output))

    def members(self, host: str) -> list[ReplicaSetMember]:
        """Configuration and status combined, in configuration order."""
        roles = {member.host: member.role for member in self.status(host)}
        return [
            ReplicaSetMember(
                host=member.host,
                role=roles.get(member.host, MemberRole.OTHER),
                priority=member.priority,
            )
            for member in self.config_members(host)
        ]

    def primary_host(self, host: str) -> str:
        """
        The member currently reporting PRIMARY.

        Raises:
            StateError: If no member reports PRIMARY.
        """
        for member in self.status(host):
            if member.role is MemberRole.PRIMARY:
                return member.host
        raise StateError(f"No PRIMARY member reported by {host}")

    def role_of(self, host: str, member: str) -> MemberRole | None:
        """Role ``member`` reports, or None if it is not in the status."""
        for entry in self.status(host):
            if entry.host == member:
                logger.debug("Member %s reports %s", member, entry.role.value)
                return entry.role
        logger.debug("Member %s not in replica-set status yet", member)
        return None

    # -- mutations ----------------------------------------------------------

    def add_member(self, primary: str, host: str) -> None:
        """Add ``host`` to the replica set."""
        with self._tracer.span(
            "clustershift.admin.add_member",
            {ATTR_PRIMARY_HOST: primary, ATTR_MEMBER_HOST: host},
        ):
            self._channel.execute(primary, f"rs.add({json.dumps(host)})")
        logger.info("Added member %s via %s", host, primary)

    def remove_member(self, primary: str, host: str) -> None:
        """Remove ``host`` from the replica set."""
        with self._tracer.span(
            "clustershift.admin.remove_member",
            {ATTR_PRIMARY_HOST: primary, ATTR_MEMBER_HOST: host},
        ):
            self._channel.execute(primary, f"rs.remove({json.dumps(host)})")
        logger.info("Removed member %s via %s", host, primary)

    def set_priorities(self, primary: str, priorities: Mapping[str, float]) -> None:
        """
        Set member priorities in one forced reconfiguration.

        Members not named in ``priorities`` keep their priority. This biases
        the next election; it does not force one.
        """
        script = SET_PRIORITIES_SCRIPT.format(
            priorities=json.dumps(dict(priorities), sort_keys=True)
        )
        with self._tracer.span(
            "clustershift.admin.set_priorities",
            {ATTR_PRIMARY_HOST: primary, ATTR_MEMBER_COUNT: len(priorities)},
        ):
            self._channel.execute(primary, compact_script(script))
        logger.info("Set priorities %s via %s", dict(priorities), primary)

    def overwrite_hosts(self, primary: str, hosts: Sequence[str]) -> None:
        """
        Replace member hosts index by index in one forced reconfiguration.

        Raises:
            StateError: If ``hosts`` and the live configuration differ in length.
        """
        live = self.member_hosts(primary)
        if len(live) != len(hosts):
            raise StateError(
                f"Cannot overwrite {len(live)} member hosts with {len(hosts)} new hosts"
            )
        script = OVERWRITE_HOSTS_SCRIPT.format(hosts=json.dumps(list(hosts)))
        with self._tracer.span(
            "clustershift.admin.overwrite_hosts",
            {ATTR_PRIMARY_HOST: primary, ATTR_MEMBER_COUNT: len(hosts)},
        ):
            self._channel.execute(primary, compact_script(script))
        logger.info("Rewrote member hosts %s -> %s", live, list(hosts))


__all__ = [
    "ReplicaSetAdmin",
    "CONFIG_COMMAND",
    "STATUS_COMMAND",
    "compact_script",
]
