"""
Unit tests for shell output parsing.
"""

import json

import pytest

from clustershift.exceptions import ParseError
from clustershift.mongo.models import MemberConfig, MemberRole, MemberStatus
from clustershift.mongo.parser import (
    extract_json,
    parse_config_members,
    parse_member_list,
    parse_status,
)

CONFIG = {
    "_id": "rs0",
    "version": 4,
    "members": [
        {"_id": 0, "host": "mongo-0.mongo.db.svc.cluster.local:27017", "priority": 1, "votes": 1},
        {"_id": 1, "host": "mongo-1.mongo.db.svc.cluster.local:27017", "priority": 0.5},
        {"_id": 2, "host": "mongo-2.mongo.db.svc.cluster.local:27017"},
    ],
}

STATUS = {
    "set": "rs0",
    "ok": 1,
    "members": [
        {"_id": 0, "name": "mongo-0.mongo.db.svc.cluster.local:27017", "stateStr": "PRIMARY"},
        {"_id": 1, "name": "mongo-1.mongo.db.svc.cluster.local:27017", "stateStr": "SECONDARY"},
        {"_id": 2, "name": "mongo-2.mongo.db.svc.cluster.local:27017", "stateStr": "STARTUP2"},
    ],
}


class TestExtractJson:
    """Tests for extract_json."""

    def test_plain_document(self):
        assert extract_json('{"a": 1}') == {"a": 1}

    def test_surrounding_noise(self):
        text = "Current Mongosh Log ID: 65f\nConnecting to: mongodb://...\n" + json.dumps(CONFIG) + "\n"
        assert extract_json(text) == CONFIG

    def test_nested_braces(self):
        assert extract_json('x {"a": {"b": {}}} y') == {"a": {"b": {}}}

    @pytest.mark.parametrize("text", ["", "no json here", "only { open", "only close }"])
    def test_missing_delimiters(self, text):
        with pytest.raises(ParseError) as exc_info:
            extract_json(text)
        assert exc_info.value.output == text

    def test_out_of_order(self):
        with pytest.raises(ParseError):
            extract_json("} then {")

    def test_invalid_json(self):
        with pytest.raises(ParseError):
            extract_json("{ ok: 1 }")


class TestParseConfig:
    """Tests for parse_config_members / parse_member_list."""

    def test_members_in_order(self):
        members = parse_config_members(CONFIG)
        assert members[0] == MemberConfig(0, "mongo-0.mongo.db.svc.cluster.local:27017", 1.0)
        assert members[1].priority == 0.5
        assert members[2].priority == 1.0

    def test_member_list(self):
        assert parse_member_list(CONFIG) == [
            "mongo-0.mongo.db.svc.cluster.local:27017",
            "mongo-1.mongo.db.svc.cluster.local:27017",
            "mongo-2.mongo.db.svc.cluster.local:27017",
        ]

    def test_no_members(self):
        assert parse_member_list({"_id": "rs0"}) == []

    def test_member_without_host(self):
        with pytest.raises(ParseError):
            parse_config_members({"members": [{"_id": 0}]})


class TestParseStatus:
    """Tests for parse_status."""

    def test_roles(self):
        assert parse_status(STATUS) == [
            MemberStatus("mongo-0.mongo.db.svc.cluster.local:27017", MemberRole.PRIMARY),
            MemberStatus("mongo-1.mongo.db.svc.cluster.local:27017", MemberRole.SECONDARY),
            MemberStatus("mongo-2.mongo.db.svc.cluster.local:27017", MemberRole.OTHER),
        ]

    def test_member_without_state(self):
        with pytest.raises(ParseError):
            parse_status({"members": [{"name": "a:27017"}]})
