"""
Unit tests for the newline-delimited relationship stream parser.
"""

import json
import logging

import pytest

from authz_bridge.backends.stream import RelationshipStreamParser, parse_relationship_stream


def line(resource_id: str, relation: str, subject_id: str) -> str:
    return json.dumps(
        {
            "result": {
                "relationship": {
                    "resource": {"objectType": "system", "objectId": resource_id},
                    "relation": relation,
                    "subject": {"object": {"objectType": "user", "objectId": subject_id}},
                }
            }
        }
    )


@pytest.mark.unit
class TestRelationshipStreamParser:
    def test_malformed_middle_line_is_skipped(self, caplog):
        raw = "\n".join([line("system1", "owner", "alice"), "{not json", line("system2", "staff", "bob")])

        with caplog.at_level(logging.WARNING):
            relationships = parse_relationship_stream(raw)

        assert [(r.resource, r.relation, r.subject_id) for r in relationships] == [
            ("system:system1", "owner", "alice"),
            ("system:system2", "staff", "bob"),
        ]
        assert "line 2" in caplog.text

    def test_lines_without_result_are_skipped(self):
        raw = "\n".join(
            [
                "",
                json.dumps({"heartbeat": True}),
                line("system1", "manager", "alice"),
                json.dumps({"result": None}),
                "   ",
            ]
        )
        relationships = RelationshipStreamParser().parse(raw)
        assert len(relationships) == 1
        assert relationships[0].relation == "manager"

    def test_schema_mismatch_is_skipped(self):
        raw = "\n".join(
            [
                json.dumps({"result": {"relationship": {"relation": "owner"}}}),
                json.dumps([1, 2, 3]),
                line("system1", "owner", "alice"),
            ]
        )
        assert [r.resource for r in parse_relationship_stream(raw)] == ["system:system1"]

    def test_error_line_is_logged(self, caplog):
        raw = json.dumps({"error": {"code": 5, "message": "not found"}})
        with caplog.at_level(logging.WARNING):
            assert parse_relationship_stream(raw) == []
        assert "stream error" in caplog.text

    def test_order_preserved_without_deduplication(self):
        raw = "\n".join([line("b", "owner", "u"), line("a", "owner", "u"), line("b", "owner", "u")])
        assert [r.resource_id for r in parse_relationship_stream(raw)] == ["b", "a", "b"]

    def test_empty_body(self):
        assert parse_relationship_stream("") == []
