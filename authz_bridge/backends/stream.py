"""
Relationship stream decoding for the SpiceDB HTTP gateway.

Streaming endpoints such as ``/v1/relationships/read`` answer with one JSON
object per line, each shaped ``{"result": {"relationship": {...}}}``. Lines
without a ``result`` (heartbeats, end markers, per-line errors) are skipped.
A line that is not valid JSON, or whose relationship does not have the
expected shape, is skipped with a warning: a partial listing is preferred over
no listing at all. Output order follows input order; nothing is deduplicated.
"""

from __future__ import annotations

import json
import logging

from ..models import Relationship

logger = logging.getLogger(__name__)


class RelationshipStreamParser:
    """Decodes a newline-delimited relationship stream."""

    def parse(self, raw_body: str) -> list[Relationship]:
        relationships: list[Relationship] = []
        for line_number, line in enumerate(raw_body.splitlines(), start=1):
            relationship = self._parse_line(line, line_number)
            if relationship is not None:
                relationships.append(relationship)
        return relationships

    def _parse_line(self, line: str, line_number: int) -> Relationship | None:
        line = line.strip()
        if not line:
            return None

        try:
            message = json.loads(line)
        except json.JSONDecodeError as e:
            logger.warning(f"Failed to parse relationship line {line_number}: {e}: {line!r}")
            return None

        if not isinstance(message, dict):
            logger.warning(f"Skipping non-object relationship line {line_number}: {line!r}")
            return None

        result = message.get("result")
        if not result:
            if "error" in message:
                logger.warning(f"Backend reported a stream error on line {line_number}: {message['error']}")
            return None

        try:
            return Relationship.from_wire(result["relationship"])
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(
                f"Skipping malformed relationship on line {line_number}: "
                f"{type(e).__name__}: {e}"
            )
            return None


def parse_relationship_stream(raw_body: str) -> list[Relationship]:
    """Decode a newline-delimited relationship stream into relationships."""
    return RelationshipStreamParser().parse(raw_body)
