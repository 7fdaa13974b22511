"""
Value and wire models for AUTHZ_BRIDGE.

PermissionQuery and PermissionDecision are transient per-call values.
Relationship and RelationshipFilter mirror the SpiceDB HTTP API shapes and
convert to and from the official nested JSON form.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictBool
from pydantic.alias_generators import to_camel

from .constants import SPICEDB_USER_TYPE
from .exceptions import InvalidResourceError


class PermissionQuery(BaseModel):
    """A single logical permission question."""

    model_config = ConfigDict(frozen=True)

    subject: str
    resource: str
    action: str


class PermissionDecision(BaseModel):
    """
    The answer to a PermissionQuery.

    ``reason`` is advisory only and never influences ``allowed``.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    allowed: StrictBool
    reason: str | None = None

    @classmethod
    def deny(cls, reason: str | None = None) -> PermissionDecision:
        return cls(allowed=False, reason=reason)

    @classmethod
    def allow(cls, reason: str | None = None) -> PermissionDecision:
        return cls(allowed=True, reason=reason)


class ObjectReference(BaseModel):
    """A typed object reference (``type:id``)."""

    model_config = ConfigDict(frozen=True)

    object_type: str
    object_id: str

    @classmethod
    def parse(cls, resource: str) -> ObjectReference:
        """
        Split a ``type:id`` resource into its two parts.

        Raises:
            InvalidResourceError: If the resource does not split into exactly
                two non-empty segments on ':'
        """
        parts = resource.split(":") if isinstance(resource, str) else []
        if len(parts) != 2 or not parts[0] or not parts[1]:
            raise InvalidResourceError(
                f"Invalid resource format: {resource!r} (expected 'type:id')",
                resource=str(resource),
            )
        return cls(object_type=parts[0], object_id=parts[1])

    def to_wire(self) -> dict[str, str]:
        return {"objectType": self.object_type, "objectId": self.object_id}

    def __str__(self) -> str:
        return f"{self.object_type}:{self.object_id}"


class Relationship(BaseModel):
    """A ReBAC relationship tuple."""

    model_config = ConfigDict(frozen=True)

    resource_type: str
    resource_id: str
    relation: str
    subject_type: str = SPICEDB_USER_TYPE
    subject_id: str

    @property
    def resource(self) -> str:
        return f"{self.resource_type}:{self.resource_id}"

    @property
    def subject(self) -> str:
        return f"{self.subject_type}:{self.subject_id}"

    @classmethod
    def from_wire(cls, data: dict[str, Any]) -> Relationship:
        """
        Build a Relationship from the official nested wire form.

        Raises:
            KeyError, TypeError: If the payload does not have the expected shape
        """
        resource = data["resource"]
        subject_object = data["subject"]["object"]
        return cls(
            resource_type=resource["objectType"],
            resource_id=resource["objectId"],
            relation=data["relation"],
            subject_type=subject_object["objectType"],
            subject_id=subject_object["objectId"],
        )

    def to_wire(self) -> dict[str, Any]:
        return {
            "resource": {"objectType": self.resource_type, "objectId": self.resource_id},
            "relation": self.relation,
            "subject": {
                "object": {"objectType": self.subject_type, "objectId": self.subject_id}
            },
        }


class SubjectFilter(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    subject_type: str = SPICEDB_USER_TYPE
    optional_subject_id: str | None = None


class RelationshipFilter(BaseModel):
    """
    Filter for reading relationships.

    Serializes to the camelCase ``relationshipFilter`` body of
    ``/v1/relationships/read``; unset optional fields are omitted.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    resource_type: str
    optional_resource_id: str | None = None
    optional_relation: str | None = None
    optional_subject_filter: SubjectFilter | None = Field(default=None)

    @classmethod
    def for_scope(cls, scope: str, subject_id: str | None = None) -> RelationshipFilter:
        """Filter relationships on one ``type:id`` scope, optionally for one user."""
        ref = ObjectReference.parse(scope)
        subject_filter = SubjectFilter(optional_subject_id=subject_id) if subject_id else None
        return cls(
            resource_type=ref.object_type,
            optional_resource_id=ref.object_id,
            optional_subject_filter=subject_filter,
        )

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)
