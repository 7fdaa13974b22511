"""
SpiceDB (ReBAC) backend adapter.

Speaks the official SpiceDB HTTP gateway protocol with a bearer credential.
Resources must be ``type:id`` pairs; a resource that does not split into
exactly two non-empty segments is a caller bug and raises
InvalidResourceError instead of being reported as a denial.

"Roles" are relations on a scope object. The assignable vocabulary comes from
``available_roles`` and is enforced by the role coordinator, not by writes.

This module is part of AUTHZ_BRIDGE.
"""

from __future__ import annotations

import logging

import httpx

from ..constants import (
    BACKEND_SPICEDB,
    DEFAULT_HTTP_TIMEOUT,
    DEFAULT_SPICEDB_AUTH_KEY,
    OPERATION_CREATE,
    OPERATION_DELETE,
    PERMISSIONSHIP_HAS_PERMISSION,
    SPICEDB_CHECK_PATH,
    SPICEDB_READ_PATH,
    SPICEDB_RELATIONS,
    SPICEDB_USER_TYPE,
    SPICEDB_WRITE_PATH,
)
from ..models import (
    ObjectReference,
    PermissionDecision,
    PermissionQuery,
    Relationship,
    RelationshipFilter,
    SubjectFilter,
)
from .base import BaseBackendAdapter
from .stream import RelationshipStreamParser

logger = logging.getLogger(__name__)


def normalize_subject_id(subject: str) -> str:
    """Strip a leading ``user:`` so the id can be sent as a user object id."""
    prefix = f"{SPICEDB_USER_TYPE}:"
    return subject[len(prefix):] if subject.startswith(prefix) else subject


class SpiceDBAdapter(BaseBackendAdapter):
    """Implements the backend contract against the SpiceDB HTTP gateway."""

    backend = BACKEND_SPICEDB
    engine_name = "SpiceDB"
    supports_role_mutation = True

    def __init__(
        self,
        base_url: str,
        client: httpx.AsyncClient | None = None,
        timeout: float = DEFAULT_HTTP_TIMEOUT,
        auth_key: str = DEFAULT_SPICEDB_AUTH_KEY,
        stream_parser: RelationshipStreamParser | None = None,
    ):
        super().__init__(base_url, client=client, timeout=timeout)
        if auth_key == DEFAULT_SPICEDB_AUTH_KEY:
            logger.warning("SpiceDB adapter is using the development preshared key")
        self._auth_key = auth_key
        self._stream_parser = stream_parser or RelationshipStreamParser()

    def _headers(self) -> dict[str, str]:
        headers = super()._headers()
        headers["Authorization"] = f"Bearer {self._auth_key}"
        return headers

    def validate_query(self, query: PermissionQuery) -> None:
        ObjectReference.parse(query.resource)

    async def _check(self, query: PermissionQuery) -> PermissionDecision:
        resource = ObjectReference.parse(query.resource)
        payload = {
            "resource": resource.to_wire(),
            "permission": query.action,
            "subject": {
                "object": {
                    "objectType": SPICEDB_USER_TYPE,
                    "objectId": normalize_subject_id(query.subject),
                }
            },
        }
        response = await self._post(SPICEDB_CHECK_PATH, payload)
        self._ensure_success(response, "check")

        permissionship = self._json_object(response, "check")["permissionship"]
        if permissionship == PERMISSIONSHIP_HAS_PERMISSION:
            return PermissionDecision.allow()
        return PermissionDecision.deny(reason=str(permissionship))

    # ------------------------------------------------------------------
    # Relationships
    # ------------------------------------------------------------------

    def available_roles(self, scope: str | None = None) -> list[str]:
        return list(SPICEDB_RELATIONS)

    def _scope_relationship(self, subject: str, scope: str, relation: str) -> Relationship:
        ref = ObjectReference.parse(scope)
        return Relationship(
            resource_type=ref.object_type,
            resource_id=ref.object_id,
            relation=relation,
            subject_type=SPICEDB_USER_TYPE,
            subject_id=normalize_subject_id(subject),
        )

    async def add_role(self, subject: str, scope: str, role: str) -> bool:
        relationship = self._scope_relationship(subject, scope, role)
        await self.write_relationship(OPERATION_CREATE, relationship, name="add_role")
        return True

    async def remove_role(self, subject: str, scope: str, role: str) -> bool:
        relationship = self._scope_relationship(subject, scope, role)
        await self.write_relationship(OPERATION_DELETE, relationship, name="remove_role")
        return True

    async def write_relationship(
        self, operation: str, relationship: Relationship, name: str = "write_relationship"
    ) -> str | None:
        """
        Create or delete a single relationship.

        Returns:
            The ``writtenAt`` token reported by the backend, if any

        Raises:
            BackendError: If the write did not apply
        """
        body = {"updates": [{"operation": operation, "relationship": relationship.to_wire()}]}
        try:
            response = await self._post(SPICEDB_WRITE_PATH, body)
            self._ensure_success(response, name)
            data = self._json_object(response, name)
        except Exception as e:
            raise self._mutation_error(
                name, e, relationship.subject_id, relationship.resource, relationship.relation
            ) from e

        written_at = data.get("writtenAt")
        logger.info(
            f"SpiceDB {operation}: {relationship.resource}#{relationship.relation}"
            f"@{relationship.subject}"
        )
        return str(written_at) if written_at is not None else None

    async def _read_relationships(self, relationship_filter: RelationshipFilter) -> list[Relationship]:
        response = await self._post(
            SPICEDB_READ_PATH, {"relationshipFilter": relationship_filter.to_wire()}
        )
        self._ensure_success(response, "read_relationships")
        return self._stream_parser.parse(response.text)

    async def read_relationships(
        self, relationship_filter: RelationshipFilter | None = None
    ) -> list[Relationship]:
        """
        Read relationships matching a filter (all ``system`` relationships by default).

        Fails soft: returns an empty list if the backend cannot be read.
        """
        relationship_filter = relationship_filter or RelationshipFilter(resource_type="system")
        try:
            return await self._read_relationships(relationship_filter)
        except Exception as e:
            self._handle_operation_error("read_relationships", e, relationship_filter.to_wire())
            return []

    async def list_roles(self, subject: str, scope: str | None = None) -> list[str]:
        """
        List the relations a user holds.

        With a scope, returns bare relations (``owner``). Without one, returns
        every ``system`` relation as ``system:{id}#{relation}``.
        """
        subject_id = normalize_subject_id(subject)
        if scope:
            relationship_filter = RelationshipFilter.for_scope(scope, subject_id=subject_id)
        else:
            relationship_filter = RelationshipFilter(
                resource_type="system",
                optional_subject_filter=SubjectFilter(optional_subject_id=subject_id),
            )

        try:
            relationships = await self._read_relationships(relationship_filter)
        except Exception as e:
            raise self._mutation_error("list_roles", e, subject, scope or "system", "*") from e

        owned = [
            rel
            for rel in relationships
            if rel.subject_type == SPICEDB_USER_TYPE and rel.subject_id == subject_id
        ]
        if scope:
            return [rel.relation for rel in owned]
        return [f"{rel.resource}#{rel.relation}" for rel in owned]
