"""Metadata and permission stages run after the target page is saved."""

from __future__ import annotations

from typing import Any

from modernizer.cache.manager import CacheManager
from modernizer.layout.models import LayoutMappingModel
from modernizer.remote.client import (
    ContentRepository,
    FieldDefinition,
    PageSnapshot,
    PermissionGrant,
    UserRef,
)

TARGET_PAGES_LIST = "SitePages"
MODERN_PAGE_CONTENT_TYPE_PREFIX = "0x0101009D1CB255DA76424F860D91F20E6C4118"
EXTERNAL_USER_MARKER = "#ext#"

# Fields every pages library has; their values are set by the platform.
BUILT_IN_FIELDS = frozenset(
    {
        "ID",
        "Title",
        "FileLeafRef",
        "FileRef",
        "FileDirRef",
        "ContentType",
        "ContentTypeId",
        "Created",
        "Modified",
        "Author",
        "Editor",
        "WikiField",
        "PublishingPageLayout",
        "PublishingPageContent",
        "PublishingPageImage",
        "PublishingRollupImage",
        "PublishingContact",
        "PublishingStartDate",
        "PublishingExpirationDate",
        "CanvasContent1",
        "LayoutWebpartsContent",
        "BannerImageUrl",
        "_UIVersionString",
    }
)


class MetadataCopier:
    """Compute the list item values and grants copied to the target page."""

    def __init__(self, client: ContentRepository, cache: CacheManager) -> None:
        self._client = client
        self._cache = cache

    def fields_to_copy(self, list_ref: str = TARGET_PAGES_LIST) -> list[FieldDefinition]:
        """Custom, writable, visible fields of the target library (cached per library)."""

        def compute() -> list[FieldDefinition]:
            return [
                field
                for field in self._client.fetch_field_definitions(list_ref)
                if field.name not in BUILT_IN_FIELDS and not field.hidden and not field.read_only
            ]

        return self._cache.get_fields_to_copy(list_ref, compute)

    def collect_values(
        self,
        page: PageSnapshot,
        layout: LayoutMappingModel | None = None,
        *,
        keep_author_info: bool = False,
        list_ref: str = TARGET_PAGES_LIST,
    ) -> dict[str, Any]:
        values: dict[str, Any] = {}
        for field in self.fields_to_copy(list_ref):
            if field.name in page.fields and page.fields[field.name] is not None:
                values[field.name] = page.fields[field.name]

        if layout is not None:
            for mapping in layout.metadata:
                if page.fields.get(mapping.source) is not None:
                    values[mapping.target] = page.fields[mapping.source]

        content_type_id = self.content_type_id(page, list_ref)
        if content_type_id is not None:
            values["ContentTypeId"] = content_type_id

        if keep_author_info:
            values.update(self._author_values(page))
        return values

    def content_type_id(self, page: PageSnapshot, list_ref: str = TARGET_PAGES_LIST) -> str | None:
        """Matching target content type, only when it derives from the modern page type."""

        name = page.fields.get("ContentType")
        if not name:
            return None
        content_type_id = self._cache.get_content_type_id(
            list_ref,
            str(name),
            lambda: self._client.fetch_content_type_id(list_ref, str(name)),
        )
        if content_type_id is None:
            return None
        if not content_type_id.upper().startswith(MODERN_PAGE_CONTENT_TYPE_PREFIX.upper()):
            return None
        return content_type_id

    def permission_grants(self, page: PageSnapshot) -> list[PermissionGrant]:
        """Grants for the page's unique role assignments.

        External and unresolvable principals are skipped.
        """

        grants: list[PermissionGrant] = []
        for assignment in page.role_assignments:
            user = self._resolve(page, assignment.principal)
            if user is None:
                continue
            roles = [role for role in assignment.roles if role.lower() != "limited access"]
            if roles:
                grants.append(PermissionGrant(user=user, roles=roles))
        return grants

    def _author_values(self, page: PageSnapshot) -> dict[str, Any]:
        values: dict[str, Any] = {}
        for field_name in ("Author", "Editor"):
            login = page.fields.get(field_name)
            if not login:
                continue
            user = self._resolve(page, str(login))
            if user is not None:
                values[field_name] = user.login
        for field_name in ("Created", "Modified"):
            if page.fields.get(field_name) is not None:
                values[field_name] = page.fields[field_name]
        return values

    def _resolve(self, page: PageSnapshot, login: str) -> UserRef | None:
        if EXTERNAL_USER_MARKER in login.lower():
            return None
        site_ref = page.site_ref or page.web_url
        return self._cache.get_user(site_ref, login, lambda: self._client.resolve_user(login))
