"""Interface of the remote content repository and the data it exchanges."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Literal, Protocol

from pydantic import BaseModel, ConfigDict, Field

from modernizer.cache.models import CatalogComponent
from modernizer.components.models import ComponentDefinition

if TYPE_CHECKING:
    from modernizer.layout.canvas import TargetPage

PageKind = Literal["WikiPage", "PublishingPage", "ClientSidePage", "AspxPage", "WebPartPage"]


class FieldDefinition(BaseModel):
    """List field as reported by the repository."""

    model_config = ConfigDict(extra="forbid")

    name: str
    type: str = "Text"
    read_only: bool = False
    hidden: bool = False


class ZoneSnapshot(BaseModel):
    """Web part zone of a publishing page and the components it holds."""

    model_config = ConfigDict(extra="forbid")

    zone_id: str
    zone_index: int = 0
    components: list[ComponentDefinition] = Field(default_factory=list)


class RoleAssignment(BaseModel):
    """Roles granted to one principal on the source page."""

    model_config = ConfigDict(extra="forbid")

    principal: str
    roles: list[str] = Field(default_factory=list)


class PageSnapshot(BaseModel):
    """Read-only view of a source page and its list item fields."""

    model_config = ConfigDict(extra="forbid")

    page_ref: str
    page_id: str = ""
    kind: PageKind | None = None
    web_url: str = ""
    site_ref: str = ""
    list_ref: str = "Pages"
    locale: int = 1033
    fields: dict[str, Any] = Field(default_factory=dict)
    layout_fields: list[FieldDefinition] = Field(default_factory=list)
    zones: list[ZoneSnapshot] = Field(default_factory=list)
    has_unique_role_assignments: bool = False
    role_assignments: list[RoleAssignment] = Field(default_factory=list)


class UserRef(BaseModel):
    """Principal resolved on the target site."""

    model_config = ConfigDict(extra="forbid")

    login: str
    display_name: str = ""
    id: int | None = None


class PermissionGrant(BaseModel):
    """Role assignment to apply on the target page."""

    model_config = ConfigDict(extra="forbid")

    user: UserRef
    roles: list[str] = Field(default_factory=list)


LookupStatus = Literal["found", "not_found", "error"]


@dataclass(frozen=True)
class LookupResult:
    """Outcome of a target page existence check."""

    status: LookupStatus
    detail: str | None = None

    @classmethod
    def found(cls) -> LookupResult:
        return cls(status="found")

    @classmethod
    def not_found(cls) -> LookupResult:
        return cls(status="not_found")

    @classmethod
    def error(cls, detail: str) -> LookupResult:
        return cls(status="error", detail=detail)


class ContentRepository(Protocol):
    """Remote collaborator holding source pages and receiving target pages."""

    def fetch_component_catalog(self, site_ref: str) -> list[CatalogComponent]:
        """Return the modern components available on ``site_ref``."""

    def fetch_field_definitions(self, list_ref: str) -> list[FieldDefinition]:
        """Return the fields of a pages library."""

    def resolve_user(self, login: str) -> UserRef | None:
        """Resolve a login on the target site; None when unknown."""

    def fetch_localized_string(self, key: str, locale: int) -> str | None:
        """Resolve a ``$Resources:`` key for a locale."""

    def read_page(self, page_ref: str) -> PageSnapshot | None:
        """Load a source page; None when it does not exist."""

    def lookup_page(self, page_ref: str) -> LookupResult:
        """Check whether a target page exists."""

    def fetch_components(self, page_ref: str, control_ids: list[str]) -> list[ComponentDefinition]:
        """Load the components embedded in a page's markup."""

    def fetch_content_type_id(self, list_ref: str, name: str) -> str | None:
        """Return the id of a content type on the target library."""

    def save_page(self, page_ref: str, page: TargetPage) -> None:
        """Create or overwrite the target page."""

    def stamp_page(self, page_ref: str, version: str, publish: bool) -> None:
        """Record a version comment and optionally publish."""

    def disable_comments(self, page_ref: str) -> None:
        """Turn off page comments."""

    def update_page_metadata(self, page_ref: str, values: dict[str, Any]) -> None:
        """Write list item field values of the target page."""

    def apply_permissions(self, item_ref: str, grants: list[PermissionGrant]) -> None:
        """Break inheritance and grant roles on the target item."""


def normalize_control_id(control_id: str) -> str:
    """Canonical form of an embedded component id.

    Server control ids use a ``g_`` prefix and underscores where the markup
    uses dashes.
    """

    normalized = control_id.strip().lower()
    if normalized.startswith("g_"):
        normalized = normalized[2:]
    return normalized.replace("_", "-")
