"""In-memory content repository backed by dictionaries or a YAML fixture."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml  # type: ignore[import-untyped]
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from modernizer.cache.models import CatalogComponent
from modernizer.components.models import ComponentDefinition
from modernizer.layout.canvas import TargetPage
from modernizer.remote.client import (
    FieldDefinition,
    LookupResult,
    PageSnapshot,
    PermissionGrant,
    UserRef,
    normalize_control_id,
)


class RepositoryFixture(BaseModel):
    """On-disk structure of a repository fixture file."""

    model_config = ConfigDict(extra="forbid")

    catalogs: dict[str, list[CatalogComponent]] = Field(default_factory=dict)
    field_definitions: dict[str, list[FieldDefinition]] = Field(default_factory=dict)
    users: list[UserRef] = Field(default_factory=list)
    localized_strings: dict[str, dict[int, str]] = Field(default_factory=dict)
    content_types: dict[str, dict[str, str]] = Field(default_factory=dict)
    pages: list[PageSnapshot] = Field(default_factory=list)
    components: dict[str, list[ComponentDefinition]] = Field(default_factory=dict)
    existing_pages: list[str] = Field(default_factory=list)


@dataclass(frozen=True)
class WriteRecord:
    """One write call received by the repository."""

    operation: str
    target: str
    payload: Any = None


@dataclass
class RepositoryCalls:
    """Read call counters, used to verify caching."""

    counts: dict[str, int] = field(default_factory=dict)

    def bump(self, operation: str) -> None:
        self.counts[operation] = self.counts.get(operation, 0) + 1

    def __getitem__(self, operation: str) -> int:
        return self.counts.get(operation, 0)


class InMemoryContentRepository:
    """Repository keeping everything in memory and journaling every write.

    ``failures`` maps an operation name to the exception it raises, which
    lets callers exercise error paths.
    """

    def __init__(
        self,
        fixture: RepositoryFixture | None = None,
        *,
        failures: dict[str, Exception] | None = None,
        lookup_errors: dict[str, str] | None = None,
    ) -> None:
        data = fixture or RepositoryFixture()
        self._catalogs = {key.lower(): value for key, value in data.catalogs.items()}
        self._field_definitions = {
            key.lower(): value for key, value in data.field_definitions.items()
        }
        self._users = {user.login.lower(): user for user in data.users}
        self._strings = data.localized_strings
        self._content_types = {
            key.lower(): {name.lower(): ct_id for name, ct_id in value.items()}
            for key, value in data.content_types.items()
        }
        self._pages = {page.page_ref.lower(): page for page in data.pages}
        self._components = {key.lower(): value for key, value in data.components.items()}
        self._existing = {ref.lower() for ref in data.existing_pages}
        self._failures = dict(failures or {})
        self._lookup_errors = {key.lower(): value for key, value in (lookup_errors or {}).items()}

        self.saved_pages: dict[str, TargetPage] = {}
        self.metadata: dict[str, dict[str, Any]] = {}
        self.writes: list[WriteRecord] = []
        self.calls = RepositoryCalls()

    @classmethod
    def from_yaml(cls, path: Path, **kwargs: Any) -> InMemoryContentRepository:
        """Load a fixture file, raising ValueError with the path on bad input."""

        try:
            raw = yaml.safe_load(path.read_text(encoding="utf-8"))
        except FileNotFoundError as exc:
            raise ValueError(f"Repository fixture not found: {path}") from exc
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in repository fixture: {path}") from exc

        try:
            fixture = RepositoryFixture.model_validate(raw or {})
        except ValidationError as exc:
            raise ValueError(f"Invalid repository fixture schema: {path}") from exc
        return cls(fixture, **kwargs)

    def add_page(self, page: PageSnapshot) -> None:
        self._pages[page.page_ref.lower()] = page

    def add_components(self, page_ref: str, components: list[ComponentDefinition]) -> None:
        self._components.setdefault(page_ref.lower(), []).extend(components)

    def pages(self) -> list[PageSnapshot]:
        return list(self._pages.values())

    def fetch_component_catalog(self, site_ref: str) -> list[CatalogComponent]:
        self._enter("fetch_component_catalog")
        return list(self._catalogs.get(site_ref.lower(), []))

    def fetch_field_definitions(self, list_ref: str) -> list[FieldDefinition]:
        self._enter("fetch_field_definitions")
        return list(self._field_definitions.get(list_ref.lower(), []))

    def resolve_user(self, login: str) -> UserRef | None:
        self._enter("resolve_user")
        return self._users.get(login.lower())

    def fetch_localized_string(self, key: str, locale: int) -> str | None:
        self._enter("fetch_localized_string")
        return self._strings.get(key, {}).get(locale)

    def read_page(self, page_ref: str) -> PageSnapshot | None:
        self._enter("read_page")
        return self._pages.get(page_ref.lower())

    def lookup_page(self, page_ref: str) -> LookupResult:
        self._enter("lookup_page")
        key = page_ref.lower()
        if key in self._lookup_errors:
            return LookupResult.error(self._lookup_errors[key])
        if key in self._existing or key in self.saved_pages:
            return LookupResult.found()
        return LookupResult.not_found()

    def fetch_components(self, page_ref: str, control_ids: list[str]) -> list[ComponentDefinition]:
        self._enter("fetch_components")
        wanted = {normalize_control_id(control_id) for control_id in control_ids}
        return [
            component
            for component in self._components.get(page_ref.lower(), [])
            if normalize_control_id(component.id) in wanted
        ]

    def fetch_content_type_id(self, list_ref: str, name: str) -> str | None:
        self._enter("fetch_content_type_id")
        return self._content_types.get(list_ref.lower(), {}).get(name.lower())

    def save_page(self, page_ref: str, page: TargetPage) -> None:
        self._enter("save_page")
        self.saved_pages[page_ref.lower()] = page.model_copy(deep=True)
        self.writes.append(WriteRecord("save_page", page_ref, page.name))

    def stamp_page(self, page_ref: str, version: str, publish: bool) -> None:
        self._enter("stamp_page")
        self.writes.append(
            WriteRecord("stamp_page", page_ref, {"version": version, "publish": publish})
        )

    def disable_comments(self, page_ref: str) -> None:
        self._enter("disable_comments")
        self.writes.append(WriteRecord("disable_comments", page_ref))

    def update_page_metadata(self, page_ref: str, values: dict[str, Any]) -> None:
        self._enter("update_page_metadata")
        self.metadata.setdefault(page_ref.lower(), {}).update(values)
        self.writes.append(WriteRecord("update_page_metadata", page_ref, dict(values)))

    def apply_permissions(self, item_ref: str, grants: list[PermissionGrant]) -> None:
        self._enter("apply_permissions")
        self.writes.append(
            WriteRecord(
                "apply_permissions",
                item_ref,
                [(grant.user.login, list(grant.roles)) for grant in grants],
            )
        )

    def write_operations(self) -> list[str]:
        return [record.operation for record in self.writes]

    def _enter(self, operation: str) -> None:
        self.calls.bump(operation)
        failure = self._failures.get(operation)
        if failure is not None:
            raise failure
