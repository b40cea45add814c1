"""Shared cache for remote lookups and synthesized layouts.

One manager is constructed by the caller and injected into every transformer;
it is safe to share between threads. Remote lookups are passed in as zero
argument callables so the cache never talks to a repository itself.
"""

from __future__ import annotations

import hashlib
import json
import logging
import threading
from collections.abc import Callable
from typing import TYPE_CHECKING

from modernizer.cache.memo import CacheOutcome, MemoCache, ScopedMemoCache
from modernizer.cache.models import CatalogComponent, ReplayCaptureData
from modernizer.observers.events import LogEvent, Observer, dispatch

if TYPE_CHECKING:
    from modernizer.layout.models import LayoutMappingModel
    from modernizer.remote.client import FieldDefinition, UserRef

logger = logging.getLogger("modernizer.cache")

PAGES_LIBRARY_RESOURCE_KEY = "$Resources:List_Pages_UrlName"
DEFAULT_PAGES_LIBRARY = "pages"

_QUOTE_CHARS = "'´`"


class CacheManager:
    """Memoized lookups shared by every page transformation."""

    def __init__(self, observers: list[Observer] | None = None) -> None:
        self._observers: list[Observer] = list(observers or [])
        listener = self._report

        self._catalog_by_digest: dict[str, list[CatalogComponent]] = {}
        self._catalog_digest_by_site: dict[str, str] = {}
        self._catalog_lock = threading.Lock()

        self._fields_to_copy: MemoCache[list[FieldDefinition]] = MemoCache(
            "fields_to_copy", listener
        )
        self._layout_mappings: MemoCache[LayoutMappingModel] = MemoCache(
            "layout_mappings", listener
        )
        self._localized_strings: ScopedMemoCache[str | None] = ScopedMemoCache(
            "localized_strings", listener
        )
        self._pages_libraries: MemoCache[str] = MemoCache("pages_libraries", listener)
        self._content_type_ids: ScopedMemoCache[str | None] = ScopedMemoCache(
            "content_type_ids", listener
        )
        self._users: ScopedMemoCache[UserRef | None] = ScopedMemoCache("users", listener)

        self._replay: dict[str, ReplayCaptureData] = {}
        self._replay_lock = threading.Lock()

    def register_observer(self, observer: Observer) -> None:
        self._observers.append(observer)

    def get_component_catalog(
        self, site_ref: str, fetch: Callable[[], list[CatalogComponent]]
    ) -> list[CatalogComponent]:
        """Return the component catalog of ``site_ref``.

        Sites exposing an identical catalog share one stored copy, keyed by
        the catalog digest.
        """

        site_key = site_ref.lower()
        with self._catalog_lock:
            digest = self._catalog_digest_by_site.get(site_key)
            if digest is not None:
                cached = self._catalog_by_digest[digest]
        if digest is not None:
            self._report("component_catalog", "hit", site_ref)
            return cached

        self._report("component_catalog", "miss", site_ref)
        components = fetch()
        digest = catalog_digest(components)
        with self._catalog_lock:
            self._catalog_by_digest.setdefault(digest, components)
            self._catalog_digest_by_site.setdefault(site_key, digest)
            return self._catalog_by_digest[self._catalog_digest_by_site[site_key]]

    def catalog_count(self) -> int:
        with self._catalog_lock:
            return len(self._catalog_by_digest)

    def get_fields_to_copy(
        self, list_ref: str, compute: Callable[[], list[FieldDefinition]]
    ) -> list[FieldDefinition]:
        return self._fields_to_copy.get_or_compute(list_ref.lower(), compute)

    def get_layout_mapping(
        self, layout_name: str, compute: Callable[[], LayoutMappingModel]
    ) -> LayoutMappingModel:
        return self._layout_mappings.get_or_compute(layout_name.lower(), compute)

    def generated_layout_mappings(self) -> list[LayoutMappingModel]:
        """Every layout synthesized so far, e.g. to persist as a mapping file."""

        return self._layout_mappings.values()

    def get_localized_string(
        self, key: str, locale: int, fetch: Callable[[], str | None]
    ) -> str | None:
        return self._localized_strings.get_or_compute(key, locale, fetch)

    def get_pages_library(
        self, locale: int, fetch_localized: Callable[[str, int], str | None]
    ) -> str:
        """Localized pages library url name, lower-cased with quotes removed."""

        def compute() -> str:
            value = self.get_localized_string(
                PAGES_LIBRARY_RESOURCE_KEY,
                locale,
                lambda: fetch_localized(PAGES_LIBRARY_RESOURCE_KEY, locale),
            )
            if not value:
                return DEFAULT_PAGES_LIBRARY
            cleaned = "".join(char for char in value if char not in _QUOTE_CHARS).strip()
            return cleaned.lower() or DEFAULT_PAGES_LIBRARY

        return self._pages_libraries.get_or_compute(locale, compute)

    def get_content_type_id(
        self, list_ref: str, name: str, fetch: Callable[[], str | None]
    ) -> str | None:
        return self._content_type_ids.get_or_compute(list_ref.lower(), name.lower(), fetch)

    def get_user(
        self, site_ref: str, login: str, fetch: Callable[[], UserRef | None]
    ) -> UserRef | None:
        return self._users.get_or_compute(login.lower(), site_ref.lower(), fetch)

    def set_replay_capture_data(self, data: ReplayCaptureData) -> None:
        with self._replay_lock:
            self._replay[data.page_id.lower()] = data

    def get_replay_capture_data(self, page_id: str) -> ReplayCaptureData | None:
        with self._replay_lock:
            return self._replay.get(page_id.lower())

    def clear_replay_capture_data(self) -> None:
        with self._replay_lock:
            self._replay.clear()

    def clear_all(self) -> None:
        """Empty every cache, replay data included."""

        with self._catalog_lock:
            self._catalog_by_digest.clear()
            self._catalog_digest_by_site.clear()
        for cache in (
            self._fields_to_copy,
            self._layout_mappings,
            self._localized_strings,
            self._pages_libraries,
            self._content_type_ids,
            self._users,
        ):
            cache.clear()
        self.clear_replay_capture_data()

    def _report(self, cache_name: str, outcome: CacheOutcome, key: str) -> None:
        logger.debug("%s %s key=%s", cache_name, outcome, key)
        if not self._observers:
            return
        dispatch(
            self._observers,
            LogEvent(
                severity="debug",
                heading=f"cache_{outcome}",
                message=f"{cache_name}: {key}",
                details={"cache": cache_name, "key": key},
            ),
        )


def catalog_digest(components: list[CatalogComponent]) -> str:
    """SHA256 over the canonical JSON form of a component catalog."""

    payload = [component.model_dump() for component in components]
    serialized = json.dumps(payload, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(serialized.encode("utf-8")).hexdigest()
