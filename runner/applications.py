from __future__ import annotations

import time
from pathlib import Path
from typing import Iterable, List, Optional

from .config import Settings, application_dirs
from .desktop_entry import ParseOptions, parse_file
from .errors import DescriptorError
from .fuzzy import fuzzy_score
from .logging_utils import get_logger, measure_time
from .models import Record, ResultItem
from .providers import Provider

logger = get_logger("applications")

DESCRIPTOR_SUFFIX = ".desktop"

# Descriptors created this recently count as new
RECENCY_WINDOW_SECONDS = 5 * 60


def _creation_time(path: Path) -> float:
    st = path.stat()
    return getattr(st, "st_birthtime", st.st_ctime)


def _iter_descriptors(root: Path) -> Iterable[Path]:
    for path in sorted(root.rglob(f"*{DESCRIPTOR_SUFFIX}")):
        if path.is_file():
            yield path


def build_catalog(
    roots: Iterable[Path],
    options: ParseOptions = ParseOptions(),
    *,
    prioritize_new: bool = False,
    done: Optional[set[str]] = None,
    now: Optional[float] = None,
) -> List[Record]:
    """Walk the search roots in priority order and collect every visible record.

    A file name handled in an earlier root shadows the same name in later
    ones. Unreadable files are logged and skipped.
    """
    done = set() if done is None else done
    now = time.time() if now is None else now
    catalog: List[Record] = []

    for root in roots:
        if not root.is_dir():
            logger.debug(f"Skipping missing search root {root}")
            continue

        for path in _iter_descriptors(root):
            if path.name in done:
                continue

            try:
                descriptor = parse_file(path, options)
            except DescriptorError as e:
                logger.warning(f"Skipping descriptor {e.path}: {e.reason}")
                continue

            done.add(path.name)
            if descriptor is None:
                logger.debug(f"Hidden descriptor {path}")
                continue

            prefer = False
            if prioritize_new:
                try:
                    prefer = now - _creation_time(path) <= RECENCY_WINDOW_SECONDS
                except OSError:
                    prefer = False

            for record in descriptor.records():
                if not record.label:
                    continue
                record.prefer = prefer
                catalog.append(record)

    return catalog


class Applications(Provider):
    """Installed applications read from desktop entry files."""

    name = "applications"

    def __init__(self, settings: Optional[Settings] = None, roots: Optional[List[Path]] = None):
        self.settings = settings or Settings()
        self.roots = roots
        self.entries: List[Record] = []
        self._by_identifier: dict[str, Record] = {}
        self._ready = False

    def setup(self) -> None:
        if self._ready:
            return

        app_settings = self.settings.applications
        options = ParseOptions(
            desktop=self.settings.desktop,
            actions=app_settings.actions,
            show_generic=app_settings.show_generic,
        )
        roots = self.roots if self.roots is not None else application_dirs()

        self.entries, duration_ms = measure_time(build_catalog)(
            roots, options, prioritize_new=app_settings.prioritize_new)
        self._by_identifier = {r.identifier: r for r in self.entries}
        self._ready = True

        logger.info(f"Catalog built: {len(self.entries)} records from {len(roots)} roots in {duration_ms:.1f}ms")

    def find(self, identifier: str) -> Optional[Record]:
        return self._by_identifier.get(identifier)

    def query(self, text: str) -> List[ResultItem]:
        records = self.entries
        if not text:
            # Browse order: new applications first, catalog order otherwise
            records = [r for r in records if r.prefer] + [r for r in records if not r.prefer]

        items = []
        for record in records:
            score = fuzzy_score(record.searchable(), text)
            if score <= 0:
                continue
            items.append(self._to_item(record, score))

        items.sort(key=lambda item: item.score, reverse=True)
        return items

    def _to_item(self, record: Record, score: float) -> ResultItem:
        return ResultItem(
            labels={
                "label": record.label,
                "sub": record.sub,
                "categories": ", ".join(record.categories),
            },
            icon=record.icon,
            identifier=record.identifier,
            provider=self.name,
            score=score,
        )
