"""Dependency-graph walker.

Starting from a page entry file, follows component imports depth-first and
collects every endpoint reachable from it. Each file moves through
unvisited -> visiting -> completed:

- `visiting` is the set of files on the current recursion path and is used
  only to break import cycles;
- `completed` memoizes a file's full reachable set for the rest of the
  pass, so a component shared by many pages is read and parsed once.

A cyclic re-entry returns the empty set instead of deferring, so an
endpoint reachable only through the back edge of a cycle can be missed
depending on which file the traversal reaches first.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from api_collector.files import normalize_path
from api_collector.parser.base import EndpointDescriptor
from api_collector.parser.extractor import UsageExtractor
from api_collector.parser.resolver import ImportResolver

logger = logging.getLogger(__name__)

EMPTY: frozenset[EndpointDescriptor] = frozenset()


def read_source(path: Path) -> str:
    return path.read_text(encoding="utf-8")


@dataclass
class WalkSession:
    """State owned by one collection pass."""

    completed: dict[Path, frozenset[EndpointDescriptor]] = field(default_factory=dict)
    visiting: set[Path] = field(default_factory=set)
    reads: int = 0

    def is_completed(self, path: Path) -> bool:
        return path in self.completed


class DependencyWalker:
    """Collects the endpoints reachable from a file through component imports."""

    def __init__(
        self,
        extractor: UsageExtractor,
        resolver: ImportResolver,
        session: WalkSession | None = None,
        reader: Callable[[Path], str] = read_source,
    ):
        self.extractor = extractor
        self.resolver = resolver
        self.session = session or WalkSession()
        self.reader = reader

    def walk(self, file_path: Path) -> frozenset[EndpointDescriptor]:
        """Return every endpoint reachable from file_path."""
        path = normalize_path(file_path)
        session = self.session

        cached = session.completed.get(path)
        if cached is not None:
            return cached

        if path in session.visiting:
            logger.debug("Import cycle back into %s", path)
            return EMPTY
        if not path.is_file():
            logger.debug("Skipping missing component %s", path)
            return EMPTY

        session.visiting.add(path)
        try:
            result = self._visit(path)
        finally:
            session.visiting.discard(path)

        session.completed[path] = result
        return result

    def _visit(self, path: Path) -> frozenset[EndpointDescriptor]:
        try:
            text = self.reader(path)
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Could not read %s: %s", path, e)
            return EMPTY
        self.session.reads += 1

        try:
            usage = self.extractor.extract(text, path)
        except Exception as e:
            logger.warning("Failed to analyze %s: %s", path, e)
            return EMPTY
        found: set[EndpointDescriptor] = set(usage.endpoints)

        for specifier in usage.specifiers:
            child = self.resolver.resolve(specifier, path)
            if child is None or child in self.session.visiting:
                continue
            found |= self.walk(child)

        return frozenset(found)
