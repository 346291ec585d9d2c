"""Per-file usage extraction.

A file's text is run through a list of detection rules, each of which
reports the endpoints the file uses directly. The extractor also collects
every import specifier so the walker can follow component edges.

To add a rule:
1. Subclass DetectionRule and implement `detect`
2. Pass an instance in the `rules` list of UsageExtractor
"""

import logging
import re
from abc import ABC, abstractmethod
from pathlib import Path
from typing import ClassVar

from pydantic import BaseModel

from api_collector.parser.base import UNKNOWN_METHOD, EndpointDescriptor
from api_collector.parser.catalog import ApiCatalog
from api_collector.parser.resolver import ImportResolver

logger = logging.getLogger(__name__)

URL_LITERAL_RE = re.compile(r"""\burl\s*:\s*["'](/[^"']+)["']""")

# import { a, b as c } from 'module' / import d, { a } from 'module'
GROUPED_IMPORT_RE = re.compile(r"""import\s+(?:[\w$]+\s*,\s*)?\{([^}]+)\}\s+from\s+["']([^"']+)["']""")

# import a from 'module'
SINGLE_IMPORT_RE = re.compile(r"""import\s+([\w$]+)\s+from\s+["']([^"']+)["']""")

# import ... from 'module' / import 'module'
STATIC_IMPORT_RE = re.compile(r"""\bimport\s+(?:[\w$*\s{},]+?\s+from\s+)?["']([^"']+)["']""")

# import('module')
DYNAMIC_IMPORT_RE = re.compile(r"""\bimport\s*\(\s*["']([^"']+)["']\s*\)""")


class FileUsage(BaseModel):
    """What one file uses directly: endpoints plus raw import specifiers."""

    endpoints: list[EndpointDescriptor] = []
    specifiers: list[str] = []


def is_called(name: str, text: str) -> bool:
    """True if `name(` appears anywhere in the text."""
    return re.search(rf"(?<![\w$]){re.escape(name)}\s*\(", text) is not None


class DetectionRule(ABC):
    """A pattern-based way of finding endpoints in one file's text."""

    name: ClassVar[str] = "rule"

    @abstractmethod
    def detect(self, text: str, file_path: Path) -> list[EndpointDescriptor]:
        """Return the endpoints this rule finds in text."""


class UrlLiteralRule(DetectionRule):
    """`url: "/path"` object fields anywhere in the file."""

    name = "url-literal"

    def detect(self, text: str, file_path: Path) -> list[EndpointDescriptor]:
        return [
            EndpointDescriptor(url=m.group(1), method=UNKNOWN_METHOD)
            for m in URL_LITERAL_RE.finditer(text)
        ]


class _CatalogImportRule(DetectionRule):
    """Base for rules that map imported, called API functions to the catalog."""

    def __init__(self, catalog: ApiCatalog, resolver: ImportResolver):
        self.catalog = catalog
        self.resolver = resolver

    def _lookup(self, specifier: str, imported: str, local: str, text: str) -> EndpointDescriptor | None:
        key = self.resolver.resolve_api_module(specifier)
        if key is None or not is_called(local, text):
            return None
        endpoint = self.catalog.lookup(key, imported)
        if endpoint is None:
            logger.debug("%s is called but not declared in API module %s", imported, key)
        return endpoint


class GroupedImportRule(_CatalogImportRule):
    """`import { getUser, saveUser as save } from '@/api/user'`."""

    name = "grouped-import"

    def detect(self, text: str, file_path: Path) -> list[EndpointDescriptor]:
        endpoints = []
        for match in GROUPED_IMPORT_RE.finditer(text):
            specifier = match.group(2)
            for imported, local in _split_names(match.group(1)):
                endpoint = self._lookup(specifier, imported, local, text)
                if endpoint is not None:
                    endpoints.append(endpoint)
        return endpoints


class SingleImportRule(_CatalogImportRule):
    """`import getUser from '@/api/user'`."""

    name = "single-import"

    def detect(self, text: str, file_path: Path) -> list[EndpointDescriptor]:
        endpoints = []
        for match in SINGLE_IMPORT_RE.finditer(text):
            name = match.group(1)
            endpoint = self._lookup(match.group(2), name, name, text)
            if endpoint is not None:
                endpoints.append(endpoint)
        return endpoints


class PatternRule(DetectionRule):
    """User-supplied regex.

    The url is taken from a named group `url` (or group 1), the method from
    an optional named group `method`.
    """

    name = "custom-pattern"

    def __init__(self, pattern: re.Pattern):
        self.pattern = pattern

    def detect(self, text: str, file_path: Path) -> list[EndpointDescriptor]:
        endpoints = []
        groups = self.pattern.groupindex
        for m in self.pattern.finditer(text):
            url = m.group("url") if "url" in groups else m.group(1)
            method = m.group("method") if "method" in groups else None
            if url:
                endpoints.append(EndpointDescriptor(url=url, method=method))
        return endpoints


class UsageExtractor:
    """Runs the detection rules over a file and collects its import specifiers."""

    def __init__(self, rules: list[DetectionRule], import_patterns: list[re.Pattern] | None = None):
        self.rules = rules
        self.import_patterns = [STATIC_IMPORT_RE, DYNAMIC_IMPORT_RE] + list(import_patterns or [])

    @classmethod
    def default(
        cls,
        catalog: ApiCatalog,
        resolver: ImportResolver,
        extra_rules: list[DetectionRule] | None = None,
        import_patterns: list[re.Pattern] | None = None,
    ) -> "UsageExtractor":
        rules: list[DetectionRule] = [
            UrlLiteralRule(),
            GroupedImportRule(catalog, resolver),
            SingleImportRule(catalog, resolver),
        ]
        rules.extend(extra_rules or [])
        return cls(rules, import_patterns)

    def extract(self, text: str, file_path: Path) -> FileUsage:
        endpoints: list[EndpointDescriptor] = []
        for rule in self.rules:
            found = rule.detect(text, file_path)
            if found:
                logger.debug("%s: %s found %d endpoint(s)", file_path, rule.name, len(found))
            endpoints.extend(found)

        specifiers: list[str] = []
        for pattern in self.import_patterns:
            for match in pattern.finditer(text):
                specifiers.append(match.group(1))

        return FileUsage(endpoints=endpoints, specifiers=list(dict.fromkeys(specifiers)))


def _split_names(names: str) -> list[tuple[str, str]]:
    """Parse `a, b as c, type T` into (imported, local) pairs."""
    pairs = []
    for part in names.split(","):
        part = part.strip()
        if not part:
            continue
        if part.startswith("type "):
            continue
        imported, _, local = part.partition(" as ")
        imported = imported.strip()
        local = local.strip() or imported
        if imported:
            pairs.append((imported, local))
    return pairs
