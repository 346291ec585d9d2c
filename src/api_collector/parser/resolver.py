"""Import specifier resolution.

Turns the raw specifier of an import statement into either a component
file to walk into, or the catalog key of an API module. Anything else
(npm packages, stylesheets, utilities) resolves to None and is ignored.
"""

import logging
import re
from pathlib import Path

from api_collector.files import normalize_path

logger = logging.getLogger(__name__)

SCRIPT_EXTENSION_RE = re.compile(r"\.(?:[jt]sx?|mjs)$")


class ComponentRoot:
    """A component directory reachable through an import alias."""

    def __init__(self, path: Path, alias: str):
        self.path = path
        self.alias = alias.rstrip("/")

    def __repr__(self) -> str:
        return f"ComponentRoot({self.alias!r} -> {str(self.path)!r})"


class ImportResolver:
    """Resolves import specifiers against aliases and directory conventions."""

    def __init__(
        self,
        pages_root: Path,
        component_roots: list[ComponentRoot] | None = None,
        aliases: dict[str, Path] | None = None,
        host_aliases: dict[str, Path] | None = None,
        pages_alias: str = "@/views",
        api_dir_name: str = "api",
        component_extension: str = ".vue",
    ):
        self.pages_root = pages_root
        self.component_roots = component_roots or []
        self.aliases = aliases or {}
        self.host_aliases = host_aliases or {}
        self.pages_alias = pages_alias.rstrip("/")
        self.api_dir_name = api_dir_name
        self.component_extension = component_extension

    def resolve(self, specifier: str, current_file: Path) -> Path | None:
        """Resolve a specifier to a component file path, or None."""
        ext = self.component_extension

        if specifier.startswith(".") and specifier.endswith(ext):
            return normalize_path(current_file.parent / specifier)

        for root in self.component_roots:
            rest = _strip_prefix(specifier, root.alias)
            if rest is None:
                continue
            if rest.endswith(ext):
                return normalize_path(root.path / rest)
            for candidate in (root.path / rest / f"index{ext}", root.path / f"{rest}{ext}"):
                if candidate.is_file():
                    return normalize_path(candidate)
            logger.debug("No component file for %s under %s", specifier, root.path)
            return None

        rest = _strip_prefix(specifier, self.pages_alias)
        if rest is not None and rest.endswith(ext):
            return normalize_path(self.pages_root / rest)

        if specifier.endswith(ext):
            for alias, directory in self._alias_items():
                rest = _strip_prefix(specifier, alias)
                if rest is not None:
                    return normalize_path(directory / rest)

        return None

    def resolve_api_module(self, specifier: str) -> str | None:
        """Resolve a specifier to an API catalog module key, or None."""
        key = self._api_tail(specifier)
        if key is None:
            for alias, directory in self._alias_items():
                rest = _strip_prefix(specifier, alias)
                if rest is None:
                    continue
                key = self._api_tail(f"{directory.as_posix()}/{rest}")
                if key is not None:
                    break
        if not key:
            return None
        return SCRIPT_EXTENSION_RE.sub("", key)

    def _api_tail(self, specifier: str) -> str | None:
        marker = f"/{self.api_dir_name}/"
        if specifier.startswith(f"@{marker}"):
            return specifier[len(marker) + 1:]
        index = specifier.rfind(marker)
        if index == -1:
            return None
        return specifier[index + len(marker):]

    def _alias_items(self) -> list[tuple[str, Path]]:
        # Longest prefix first so "@/components" wins over "@"
        items = list(self.aliases.items()) + list(self.host_aliases.items())
        return sorted(items, key=lambda item: len(item[0]), reverse=True)


def _strip_prefix(specifier: str, alias: str) -> str | None:
    """Return what follows 'alias/' in specifier, or None if it doesn't match."""
    alias = alias.rstrip("/")
    if not alias or not specifier.startswith(alias + "/"):
        return None
    return specifier[len(alias) + 1:]
