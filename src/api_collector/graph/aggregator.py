"""Groups per-entry results into the category -> page -> endpoints tree."""

from pathlib import Path

from pydantic import BaseModel

from api_collector.files import normalize_path
from api_collector.parser.base import CollectionSummary, EndpointDescriptor, EntryResult

ROOT_PAGE = "/"

OutputTree = dict[str, list[EndpointDescriptor] | dict[str, list[EndpointDescriptor]]]


class EntryLabel(BaseModel):
    category: str
    page: str


class Aggregation(BaseModel):
    tree: OutputTree
    summary: CollectionSummary

    def to_json_data(self) -> dict:
        """Plain data for the output document; endpoints become {url, method}."""
        data: dict = {}
        for category, value in self.tree.items():
            if isinstance(value, list):
                data[category] = [e.model_dump() for e in value]
            else:
                data[category] = {page: [e.model_dump() for e in eps] for page, eps in value.items()}
        return data


def classify_entry(file_path: Path, pages_root: Path, index_names: list[str]) -> EntryLabel | None:
    """Derive category and page labels from where the file sits under pages_root.

    Returns None for files outside the pages root.
    """
    try:
        relative = normalize_path(file_path).relative_to(normalize_path(pages_root))
    except ValueError:
        return None

    parts = relative.parts
    if not parts:
        return None
    if len(parts) == 1:
        stem = relative.stem
        category = ROOT_PAGE if stem in index_names else stem
        return EntryLabel(category=category, page=ROOT_PAGE)
    if len(parts) == 2:
        return EntryLabel(category=parts[0], page=parts[0])
    return EntryLabel(category=parts[0], page="/".join(parts[:2]))


def sort_endpoints(endpoints) -> list[EndpointDescriptor]:
    """Dedupe by serialized (url, method) and sort ascending."""
    unique: dict[tuple[str, str], EndpointDescriptor] = {}
    for endpoint in sorted(endpoints, key=lambda e: (e.sort_key, e.function_name or "")):
        unique.setdefault(endpoint.sort_key, endpoint)
    return list(unique.values())


def aggregate(entries: list[EntryResult]) -> Aggregation:
    """Build the output tree and summary counts from entry results."""
    grouped: dict[str, dict[str, set[EndpointDescriptor]]] = {}
    for entry in entries:
        if not entry.endpoints:
            continue
        pages = grouped.setdefault(entry.category, {})
        pages.setdefault(entry.page, set()).update(entry.endpoints)

    tree: OutputTree = {}
    summary = CollectionSummary()
    for category in sorted(grouped):
        pages = grouped[category]
        if _should_flatten(category, pages):
            endpoints = sort_endpoints(set().union(*pages.values()))
            tree[category] = endpoints
            summary.pages += 1
            summary.endpoints += len(endpoints)
        else:
            nested = {page: sort_endpoints(pages[page]) for page in sorted(pages)}
            tree[category] = nested
            summary.pages += len(nested)
            summary.endpoints += sum(len(eps) for eps in nested.values())
    summary.categories = len(tree)

    return Aggregation(tree=tree, summary=summary)


def _should_flatten(category: str, pages: dict) -> bool:
    if category == ROOT_PAGE:
        return True
    return len(pages) == 1 and next(iter(pages)) in (ROOT_PAGE, category)
