"""API definition catalog.

Scans the API-definitions directory for exported request wrappers such as::

    export function getUser(id) {
      return request({ url: '/user/' + id, method: 'get' })
    }

    export const listOrders = (params) => request({ url: '/order/list', params })

and maps each module (path relative to the API root, no extension) to the
endpoints its functions declare.
"""

import logging
import re
from pathlib import Path

from api_collector.parser.base import EndpointDescriptor

logger = logging.getLogger(__name__)

PATH_PLACEHOLDER = "{id}"

# Body of a declaration runs until the next top-level export
_DECLARATION_BODY = r"(?:(?!\bexport\s)[\s\S])*?"
# request({ ... }) or request<User>({ ... })
_REQUEST_CALL = r"\brequest\s*(?:<[^()]*?>)?\s*\(\s*\{"

EXPORT_CONST_RE = re.compile(
    r"export\s+const\s+(?P<name>[\w$]+)\s*=" + _DECLARATION_BODY + _REQUEST_CALL
)
EXPORT_FUNCTION_RE = re.compile(
    r"export\s+(?:async\s+)?function\s*\*?\s*(?P<name>[\w$]+)\s*\([^)]*\)"
    + _DECLARATION_BODY
    + _REQUEST_CALL
)

URL_FIELD_RE = re.compile(
    r"""\burl\s*:\s*(?P<quote>['"`])(?P<url>[^'"`]+)(?P=quote)(?P<concat>(?:\s*\+\s*[\w$.]+)*)"""
)
METHOD_FIELD_RE = re.compile(r"""\bmethod\s*:\s*['"`]([^'"`]+)['"`]""")
TEMPLATE_EXPR_RE = re.compile(r"\$\{[^}]*\}")


def extract_balanced_braces(text: str, start: int) -> str:
    """Return the contents of the brace block opening at text[start].

    Quoted strings are skipped so braces inside them do not count. An
    unterminated block returns everything after the opening brace.
    """
    depth = 0
    quote = None
    i = start
    while i < len(text):
        ch = text[i]
        if quote:
            if ch == "\\":
                i += 2
                continue
            if ch == quote:
                quote = None
        elif ch in "'\"`":
            quote = ch
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[start + 1:i]
        i += 1
    return text[start + 1:]


def normalize_url(url: str, concatenation: str = "") -> str:
    """Replace interpolated path parameters with a placeholder segment."""
    url = TEMPLATE_EXPR_RE.sub(PATH_PLACEHOLDER, url.strip())
    if concatenation.strip():
        url = url.rstrip("/") + "/" + PATH_PLACEHOLDER
    return url


def parse_request_fields(body: str, function_name: str | None = None) -> EndpointDescriptor | None:
    """Build a descriptor from the argument object of a request() call."""
    url_match = URL_FIELD_RE.search(body)
    if not url_match:
        return None
    method_match = METHOD_FIELD_RE.search(body)
    return EndpointDescriptor(
        url=normalize_url(url_match.group("url"), url_match.group("concat")),
        method=method_match.group(1) if method_match else "GET",
        function_name=function_name,
    )


def parse_api_source(text: str) -> list[EndpointDescriptor]:
    """Extract every exported request wrapper from an API module's text."""
    endpoints: list[EndpointDescriptor] = []
    for pattern in (EXPORT_CONST_RE, EXPORT_FUNCTION_RE):
        for match in pattern.finditer(text):
            body = extract_balanced_braces(text, match.end() - 1)
            descriptor = parse_request_fields(body, match.group("name"))
            if descriptor is not None:
                endpoints.append(descriptor)
    return endpoints


def module_key(file_path: Path, api_root: Path) -> str:
    """Path relative to the API root, extension stripped, '/'-separated."""
    relative = file_path.relative_to(api_root)
    return relative.with_suffix("").as_posix()


class ApiCatalog:
    """Module key -> endpoints declared by that module's exported functions."""

    def __init__(self, modules: dict[str, list[EndpointDescriptor]] | None = None,
                 index_names: list[str] | None = None):
        self.modules: dict[str, list[EndpointDescriptor]] = dict(modules or {})
        self.index_names = index_names or ["index"]

    @classmethod
    def build(cls, api_root: Path, files: list[Path], index_names: list[str] | None = None) -> "ApiCatalog":
        """Parse each API file; files that declare nothing are left out."""
        catalog = cls(index_names=index_names)
        for file_path in files:
            try:
                text = file_path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                logger.warning("Could not read API file %s: %s", file_path, e)
                continue

            endpoints = parse_api_source(text)
            if not endpoints:
                continue
            key = module_key(file_path, api_root)
            catalog.modules[key] = endpoints
            logger.info("  %s: %d APIs", key, len(endpoints))
        return catalog

    def lookup(self, key: str, function_name: str) -> EndpointDescriptor | None:
        """Find the endpoint declared by function_name in the given module."""
        for candidate in self._candidate_keys(key):
            for endpoint in self.modules.get(candidate, []):
                if endpoint.function_name == function_name:
                    return endpoint
        return None

    def _candidate_keys(self, key: str) -> list[str]:
        key = key.strip("/")
        stem = re.sub(r"\.(?:[jt]sx?|mjs)$", "", key)
        candidates = [key, stem] + [f"{stem}/{name}" for name in self.index_names]
        return list(dict.fromkeys(candidates))

    def to_dict(self) -> dict[str, list[dict]]:
        return {
            key: [{**e.model_dump(), "function": e.function_name} for e in endpoints]
            for key, endpoints in sorted(self.modules.items())
        }

    def __contains__(self, key: str) -> bool:
        return key in self.modules

    def __len__(self) -> int:
        return len(self.modules)
