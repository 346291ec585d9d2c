"""Data models shared by the catalog, the extractors and the walker.

Every detection rule reports what it finds as EndpointDescriptor values,
and the walker attributes them to page entries for aggregation.
"""

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

HTTP_METHODS = ("GET", "POST", "PUT", "DELETE", "PATCH", "HEAD", "OPTIONS")
UNKNOWN_METHOD = "UNKNOWN"


class EndpointDescriptor(BaseModel):
    """One backend call detected in source text."""

    model_config = ConfigDict(frozen=True)

    url: str  # /user/{id}
    method: str = UNKNOWN_METHOD  # GET / POST / ... / UNKNOWN
    function_name: str | None = Field(default=None, exclude=True)

    @field_validator("method", mode="before")
    @classmethod
    def _normalize_method(cls, value: str | None) -> str:
        if not value:
            return UNKNOWN_METHOD
        method = str(value).strip().upper()
        return method if method in HTTP_METHODS else UNKNOWN_METHOD

    @property
    def sort_key(self) -> tuple[str, str]:
        return (self.url, self.method)


class EntryResult(BaseModel):
    """Endpoints reachable from one page entry file."""

    file_path: Path
    category: str
    page: str
    endpoints: frozenset[EndpointDescriptor] = frozenset()


class CollectionSummary(BaseModel):
    """Counts reported at the end of a collection pass."""

    categories: int = 0
    pages: int = 0
    endpoints: int = 0
