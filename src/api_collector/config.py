"""Collector configuration.

Options may be written in snake_case or in camelCase (`apiDir`,
`componentDirs`, ...). Relative directories are resolved against `root`.
"""

import logging
import re
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)


class _Options(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")


class ComponentDir(_Options):
    path: str
    alias: str


class CustomExtractors(_Options):
    """Extra regexes applied to every walked file."""

    url_patterns: list[re.Pattern] = []  # group 1 -> url, method UNKNOWN
    function_call_patterns: list[re.Pattern] = []  # named groups url / method
    import_patterns: list[re.Pattern] = []  # group 1 -> import specifier

    @field_validator("url_patterns", "function_call_patterns", "import_patterns", mode="before")
    @classmethod
    def _compile(cls, value: list) -> list[re.Pattern]:
        compiled = []
        for p in value or []:
            if isinstance(p, re.Pattern):
                compiled.append(p)
                continue
            try:
                pattern = re.compile(p)
            except re.error as e:
                raise ValueError(f"invalid pattern {p!r}: {e}") from e
            if pattern.groups == 0:
                raise ValueError(f"pattern {p!r} needs a capture group")
            compiled.append(pattern)
        return compiled


class CollectorConfig(_Options):
    """All knobs for one collection pass."""

    root: Path = Path(".")
    api_dir: str = "src/api"
    views_dir: str = "src/views"
    views_alias: str = "@/views"
    component_dirs: list[ComponentDir] = Field(
        default_factory=lambda: [ComponentDir(path="src/components", alias="@/components")]
    )
    output_path: str = "public/api-collection.json"
    extensions: list[str] = [".vue", ".js", ".ts"]
    component_extension: str = ".vue"
    api_file_patterns: list[str] = ["index.ts", "index.js"]
    index_names: list[str] = ["index", "defaultIndex"]
    alias: dict[str, str] = {"@": "src"}
    verbose: bool = False
    custom_extractors: CustomExtractors = CustomExtractors()
    exclude: list[str] = []
    include: list[str] = []

    def resolve_dir(self, path: str) -> Path:
        return self.root / path

    @property
    def api_root(self) -> Path:
        return self.resolve_dir(self.api_dir)

    @property
    def views_root(self) -> Path:
        return self.resolve_dir(self.views_dir)

    @property
    def output_file(self) -> Path:
        return self.resolve_dir(self.output_path)

    @property
    def api_dir_name(self) -> str:
        return Path(self.api_dir).name or "api"

    @property
    def api_index_names(self) -> list[str]:
        """Index module stems taken from the API file patterns (index.ts -> index)."""
        return list(dict.fromkeys(Path(p).stem for p in self.api_file_patterns))

    def alias_dirs(self) -> dict[str, Path]:
        return {alias: self.resolve_dir(path) for alias, path in self.alias.items()}


def load_config(config_path: Path | None = None, **overrides) -> CollectorConfig:
    """Load configuration from a YAML file, with keyword overrides applied on top.

    Without a path, defaults are used. An empty file yields defaults too.
    """
    data: dict = {}
    if config_path is not None:
        text = config_path.read_text(encoding="utf-8")
        data = yaml.safe_load(text) or {}
        if not isinstance(data, dict):
            raise ValueError(f"{config_path}: expected a mapping at the top level")
        logger.debug("Loaded config from %s", config_path)

    for key, value in overrides.items():
        if value is None:
            continue
        # the file may spell the same option in camelCase
        data.pop(to_camel(key), None)
        data[key] = value
    return CollectorConfig.model_validate(data)
