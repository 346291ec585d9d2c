"""Collection pass and build lifecycle hooks.

A pass builds the API catalog, walks every page entry under the views
directory, aggregates the results and writes them as JSON. All state is
created fresh for each pass, so running it twice over the same tree
writes the same bytes.
"""

import json
import logging
from pathlib import Path
from typing import Callable

from api_collector.config import CollectorConfig
from api_collector.files import list_files
from api_collector.graph.aggregator import Aggregation, aggregate, classify_entry
from api_collector.graph.walker import DependencyWalker, WalkSession, read_source
from api_collector.parser.base import CollectionSummary, EntryResult
from api_collector.parser.catalog import ApiCatalog
from api_collector.parser.extractor import DetectionRule, PatternRule, UsageExtractor
from api_collector.parser.resolver import ComponentRoot, ImportResolver

logger = logging.getLogger(__name__)


def build_catalog(config: CollectorConfig) -> ApiCatalog:
    """Parse the API definitions directory into a catalog."""
    api_root = config.api_root
    files = list_files(api_root, config.extensions, config.exclude, config.include)
    logger.info("Scanning %d API definition file(s) under %s", len(files), api_root)
    catalog = ApiCatalog.build(api_root, files, index_names=config.api_index_names)
    logger.info("Catalogued %d API module(s)", len(catalog))
    return catalog


def write_output(data: dict, output_file: Path) -> None:
    """Write the collection document. Errors propagate to the caller."""
    output_file.parent.mkdir(parents=True, exist_ok=True)
    output_file.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")


class ApiCollector:
    """Runs collection passes for one project.

    The host build calls `config_resolved` once its own alias table is known,
    then `build_start` and `build_end`; each trigger runs a full pass and
    (over)writes the output file.
    """

    def __init__(self, config: CollectorConfig, reader: Callable[[Path], str] = read_source):
        self.config = config
        self.reader = reader
        self.host_aliases: dict[str, Path] = {}
        self.last_session: WalkSession | None = None

    def config_resolved(self, aliases: dict[str, str | Path] | None = None) -> None:
        """Receive the host's resolved alias table (alias -> directory)."""
        self.host_aliases = {
            alias: self.config.resolve_dir(str(path)) for alias, path in (aliases or {}).items()
        }
        logger.debug("Host aliases: %s", self.host_aliases)

    def build_start(self) -> CollectionSummary:
        return self.run()

    def build_end(self) -> CollectionSummary:
        return self.run()

    def run(self) -> CollectionSummary:
        """Run a full pass and write the output file."""
        result = self.collect()
        output_file = self.config.output_file
        write_output(result.to_json_data(), output_file)

        summary = result.summary
        logger.info(
            "API collection done: %d categories, %d pages, %d APIs -> %s",
            summary.categories, summary.pages, summary.endpoints, output_file,
        )
        return summary

    def collect(self) -> Aggregation:
        """Run a full pass and return the aggregated tree without writing it."""
        config = self.config
        catalog = build_catalog(config)
        resolver = self._make_resolver()
        extractor = UsageExtractor.default(
            catalog,
            resolver,
            extra_rules=self._custom_rules(),
            import_patterns=config.custom_extractors.import_patterns,
        )
        session = WalkSession()
        walker = DependencyWalker(extractor, resolver, session, reader=self.reader)
        self.last_session = session

        views_root = config.views_root
        files = list_files(views_root, config.extensions, config.exclude, config.include)
        logger.info("Found %d file(s) under %s, analyzing API usage...", len(files), views_root)

        entries: list[EntryResult] = []
        for file_path in files:
            entry = self._collect_entry(walker, file_path, views_root)
            if entry is not None:
                entries.append(entry)

        return aggregate(entries)

    def _collect_entry(self, walker: DependencyWalker, file_path: Path, views_root: Path) -> EntryResult | None:
        label = classify_entry(file_path, views_root, self.config.index_names)
        if label is None:
            logger.debug("Skipping %s: not under %s", file_path, views_root)
            return None

        try:
            endpoints = walker.walk(file_path)
        except (OSError, ValueError, RecursionError) as e:
            logger.warning("Failed to process %s: %s", file_path, e)
            return None

        if endpoints:
            logger.info(
                "[%s] %s uses: %s",
                label.category,
                label.page,
                ", ".join(f"{e.method} {e.url}" for e in sorted(endpoints, key=lambda e: e.sort_key)),
            )
        return EntryResult(file_path=file_path, category=label.category, page=label.page, endpoints=endpoints)

    def _make_resolver(self) -> ImportResolver:
        config = self.config
        return ImportResolver(
            pages_root=config.views_root,
            component_roots=[
                ComponentRoot(config.resolve_dir(d.path), d.alias) for d in config.component_dirs
            ],
            aliases=config.alias_dirs(),
            host_aliases=self.host_aliases,
            pages_alias=config.views_alias,
            api_dir_name=config.api_dir_name,
            component_extension=config.component_extension,
        )

    def _custom_rules(self) -> list[DetectionRule]:
        custom = self.config.custom_extractors
        patterns = custom.url_patterns + custom.function_call_patterns
        return [PatternRule(p) for p in patterns]
