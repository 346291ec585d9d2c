"""End-to-end collection passes over the sample shop project."""

import json
import shutil
from collections import Counter
from pathlib import Path

import pytest

from api_collector.collector import ApiCollector, build_catalog, write_output
from api_collector.config import CollectorConfig
from api_collector.graph.walker import read_source

FIXTURES = Path(__file__).parent / "fixtures"

EXPECTED = {
    "/": [
        {"url": "/dashboard/stats", "method": "UNKNOWN"},
        {"url": "/user/list", "method": "GET"},
    ],
    "order": {
        "order/detail": [
            {"url": "/order/cancel/{id}", "method": "PUT"},
            {"url": "/order/list", "method": "GET"},
            {"url": "/user/{id}", "method": "GET"},
        ],
        "order/list": [
            {"url": "/order/list", "method": "GET"},
            {"url": "/user/{id}", "method": "GET"},
        ],
    },
    "user": [
        {"url": "/user", "method": "POST"},
        {"url": "/user/{id}", "method": "DELETE"},
        {"url": "/user/{id}", "method": "GET"},
    ],
}


@pytest.fixture
def shop(tmp_path) -> Path:
    root = tmp_path / "shop"
    shutil.copytree(FIXTURES / "shop", root)
    return root


class TestCollectionPass:
    def test_output_document(self, shop):
        collector = ApiCollector(CollectorConfig(root=shop))
        summary = collector.build_start()

        output = shop / "public" / "api-collection.json"
        assert json.loads(output.read_text(encoding="utf-8")) == EXPECTED
        assert summary.model_dump() == {"categories": 3, "pages": 4, "endpoints": 10}

    def test_build_end_rewrites_identical_bytes(self, shop):
        collector = ApiCollector(CollectorConfig(root=shop))
        output = shop / "public" / "api-collection.json"

        collector.build_start()
        first = output.read_bytes()
        output.write_text("stale", encoding="utf-8")
        collector.build_end()
        assert output.read_bytes() == first

    def test_shared_components_parsed_once_per_pass(self, shop):
        counts: Counter = Counter()

        def reader(path: Path) -> str:
            counts[path.relative_to(shop).as_posix()] += 1
            return read_source(path)

        collector = ApiCollector(CollectorConfig(root=shop), reader=reader)
        collector.collect()

        assert counts["src/components/OrderTable.vue"] == 1
        assert counts["src/components/UserCard/index.vue"] == 1
        assert set(counts.values()) == {1}
        assert collector.last_session.reads == 7

    def test_each_pass_starts_fresh(self, shop):
        collector = ApiCollector(CollectorConfig(root=shop))
        collector.collect()
        first_session = collector.last_session
        (shop / "src" / "views" / "about.vue").write_text(
            "<script>x({ url: '/about/info' })</script>", encoding="utf-8"
        )
        result = collector.collect()
        assert collector.last_session is not first_session
        assert result.to_json_data()["about"] == [{"url": "/about/info", "method": "UNKNOWN"}]

    def test_excluded_pages_are_not_collected(self, shop):
        collector = ApiCollector(CollectorConfig(root=shop, exclude=["views/order"]))
        data = collector.collect().to_json_data()
        assert "order" not in data
        assert "user" in data

    def test_missing_directories_give_empty_output(self, tmp_path):
        collector = ApiCollector(CollectorConfig(root=tmp_path))
        summary = collector.run()
        assert json.loads((tmp_path / "public" / "api-collection.json").read_text(encoding="utf-8")) == {}
        assert summary.pages == 0

    def test_file_outside_views_is_skipped(self, shop):
        collector = ApiCollector(CollectorConfig(root=shop))
        walker_entry = collector._collect_entry(
            walker=None, file_path=shop / "src" / "components" / "OrderTable.vue", views_root=shop / "src" / "views"
        )
        assert walker_entry is None


class TestHostAliases:
    def test_config_resolved_aliases_reach_api_modules(self, shop):
        page = shop / "src" / "views" / "reports" / "index.vue"
        page.parent.mkdir(parents=True)
        page.write_text(
            "<script setup>\nimport { listOrders } from 'services/order'\nlistOrders()\n</script>\n",
            encoding="utf-8",
        )
        collector = ApiCollector(CollectorConfig(root=shop))
        collector.config_resolved({"services": "src/api"})
        data = collector.collect().to_json_data()
        assert data["reports"] == [{"url": "/order/list", "method": "GET"}]


class TestCustomExtractors:
    def test_function_call_patterns(self, shop):
        page = shop / "src" / "views" / "health.vue"
        page.write_text("<script>http.get('/health')</script>", encoding="utf-8")
        config = CollectorConfig.model_validate({
            "root": shop,
            "customExtractors": {
                "functionCallPatterns": [r"http\.(?P<method>get|post)\('(?P<url>/[^']+)'"],
            },
        })
        data = ApiCollector(config).collect().to_json_data()
        assert data["health"] == [{"url": "/health", "method": "GET"}]


class TestWriteOutput:
    def test_creates_parent_directories(self, tmp_path):
        target = tmp_path / "deep" / "dir" / "out.json"
        write_output({"user": [{"url": "/user/{id}", "method": "GET"}]}, target)
        assert json.loads(target.read_text(encoding="utf-8")) == {"user": [{"url": "/user/{id}", "method": "GET"}]}

    def test_write_failure_propagates(self, shop):
        (shop / "public").write_text("not a directory", encoding="utf-8")
        collector = ApiCollector(CollectorConfig(root=shop))
        with pytest.raises(OSError):
            collector.run()


class TestBuildCatalog:
    def test_catalog_modules(self, shop):
        catalog = build_catalog(CollectorConfig(root=shop))
        assert sorted(catalog.modules) == ["order/index", "user"]
        assert len(catalog) == 2
