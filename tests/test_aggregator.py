from pathlib import Path

from api_collector.graph.aggregator import aggregate, classify_entry, sort_endpoints
from api_collector.parser.base import EndpointDescriptor, EntryResult

VIEWS = Path("/project/src/views")
INDEX_NAMES = ["index", "defaultIndex"]


def _ep(url: str, method: str = "GET", name: str | None = None) -> EndpointDescriptor:
    return EndpointDescriptor(url=url, method=method, function_name=name)


def _entry(category: str, page: str, *endpoints: EndpointDescriptor) -> EntryResult:
    return EntryResult(
        file_path=VIEWS / "x.vue", category=category, page=page, endpoints=frozenset(endpoints)
    )


class TestClassifyEntry:
    def test_top_level_index_is_root(self):
        label = classify_entry(VIEWS / "index.vue", VIEWS, INDEX_NAMES)
        assert (label.category, label.page) == ("/", "/")
        label = classify_entry(VIEWS / "defaultIndex.vue", VIEWS, INDEX_NAMES)
        assert (label.category, label.page) == ("/", "/")

    def test_top_level_file_uses_stem(self):
        label = classify_entry(VIEWS / "login.vue", VIEWS, INDEX_NAMES)
        assert (label.category, label.page) == ("login", "/")

    def test_one_directory_deep(self):
        label = classify_entry(VIEWS / "escortData" / "index.vue", VIEWS, INDEX_NAMES)
        assert (label.category, label.page) == ("escortData", "escortData")

    def test_two_or_more_directories_deep(self):
        label = classify_entry(VIEWS / "system" / "user" / "index.vue", VIEWS, INDEX_NAMES)
        assert (label.category, label.page) == ("system", "system/user")
        label = classify_entry(VIEWS / "system" / "user" / "parts" / "Form.vue", VIEWS, INDEX_NAMES)
        assert (label.category, label.page) == ("system", "system/user")

    def test_outside_pages_root_is_skipped(self):
        assert classify_entry(Path("/project/src/components/Card.vue"), VIEWS, INDEX_NAMES) is None


class TestSortEndpoints:
    def test_sorted_by_url_then_method(self):
        result = sort_endpoints({_ep("/b", "GET"), _ep("/a", "POST"), _ep("/a", "DELETE")})
        assert [(e.url, e.method) for e in result] == [("/a", "DELETE"), ("/a", "POST"), ("/b", "GET")]

    def test_same_url_and_method_appears_once(self):
        result = sort_endpoints({_ep("/user", "GET", "getUser"), _ep("/user", "GET", "fetchUser"), _ep("/user", "GET")})
        assert [(e.url, e.method) for e in result] == [("/user", "GET")]


class TestAggregate:
    def test_root_page_category_flattens(self):
        result = aggregate([_entry("catHome", "/", _ep("/home"))])
        assert result.to_json_data() == {"catHome": [{"url": "/home", "method": "GET"}]}

    def test_page_equal_to_category_flattens(self):
        result = aggregate([_entry("user", "user", _ep("/user"))])
        assert isinstance(result.tree["user"], list)

    def test_multiple_pages_nest(self):
        result = aggregate([
            _entry("system", "system/user", _ep("/user")),
            _entry("system", "system/role", _ep("/role")),
        ])
        assert result.to_json_data() == {
            "system": {
                "system/role": [{"url": "/role", "method": "GET"}],
                "system/user": [{"url": "/user", "method": "GET"}],
            }
        }

    def test_single_deep_page_nests(self):
        result = aggregate([_entry("system", "system/user", _ep("/user"))])
        assert result.to_json_data() == {"system": {"system/user": [{"url": "/user", "method": "GET"}]}}

    def test_entries_on_same_page_merge_and_dedupe(self):
        result = aggregate([
            _entry("system", "system/user", _ep("/user"), _ep("/dict")),
            _entry("system", "system/user", _ep("/user"), _ep("/role", "POST")),
        ])
        urls = [e.url for e in result.tree["system"]["system/user"]]
        assert urls == ["/dict", "/role", "/user"]

    def test_empty_entries_are_left_out(self):
        result = aggregate([_entry("about", "/"), _entry("user", "user", _ep("/user"))])
        assert list(result.tree) == ["user"]

    def test_categories_sorted(self):
        result = aggregate([_entry("zeta", "/", _ep("/z")), _entry("alpha", "/", _ep("/a"))])
        assert list(result.to_json_data()) == ["alpha", "zeta"]

    def test_summary_counts(self):
        result = aggregate([
            _entry("/", "/", _ep("/home"), _ep("/stats", "UNKNOWN")),
            _entry("system", "system/user", _ep("/user")),
            _entry("system", "system/role", _ep("/role"), _ep("/role", "POST")),
        ])
        assert result.summary.model_dump() == {"categories": 2, "pages": 3, "endpoints": 5}
