import logging
import unittest
from unittest.mock import MagicMock

from repocatalog.aggregator import Aggregator, group_by_category
from repocatalog.analyzer import Analyzer
from repocatalog.deterministic_analyzer import DeterministicAnalyzer
from repocatalog.errors import NotFoundError
from repocatalog.store import Store


class TestGroupByCategory(unittest.TestCase):

    def test_missing_category_goes_to_uncategorized(self):
        groups = group_by_category([
            {"id": 1, "category": "database"},
            {"id": 2, "category": None},
            {"id": 3, "category": "  "},
            {"id": 4, "category": "database"},
        ])
        self.assertEqual(list(groups), ["database", "uncategorized"])
        self.assertEqual([r["id"] for r in groups["database"]], [1, 4])
        self.assertEqual([r["id"] for r in groups["uncategorized"]], [2, 3])


class TestAggregator(unittest.TestCase):

    def setUp(self):
        logging.disable(logging.CRITICAL)
        self.store = Store("sqlite://")
        self.aggregator = Aggregator(self.store, DeterministicAnalyzer())

    def tearDown(self):
        self.store.close()
        logging.disable(logging.NOTSET)

    def _add(self, name, category, description=""):
        repository_id = self.store.upsert_repository(name, f"https://example.com/{name}", description)
        self.store.set_raw_content(repository_id, f"content of {name}")
        if category:
            self.store.set_category(repository_id, category)
        return repository_id

    def test_empty_catalogue_raises(self):
        with self.assertRaises(NotFoundError):
            self.aggregator.run()

    def test_compares_only_categories_with_two_or_more(self):
        a = self._add("a", "web-scraping", "Fast crawler")
        b = self._add("b", "web-scraping")
        self._add("c", "database")
        self.store.add_tool(a, "scrape", "Scrape a page", "function")
        self.store.add_tool(b, "serve", "", "service")
        self.store.add_tool(b, "misc", "", None)

        report = self.aggregator.run()

        self.assertEqual(list(report["comparisons"]), ["web-scraping"])
        self.assertIn("- a: Fast crawler", report["comparisons"]["web-scraping"])

        comparisons = self.store.list_comparisons()
        self.assertEqual(len(comparisons), 1)
        self.assertEqual(comparisons[0]["category"], "web-scraping")
        self.assertEqual(comparisons[0]["repository_ids"], [a, b])
        self.assertEqual(comparisons[0]["recommendations"], "")

        summary = report["summary"]
        self.assertEqual(summary["total_repositories"], 3)
        self.assertEqual(summary["total_tools"], 3)
        self.assertEqual(summary["categories"], 2)
        self.assertEqual(summary["tools_by_type"], {"function": 1, "service": 1, "unknown": 1})
        self.assertEqual(
            [(c["name"], c["count"]) for c in summary["categories_detail"]],
            [("web-scraping", 2), ("database", 1)],
        )
        self.assertEqual(
            summary["categories_detail"][1]["repositories"],
            [{"id": 3, "name": "c", "url": "https://example.com/c"}],
        )
        self.assertIn("Based on the analysis", report["recommendations"])
        self.assertIn("timestamp", report)

    def test_registers_every_category_including_uncategorized(self):
        self._add("a", "database")
        self._add("b", None)

        self.aggregator.run()
        self.aggregator.run()

        names = [c["name"] for c in self.store.list_categories()]
        self.assertEqual(names, ["database", "uncategorized"])

    def test_repeated_runs_append_comparisons(self):
        self._add("a", "database")
        self._add("b", "database")

        self.aggregator.run()
        self.aggregator.run()

        self.assertEqual(len(self.store.list_comparisons_by_category("database")), 2)

    def test_recommend_receives_statistics_and_needs(self):
        analyzer = MagicMock(spec=Analyzer)
        analyzer.compare.return_value = "narrative"
        analyzer.recommend.return_value = "use a"
        self._add("a", "database")
        self._add("b", "database")

        report = Aggregator(self.store, analyzer).run("need postgres")

        stats, needs = analyzer.recommend.call_args[0]
        self.assertEqual(needs, "need postgres")
        self.assertEqual(stats["categories"], ["database"])
        self.assertEqual(stats["repository_count"], 2)
        self.assertEqual(stats["tool_count"], 0)
        self.assertEqual(stats["category_analyses"], {"database": "narrative"})
        self.assertEqual(report["recommendations"], "use a")
        compared, category = analyzer.compare.call_args[0]
        self.assertEqual([r["name"] for r in compared], ["a", "b"])
        self.assertEqual(category, "database")

    def test_category_report(self):
        a = self._add("a", "database")
        self._add("b", "database")
        self._add("c", "ai-ml")
        self.store.add_tool(a, "query", "Run a query", "function")
        self.aggregator.run()

        report = self.aggregator.category_report("database")

        self.assertEqual(report["category"], "database")
        self.assertEqual(report["repository_count"], 2)
        self.assertNotIn("raw_content", report["repositories"][0])
        self.assertEqual(report["tool_count"], 1)
        self.assertEqual(len(report["comparisons"]), 1)

    def test_category_report_for_unknown_category_is_empty(self):
        report = self.aggregator.category_report("nothing-here")
        self.assertEqual(report["repository_count"], 0)
        self.assertEqual(report["tools"], [])
        self.assertEqual(report["comparisons"], [])

    def test_tools_listing_groups_by_repository(self):
        a = self._add("a", "database")
        b = self._add("b", "database")
        self.store.add_tool(a, "query", "Run a query", "function")
        self.store.add_tool(b, "migrate", "Migrate schema", "utility")
        self.store.add_tool(a, "connect", "Open a connection", "function")

        listing = self.aggregator.tools_listing()

        self.assertEqual(listing["total_tools"], 3)
        self.assertEqual([r["repository"] for r in listing["repositories"]], ["a", "b"])
        self.assertEqual([t["name"] for t in listing["repositories"][0]["tools"]], ["query", "connect"])
        self.assertEqual(listing["repositories"][1]["url"], "https://example.com/b")


if __name__ == '__main__':
    unittest.main()
