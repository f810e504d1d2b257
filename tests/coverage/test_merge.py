"""Tests for later-wins coverage merging."""

from covtree.coverage.merge import merge_sections
from covtree.coverage.models import CoverageCounts, CoverageSection


def _section(file: str, found: int, hit: int, title: str = "") -> CoverageSection:
    return CoverageSection(file=file, title=title, lines=CoverageCounts(found=found, hit=hit))


class TestMergeSections:
    def test_empty(self) -> None:
        assert merge_sections([]) == {}

    def test_later_report_wins(self) -> None:
        first = [_section("a.ts", 10, 2, "lcov")]
        second = [_section("a.ts", 10, 9, "cobertura")]

        merged = merge_sections([first, second])

        assert merged["a.ts"].title == "cobertura"
        assert merged["a.ts"].lines_hit == 9

    def test_counts_not_summed(self) -> None:
        merged = merge_sections([[_section("a.ts", 4, 4)], [_section("a.ts", 4, 4)]])

        assert merged["a.ts"].lines_found == 4

    def test_later_section_in_same_report_wins(self) -> None:
        merged = merge_sections([[_section("a.ts", 1, 0), _section("a.ts", 1, 1)]])

        assert merged["a.ts"].lines_hit == 1

    def test_distinct_files_kept_in_order(self) -> None:
        merged = merge_sections([[_section("b.ts", 1, 1)], [_section("a.ts", 1, 0)]])

        assert list(merged) == ["b.ts", "a.ts"]
