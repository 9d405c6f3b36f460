"""Unit tests for keyword-scored candidate ranking."""

from __future__ import annotations

import pytest

from labormap.matching.scorer import normalize_keywords, rank_candidates, score_entry
from labormap.models import CatalogEntry


def _entry(code: str, description: str, series: str = "SONG PLUS DMI") -> CatalogEntry:
    return CatalogEntry(factory_code=code, description=description, vehicle_series=series)


@pytest.fixture
def brake_catalog() -> list[CatalogEntry]:
    return [
        _entry("WSA3BRK00101GH00", "Brake pad replacement"),
        _entry("WSA3BRK00201GH00", "Inspect brake disc"),
        _entry("WSA3HAC02101GH00", "Replace EGR gasket 2"),
        _entry("SHARK_BRK_01", "Brake pad replacement", series="SHARK"),
    ]


class TestScoreEntry:
    def test_whole_token_match(self):
        candidate = score_entry(_entry("X1", "Inspect brake disc"), ["DISC"])

        assert candidate.match_score == 15

    def test_substring_match(self):
        """Test 'REPLACE' inside 'REPLACEMENT' earns substring points only."""
        candidate = score_entry(_entry("X1", "Brake pad replacement"), ["REPLACE"])

        assert candidate.match_score == 8

    def test_code_match(self):
        candidate = score_entry(_entry("WSA3BRK00101GH00", "Pad"), ["BRK"])

        assert candidate.match_score == 5

    def test_prefix_bonus_for_long_keyword(self):
        """Test +15 token and +5 prefix bonus for a keyword longer than 4 chars."""
        candidate = score_entry(_entry("X1", "Brake pad replacement"), ["BRAKE"])

        assert candidate.match_score == 20

    def test_no_prefix_bonus_for_short_keyword(self):
        candidate = score_entry(_entry("X1", "Pad brake"), ["PAD"])

        assert candidate.match_score == 15

    def test_prefix_bonus_awarded_once(self):
        candidate = score_entry(_entry("X1", "Brakes front"), ["BRAKE", "BRAKES"])

        # BRAKE: substring 8, BRAKES: token 15, single prefix bonus 5
        assert candidate.match_score == 28

    def test_no_overlap_scores_zero(self):
        candidate = score_entry(_entry("X1", "Replace EGR gasket 2"), ["BRAKE", "INSPECTION"])

        assert candidate.match_score == 0
        assert candidate.reasons == []

    def test_reasons_explain_points(self):
        candidate = score_entry(_entry("WSA3BRK00101GH00", "Brake pad"), ["PAD", "BRK"])

        assert len(candidate.reasons) == 2
        assert any("PAD" in reason for reason in candidate.reasons)


class TestNormalizeKeywords:
    def test_drops_blanks_and_duplicates(self):
        assert normalize_keywords(["brake", " BRAKE ", "", "pad"]) == ["BRAKE", "PAD"]

    def test_none(self):
        assert normalize_keywords(None) == []


class TestRankCandidates:
    def test_ranks_by_score_within_series(self, brake_catalog):
        ranked = rank_candidates(brake_catalog, "SONG", ["BRAKE", "PAD"])

        assert [c.factory_code for c in ranked] == ["WSA3BRK00101GH00", "WSA3BRK00201GH00"]
        assert ranked[0].match_score == 35
        assert ranked[1].match_score == 15

    def test_other_series_excluded(self, brake_catalog):
        ranked = rank_candidates(brake_catalog, "SHARK", ["BRAKE"])

        assert [c.factory_code for c in ranked] == ["SHARK_BRK_01"]

    def test_zero_scores_discarded(self, brake_catalog):
        ranked = rank_candidates(brake_catalog, "SONG", ["BRAKE"])

        assert "WSA3HAC02101GH00" not in [c.factory_code for c in ranked]

    def test_empty_hints_yield_empty_list(self, brake_catalog):
        assert rank_candidates(brake_catalog, "SONG", []) == []
        assert rank_candidates(brake_catalog, "SONG", None) == []
        assert rank_candidates(brake_catalog, "SONG", ["  "]) == []

    def test_empty_context_yields_empty_list(self, brake_catalog):
        assert rank_candidates(brake_catalog, "", ["BRAKE"]) == []

    def test_ties_keep_catalog_order(self):
        catalog = [_entry(f"C{i}", "Brake inspection") for i in range(5)]

        ranked = rank_candidates(catalog, "SONG", ["BRAKE"])

        assert [c.factory_code for c in ranked] == ["C0", "C1", "C2", "C3", "C4"]

    def test_capped_to_top_twenty(self):
        catalog = [_entry(f"C{i:02d}", "Brake inspection") for i in range(30)]

        ranked = rank_candidates(catalog, "SONG", ["BRAKE"])

        assert len(ranked) == 20
        assert ranked[-1].factory_code == "C19"

    def test_explicit_limit(self, brake_catalog):
        assert len(rank_candidates(brake_catalog, "SONG", ["BRAKE"], limit=1)) == 1

    def test_adding_matching_keyword_never_lowers_score(self, brake_catalog):
        base = {c.factory_code: c.match_score for c in rank_candidates(brake_catalog, "SONG", ["BRAKE"])}
        more = {
            c.factory_code: c.match_score
            for c in rank_candidates(brake_catalog, "SONG", ["BRAKE", "DISC"])
        }

        for code, score in base.items():
            assert more[code] >= score
        assert more["WSA3BRK00201GH00"] > base["WSA3BRK00201GH00"]

    def test_deterministic(self, brake_catalog):
        first = rank_candidates(brake_catalog, "SONG", ["BRAKE", "PAD", "DISC"])
        second = rank_candidates(brake_catalog, "SONG", ["BRAKE", "PAD", "DISC"])

        assert [(c.factory_code, c.match_score) for c in first] == [
            (c.factory_code, c.match_score) for c in second
        ]

    def test_weights_from_config(self, monkeypatch):
        monkeypatch.setenv("TOKEN_MATCH_POINTS", "100")

        ranked = rank_candidates([_entry("X1", "Pad")], "SONG", ["PAD"])

        assert ranked[0].match_score == 100
