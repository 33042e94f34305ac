"""Tests for keyword boosting and directory diversity."""

import pytest

from repolens.core.strategies.scoring import (
    DirectoryDiversityStrategy,
    KeywordBoostStrategy,
)

from .conftest import make_result


class TestKeywordBoost:

    def test_auth_question_boosts_auth_file(self):
        result = make_result("src/auth/login.ts", 0.5, code="x" * 1500)

        [boosted] = KeywordBoostStrategy().apply("how does auth work", [result])

        # keyword in file name, auth topic, implementation file, non-config file
        assert boosted.boost == pytest.approx(0.10 + 0.15 + 0.05 + 0.05)
        assert boosted.similarity == pytest.approx(0.85)
        assert boosted.similarity > boosted.vector_score

    def test_keywords_skip_short_words(self):
        assert KeywordBoostStrategy().keywords("How is the API wired up") == ["wired"]

    def test_summary_keyword_boost(self):
        strategy = KeywordBoostStrategy()
        plain = make_result("lib/a.ts", 0.5, summary="Unrelated helper")
        match = make_result("lib/b.ts", 0.5, summary="Parses the webhook payload")

        assert strategy.boost_for("webhook handling", match) == pytest.approx(
            strategy.boost_for("webhook handling", plain) + 0.05
        )

    def test_database_topic_matches_orm_files(self):
        strategy = KeywordBoostStrategy()
        prisma = make_result("prisma/schema.prisma", 0.5)
        other = make_result("src/view.ts", 0.5)

        assert strategy.boost_for("which database tables", prisma) == pytest.approx(
            strategy.boost_for("which database tables", other) + 0.15
        )

    def test_test_and_config_files_rank_lower(self):
        results = [
            make_result("src/app.test.ts", 0.6),
            make_result("vite.config.ts", 0.6),
            make_result("src/app.ts", 0.6),
        ]

        ranked = KeywordBoostStrategy().apply("what happens", results)

        assert ranked[0].file_name == "src/app.ts"
        assert ranked[0].similarity == pytest.approx(0.7)
        assert all(r.similarity == pytest.approx(0.65) for r in ranked[1:])

    def test_similarity_capped_at_one(self):
        result = make_result("src/auth/auth.ts", 0.95, summary="auth token login")

        [boosted] = KeywordBoostStrategy().apply("auth login token", [result])

        assert boosted.boost > 0.05
        assert boosted.similarity == 1.0

    def test_boost_never_lowers_score(self):
        results = [make_result(f"d{i}/f{i}.spec.ts", 0.3 + i / 100) for i in range(5)]
        raw = {r.file_name: r.vector_score for r in results}

        for r in KeywordBoostStrategy().apply("anything", results):
            assert r.similarity >= raw[r.file_name]

    def test_reorders_by_boosted_similarity(self):
        results = [
            make_result("src/misc/util.test.ts", 0.62),
            make_result("src/api/routes.ts", 0.55),
        ]

        ranked = KeywordBoostStrategy().apply("list the api routes", results)

        assert [r.file_name for r in ranked] == ["src/api/routes.ts", "src/misc/util.test.ts"]

    def test_custom_topic_map(self):
        strategy = KeywordBoostStrategy(topic_map={"queue": ("worker",)})
        result = make_result("jobs/worker.py", 0.5)

        assert strategy.boost_for("the queue", result) == pytest.approx(0.15 + 0.05 + 0.05)

    def test_empty_results(self):
        assert KeywordBoostStrategy().apply("question", []) == []


class TestDirectoryDiversity:

    def test_caps_per_directory_and_total(self):
        results = [
            make_result(f"dir{d}/file{i}.ts", 0.9 - (d * 10 + i) / 100)
            for d in range(5)
            for i in range(10)
        ]

        selected = DirectoryDiversityStrategy(max_results=15, per_directory=3).apply("q", results)

        assert len(selected) <= 15
        counts = {}
        for r in selected:
            counts[r.directory] = counts.get(r.directory, 0) + 1
        assert max(counts.values()) <= 3
        # each directory had 10 candidates; at least 7 from each are dropped
        assert all(10 - c >= 7 for c in counts.values())

    def test_preserves_order(self):
        results = [
            make_result("a/1.ts", 0.9),
            make_result("a/2.ts", 0.8),
            make_result("b/1.ts", 0.7),
            make_result("a/3.ts", 0.6),
            make_result("a/4.ts", 0.5),
            make_result("b/2.ts", 0.4),
        ]

        selected = DirectoryDiversityStrategy(max_results=10, per_directory=2).apply("q", results)

        assert [r.file_name for r in selected] == ["a/1.ts", "a/2.ts", "b/1.ts", "b/2.ts"]

    def test_root_files_share_a_directory(self):
        results = [make_result(f"file{i}.md", 0.5) for i in range(5)]

        selected = DirectoryDiversityStrategy(per_directory=3).apply("q", results)

        assert len(selected) == 3
        assert {r.directory for r in selected} == {"root"}

    def test_nested_directories_are_distinct(self):
        results = [
            make_result("src/a.ts", 0.9),
            make_result("src/lib/b.ts", 0.8),
            make_result("src/lib/c.ts", 0.7),
        ]

        selected = DirectoryDiversityStrategy(per_directory=1).apply("q", results)

        assert [r.file_name for r in selected] == ["src/a.ts", "src/lib/b.ts"]
