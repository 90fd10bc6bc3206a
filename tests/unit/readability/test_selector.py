"""
Unit tests for candidate selection and the retry schedule.
"""

from unittest.mock import patch

from quarryreader.readability.dom import load, serialize
from quarryreader.readability.engine import Readability
from quarryreader.readability.models import PassFlags
from quarryreader.readability.selector import FLAG_SCHEDULE, ArticleAttempt

LONG_TEXT = "Rivers carve valleys over thousands of years, wearing down rock with the sediment they carry."


def _prepared(body: str, **options):
    readability = Readability(load(f"<html><body>{body}</body></html>"), options)
    page = readability.preprocessor.prepare_document()
    return readability, page


def _ranked(readability, page, flags=PassFlags.all()):
    sweep = readability.preprocessor.sweep(page, flags, "")
    scores = readability.scorer.score(sweep.elements, flags)
    return scores, readability.scorer.rank(scores, readability.options.nb_top_candidates)


class TestFlagSchedule:
    def test_relaxes_one_heuristic_at_a_time(self):
        assert FLAG_SCHEDULE == (
            PassFlags.all(),
            PassFlags.WEIGHT_CLASSES | PassFlags.CLEAN_CONDITIONALLY,
            PassFlags.CLEAN_CONDITIONALLY,
            PassFlags.NONE,
        )

    def test_walks_ranks_before_relaxing(self):
        readability, page = _prepared("<p>short</p>", charThreshold=100)
        lengths = iter([10, 30, 20, 5, 30, 1, 2, 3])

        def fake_attempt(page, flags, rank, title=""):
            return ArticleAttempt(
                content=readability.document.new_tag("div"),
                text_length=next(lengths),
                flags=flags,
                rank=rank,
                candidate_count=2,
            )

        with patch.object(readability.selector, "attempt", side_effect=fake_attempt) as attempt:
            result = readability.selector.grab_article(page)

        calls = [(call.args[1], call.args[2]) for call in attempt.call_args_list]
        assert calls == [(flags, rank) for flags in FLAG_SCHEDULE for rank in (0, 1)]
        # Longest wins; the earliest of equal lengths
        assert (result.flags, result.rank, result.text_length) == (FLAG_SCHEDULE[0], 1, 30)
        assert readability.selector.passes == 8

    def test_stops_once_threshold_is_reached(self):
        readability, page = _prepared("<p>short</p>", charThreshold=100)
        lengths = iter([10, 150])

        def fake_attempt(page, flags, rank, title=""):
            return ArticleAttempt(
                content=readability.document.new_tag("div"),
                text_length=next(lengths),
                flags=flags,
                rank=rank,
                candidate_count=3,
            )

        with patch.object(readability.selector, "attempt", side_effect=fake_attempt):
            result = readability.selector.grab_article(page)

        assert result.text_length == 150
        assert result.rank == 1
        assert readability.selector.passes == 2


class TestGrabArticle:
    def test_short_page_runs_every_state_and_keeps_content(self):
        readability, page = _prepared("<p>short text</p>")
        result = readability.selector.grab_article(page)

        assert readability.selector.passes == len(FLAG_SCHEDULE)
        assert result.flags == FLAG_SCHEDULE[0]
        assert serialize(result.content) == '<div id="readability-page-1" class="page"><p>short text</p></div>'

    def test_page_restored_between_passes(self):
        readability, page = _prepared("<p>short text</p>")
        readability.selector.grab_article(page)
        assert all(attempt.text_length == len("short text") for attempt in readability.selector.attempts)

    def test_zero_top_candidates_uses_the_page(self):
        body = f"<div><p>{LONG_TEXT}</p><p>{LONG_TEXT}</p></div><p>tail text</p>"
        readability, page = _prepared(body, nbTopCandidates=0, charThreshold=20)
        result = readability.selector.grab_article(page)

        assert result.candidate_count == 0
        assert "tail text" in result.content.get_text()
        assert readability.selector.passes == 1

    def test_qualifying_siblings_are_merged(self):
        body = (
            f'<div class="story"><p>{LONG_TEXT}</p><p>{LONG_TEXT}</p><p>{LONG_TEXT}</p></div>'
            "<p>A sibling paragraph long enough to join the article.</p>"
            '<ul><li><a href="/related">Related link</a></li></ul>'
        )
        readability, page = _prepared(body, charThreshold=20)
        result = readability.selector.grab_article(page)
        container = result.content.find(id="readability-page-1")

        assert [child.name for child in container.find_all(recursive=False)] == ["div", "p"]
        assert "A sibling paragraph" in container.get_text()
        assert "Related link" not in container.get_text()

    def test_direction_comes_from_the_candidate_chain(self):
        body = f'<div dir="rtl"><div><p>{LONG_TEXT}</p><p>{LONG_TEXT}</p></div></div>'
        readability, page = _prepared(body, charThreshold=20)
        assert readability.selector.grab_article(page).dir == "rtl"


class TestRefineCandidate:
    def test_climbs_through_only_child_wrappers(self):
        body = f'<div id="outer"><div id="inner"><p>{LONG_TEXT}</p><p>{LONG_TEXT}</p><p>{LONG_TEXT}</p></div></div>'
        readability, page = _prepared(body)
        scores, ranked = _ranked(readability, page)
        assert ranked[0].node["id"] == "inner"

        candidate = readability.selector.refine_candidate(ranked[0], ranked[1:], scores, page, PassFlags.all())
        assert candidate["id"] == "outer"

    def test_parent_with_higher_score_is_taken(self):
        body = f'<div id="outer"><div id="inner"><p>{LONG_TEXT}</p><p>{LONG_TEXT}</p></div><p>{LONG_TEXT}</p><p>{LONG_TEXT}</p></div>'
        readability, page = _prepared(body)
        scores, ranked = _ranked(readability, page)
        inner = next(entry for entry in ranked if entry.node.get("id") == "inner")

        candidate = readability.selector.refine_candidate(inner, [], scores, page, PassFlags.all())
        assert candidate["id"] == "outer"

    def test_common_ancestor_of_near_equal_candidates(self):
        section = f'<div class="entry"><p>{LONG_TEXT}</p><p>{LONG_TEXT}</p></div>'
        readability, page = _prepared(f'<div id="outer">{section * 4}</div>')
        scores, ranked = _ranked(readability, page)
        assert "entry" in ranked[0].node["class"]

        candidate = readability.selector.refine_candidate(ranked[0], ranked[1:], scores, page, PassFlags.all())
        assert candidate["id"] == "outer"

    def test_candidate_kept_without_enough_alternatives(self):
        section = f'<div class="entry"><p>{LONG_TEXT}</p><p>{LONG_TEXT}</p></div>'
        readability, page = _prepared(f'<div id="outer">{section * 2}<p>{LONG_TEXT}</p></div>')
        scores, ranked = _ranked(readability, page)

        candidate = readability.selector.refine_candidate(ranked[0], ranked[1:], scores, page, PassFlags.all())
        assert candidate is ranked[0].node
