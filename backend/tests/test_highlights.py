"""
BookBrief Backend — Highlight Extraction Tests
================================================

Pure function, so no fixtures: each test feeds a string and checks the cut.
"""

from app.services.highlights import ELLIPSIS, extract_highlight, normalize_whitespace


class TestNormalizeWhitespace:
    def test_collapses_runs_and_trims(self):
        assert normalize_whitespace("  a\n\n b\t c  ") == "a b c"

    def test_none_like_input(self):
        assert normalize_whitespace("") == ""
        assert normalize_whitespace(None) == ""


class TestExtractHighlight:
    def test_empty_text(self):
        assert extract_highlight("") == ""
        assert extract_highlight("   \n  ") == ""

    def test_short_text_returned_normalized(self):
        assert extract_highlight("  A short   summary.  ") == "A short summary."

    def test_exactly_max_length_is_untouched(self):
        text = "x" * 180
        assert extract_highlight(text, 180) == text

    def test_hard_cut_appends_ellipsis(self):
        """No sentence end, no space: hard cut at max_length plus the ellipsis."""
        result = extract_highlight("a" * 300, 180)
        assert result == "a" * 180 + ELLIPSIS
        assert len(result) == 183

    def test_cuts_after_sentence_end_near_limit(self):
        first = "word " * 30  # 150 chars
        text = first.strip() + ". " + "tail " * 40
        result = extract_highlight(text, 180)
        assert result.endswith(".")
        assert not result.endswith(ELLIPSIS)
        assert len(result) <= 180

    def test_sentence_end_too_early_falls_back_to_word_cut(self):
        """A period 100+ chars before the limit is ignored; the last space wins."""
        text = "Intro. " + "lorem " * 60
        result = extract_highlight(text, 180)
        assert result.endswith(ELLIPSIS)
        assert not result[: -len(ELLIPSIS)].endswith(" ")
        assert len(result) <= 183

    def test_question_and_exclamation_marks_count_as_sentence_ends(self):
        text = "q" * 160 + "? " + "z" * 100
        assert extract_highlight(text, 180) == "q" * 160 + "?"

        text = "e" * 160 + "! " + "z" * 100
        assert extract_highlight(text, 180) == "e" * 160 + "!"

    def test_custom_max_length(self):
        result = extract_highlight("b" * 50, 10)
        assert result == "b" * 10 + ELLIPSIS

    def test_idempotent_on_short_output(self):
        text = "First sentence here. " * 20
        once = extract_highlight(text, 180)
        assert len(once) <= 180
        assert extract_highlight(once, 180) == once
