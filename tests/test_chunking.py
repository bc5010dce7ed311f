"""Tests for sentence-bounded chunking of long replies."""
from portal.chat.chunking import cut_at_sentence, ends_cleanly


class TestEndsCleanly:
    def test_terminal_marks(self):
        assert ends_cleanly("انتهى.")
        assert ends_cleanly("هل فهمت؟")
        assert ends_cleanly("Done!")
        assert ends_cleanly("وهكذا…")
        assert ends_cleanly("Really?")

    def test_trailing_whitespace_ignored(self):
        assert ends_cleanly("انتهى.  \n")

    def test_mid_sentence(self):
        assert not ends_cleanly("ثم نستخدم الدالة")
        assert not ends_cleanly("print(x)")

    def test_empty(self):
        assert not ends_cleanly("")
        assert not ends_cleanly("   ")


class TestCutAtSentence:
    """head + tail is always the original text."""

    def test_short_text_untouched(self):
        assert cut_at_sentence("جملة قصيرة.", 100) == ("جملة قصيرة.", "")

    def test_empty(self):
        assert cut_at_sentence("", 10) == ("", "")

    def test_cuts_after_sentence_mark(self):
        text = "First one. Second one is longer"
        head, tail = cut_at_sentence(text, 20)

        assert head == "First one."
        assert tail == " Second one is longer"

    def test_arabic_question_mark(self):
        text = "ما هي القائمة؟ القائمة مجموعة مرتبة"
        head, tail = cut_at_sentence(text, 20)

        assert head == "ما هي القائمة؟"
        assert head + tail == text

    def test_dot_inside_identifier_is_not_a_sentence_end(self):
        """math.sqrt is never split at the dot."""
        text = "Use math.sqrt for roots and more"
        head, tail = cut_at_sentence(text, 12)

        assert head == "Use"
        assert head + tail == text

    def test_falls_back_to_newline(self):
        text = "line one\nline two without end"
        head, tail = cut_at_sentence(text, 15)

        assert head == "line one\n"
        assert tail == "line two without end"

    def test_falls_back_to_space(self):
        text = "aaaa bbbb cccc dddd"
        head, tail = cut_at_sentence(text, 12)

        assert head == "aaaa bbbb"
        assert tail == " cccc dddd"

    def test_hard_cut_without_boundaries(self):
        text = "x" * 25
        head, tail = cut_at_sentence(text, 10)

        assert head == "x" * 10
        assert tail == "x" * 15

    def test_head_never_exceeds_limit(self):
        text = ("جملة عربية طويلة نسبياً. " * 200) + "نهاية"
        head, _ = cut_at_sentence(text, 2000)

        assert 0 < len(head) <= 2000

    def test_resume_rebuilds_text(self):
        """Cutting repeatedly from a cursor yields the whole text with no word split."""
        words = [f"word{i}" for i in range(400)]
        text = " ".join(words) + "."
        cursor, pieces = 0, []
        while cursor < len(text):
            head, _ = cut_at_sentence(text[cursor:], 100)
            assert head
            pieces.append(head)
            cursor += len(head)

        assert "".join(pieces) == text
        rebuilt_words = []
        for piece in pieces:
            rebuilt_words.extend(piece.split())
        assert rebuilt_words == text.split()
