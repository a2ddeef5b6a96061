import pytest

from speech_pipeline.segmenter import (
    SegmenterConfig,
    find_split_point,
    segment_bytes,
    split_text,
)


SAMPLES = [
    "Hello. World.",
    "a" * 250,
    "First sentence. Second sentence. Third sentence.",
    "你好。" + "世" * 40,
    "混合 text, with 標點！ and emoji 😀😀😀 here; more words? yes.\nNext line 終わり。",
    "😀" * 30,
    "no punctuation at all just words " * 20,
]


@pytest.mark.parametrize("text", SAMPLES)
@pytest.mark.parametrize("max_bytes", [1, 2, 3, 5, 20, 64, 150])
def test_fragments_rebuild_input_and_respect_boundaries(text, max_bytes):
    encoded = text.encode("utf-8")
    fragments = segment_bytes(encoded, max_bytes)

    assert b"".join(fragments) == encoded
    for fragment in fragments:
        assert fragment
        decoded = fragment.decode("utf-8")  # raises if a character was cut
        assert len(fragment) <= max_bytes or len(decoded) == 1

    assert segment_bytes(encoded, max_bytes) == fragments


def test_short_input_is_single_fragment():
    assert segment_bytes(b"Hello. World.", 100) == [b"Hello. World."]


def test_plain_letters_are_hard_cut():
    fragments = segment_bytes(b"a" * 250, 100)
    assert [len(f) for f in fragments] == [100, 100, 50]


def test_splits_after_sentence_terminators():
    text = "First sentence. Second sentence. Third sentence."
    assert split_text(text, 20) == [
        "First sentence.",
        " Second sentence.",
        " Third sentence.",
    ]


def test_oversized_character_is_emitted_whole():
    assert segment_bytes("😀".encode("utf-8"), 1) == ["😀".encode("utf-8")]
    assert split_text("a😀b", 1) == ["a", "😀", "b"]


def test_empty_input_gives_no_fragments():
    assert segment_bytes(b"", 10) == []
    assert split_text("", 10) == []


def test_cut_moves_back_to_character_start():
    text = "世" * 40
    fragments = split_text(text, 31)
    assert fragments[0] == "世" * 10
    assert all(len(f.encode("utf-8")) == 30 for f in fragments[:-1])


def test_cjk_terminator_accepted_in_short_fragment():
    fragments = split_text("你好。" + "世" * 40, 30)
    assert fragments[0] == "你好。"
    assert fragments[1:] == ["世" * 10] * 4


def test_strong_terminator_beats_later_clause_separator():
    text = "aaaa. bbbb, cccc" + "d" * 50
    assert split_text(text, 20)[0] == "aaaa."


def test_rightmost_terminator_wins():
    text = "Two! One. " + "x" * 30
    assert split_text(text, 20)[0] == "Two! One."


def test_clause_separator_used_without_terminator():
    text = "alpha, beta; gamma" + "z" * 40
    assert split_text(text, 25)[0] == "alpha, beta;"


def test_newline_is_a_terminator():
    text = "line one\nline two" + "q" * 40
    assert split_text(text, 20)[0] == "line one\n"


def test_early_boundary_in_long_fragment_is_rejected():
    text = "a" * 60 + "." + "b" * 200
    fragments = segment_bytes(text.encode("utf-8"), 150)
    assert len(fragments[0]) == 150


def test_back_half_boundary_in_long_fragment_is_accepted():
    text = "a" * 100 + "." + "b" * 200
    fragments = segment_bytes(text.encode("utf-8"), 150)
    assert fragments[0] == b"a" * 100 + b"."


def test_rejected_terminator_does_not_fall_back_to_clause():
    text = "a" * 60 + "." + "b" * 20 + "," + "c" * 200
    fragments = segment_bytes(text.encode("utf-8"), 150)
    assert len(fragments[0]) == 150


def test_punctuation_outside_lookback_window_is_ignored():
    text = "a" * 20 + "." + "b" * 300
    fragments = segment_bytes(text.encode("utf-8"), 200)
    assert len(fragments[0]) == 200


def test_lookback_counts_characters_not_bytes():
    # 20 three-byte characters after the period: 60 bytes but only 20 characters.
    text = "ab." + "世" * 20 + "c" * 40
    encoded = text.encode("utf-8")
    split = find_split_point(encoded, 0, 63, lookback_chars=21)
    assert split == 3
    assert find_split_point(encoded, 0, 63, lookback_chars=20) is None


def test_find_split_point_without_punctuation():
    assert find_split_point(b"abcdef", 0, 6) is None


def test_segmenter_config_uses_tunables():
    config = SegmenterConfig(max_bytes=150, short_fragment_bytes=200)
    text = "a" * 60 + "." + "b" * 200
    assert config.split(text)[0] == "a" * 60 + "."


def test_rejects_non_positive_budget():
    with pytest.raises(ValueError):
        segment_bytes(b"abc", 0)


def test_split_text_budget_is_utf8_bytes():
    assert split_text("é" * 10, 4) == ["éé"] * 5
