from writing_feedback.diffing import diff


def _rebuild(segments, keep: str) -> str:
    return "".join(seg.text for seg in segments if seg.type in ("equal", keep))


def test_inserted_word_is_reported_as_added():
    segments = diff("The quick fox", "The quick brown fox")

    assert [(seg.type, seg.text) for seg in segments] == [
        ("equal", "The quick"),
        ("added", " brown"),
        ("equal", " fox"),
    ]


def test_segments_rebuild_both_inputs():
    original = "Results were  analyzed\nby the team."
    modified = "The team analyzed\nthe results carefully."

    segments = diff(original, modified)

    assert _rebuild(segments, "removed") == original
    assert _rebuild(segments, "added") == modified


def test_adjacent_segments_never_share_a_type():
    segments = diff("a b c d e f", "a x c y e z")

    assert all(seg.text for seg in segments)
    for left, right in zip(segments, segments[1:]):
        assert left.type != right.type


def test_identical_and_empty_inputs():
    assert [seg.to_dict() for seg in diff("Same text.", "Same text.")] == [
        {"type": "equal", "text": "Same text."}
    ]
    assert diff("", "") == []
    assert [(seg.type, seg.text) for seg in diff("", "new words")] == [("added", "new words")]
    assert [(seg.type, seg.text) for seg in diff("old words", "")] == [("removed", "old words")]


def test_diff_is_deterministic():
    first = diff("one two three", "three two one")
    second = diff("one two three", "three two one")

    assert [seg.to_dict() for seg in first] == [seg.to_dict() for seg in second]


def test_edge_whitespace_takes_part_in_alignment():
    original = "the\nbc "
    modified = "the b thefoxthecab"

    segments = diff(original, modified)

    assert [(seg.type, seg.text) for seg in segments] == [
        ("equal", "the"),
        ("removed", "\nbc"),
        ("equal", " "),
        ("added", "b thefoxthecab"),
    ]
    assert _rebuild(segments, "removed") == original
    assert _rebuild(segments, "added") == modified
