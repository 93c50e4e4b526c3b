from writing_feedback.sentences import segment_sentences, split_into_sentences
from writing_feedback.tokenization import (
    alphabetic_words,
    split_words,
    tokenize_with_whitespace,
)


def test_tokenize_with_whitespace_keeps_separators():
    text = "The  quick\nfox "
    tokens = tokenize_with_whitespace(text)

    assert tokens == ["The", "  ", "quick", "\n", "fox", " ", ""]
    assert "".join(tokens) == text
    assert tokenize_with_whitespace("") == [""]
    assert tokenize_with_whitespace(" lead") == ["", " ", "lead"]


def test_alphabetic_words_skips_numbers_and_symbols():
    assert split_words("  3 apples, 42 -- pears ") == ["3", "apples,", "42", "--", "pears"]
    assert alphabetic_words("3 apples, 42 -- pears") == ["apples,", "pears"]


def test_abbreviation_is_not_a_sentence_boundary():
    sentences = split_into_sentences("Dr. Smith arrived. The results were significant.")

    assert sentences == ["Dr. Smith arrived.", "The results were significant."]


def test_decimals_domains_and_figure_references_stay_inside_sentences():
    text = "See Fig. 3 for details. The value was 3.14 today. Visit example.com for more."

    assert split_into_sentences(text) == [
        "See Fig. 3 for details.",
        "The value was 3.14 today.",
        "Visit example.com for more.",
    ]


def test_question_exclamation_and_closing_quotes():
    assert split_into_sentences("Is it done? Yes! It is.") == ["Is it done?", "Yes!", "It is."]
    assert split_into_sentences('He said "Stop." Then he left.') == [
        'He said "Stop."',
        "Then he left.",
    ]


def test_lowercase_continuation_does_not_split():
    assert split_into_sentences("We ran tests, e.g. unit tests. They passed.") == [
        "We ran tests, e.g. unit tests.",
        "They passed.",
    ]


def test_pieces_without_letters_are_dropped():
    assert split_into_sentences("123. 456! Real sentence here.") == ["Real sentence here."]
    assert split_into_sentences("   ") == []


def test_segment_sentences_counts_words_and_positions():
    sentences = segment_sentences("One two three. Four five.")

    assert [(s.text, s.word_count, s.position) for s in sentences] == [
        ("One two three.", 3, 1),
        ("Four five.", 2, 2),
    ]
