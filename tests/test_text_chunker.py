import pytest

from lecture_assistant.text_chunker import split_into_chunks, split_sentences


def _sentence(i, words=10):
    return " ".join([f"word{i}"] * (words - 1) + [f"end{i}."])


def test_split_sentences_keeps_terminal_punctuation():
    text = 'What is heat?  Heat is energy!\nIt flows "downhill." Done'
    assert split_sentences(text) == [
        "What is heat?",
        "Heat is energy!",
        'It flows "downhill."',
        "Done",
    ]


def test_split_sentences_empty_text():
    assert split_sentences("   \n ") == []


def test_fifteen_hundred_words_make_three_chunks():
    text = " ".join(_sentence(i) for i in range(150))

    chunks = split_into_chunks(text, target_words=600)

    assert [chunk.word_count for chunk in chunks] == [600, 600, 300]
    assert [chunk.index for chunk in chunks] == [0, 1, 2]


def test_chunks_rejoin_to_normalized_text():
    text = "  ".join(_sentence(i, words=7 + i % 5) for i in range(200))

    chunks = split_into_chunks(text, target_words=500)

    assert all(chunk.text for chunk in chunks)
    assert " ".join(chunk.text for chunk in chunks) == " ".join(text.split())


def test_chunks_never_split_a_sentence():
    sentences = [_sentence(i, words=45) for i in range(40)]
    chunks = split_into_chunks(" ".join(sentences), target_words=500)

    for chunk in chunks:
        assert chunk.text.endswith(".")
        assert chunk.word_count <= 500


def test_oversized_sentence_becomes_its_own_chunk():
    long_sentence = " ".join(["lorem"] * 900) + "."
    text = f"Short opener here. {long_sentence} Closing remark."

    chunks = split_into_chunks(text, target_words=600)

    assert [chunk.text for chunk in chunks] == ["Short opener here.", long_sentence, "Closing remark."]


def test_text_without_punctuation_is_one_chunk():
    chunks = split_into_chunks("no punctuation at all here", target_words=600)
    assert len(chunks) == 1
    assert chunks[0].text == "no punctuation at all here"


def test_empty_text_has_no_chunks():
    assert split_into_chunks("", target_words=600) == []


@pytest.mark.parametrize("target", [100, 499, 801])
def test_target_outside_range_is_rejected(target):
    with pytest.raises(ValueError):
        split_into_chunks("Some text.", target_words=target)
