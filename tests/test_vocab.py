from glovesearch.vocab import Vocab, build_vocab


def test_build_vocab():
    sentences = [
        ["the", "cat", "sat", "on", "the", "mat"],
        ["the", "dog", "sat", "on", "the", "log"],
        ["the", "cat", "and", "dog"],
    ]
    v = build_vocab(sentences, 2)

    assert "the" in v
    assert "cat" in v
    assert "mat" not in v
    assert "and" not in v
    assert v.frequency["the"] == 5


def test_build_vocab_orders_by_frequency_then_alphabetically():
    sentences = [
        ["the", "cat", "sat", "on", "the", "mat"],
        ["the", "dog", "sat", "on", "the", "log"],
        ["the", "cat", "and", "dog"],
    ]
    v = build_vocab(sentences, 2)

    assert v.words == ["the", "cat", "dog", "on", "sat"]
    assert all(v.index[word] == position for position, word in enumerate(v.words))


def test_build_vocab_counts_filtered_words_too():
    v = build_vocab([["a", "b", "a"]], 2)
    assert v.words == ["a"]
    assert v.frequency["b"] == 1


def test_extend_vocab():
    sentences = [
        ["the", "cat", "sat", "on", "the", "mat"],
        ["the", "dog", "sat", "on", "the", "log"],
    ]
    v = build_vocab(sentences, 2)
    orig_size = len(v)
    cat_idx = v.index["cat"]

    v.extend([
        ["the", "mat", "is", "new"],
        ["the", "mat", "is", "old"],
    ])

    assert "mat" in v
    assert v.frequency["mat"] == 3
    assert v.index["cat"] == cat_idx
    assert len(v) > orig_size


def test_extend_keeps_rare_words_out():
    v = build_vocab([["x", "x"]], 2)
    v.extend([["y"]])
    assert "y" not in v
    assert v.frequency["y"] == 1
    v.extend([["y"]])
    assert "y" in v
    assert v.words[-1] == "y"


def test_add_word_appends_and_records_frequency():
    v = Vocab(min_count=1)
    assert v.add_word("good", 10) == 0
    assert v.add_word("bad", 3) == 1
    assert v.words == ["good", "bad"]
    assert v.index == {"good": 0, "bad": 1}
    assert v.frequency["bad"] == 3
    assert len(v) == 2


def test_empty_vocab():
    v = Vocab(min_count=5)
    assert len(v) == 0
    assert "anything" not in v
    assert v.frequency["anything"] == 0