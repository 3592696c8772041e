"""Vocabulary: word indices and frequency counts."""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass, field


@dataclass
class Vocab:
    """Maps words to row indices and keeps a frequency count for every word seen."""

    min_count: int = 0
    words: list[str] = field(default_factory=list)
    index: dict[str, int] = field(default_factory=dict)
    frequency: Counter = field(default_factory=Counter)

    def extend(self, sentences: Iterable[Iterable[str]]) -> None:
        """Count the words of new sentences and append those that now reach ``min_count``.

        Indices of words already present are left unchanged.
        """
        for sentence in sentences:
            self.frequency.update(sentence)
        for word, count in self.frequency.items():
            if count >= self.min_count and word not in self.index:
                self.index[word] = len(self.words)
                self.words.append(word)

    def add_word(self, word: str, frequency: int) -> int:
        """Append ``word`` with the given frequency and return its new index.

        The word is always appended; if it was already present its index is
        moved to the new position.
        """
        position = len(self.words)
        self.index[word] = position
        self.words.append(word)
        self.frequency[word] = frequency
        return position

    def __len__(self) -> int:
        return len(self.words)

    def __contains__(self, word: object) -> bool:
        return word in self.index


def build_vocab(sentences: Iterable[Iterable[str]], min_count: int) -> Vocab:
    """Count words, keep those seen at least ``min_count`` times and index them.

    Words are ordered by descending frequency, ties broken alphabetically.
    """
    vocab = Vocab(min_count=min_count)
    for sentence in sentences:
        vocab.frequency.update(sentence)

    candidates = [word for word, count in vocab.frequency.items() if count >= min_count]
    candidates.sort(key=lambda word: (-vocab.frequency[word], word))

    vocab.words = candidates
    vocab.index = {word: position for position, word in enumerate(candidates)}
    return vocab