"""Word vector model: weights, persistence and similarity queries."""

from __future__ import annotations

import json
import struct
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from pathlib import Path

import numpy as np

from .training import TrainConfig, train
from .vocab import Vocab, build_vocab

BINARY_FILE = "model.bin"
VECTORS_FILE = "vectors.txt"
FREQ_FILE = "vocab_freq.json"

_NEGATIVE_WEIGHT = -1.25


@dataclass(frozen=True)
class WordScore:
    """A word together with its similarity score."""

    word: str
    score: float


def _as_matrix(rows, vector_size: int) -> np.ndarray:
    if rows is None:
        return np.zeros((0, vector_size), dtype=np.float32)
    matrix = np.array(rows, dtype=np.float32)
    if matrix.size == 0:
        return np.zeros((0, vector_size), dtype=np.float32)
    return np.ascontiguousarray(matrix.reshape(len(matrix), -1))


def _format_g(value) -> str:
    """Format a float32 in the shortest form, exponent notation outside [1e-4, 1e6)."""
    v = np.float32(value)
    if np.isnan(v):
        return "NaN"
    if np.isinf(v):
        return "+Inf" if v > 0 else "-Inf"
    scientific = np.format_float_scientific(v, unique=True, trim="-", exp_digits=2)
    exponent = int(scientific.rsplit("e", 1)[1])
    if v != 0 and (exponent < -4 or exponent >= 6):
        return scientific
    return np.format_float_positional(v, unique=True, trim="-")


@dataclass
class Model:
    """Vocabulary plus input and output weight matrices."""

    config: TrainConfig = field(default_factory=TrainConfig)
    vocab: Vocab | None = None
    syn_in: np.ndarray | None = None
    syn_out: np.ndarray | None = None

    def __post_init__(self) -> None:
        size = self.config.vector_size
        if self.vocab is None:
            self.vocab = Vocab(min_count=self.config.min_count)
        self.syn_in = _as_matrix(self.syn_in, size)
        if self.syn_out is None or len(self.syn_out) == 0:
            self.syn_out = np.zeros_like(self.syn_in)
        else:
            self.syn_out = _as_matrix(self.syn_out, size)

    def init_weights(self) -> None:
        """Fill the input matrix with small random values and zero the output matrix."""
        size = self.config.vector_size
        rng = np.random.default_rng(1)
        shape = (len(self.vocab), size)
        self.syn_in = ((rng.random(shape, dtype=np.float32) - np.float32(0.5)) / np.float32(size)).astype(
            np.float32
        )
        self.syn_out = np.zeros(shape, dtype=np.float32)

    def extend_weights(self, old_size: int) -> None:
        """Grow the matrices to the vocabulary size, keeping the first ``old_size`` rows."""
        new_size = len(self.vocab)
        size = self.config.vector_size
        added = max(new_size - old_size, 0)
        rng = np.random.default_rng(new_size)
        new_in = (rng.random((added, size), dtype=np.float32) - np.float32(0.5)) / np.float32(size)
        self.syn_in = np.ascontiguousarray(
            np.vstack([self.syn_in[:old_size], new_in.astype(np.float32)]), dtype=np.float32
        )
        self.syn_out = np.ascontiguousarray(
            np.vstack([self.syn_out[:old_size], np.zeros((added, size), dtype=np.float32)]),
            dtype=np.float32,
        )

    def create_and_train(self, sentences: Iterable[Sequence[str]]) -> None:
        """Build the vocabulary from ``sentences`` and train on them."""
        sentences = [list(sentence) for sentence in sentences]
        self.vocab = build_vocab(sentences, self.config.min_count)
        self.init_weights()
        train(self, sentences)

    def add_sentences(self, sentences: Iterable[Sequence[str]]) -> None:
        """Extend the vocabulary with new sentences and continue training on them."""
        sentences = [list(sentence) for sentence in sentences]
        old_size = len(self.vocab)
        self.vocab.extend(sentences)
        self.extend_weights(old_size)
        train(self, sentences)

    def save(self, directory) -> None:
        """Write the binary model, the text vectors and the frequency table to ``directory``."""
        target = Path(directory)
        target.mkdir(parents=True, exist_ok=True)
        self._save_binary(target / BINARY_FILE)
        self.save_word2vec_text(target / VECTORS_FILE)
        self._save_vocab_freq(target / FREQ_FILE)

    def save_word2vec_text(self, path) -> None:
        """Write the input vectors in the plain word2vec text format."""
        size = self.config.vector_size
        with open(path, "w", encoding="utf-8", errors="surrogateescape", newline="\n") as out:
            out.write(f"{len(self.vocab)} {size}\n")
            for word, row in zip(self.vocab.words, self.syn_in):
                values = "".join(" " + _format_g(value) for value in row[:size])
                out.write(f"{word}{values}\n")

    def _save_vocab_freq(self, path: Path) -> None:
        frequencies = {word: int(count) for word, count in self.vocab.frequency.items()}
        path.write_text(
            json.dumps(frequencies, sort_keys=True, separators=(",", ":"), ensure_ascii=False),
            encoding="utf-8",
            errors="surrogateescape",
        )

    def _save_binary(self, path: Path) -> None:
        count = len(self.vocab)
        config_data = json.dumps(self.config.to_dict(), separators=(",", ":")).encode("utf-8")
        with open(path, "wb") as out:
            out.write(struct.pack("<i", len(config_data)))
            out.write(config_data)
            out.write(struct.pack("<i", count))
            for word in self.vocab.words:
                encoded = word.encode("utf-8", errors="surrogateescape")
                out.write(struct.pack("<i", len(encoded)))
                out.write(encoded)
                out.write(struct.pack("<i", int(self.vocab.frequency[word])))
            out.write(np.ascontiguousarray(self.syn_in[:count], dtype="<f4").tobytes())
            out.write(np.ascontiguousarray(self.syn_out[:count], dtype="<f4").tobytes())

    def normalized_vectors(self) -> np.ndarray:
        """Return L2-normalised copies of the input vectors; zero vectors stay zero."""
        vectors = self.syn_in
        norms = np.sqrt((vectors.astype(np.float64) ** 2).sum(axis=1))
        result = vectors.astype(np.float32, copy=True)
        nonzero = norms > 0
        inverse = (1.0 / norms[nonzero]).astype(np.float32)
        result[nonzero] = vectors[nonzero] * inverse[:, None]
        return result

    def most_similar(self, word: str, top_n: int) -> list[WordScore]:
        """Return up to ``top_n`` words closest to ``word`` by cosine similarity."""
        idx = self.vocab.index.get(word)
        if idx is None:
            return []
        vectors = self.syn_in[: len(self.vocab)].astype(np.float64)
        target = vectors[idx]
        target_norm = float(np.sqrt(target @ target))
        if target_norm == 0:
            return []

        dots = vectors @ target
        norms = np.sqrt((vectors ** 2).sum(axis=1))
        candidates = [
            (position, float(dots[position] / (target_norm * norms[position])))
            for position in range(len(vectors))
            if position != idx and norms[position] != 0
        ]
        candidates.sort(key=lambda item: -item[1])
        words = self.vocab.words
        return [WordScore(words[position], score) for position, score in candidates[: max(top_n, 0)]]

    def get_similar_words(
        self,
        words: Iterable[str],
        neg_words: Iterable[str] | None = None,
        count: int = 15,
        filter_negatives: bool = True,
    ) -> list[WordScore]:
        """Combine neighbour scores of several seeds; negative seeds count at -1.25 times."""
        words = list(words)
        neg_words = list(neg_words or ())
        scores: dict[str, float] = {}

        for seed in words:
            for hit in self.most_similar(seed, count):
                scores[hit.word] = scores.get(hit.word, 0.0) + hit.score
        for seed in neg_words:
            for hit in self.most_similar(seed, count):
                scores[hit.word] = scores.get(hit.word, 0.0) + hit.score * _NEGATIVE_WEIGHT

        total = len(words) + len(neg_words)
        if total:
            scores = {word: score / total for word, score in scores.items()}

        results = [
            WordScore(word, score)
            for word, score in scores.items()
            if not (filter_negatives and score < 0)
        ]
        results.sort(key=lambda item: -item.score)
        return results[: max(count, 0)]


class _Reader:
    def __init__(self, data: bytes) -> None:
        self._data = memoryview(data)
        self._pos = 0

    def take(self, length: int) -> memoryview:
        if length < 0 or self._pos + length > len(self._data):
            raise ValueError("truncated model file")
        chunk = self._data[self._pos:self._pos + length]
        self._pos += length
        return chunk

    def int32(self) -> int:
        return struct.unpack("<i", self.take(4))[0]

    def matrix(self, rows: int, cols: int) -> np.ndarray:
        raw = self.take(rows * cols * 4)
        return np.frombuffer(raw, dtype="<f4").astype(np.float32).reshape(rows, cols)


def load_model(directory) -> Model:
    """Load a model saved by :meth:`Model.save`."""
    reader = _Reader(Path(directory, BINARY_FILE).read_bytes())

    config_data = json.loads(bytes(reader.take(reader.int32())).decode("utf-8"))
    if not isinstance(config_data, dict):
        raise ValueError("model configuration is not an object")
    config = TrainConfig.from_dict(config_data)

    count = reader.int32()
    if count < 0:
        raise ValueError(f"invalid vocabulary size: {count}")
    vocab = Vocab(min_count=config.min_count)
    for _ in range(count):
        word = bytes(reader.take(reader.int32())).decode("utf-8", errors="surrogateescape")
        vocab.add_word(word, reader.int32())

    syn_in = reader.matrix(count, config.vector_size)
    syn_out = reader.matrix(count, config.vector_size)
    return Model(config=config, vocab=vocab, syn_in=syn_in, syn_out=syn_out)


def load_word2vec_text(path) -> Model:
    """Read vectors in word2vec text format; every word gets frequency 1."""
    with open(path, encoding="utf-8", errors="surrogateescape") as source:
        header_line = source.readline()
        if not header_line:
            raise ValueError("empty file")
        header = header_line.split()
        if len(header) != 2:
            raise ValueError(f"invalid header: {header_line.rstrip(chr(10))!r}")
        try:
            int(header[0])
        except ValueError as exc:
            raise ValueError(f"invalid vocab size: {header[0]!r}") from exc
        try:
            vector_size = int(header[1])
        except ValueError as exc:
            raise ValueError(f"invalid vector size: {header[1]!r}") from exc

        config = TrainConfig(vector_size=vector_size)
        vocab = Vocab(min_count=config.min_count)
        rows: list[list[float]] = []
        for line in source:
            parts = line.split()
            if len(parts) != vector_size + 1:
                continue
            word = parts[0]
            try:
                rows.append([float(value) for value in parts[1:]])
            except ValueError as exc:
                raise ValueError(f"parsing vector for {word!r}: {exc}") from exc
            vocab.add_word(word, 1)

    syn_in = np.array(rows, dtype=np.float32).reshape(len(rows), vector_size)
    return Model(config=config, vocab=vocab, syn_in=syn_in, syn_out=np.zeros_like(syn_in))


def load_word2vec_text_with_freq(vectors_path, freq_path) -> Model:
    """Read text vectors, then take frequencies from a JSON file when it exists."""
    model = load_word2vec_text(vectors_path)
    try:
        raw = Path(freq_path).read_text(encoding="utf-8")
    except FileNotFoundError:
        return model

    try:
        frequencies = json.loads(raw)
    except ValueError as exc:
        raise ValueError(f"parsing {FREQ_FILE}: {exc}") from exc
    if not isinstance(frequencies, dict) or not all(
        isinstance(count, int) and not isinstance(count, bool) for count in frequencies.values()
    ):
        raise ValueError(f"parsing {FREQ_FILE}: expected an object of integer counts")

    for word, count in frequencies.items():
        if word in model.vocab.index:
            model.vocab.frequency[word] = count
    return model