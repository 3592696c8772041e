"""CBOW training with negative sampling."""

from __future__ import annotations

import math
import random
import threading
from collections.abc import Iterable, Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import asdict, dataclass, fields
from typing import Any, Protocol

import numpy as np

from .vocab import Vocab

NOISE_TABLE_SIZE = 10_000_000


@dataclass
class TrainConfig:
    """Hyperparameters for training."""

    vector_size: int = 100
    window: int = 5
    min_count: int = 10
    workers: int = 4
    epochs: int = 5
    alpha: float = 0.025
    min_alpha: float = 0.0001
    neg_samples: int = 5

    def to_dict(self) -> dict[str, Any]:
        """Return the configuration as a JSON-ready mapping."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> TrainConfig:
        """Build a configuration from a mapping, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        return cls(**{key: value for key, value in data.items() if key in known})


class _Trainable(Protocol):
    vocab: Vocab
    config: TrainConfig
    syn_in: np.ndarray
    syn_out: np.ndarray


class NoiseTable:
    """Unigram distribution raised to the 0.75 power, laid out for negative sampling."""

    def __init__(self, vocab: Vocab, table_size: int = NOISE_TABLE_SIZE) -> None:
        if len(vocab) == 0:
            raise ValueError("cannot build a noise table for an empty vocabulary")
        if table_size <= 0:
            raise ValueError("noise table size must be positive")

        powers = np.array([float(vocab.frequency[word]) for word in vocab.words]) ** 0.75
        total = np.cumsum(powers)[-1]
        if not total > 0:
            raise ValueError("vocabulary frequencies must not all be zero")

        cumulative = np.cumsum(powers / total)
        bounds = np.minimum((cumulative * table_size).astype(np.int64), table_size)
        bounds = np.maximum.accumulate(bounds)
        counts = np.diff(bounds, prepend=0)
        filled = np.repeat(np.arange(len(vocab), dtype=np.int32), counts)

        self.table = np.full(table_size, len(vocab) - 1, dtype=np.int32)
        self.table[: len(filled)] = filled

    def __len__(self) -> int:
        return len(self.table)

    def sample(self, rng: random.Random) -> int:
        """Draw a word index from the noise distribution."""
        return int(self.table[rng.randrange(len(self.table))])


class _Progress:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._value = 0

    def read(self) -> int:
        with self._lock:
            return self._value

    def add(self, amount: int) -> None:
        with self._lock:
            self._value += amount


def _train_chunk(
    model: _Trainable,
    chunk: Sequence[Sequence[str]],
    seed: int,
    noise: NoiseTable,
    total_train_words: float,
    progress: _Progress,
) -> None:
    rng = random.Random(seed)
    config = model.config
    index = model.vocab.index
    syn_in = model.syn_in
    syn_out = model.syn_out
    local_processed = 0

    for _ in range(config.epochs):
        for sentence in chunk:
            indices = [index[word] for word in sentence if word in index]
            if len(indices) < 2:
                continue

            for pos, target_idx in enumerate(indices):
                fraction = (progress.read() + local_processed) / total_train_words
                alpha = max(config.alpha - (config.alpha - config.min_alpha) * fraction, config.min_alpha)

                reduced = rng.randrange(config.window)
                start = max(pos - config.window + reduced, 0)
                end = min(pos + config.window - reduced + 1, len(indices))
                context = indices[start:pos] + indices[pos + 1:end]
                if not context:
                    continue

                neu1 = syn_in[context].sum(axis=0) * np.float32(1.0 / len(context))
                neu1e = np.zeros(config.vector_size, dtype=np.float32)

                for d in range(config.neg_samples + 1):
                    if d == 0:
                        target, label = target_idx, 1.0
                    else:
                        target = noise.sample(rng)
                        if target == target_idx:
                            continue
                        label = 0.0

                    out = syn_out[target]
                    dot = float(np.dot(neu1, out))
                    if dot > 6:
                        gradient = (label - 1.0) * alpha
                    elif dot < -6:
                        gradient = label * alpha
                    else:
                        exp_value = math.exp(dot)
                        gradient = (label - exp_value / (exp_value + 1.0)) * alpha
                    g = np.float32(gradient)

                    neu1e += g * out
                    out += g * neu1

                np.add.at(syn_in, context, neu1e)
                local_processed += 1

    progress.add(local_processed)


def train(model: _Trainable, sentences: Iterable[Sequence[str]]) -> None:
    """Train ``model.syn_in`` and ``model.syn_out`` in place on tokenized sentences.

    Sentences are split across ``config.workers`` threads that share the
    weight matrices.
    """
    if len(model.vocab) == 0:
        return

    sentences = [list(sentence) for sentence in sentences]
    noise = NoiseTable(model.vocab)
    total_train_words = float(sum(len(sentence) for sentence in sentences)) * model.config.epochs

    workers = max(model.config.workers, 1)
    chunk_size = -(-len(sentences) // workers)
    chunks = [
        (sentences[w * chunk_size:(w + 1) * chunk_size], w * 17 + 42)
        for w in range(workers)
    ]
    chunks = [(chunk, seed) for chunk, seed in chunks if chunk]
    if not chunks:
        return

    progress = _Progress()
    with ThreadPoolExecutor(max_workers=len(chunks)) as pool:
        futures = [
            pool.submit(_train_chunk, model, chunk, seed, noise, total_train_words, progress)
            for chunk, seed in chunks
        ]
        for future in futures:
            future.result()