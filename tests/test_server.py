import json
from unittest import mock

import numpy as np
import pytest
import responses
from flask import Flask

from glovesearch.model import Model
from glovesearch.server import load_any_model, main
from glovesearch.training import TrainConfig
from glovesearch.vocab import Vocab

BASE = "http://localhost:9200"


def _manual_model():
    config = TrainConfig(vector_size=3, min_count=1)
    vocab = Vocab(min_count=1)
    for word in ["good", "great", "bad", "terrible", "cat"]:
        vocab.add_word(word, 10)
    syn_in = [
        [1.0, 0.0, 0.1],
        [0.9, 0.1, 0.1],
        [-1.0, 0.0, 0.1],
        [-0.9, 0.1, 0.1],
        [0.0, 1.0, 0.0],
    ]
    return Model(config=config, vocab=vocab, syn_in=syn_in)


def test_load_any_model_prefers_binary(tmp_path):
    model = _manual_model()
    model.save(tmp_path)
    (tmp_path / "vectors.txt").write_text("1 3\nzebra 1 2 3\n", encoding="utf-8")

    loaded = load_any_model(tmp_path)
    assert loaded.vocab.words == model.vocab.words
    assert np.allclose(loaded.syn_in, model.syn_in)
    assert loaded.vocab.frequency["good"] == 10


def test_load_any_model_falls_back_to_text(tmp_path):
    model = _manual_model()
    model.save_word2vec_text(tmp_path / "vectors.txt")
    (tmp_path / "vocab_freq.json").write_text(json.dumps({"good": 42}), encoding="utf-8")

    loaded = load_any_model(tmp_path)
    assert loaded.vocab.words == model.vocab.words
    assert loaded.vocab.frequency["good"] == 42
    assert loaded.vocab.frequency["cat"] == 1


def test_load_any_model_without_files(tmp_path):
    with pytest.raises(FileNotFoundError, match="No model found"):
        load_any_model(tmp_path)


def test_main_fails_without_model(tmp_path):
    assert main(["--model", str(tmp_path / "empty")]) == 1


def test_main_fails_when_index_unreachable(tmp_path):
    _manual_model().save(tmp_path)
    with responses.RequestsMock(assert_all_requests_are_fired=False) as rsps:
        rsps.add(responses.HEAD, f"{BASE}/reviews", status=404)
        rsps.add(responses.PUT, f"{BASE}/reviews", status=400, json={"error": "bad settings"})
        assert main(["--model", str(tmp_path), "--es-addr", BASE, "--es-index", "reviews"]) == 1


def test_main_starts_server_on_requested_port(tmp_path):
    _manual_model().save(tmp_path)
    with responses.RequestsMock(assert_all_requests_are_fired=False) as rsps:
        rsps.add(responses.HEAD, f"{BASE}/reviews", status=200)
        with mock.patch.object(Flask, "run") as run:
            status = main(
                ["--port", "8123", "--model", str(tmp_path), "--es-addr", BASE, "--es-index", "reviews"]
            )
    assert status == 0
    run.assert_called_once()
    assert run.call_args.kwargs["port"] == 8123