"""Start the web front end with a loaded model and a search-index connection."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from collections.abc import Sequence
from pathlib import Path

from .elastic import ElasticClient, ElasticError
from .model import BINARY_FILE, FREQ_FILE, VECTORS_FILE, Model, load_model, load_word2vec_text_with_freq
from .web import create_app

logger = logging.getLogger(__name__)

_DEFAULT_PASSWORD = "password"
TEMPLATE_DIR = "templates"


def _env_or_default(key: str, default: str) -> str:
    return os.environ.get(key) or default


def load_any_model(model_dir) -> Model:
    """Load the binary model if present, else the text vectors with their frequencies."""
    directory = Path(model_dir)
    if (directory / BINARY_FILE).exists():
        return load_model(directory)
    if (directory / VECTORS_FILE).exists():
        model = load_word2vec_text_with_freq(directory / VECTORS_FILE, directory / FREQ_FILE)
        logger.info("Loaded from word2vec text format")
        return model
    raise FileNotFoundError(f"No model found in {model_dir} (expected {BINARY_FILE} or {VECTORS_FILE})")


def main(argv: Sequence[str] | None = None) -> int:
    """Load the model, connect to the index and serve until stopped; return the exit status."""
    parser = argparse.ArgumentParser(prog="server")
    parser.add_argument("--port", type=int, default=_env_or_default("PORT", "8001"), help="HTTP server port")
    parser.add_argument("--model", default=_env_or_default("MODEL_DIR", "case_data/IMDB"), help="Path to model directory")
    parser.add_argument(
        "--es-addr", default=_env_or_default("ES_ADDR", "http://localhost:9200"), help="Elasticsearch address"
    )
    parser.add_argument("--es-user", default=_env_or_default("ES_USER", "elastic"), help="Elasticsearch username")
    parser.add_argument("--es-pass", default=_env_or_default("ES_PASS", _DEFAULT_PASSWORD), help="Elasticsearch password")
    parser.add_argument("--es-index", default=_env_or_default("ES_INDEX", "imdb"), help="Elasticsearch index name")
    args = parser.parse_args(None if argv is None else list(argv))
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(message)s")

    logger.info("Loading model from %s...", args.model)
    try:
        model = load_any_model(args.model)
    except (OSError, ValueError) as exc:
        logger.error("Failed to load model: %s", exc)
        return 1
    logger.info("Model loaded: %d words, %d dimensions", len(model.vocab), model.config.vector_size)

    logger.info("Connecting to Elasticsearch at %s...", args.es_addr)
    try:
        es = ElasticClient(args.es_addr, args.es_user, args.es_pass, args.es_index)
    except ElasticError as exc:
        logger.error("Failed to connect to Elasticsearch: %s", exc)
        return 1
    logger.info("Elasticsearch connected")

    app = create_app(model, es, Path(TEMPLATE_DIR).resolve())
    logger.info("Server starting on :%d", args.port)
    try:
        app.run(host="0.0.0.0", port=args.port)
    except OSError as exc:
        logger.error("Server failed: %s", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())