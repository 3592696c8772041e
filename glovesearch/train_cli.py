"""Command-line training: build, extend and import word vector models."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from collections.abc import Sequence

from .elastic import ElasticClient, ElasticError
from .model import Model, load_model, load_word2vec_text, load_word2vec_text_with_freq
from .tokenizer import tokenize
from .training import TrainConfig

logger = logging.getLogger(__name__)

MAX_LINE_BYTES = 1024 * 1024
SCROLL_BATCH = 1000
_DEFAULT_PASSWORD = "password"

USAGE = """Usage: train <command> [options]

Commands:
  create    Create a new model from a corpus file
  from-es   Create a new model from data already in Elasticsearch
  add       Add sentences to an existing model (incremental training)
  import    Import from word2vec text format (one-time migration)

Examples:
  train create --input corpus.txt --output case_data/IMDB --min-count 10
  train from-es --es-index imdb --output case_data/IMDB
  train add --model case_data/IMDB --input new_sentences.txt
  train import --input case_data/IMDB/vectors.txt --output case_data/IMDB
"""


def _env_or_default(key: str, default: str) -> str:
    return os.environ.get(key) or default


def read_sentences(path) -> list[list[str]]:
    """Read a file with one sentence per line and return the non-empty token lists."""
    sentences = []
    with open(path, "rb") as source:
        for raw in source:
            line = raw.rstrip(b"\n")
            if line.endswith(b"\r"):
                line = line[:-1]
            if len(line) > MAX_LINE_BYTES:
                raise ValueError(f"line longer than {MAX_LINE_BYTES} bytes in {path}")
            tokens = tokenize(line.decode("utf-8", errors="replace"))
            if tokens:
                sentences.append(tokens)
    return sentences


def _add_training_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--min-count", type=int, default=10, help="Minimum word frequency")
    parser.add_argument("--size", type=int, default=100, help="Vector dimensionality")
    parser.add_argument("--window", type=int, default=5, help="Context window size")
    parser.add_argument("--epochs", type=int, default=5, help="Training epochs")
    parser.add_argument("--workers", type=int, default=4, help="Number of parallel workers")


def _training_config(args: argparse.Namespace) -> TrainConfig:
    return TrainConfig(
        vector_size=args.size,
        window=args.window,
        min_count=args.min_count,
        workers=args.workers,
        epochs=args.epochs,
        alpha=0.025,
        min_alpha=0.0001,
        neg_samples=5,
    )


def _train_and_save(config: TrainConfig, sentences: list[list[str]], output: str) -> int:
    model = Model(config=config)
    logger.info("Training model...")
    model.create_and_train(sentences)
    logger.info("Vocabulary size: %d", len(model.vocab))
    return _save(model, output)


def _save(model: Model, output: str) -> int:
    try:
        model.save(output)
    except OSError as exc:
        logger.error("Saving model: %s", exc)
        return 1
    logger.info("Model saved to %s", output)
    return 0


def _cmd_create(argv: Sequence[str]) -> int:
    parser = argparse.ArgumentParser(prog="create")
    parser.add_argument("--input", default="", help="Input corpus file (one sentence per line)")
    parser.add_argument("--output", default="", help="Output model directory")
    _add_training_options(parser)
    args = parser.parse_args(argv)

    if not args.input or not args.output:
        parser.print_help(sys.stderr)
        return 1

    try:
        sentences = read_sentences(args.input)
    except (OSError, ValueError) as exc:
        logger.error("Reading input: %s", exc)
        return 1
    logger.info("Read %d sentences", len(sentences))

    return _train_and_save(_training_config(args), sentences, args.output)


def _cmd_add(argv: Sequence[str]) -> int:
    parser = argparse.ArgumentParser(prog="add")
    parser.add_argument("--model", default="", help="Model directory")
    parser.add_argument("--input", default="", help="Input file with new sentences")
    args = parser.parse_args(argv)

    if not args.model or not args.input:
        parser.print_help(sys.stderr)
        return 1

    logger.info("Loading model from %s...", args.model)
    try:
        model = load_model(args.model)
    except (OSError, ValueError) as exc:
        logger.error("Loading model: %s", exc)
        return 1
    logger.info("Loaded: %d words", len(model.vocab))

    try:
        sentences = read_sentences(args.input)
    except (OSError, ValueError) as exc:
        logger.error("Reading input: %s", exc)
        return 1
    logger.info("Read %d new sentences", len(sentences))

    logger.info("Incremental training...")
    model.add_sentences(sentences)
    logger.info("Vocabulary size: %d", len(model.vocab))
    return _save(model, args.model)


def _cmd_import(argv: Sequence[str]) -> int:
    parser = argparse.ArgumentParser(prog="import")
    parser.add_argument("--input", default="", help="Input word2vec text file (vectors.txt)")
    parser.add_argument("--output", default="", help="Output model directory")
    parser.add_argument("--freq", default="", help="Optional vocab frequency JSON file")
    args = parser.parse_args(argv)

    if not args.input or not args.output:
        parser.print_help(sys.stderr)
        return 1

    try:
        if args.freq:
            model = load_word2vec_text_with_freq(args.input, args.freq)
        else:
            model = load_word2vec_text(args.input)
    except (OSError, ValueError) as exc:
        logger.error("Loading word2vec text: %s", exc)
        return 1
    logger.info("Imported: %d words, %d dimensions", len(model.vocab), model.config.vector_size)
    return _save(model, args.output)


def _doc_count(es: ElasticClient) -> int:
    try:
        return es.doc_count()
    except (ElasticError, ValueError, TypeError):
        return 0


def _cmd_from_es(argv: Sequence[str]) -> int:
    parser = argparse.ArgumentParser(prog="from-es")
    parser.add_argument("--output", default="", help="Output model directory")
    parser.add_argument(
        "--es-addr", default=_env_or_default("ES_ADDR", "http://localhost:9200"), help="Elasticsearch address"
    )
    parser.add_argument("--es-user", default=_env_or_default("ES_USER", "elastic"), help="Elasticsearch username")
    parser.add_argument("--es-pass", default=_env_or_default("ES_PASS", _DEFAULT_PASSWORD), help="Elasticsearch password")
    parser.add_argument("--es-index", default=_env_or_default("ES_INDEX", "imdb"), help="Elasticsearch index name")
    _add_training_options(parser)
    args = parser.parse_args(argv)

    if not args.output:
        parser.print_help(sys.stderr)
        return 1

    logger.info("Connecting to Elasticsearch at %s (index: %s)...", args.es_addr, args.es_index)
    try:
        es = ElasticClient(args.es_addr, args.es_user, args.es_pass, args.es_index)
    except ElasticError as exc:
        logger.error("ES connection: %s", exc)
        return 1

    count = _doc_count(es)
    logger.info("Index %r has %d documents", args.es_index, count)

    logger.info("Reading documents from Elasticsearch...")
    sentences: list[list[str]] = []
    total = 0
    try:
        for docs in es.scroll_all(SCROLL_BATCH):
            sentences.extend(tokens for tokens in map(tokenize, docs) if tokens)
            total += len(docs)
            logger.info("  fetched %d / %d documents", total, count)
    except ElasticError as exc:
        logger.error("Scrolling ES: %s", exc)
        return 1
    logger.info("Tokenized %d sentences from %d documents", len(sentences), total)

    return _train_and_save(_training_config(args), sentences, args.output)


_COMMANDS = {
    "create": _cmd_create,
    "add": _cmd_add,
    "import": _cmd_import,
    "from-es": _cmd_from_es,
}


def main(argv: Sequence[str] | None = None) -> int:
    """Run a training command and return the process exit status."""
    args = list(sys.argv[1:] if argv is None else argv)
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(message)s")

    if not args:
        print(USAGE, file=sys.stderr, end="")
        return 1

    command, rest = args[0], args[1:]
    handler = _COMMANDS.get(command)
    if handler is None:
        print(f"Unknown command: {command}", file=sys.stderr)
        print(USAGE, file=sys.stderr, end="")
        return 1
    return handler(rest)


if __name__ == "__main__":
    sys.exit(main())