"""Load the review column of a CSV file into the search index."""

from __future__ import annotations

import argparse
import csv
import logging
import os
import re
import sys
from collections.abc import Iterator, Sequence

from .elastic import ElasticClient, ElasticError

logger = logging.getLogger(__name__)

DEFAULT_BATCH = 500
_DEFAULT_PASSWORD = "password"
_FIELD_LIMIT = 2**31 - 1
_BREAKS = ("<br />", "<br/>", "<br>")
_TAG_RE = re.compile(r"<[^>]*>?|>")


def _env_or_default(key: str, default: str) -> str:
    return os.environ.get(key) or default


def clean_html(text: str) -> str:
    """Turn line breaks into spaces and drop any other tags."""
    for tag in _BREAKS:
        text = text.replace(tag, " ")
    return _TAG_RE.sub("", text)


def _rows(reader) -> Iterator[list[str]]:
    """Yield non-blank records, stopping quietly at the first malformed one."""
    while True:
        try:
            row = next(reader)
        except (StopIteration, csv.Error):
            return
        if row:
            yield row


def read_csv(path) -> list[str]:
    """Return the cleaned, non-empty texts of the file's ``review`` column.

    Reading stops at the first record whose field count differs from the header.
    """
    csv.field_size_limit(_FIELD_LIMIT)
    with open(path, newline="", encoding="utf-8", errors="replace") as source:
        rows = _rows(csv.reader(source))
        header = next(rows, None)
        if header is None:
            raise ValueError("reading header: no header row")

        column = next(
            (position for position, name in enumerate(header) if name.lower().strip() == "review"),
            None,
        )
        if column is None:
            raise ValueError(f"no 'review' column found in CSV header: {header}")

        docs = []
        for record in rows:
            if len(record) != len(header):
                break
            text = clean_html(record[column]).strip()
            if text:
                docs.append(text)
    return docs


def _doc_count(es: ElasticClient) -> int:
    try:
        return es.doc_count()
    except (ElasticError, ValueError, TypeError):
        return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Read a CSV of reviews and bulk-load them; return the exit status."""
    parser = argparse.ArgumentParser(prog="loadcsv")
    parser.add_argument("--csv", default="", help="Path to CSV file (must have a 'review' column)")
    parser.add_argument(
        "--es-addr", default=_env_or_default("ES_ADDR", "http://localhost:9200"), help="Elasticsearch address"
    )
    parser.add_argument("--es-user", default=_env_or_default("ES_USER", "elastic"), help="Elasticsearch username")
    parser.add_argument("--es-pass", default=_env_or_default("ES_PASS", _DEFAULT_PASSWORD), help="Elasticsearch password")
    parser.add_argument("--es-index", default=_env_or_default("ES_INDEX", "imdb"), help="Elasticsearch index name")
    parser.add_argument("--batch", type=int, default=DEFAULT_BATCH, help="Bulk insert batch size")
    args = parser.parse_args(None if argv is None else list(argv))
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(message)s")

    if not args.csv:
        print("Usage: loadcsv --csv <file.csv> [--es-index imdb]", file=sys.stderr)
        return 1

    logger.info("Reading %s...", args.csv)
    try:
        docs = read_csv(args.csv)
    except (OSError, ValueError) as exc:
        logger.error("Reading CSV: %s", exc)
        return 1
    logger.info("Read %d reviews", len(docs))

    logger.info("Connecting to Elasticsearch at %s...", args.es_addr)
    try:
        es = ElasticClient(args.es_addr, args.es_user, args.es_pass, args.es_index)
    except ElasticError as exc:
        logger.error("ES connection: %s", exc)
        return 1

    count = _doc_count(es)
    if count > 0:
        logger.info("Index %r already has %d documents. Loading %d more.", args.es_index, count, len(docs))

    logger.info("Loading documents into Elasticsearch...")
    try:
        es.bulk_insert(docs, args.batch, lambda done: logger.info("  indexed %d / %d", done, len(docs)))
    except ElasticError as exc:
        logger.error("Bulk insert: %s", exc)
        return 1

    logger.info("Done. Index %r now has %d documents.", args.es_index, _doc_count(es))
    return 0


if __name__ == "__main__":
    sys.exit(main())