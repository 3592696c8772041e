"""Web front end: similar-word suggestions and document search."""

from __future__ import annotations

import json
import logging
from typing import Any

from flask import Flask, render_template, request

from .elastic import ElasticClient, ElasticError
from .model import Model
from .query import build_query
from .tokenizer import tokenize

logger = logging.getLogger(__name__)

SIMILAR_WORD_COUNT = 15
_TEXT = {"Content-Type": "text/plain; charset=utf-8"}


def create_app(model: Model, es: ElasticClient, template_folder: Any = "templates") -> Flask:
    """Build the application serving the index page, term suggestions and search."""
    app = Flask(__name__, template_folder=str(template_folder))

    @app.get("/")
    def index():
        return render_template("index.html")

    @app.post("/submit-form")
    def submit_form():
        name = request.form.get("name", "").strip()
        if not name:
            return "name is required", 400, _TEXT

        similar = model.get_similar_words(tokenize(name), None, SIMILAR_WORD_COUNT, True)
        data = [
            {"index": position, "word": entry.word, "score": entry.score}
            for position, entry in enumerate(similar)
        ]
        return render_template("form_term.html", data=data)

    @app.post("/submit-search")
    def submit_search():
        positive = request.form.getlist("pro[]")
        negative = request.form.getlist("con[]")
        if not positive and not negative:
            return ""

        query = build_query(positive, negative)
        query_json = json.dumps(query, indent=2, sort_keys=True)
        try:
            result = es.search(query)
        except ElasticError as exc:
            logger.error("search error: %s", exc)
            return "Search failed", 500, _TEXT

        data = [{"id": hit.id, "content": hit.content} for hit in result.hits]
        return render_template("search_results.html", query=query_json, total=result.total, data=data)

    return app