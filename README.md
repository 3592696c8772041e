# glovesearch

Train word embeddings on a corpus of reviews, expand a search term into the
words closest to it, and run phrase searches over the reviews stored in
Elasticsearch.

The package has three parts:

* a CBOW word2vec trainer with negative sampling (`glovesearch.training`,
  `glovesearch.model`), which saves its models as a compact binary file plus a
  portable word2vec text file;
* a loader that puts the `review` column of a CSV file into an Elasticsearch
  index (`glovesearch.loadcsv`, `glovesearch.elastic`);
* a small Flask application that suggests similar words for a term and searches
  the index with the words you keep ("pro") and the words you want to see
  together ("con") (`glovesearch.web`, `glovesearch.server`).

## Installation

```
pip install .
```

For running the tests:

```
pip install ".[test]"
pytest
```

## Connection settings

Every command that talks to Elasticsearch takes the same options, each with an
environment variable as its default:

| Option       | Environment variable | Default                  |
|--------------|----------------------|--------------------------|
| `--es-addr`  | `ES_ADDR`            | `http://localhost:9200`  |
| `--es-user`  | `ES_USER`            | `elastic`                |
| `--es-pass`  | `ES_PASS`            | `password`               |
| `--es-index` | `ES_INDEX`           | `imdb`                   |

Requests use HTTP basic authentication, and TLS certificates are not verified.
The index is created on first connection if it does not exist, with a BM25
similarity on its `content` field and a result window of 50,000.

## Loading reviews

The CSV file needs a header row with a `review` column (case and surrounding
spaces do not matter). `<br />`, `<br/>` and `<br>` become spaces, any other
HTML tags are removed, and reviews that are empty after trimming are dropped.
Reading stops at the first record whose number of fields differs from the
header, or at the first record the CSV reader cannot parse.

```
glovesearch-loadcsv --csv reviews.csv --es-index imdb --es-pass password
```

`--batch` sets how many documents go into one bulk request (500 by default).

## Training a model

```
glovesearch-train create --input corpus.txt --output models/imdb --min-count 10
```

The input file holds one sentence per line (lines may be up to 1 MiB). Each
line is lower-cased and split into word tokens: runs of ASCII letters, digits
and underscores. Lines without tokens are skipped.

Training options and their defaults:

| Option        | Default | Meaning                       |
|---------------|---------|-------------------------------|
| `--min-count` | 10      | minimum word frequency        |
| `--size`      | 100     | vector dimensionality         |
| `--window`    | 5       | context window size           |
| `--epochs`    | 5       | training epochs               |
| `--workers`   | 4       | number of worker threads      |

The learning rate falls linearly from 0.025 to 0.0001, with five negative
samples per word. The vocabulary is ordered by descending frequency, ties
broken alphabetically.

Other subcommands:

```
# train on the documents already in an Elasticsearch index
glovesearch-train from-es --es-index imdb --output models/imdb

# add sentences to an existing model and save it back in place; new words
# that reach the minimum count are appended to the vocabulary
glovesearch-train add --model models/imdb --input new_sentences.txt

# convert a word2vec text file, optionally with a JSON file of word counts
glovesearch-train import --input vectors.txt --output models/imdb --freq vocab_freq.json
```

`from-es` accepts the connection options above and the training options.

A saved model directory contains:

* `model.bin` — configuration, vocabulary with counts, and both weight matrices;
* `vectors.txt` — the input vectors in word2vec text format;
* `vocab_freq.json` — word counts.

## Running the web server

```
glovesearch-server --model models/imdb --port 8001 --es-pass password
```

The model directory is read from `model.bin` when present, otherwise from
`vectors.txt` (with `vocab_freq.json` if it exists). The `MODEL_DIR` and
`PORT` environment variables give the defaults for `--model` (`case_data/IMDB`)
and `--port` (8001). The server listens on all interfaces using Flask's
built-in server.

Routes:

* `GET /` — renders `index.html`;
* `POST /submit-form` — form field `name`; renders `form_term.html` with
  `data`, a list of up to 15 entries with `index`, `word` and `score` for the
  words most similar to the tokens of `name`. An empty `name` gives a 400;
* `POST /submit-search` — form fields `pro[]` and `con[]`; renders
  `search_results.html` with `query` (the JSON query that was sent), `total`
  and `data` (up to 100 hits with `id` and `content`). With neither field set
  the response is empty; a failed search gives a 500.

## Using it as a library

```python
from glovesearch.tokenizer import tokenize
from glovesearch.model import load_model
from glovesearch.query import build_query
from glovesearch.elastic import ElasticClient

model = load_model("models/imdb")

for entry in model.most_similar("good", 5):
    print(entry.word, round(entry.score, 3))

words = tokenize("Great acting")
suggestions = model.get_similar_words(words, ["boring"], 15, True)

query = build_query(["great acting"], ["slow"])
password = "password"
client = ElasticClient("http://localhost:9200", "elastic", password, "imdb")
result = client.search(query)
print(result.total)
for hit in result.hits:
    print(hit.id, hit.content[:80])

for page in client.scroll_all(1000):
    print(len(page))
```

`get_similar_words` sums the neighbour scores of each seed word; negative seed
words count against a candidate at 1.25 times their similarity, the sums are
divided by the number of seed words, and negative totals are dropped when
`filter_negatives` is true. `build_query` puts positive terms in a `should`
clause (any may match) and negative terms in a `must` clause (all must match),
either clause being enough for a hit.

Other useful pieces: `Model.create_and_train`, `Model.add_sentences`,
`Model.save`, `Model.normalized_vectors`, `load_word2vec_text`,
`load_word2vec_text_with_freq`, `build_vocab`, `TrainConfig`, and on the
client `insert_document`, `bulk_insert` and `doc_count`. Failures of the
search server raise `ElasticError`.

## What it does not do

* The HTML templates (`index.html`, `form_term.html`, `search_results.html`)
  are not part of the package; the server looks for them in a `templates`
  directory under the working directory, and you have to supply them.
* Training runs in Python threads that share the weight matrices. It is slow
  on large corpora, and with more than one worker the results can differ
  between runs.