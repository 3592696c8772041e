"""Word-embedding training, similar-word expansion and Elasticsearch phrase search."""

__version__ = "0.1.0"