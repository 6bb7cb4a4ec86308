"""techno.dog knowledge toolkit — streaming chat client and document ingestion."""

__version__ = "0.1.0"
