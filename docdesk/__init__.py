"""docdesk: retrieval-augmented question answering over internal documents."""

__version__ = "0.1.0"
