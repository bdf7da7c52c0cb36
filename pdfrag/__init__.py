"""Single-document retrieval-augmented generation over a PDF."""

__version__ = "0.1.0"
