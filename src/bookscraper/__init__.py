"""bookscraper - batch book page processing with contract-driven error handling."""

__version__ = "0.4.0"

__all__ = ["__version__"]
