"""Catalogue filtering, book trees, previews, tags and MOBI/AZW editing for e-book libraries."""

__version__ = "0.1.0"