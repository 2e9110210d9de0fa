"""
Catalog export service: scheduled and on-demand CSV/XML product exports.
"""

__version__ = "1.0.0"
