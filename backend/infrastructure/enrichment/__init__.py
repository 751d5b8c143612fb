"""
Movie metadata lookup (OMDb).
"""

from infrastructure.enrichment.omdb_client import OmdbClient, parse_details, parse_search

__all__ = ["OmdbClient", "parse_details", "parse_search"]
