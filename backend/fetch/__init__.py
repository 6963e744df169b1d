"""Data-fetch collaborator - HTTP JSON client and named URL list"""

from .client import DataFetcher, match_fields
from .url_store import IUrlStore, UrlStore

__all__ = ['DataFetcher', 'match_fields', 'IUrlStore', 'UrlStore']
