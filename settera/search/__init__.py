"""Schema search.

Example:
    >>> from settera.search import search_schema
    >>> hits = search_schema(schema, "font")
    >>> "editor.fontSize" in hits.setting_keys
    True
"""

from .lib import SearchResult, search_schema

__all__ = ["SearchResult", "search_schema"]
