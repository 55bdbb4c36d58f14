from __future__ import annotations

import configparser
from collections.abc import Mapping
from enum import Enum
from importlib import resources
from types import MappingProxyType

from pagewiki.core.errors import CatalogError

SECTION = "queries"
DEFAULT_RESOURCE = "db-queries.ini"


class QueryId(str, Enum):
    CREATE_PAGES_TABLE = "create-pages-table"
    GET_PAGE = "get-page"
    CREATE_PAGE = "create-page"
    SAVE_PAGE = "save-page"
    ALL_PAGES = "all-pages"
    DELETE_PAGE = "delete-page"


def _read_source(path: str | None) -> tuple[str, str]:
    if path is None:
        resource = resources.files("pagewiki.storage").joinpath(DEFAULT_RESOURCE)
        return f"<bundled {DEFAULT_RESOURCE}>", resource.read_text(encoding="utf-8")
    try:
        with open(path, encoding="utf-8") as fh:
            return path, fh.read()
    except OSError as e:
        raise CatalogError(f"Cannot read query catalog {path}: {e}") from e


def parse_catalog(text: str, source: str = "<string>") -> Mapping[QueryId, str]:
    parser = configparser.ConfigParser(interpolation=None)
    try:
        parser.read_string(text, source=source)
    except configparser.Error as e:
        raise CatalogError(f"Malformed query catalog {source}: {e}") from e
    if not parser.has_section(SECTION):
        raise CatalogError(f"Query catalog {source} has no [{SECTION}] section")

    section = parser[SECTION]
    queries: dict[QueryId, str] = {}
    missing: list[str] = []
    for query_id in QueryId:
        sql = section.get(query_id.value, "").strip()
        if not sql:
            missing.append(query_id.value)
            continue
        queries[query_id] = sql
    if missing:
        raise CatalogError(f"Query catalog {source} is missing: {', '.join(missing)}")
    return MappingProxyType(queries)


def load_catalog(path: str | None = None) -> Mapping[QueryId, str]:
    """Load the six page queries, from ``path`` or the bundled catalog."""
    source, text = _read_source(path)
    return parse_catalog(text, source=source)
