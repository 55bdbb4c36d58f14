import pytest

from pagewiki.core.errors import CatalogError
from pagewiki.storage.catalog import QueryId, load_catalog, parse_catalog


FULL = """
[queries]
create-pages-table = create table if not exists Pages (Id integer primary key, Name text unique, Content text)
get-page = select Id, Content from Pages where Name = ?
create-page = insert into Pages (Name, Content) values (?, ?)
save-page = update Pages set Content = ? where Id = ?
all-pages = select Name from Pages
delete-page = delete from Pages where Id = ?
"""


def test_bundled_catalog_has_every_query():
    queries = load_catalog()
    assert set(queries) == set(QueryId)
    assert queries[QueryId.GET_PAGE] == "select Id, Content from Pages where Name = ?"


def test_catalog_is_read_only():
    queries = load_catalog()
    with pytest.raises(TypeError):
        queries[QueryId.GET_PAGE] = "select 1"


def test_catalog_from_configured_path(tmp_path):
    path = tmp_path / "queries.ini"
    path.write_text(FULL.replace("select Name from Pages", "select Name from Pages where 1 = 1"))

    queries = load_catalog(str(path))
    assert queries[QueryId.ALL_PAGES] == "select Name from Pages where 1 = 1"


def test_missing_file_is_catalog_error(tmp_path):
    with pytest.raises(CatalogError, match="Cannot read"):
        load_catalog(str(tmp_path / "nope.ini"))


def test_missing_query_is_named():
    text = "\n".join(line for line in FULL.splitlines() if not line.startswith("save-page"))
    with pytest.raises(CatalogError, match="save-page"):
        parse_catalog(text)


def test_blank_query_counts_as_missing():
    with pytest.raises(CatalogError, match="all-pages"):
        parse_catalog(FULL.replace("all-pages = select Name from Pages", "all-pages ="))


def test_missing_section():
    with pytest.raises(CatalogError, match="no \\[queries\\] section"):
        parse_catalog("[other]\nget-page = select 1\n")


def test_malformed_catalog():
    with pytest.raises(CatalogError, match="Malformed"):
        parse_catalog("get-page = select 1\n")


def test_percent_signs_are_not_interpolated():
    queries = parse_catalog(FULL.replace("where Name = ?", "where Name like '%' || ?"))
    assert queries[QueryId.GET_PAGE].endswith("like '%' || ?")
