"""Tests for parsing and merging catalog results."""
import pytest

from bookshelf.errors import CatalogNotFound
from bookshelf.models import Book, CatalogVolume
from bookshelf.parse import merge_volume, parse_volume, parse_volumes_response, top_volume


def test_parse_volume_complete():
    """Test parsing a volume with all fields present."""
    item = {
        "id": "abc123",
        "volumeInfo": {
            "title": "Python Crash Course",
            "authors": ["Eric Matthes"],
            "publishedDate": "2019-05-03",
            "description": "A great book",
            "imageLinks": {
                "smallThumbnail": "http://example.com/small.jpg",
                "thumbnail": "http://example.com/thumb.jpg"
            }
        }
    }

    volume = parse_volume(item)

    assert volume is not None
    assert volume.title == "Python Crash Course"
    assert volume.authors == ["Eric Matthes"]
    assert volume.published_date == "2019-05-03"
    assert volume.thumbnail == "http://example.com/thumb.jpg"


def test_parse_volume_missing_fields():
    """Test parsing a volume with missing optional fields."""
    volume = parse_volume({"id": "xyz789", "volumeInfo": {"title": "Mystery Book"}})

    assert volume is not None
    assert volume.authors == []
    assert volume.description is None
    assert volume.image_links == {}
    assert volume.thumbnail is None


def test_parse_volume_without_volume_info():
    assert parse_volume({"id": "1"}) is None


def test_small_thumbnail_used_when_no_thumbnail():
    volume = CatalogVolume(title="T", image_links={"smallThumbnail": "http://x/s.jpg"})
    assert volume.thumbnail == "http://x/s.jpg"


def test_parse_volumes_response():
    response = {
        "items": [
            {"id": "1", "volumeInfo": {"title": "Book 1"}},
            {"id": "2"},
            {"id": "3", "volumeInfo": {"title": "Book 3"}}
        ]
    }

    volumes = parse_volumes_response(response)

    assert [v.title for v in volumes] == ["Book 1", "Book 3"]


def test_top_volume_without_items():
    with pytest.raises(CatalogNotFound):
        top_volume({"kind": "books#volumes", "totalItems": 0}, "nothing")


def test_merge_joins_authors():
    book = Book(id="1", title="Old", author="Someone")
    volume = CatalogVolume(title="New", authors=["A", "B", "C"], published_date="1999")

    merge_volume(book, volume)

    assert book.title == "New"
    assert book.author == "A, B, C"
    assert book.published_date == "1999"


@pytest.mark.parametrize("local", ["Mine", "  keep me  "])
def test_merge_keeps_local_description(local):
    book = Book(id="1", title="T", description=local)
    merge_volume(book, CatalogVolume(title="T", description="Theirs"))
    assert book.description == local


@pytest.mark.parametrize("local", ["", None])
def test_merge_fills_empty_description(local):
    book = Book(id="1", title="T", description=local)
    merge_volume(book, CatalogVolume(title="T", description="Theirs"))
    assert book.description == "Theirs"


def test_merge_does_not_touch_image_or_owner():
    book = Book(id="1", title="T", image_url="http://img/1.jpg", created_by="Ann")
    merge_volume(book, CatalogVolume(title="T", image_links={"thumbnail": "http://x/y.jpg"}))
    assert book.image_url == "http://img/1.jpg"
    assert book.created_by == "Ann"


def test_parse_volume_non_dict_item():
    assert parse_volume("junk") is None
    assert parse_volume(None) is None


def test_parse_volumes_response_skips_junk_items():
    response = {"items": ["junk", 7, {"id": "1", "volumeInfo": {"title": "Real"}}]}
    assert [v.title for v in parse_volumes_response(response)] == ["Real"]


@pytest.mark.parametrize("response", [[{"id": "1"}], "text", {"items": "not a list"}, {"items": None}])
def test_parse_volumes_response_malformed_shapes(response):
    assert parse_volumes_response(response) == []


def test_parse_volume_malformed_fields():
    volume = parse_volume({"volumeInfo": {
        "title": None,
        "authors": "Not A List",
        "imageLinks": {"thumbnail": 5, "smallThumbnail": "http://x/s.jpg"}
    }})

    assert volume.title == ""
    assert volume.authors == []
    assert volume.thumbnail == "http://x/s.jpg"


def test_top_volume_with_only_junk_items():
    with pytest.raises(CatalogNotFound):
        top_volume({"items": ["junk"]}, "dune")
