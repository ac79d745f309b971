"""Shared fixtures: in-memory store, fake catalog and image hosts."""
import httpx
import pytest

from bookshelf.catalog import GoogleBooksCatalog
from bookshelf.images import ImageStore
from bookshelf.model import MemoryModel
from bookshelf.models import WorkerState

PUBLIC_URL = "https://storage.example.com/bucket"


def volumes_response(*volume_infos):
    return {
        "kind": "books#volumes",
        "totalItems": len(volume_infos),
        "items": [
            {"id": f"vol{i}", "volumeInfo": info}
            for i, info in enumerate(volume_infos)
        ]
    }


class FakeHosts:
    """httpx transport standing in for the catalog and image servers."""

    def __init__(self):
        self.catalog_response = httpx.Response(200, json={"kind": "books#volumes", "totalItems": 0})
        self.images = {}
        self.requests = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.host == "www.googleapis.com":
            return self.catalog_response
        url = str(request.url)
        if url in self.images:
            return httpx.Response(200, content=self.images[url], headers={"content-type": "image/jpeg"})
        return httpx.Response(404)

    def catalog_queries(self):
        return [r.url.params.get("q") for r in self.requests if r.url.host == "www.googleapis.com"]


@pytest.fixture
def hosts():
    return FakeHosts()


@pytest.fixture
def make_collaborators(hosts, tmp_path):
    """Build catalog and image store on a fresh client inside the running loop."""
    def build():
        client = httpx.AsyncClient(transport=httpx.MockTransport(hosts.handler))
        catalog = GoogleBooksCatalog(client=client)
        images = ImageStore(str(tmp_path / "bucket"), PUBLIC_URL, client=client)
        return client, catalog, images
    return build


@pytest.fixture
def model():
    return MemoryModel()


@pytest.fixture
def state():
    return WorkerState()
