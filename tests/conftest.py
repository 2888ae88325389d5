from pathlib import Path

import pytest
import requests

FIXTURES = Path(__file__).parent / "fixtures"
BASE_URL = "http://www.gardening.cornell.edu/homegardening/"


def read_fixture(name: str) -> str:
    return (FIXTURES / name).read_text(encoding="utf-8")


class FakeResponse:
    def __init__(self, text="", status_code=200, payload=None):
        self.text = text
        self.status_code = status_code
        self.payload = payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error")

    def json(self):
        if self.payload is None:
            raise ValueError("No JSON object could be decoded")
        return self.payload


class FakeSession:
    """Serves pages from a dict and answers record store POSTs with ``save_response``."""

    def __init__(self, pages=None, save_response=None):
        self.pages = dict(pages or {})
        self.save_response = save_response or FakeResponse(payload={"flw_id": "42"})
        self.fetched = []
        self.saved = []

    def get(self, url, timeout=None, allow_redirects=True):
        self.fetched.append(url)
        if url not in self.pages:
            raise requests.ConnectionError(f"Connection refused: {url}")
        page = self.pages[url]
        return page if isinstance(page, FakeResponse) else FakeResponse(text=page)

    def post(self, url, json=None, timeout=None):
        self.saved.append(json)
        if isinstance(self.save_response, Exception):
            raise self.save_response
        return self.save_response

    def close(self):
        pass


@pytest.fixture
def detail_html():
    return read_fixture("detail_page.html")


@pytest.fixture
def list_html():
    return read_fixture("list_page.html")
