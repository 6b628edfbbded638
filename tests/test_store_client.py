import requests

from tracker.models import Document, Task
from tracker.store_client import DocumentStoreClient


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload
        self.text = text

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def _reply(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        if self.error is not None:
            raise self.error
        return self.response

    def get(self, url, **kwargs):
        return self._reply("GET", url, **kwargs)

    def post(self, url, **kwargs):
        return self._reply("POST", url, **kwargs)


def _client(session):
    return DocumentStoreClient(base_url="http://store.test/", timeout_seconds=3, session=session)


def test_load_parses_document():
    payload = {"releases": [{"id": "r", "name": "R"}], "featureAreas": [], "tasks": [{"id": "t", "name": "T"}]}
    session = FakeSession(FakeResponse(payload=payload))
    doc = _client(session).load()
    assert [t.id for t in doc.tasks] == ["t"]
    method, url, kwargs = session.calls[0]
    assert (method, url) == ("GET", "http://store.test/api/data")
    assert kwargs["timeout"] == 3


def test_load_unreachable_store_gives_empty_document():
    doc = _client(FakeSession(error=requests.ConnectionError("refused"))).load()
    assert doc.is_empty()


def test_load_error_status_gives_empty_document():
    assert _client(FakeSession(FakeResponse(status_code=500))).load().is_empty()


def test_load_malformed_body_gives_empty_document():
    assert _client(FakeSession(FakeResponse(payload=ValueError("bad json")))).load().is_empty()


def test_save_posts_whole_document():
    session = FakeSession(FakeResponse(status_code=200, text="Data saved successfully"))
    doc = Document(tasks=[Task(id="t", name="T")])
    result = _client(session).save(doc)
    assert result.ok
    method, url, kwargs = session.calls[0]
    assert method == "POST"
    assert kwargs["json"] == doc.to_dict()


def test_save_failure_is_reported():
    result = _client(FakeSession(FakeResponse(status_code=500, text="disk full"))).save(Document.empty())
    assert not result.ok
    assert result.status_code == 500
    assert result.error == "disk full"

    result = _client(FakeSession(error=requests.Timeout("slow"))).save(Document.empty())
    assert result.to_dict()["ok"] is False
    assert result.status_code == 0


def test_from_config(tracker_config):
    client = DocumentStoreClient.from_config(tracker_config)
    assert client.url == "http://store.test/api/data"
    assert client.timeout_seconds == 5
