"""Shared fixtures: an in-process stand-in for requests.Session."""

import json
import threading

import pytest
import requests
from requests.structures import CaseInsensitiveDict
from urllib3.exceptions import ProtocolError

from drg_mod_updater.installed import InstalledMods
from drg_mod_updater.registry import RemoteModEntry

REGISTRY_URL = "https://example.test/Mod%20Index.json"


class BrokenStream:
    """A raw body that yields some chunks and then drops the connection."""

    def __init__(self, chunks):
        self.chunks = chunks

    def stream(self, chunk_size, decode_content=True):
        yield from self.chunks
        raise ProtocolError("Connection broken: IncompleteRead")

    def close(self):
        pass


class TrackedResponse(requests.Response):
    """A response that remembers whether it was closed."""

    closed = False

    def close(self):
        self.closed = True
        super().close()


def make_response(url, status=200, body=b"", headers=None, raw=None):
    response = TrackedResponse()
    response.status_code = status
    response.url = url
    response.reason = "OK" if status < 400 else "Error"
    response.headers = CaseInsensitiveDict(headers or {})
    if raw is not None:
        response.raw = raw
    else:
        response._content = body
        response._content_consumed = True
    return response


class FakeSession:
    """Answers GET/HEAD from registered routes; unknown URLs get a 404."""

    def __init__(self):
        self.headers = {}
        self.calls = []
        self.responses = []
        self._routes = {}
        self._lock = threading.Lock()

    def route(self, method, url, status=200, body=b"", headers=None, stream=None, exc=None):
        self._routes[(method, url)] = dict(
            status=status, body=body, headers=headers, stream=stream, exc=exc
        )

    def serve_registry(self, data, url=REGISTRY_URL, status=200):
        body = data if isinstance(data, bytes) else json.dumps(data).encode()
        self.route("GET", url, status=status, body=body)

    def serve_file(self, url, body, probe=True):
        self.route("GET", url, body=body)
        if probe:
            self.route("HEAD", url, headers={"content-length": str(len(body))})

    def calls_to(self, method, url=None):
        return [c for c in self.calls if c[0] == method and (url is None or c[1] == url)]

    def _dispatch(self, method, url):
        with self._lock:
            self.calls.append((method, url))
        route = self._routes.get((method, url))
        if route is None:
            response = make_response(url, status=404)
        elif route["exc"] is not None:
            raise route["exc"]
        else:
            raw = BrokenStream(route["stream"]) if route["stream"] is not None else None
            response = make_response(
                url, route["status"], route["body"], route["headers"], raw=raw
            )
        with self._lock:
            self.responses.append((method, response))
        return response

    def get(self, url, stream=False, **kwargs):
        return self._dispatch("GET", url)

    def head(self, url, **kwargs):
        return self._dispatch("HEAD", url)


class RecordingListener:
    def __init__(self):
        self.events = []

    def __call__(self, event):
        self.events.append(event)

    def of_kind(self, kind):
        return [e for e in self.events if e.kind == kind]


def make_entry(name, version, slug=None, url=None):
    slug = slug or name.lower().replace(" ", "-")
    return RemoteModEntry(
        slug=slug,
        display_name=name,
        version=version,
        download_url=url or f"https://mods.example.test/{slug}.pak",
    )


def make_installed(**versions):
    installed = InstalledMods()
    for name, version in versions.items():
        installed.add(name, version)
    return installed


def registry_json(*entries):
    return {
        e.slug: {"DisplayName": e.display_name, "Version": e.version, "DownloadUrl": e.download_url}
        for e in entries
    }


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def listener():
    return RecordingListener()


@pytest.fixture
def mods_dir(tmp_path):
    paks = tmp_path / "FSD" / "Content" / "Paks"
    paks.mkdir(parents=True)
    return paks
