import pytest
import requests

from drg_mod_updater.errors import RegistryFetchError
from drg_mod_updater.registry import RegistryClient, sort_registry

from tests.conftest import REGISTRY_URL, make_entry


def test_fetch_returns_entries_by_slug(session):
    session.serve_registry(
        {
            "foo-mod": {
                "DisplayName": "Foo Mod",
                "Version": "1.2",
                "DownloadUrl": "https://mods.example.test/foo.pak",
                "Author": "someone",
            }
        }
    )

    entries = RegistryClient(REGISTRY_URL, session=session).fetch()

    entry = entries["foo-mod"]
    assert entry.slug == "foo-mod"
    assert entry.display_name == "Foo Mod"
    assert entry.version == "1.2"
    assert entry.download_url == "https://mods.example.test/foo.pak"
    assert entry.extra == {"Author": "someone"}
    assert entry.pak_filename == "Foo Mod - V1.2 _P.pak"


def test_fetch_sets_user_agent(session):
    session.serve_registry({})
    RegistryClient(REGISTRY_URL, session=session).fetch()
    assert session.headers["User-Agent"].startswith("drg-mod-updater/")


def test_server_error_is_fatal(session):
    session.serve_registry({}, status=500)
    with pytest.raises(RegistryFetchError):
        RegistryClient(REGISTRY_URL, session=session).fetch()


def test_network_error_is_fatal(session):
    session.route("GET", REGISTRY_URL, exc=requests.ConnectionError("no route to host"))
    with pytest.raises(RegistryFetchError):
        RegistryClient(REGISTRY_URL, session=session).fetch()


def test_invalid_json_is_fatal(session):
    session.serve_registry(b"<html>not json</html>")
    with pytest.raises(RegistryFetchError):
        RegistryClient(REGISTRY_URL, session=session).fetch()


def test_non_object_json_is_fatal(session):
    session.serve_registry([{"DisplayName": "Foo"}])
    with pytest.raises(RegistryFetchError):
        RegistryClient(REGISTRY_URL, session=session).fetch()


def test_entry_without_display_name_is_fatal(session):
    session.serve_registry(
        {
            "good": {"DisplayName": "Good", "Version": "1", "DownloadUrl": "https://x.test/g"},
            "bad": {"Version": "1", "DownloadUrl": "https://x.test/b"},
        }
    )

    with pytest.raises(RegistryFetchError, match="'bad'.*DisplayName"):
        RegistryClient(REGISTRY_URL, session=session).fetch()


def test_entry_without_download_url_is_fatal(session):
    session.serve_registry({"no-url": {"DisplayName": "No Url", "Version": "1"}})

    with pytest.raises(RegistryFetchError, match="DownloadUrl"):
        RegistryClient(REGISTRY_URL, session=session).fetch()


def test_non_object_entry_is_fatal(session):
    session.serve_registry({"junk": "not an object"})

    with pytest.raises(RegistryFetchError, match="not an object"):
        RegistryClient(REGISTRY_URL, session=session).fetch()


def test_sort_registry_orders_by_display_name():
    entries = {
        e.slug: e for e in [make_entry("charlie", "1"), make_entry("Alpha", "1"), make_entry("beta", "1")]
    }

    ordered = sort_registry(entries)

    assert [e.display_name for e in ordered] == ["Alpha", "beta", "charlie"]


def test_sort_registry_is_deterministic():
    entries = {e.slug: e for e in [make_entry("Foo", "1", slug="a"), make_entry("foo", "1", slug="b")]}

    first = sort_registry(entries)
    second = sort_registry(dict(reversed(list(entries.items()))))

    assert first == second
