"""
Unit Tests: Command Line

The S3 client is replaced with one bound to an in-memory transport.
"""

import asyncio

import pytest

import bucketline.__main__ as cli
from bucketline.storage.client import ObjectStoreClient
from bucketline.storage.memory import InMemoryTransport


@pytest.fixture
def store(monkeypatch):
    transport = InMemoryTransport()

    def factory(config, transport_=None):
        return ObjectStoreClient(config, transport)

    for name in ("BUCKETLINE_REGION", "BUCKETLINE_MAX_BATCH_SIZE", "AWS_ACCESS_KEY_ID",
                 "AWS_SECRET_ACCESS_KEY", "BUCKETLINE_ACCESS_KEY_ID",
                 "BUCKETLINE_SECRET_ACCESS_KEY"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("BUCKETLINE_REGION", "eu-west-1")
    monkeypatch.setattr(cli, "setup_logging", lambda *args, **kwargs: None)
    monkeypatch.setattr(cli, "ObjectStoreClient", factory)
    return transport


def _run(argv):
    return asyncio.run(cli.main(argv))


class TestCommands:

    def test_url(self, store, capsys):
        assert _run(["url", "media", "folder/pic.jpg"]) == 0
        assert capsys.readouterr().out.strip() == (
            "https://s3.eu-west-1.amazonaws.com/media/folder/pic.jpg"
        )

    def test_put_and_get(self, store, tmp_path, capsys):
        source = tmp_path / "pic.jpg"
        source.write_bytes(b"jpeg")
        target = tmp_path / "out.jpg"

        assert _run(["put", "media", "folder/pic.jpg", str(source), "--acl", "private"]) == 0
        assert store.read("media", "folder/pic.jpg") == b"jpeg"
        assert store.acl_of("media", "folder/pic.jpg").value == "private"

        assert _run(["get", "media", "folder/pic.jpg", "-o", str(target)]) == 0
        assert target.read_bytes() == b"jpeg"

    def test_put_many_with_prefix(self, store, tmp_path, capsys):
        paths = []
        for name in ("a.jpg", "b.jpg"):
            path = tmp_path / name
            path.write_bytes(name.encode())
            paths.append(str(path))

        assert _run(["put-many", "media", *paths, "--prefix", "folder/"]) == 0
        assert store.keys("media") == ["folder/a.jpg", "folder/b.jpg"]
        assert len(capsys.readouterr().out.splitlines()) == 2

    def test_put_many_over_limit(self, store, tmp_path, monkeypatch, capsys):
        monkeypatch.setenv("BUCKETLINE_MAX_BATCH_SIZE", "1")
        paths = []
        for name in ("a.jpg", "b.jpg"):
            path = tmp_path / name
            path.write_bytes(b"x")
            paths.append(str(path))

        assert _run(["put-many", "media", *paths]) == 1
        assert "Can't upload more than 1 objects at one time" in capsys.readouterr().err
        assert len(store) == 0

    def test_get_missing(self, store, capsys):
        assert _run(["get", "media", "missing"]) == 1
        assert "TRANSPORT_FAILURE" in capsys.readouterr().err

    def test_delete_one_and_many(self, store, tmp_path):
        source = tmp_path / "f"
        source.write_bytes(b"x")
        for key in ("a", "b", "c"):
            assert _run(["put", "media", key, str(source)]) == 0

        assert _run(["delete", "media", "a"]) == 0
        assert _run(["delete", "media", "b", "c"]) == 0
        assert len(store) == 0

    def test_bad_config(self, store, monkeypatch, capsys):
        monkeypatch.setenv("BUCKETLINE_MAX_BATCH_SIZE", "lots")
        assert _run(["url", "media", "a"]) == 1
        assert "Configuration error" in capsys.readouterr().err

    def test_half_credentials(self, store, monkeypatch, capsys):
        monkeypatch.setenv("AWS_ACCESS_KEY_ID", "AKIA")
        assert _run(["url", "media", "a"]) == 1
        assert "Validation error" in capsys.readouterr().err
