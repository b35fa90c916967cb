"""
Tests for cached asset downloads.
requests.get is replaced so no network access happens.
"""

import pytest
import requests

from neuroage import asset_client, config
from neuroage.asset_client import AssetDownloadError, fetch_asset, get_asset


class FakeResponse:
    def __init__(self, chunks, status_code=200):
        self.chunks = chunks
        self.status_code = status_code
        self.closed = False

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.closed = True
        return False

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} Client Error")

    def iter_content(self, chunk_size=1):
        for chunk in self.chunks:
            if isinstance(chunk, Exception):
                raise chunk
            yield chunk


def _no_network(*args, **kwargs):
    raise AssertionError("network access attempted")


def test_existing_file_is_reused(tmp_path, monkeypatch):
    target = tmp_path / "template_brainAge.nii.gz"
    target.write_bytes(b"cached")
    monkeypatch.setattr(asset_client.requests, "get", _no_network)

    assert fetch_asset("https://example.org/x", target, verbose=False) == target
    assert target.read_bytes() == b"cached"


def test_download_writes_target(tmp_path, monkeypatch):
    calls = []

    def fake_get(url, stream, timeout):
        calls.append((url, stream, timeout))
        return FakeResponse([b"abc", b"", b"def"])

    monkeypatch.setattr(asset_client.requests, "get", fake_get)
    monkeypatch.delenv("NEUROAGE_DOWNLOAD_TIMEOUT", raising=False)
    target = tmp_path / "mniAverage.nii.gz"

    fetch_asset("https://example.org/mni", target, verbose=False)

    assert target.read_bytes() == b"abcdef"
    assert calls == [("https://example.org/mni", True, None)]
    assert not (tmp_path / "mniAverage.nii.gz.part").exists()


def test_http_error_is_fatal_and_leaves_no_file(tmp_path, monkeypatch):
    monkeypatch.setattr(asset_client.requests, "get", lambda *a, **k: FakeResponse([], status_code=404))
    target = tmp_path / "mniAverage.nii.gz"

    with pytest.raises(AssetDownloadError, match="404"):
        fetch_asset("https://example.org/missing", target, verbose=False)

    assert not target.exists()
    assert list(tmp_path.iterdir()) == []


def test_connection_error_is_wrapped(tmp_path, monkeypatch):
    def fail(*args, **kwargs):
        raise requests.exceptions.ConnectionError("unreachable")

    monkeypatch.setattr(asset_client.requests, "get", fail)

    with pytest.raises(AssetDownloadError, match="unreachable"):
        fetch_asset("https://example.org/x", tmp_path / "x.nii.gz", verbose=False)


def test_get_asset_uses_configured_url(tmp_path, monkeypatch):
    seen = []

    def fake_get(url, stream, timeout):
        seen.append(url)
        return FakeResponse([b"data"])

    monkeypatch.setattr(asset_client.requests, "get", fake_get)

    path = get_asset(config.TEMPLATE_FILE, str(tmp_path), verbose=False)

    assert path == tmp_path / config.TEMPLATE_FILE
    assert seen == [config.ASSET_URLS[config.TEMPLATE_FILE]]


def test_get_asset_rejects_unknown_name(tmp_path):
    with pytest.raises(AssetDownloadError, match="Unknown asset"):
        get_asset("weights.h5", str(tmp_path), verbose=False)


def test_interrupted_transfer_releases_connection(tmp_path, monkeypatch):
    response = FakeResponse([b"abc", requests.exceptions.ChunkedEncodingError("connection reset")])
    monkeypatch.setattr(asset_client.requests, "get", lambda *a, **k: response)
    target = tmp_path / "template_brainAge.nii.gz"

    with pytest.raises(AssetDownloadError, match="connection reset"):
        fetch_asset("https://example.org/template", target, verbose=False)

    assert response.closed
    assert list(tmp_path.iterdir()) == []


def test_successful_download_releases_connection(tmp_path, monkeypatch):
    response = FakeResponse([b"data"])
    monkeypatch.setattr(asset_client.requests, "get", lambda *a, **k: response)

    fetch_asset("https://example.org/template", tmp_path / "template_brainAge.nii.gz", verbose=False)

    assert response.closed
