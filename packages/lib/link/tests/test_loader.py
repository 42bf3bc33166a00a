import pytest
import requests
from lib_link import loader
from lib_link.loader import LoaderConfig, fallback_poses, load_pose_collection
from lib_link.pose import PoseCollection


@pytest.fixture
def database_text(block, raw_pose) -> str:
    return "\n".join(
        ["First", block(raw_pose(0)), "Second", block(raw_pose(1)), "Third", block(raw_pose(2))]
    )


@pytest.fixture
def offline(monkeypatch):
    def fail(url, timeout=10.0):
        raise requests.ConnectionError("offline")

    monkeypatch.setattr(loader, "fetch_database_text", fail)


def test_precomputed_file_wins(tmp_path, monkeypatch, capsys):
    path = tmp_path / "poses.json"
    PoseCollection(fallback_poses()[:2]).save_json(path)

    def unreachable(url, timeout=10.0):
        pytest.fail("network tier should not run")

    monkeypatch.setattr(loader, "fetch_database_text", unreachable)

    result = load_pose_collection(LoaderConfig(precomputed_path=path))

    assert result.source == "precomputed"
    assert result.collection.names() == ["Initial", "Cross"]
    assert all(pose.features is not None for pose in result.collection)
    assert "Loader: 2 poses from precomputed" in capsys.readouterr().out


def test_missing_file_falls_through_to_network(tmp_path, monkeypatch, database_text, capsys):
    requested = []

    def fetch(url, timeout=10.0):
        requested.append((url, timeout))
        return database_text

    monkeypatch.setattr(loader, "fetch_database_text", fetch)
    config = LoaderConfig(precomputed_path=tmp_path / "missing.json", timeout=3.0)
    result = load_pose_collection(config)

    assert result.source == "network"
    assert result.collection.names() == ["First", "Second", "Third"]
    assert requested == [(config.url, 3.0)]
    assert "Precomputed poses unavailable" in capsys.readouterr().err


def test_network_limit(monkeypatch, database_text):
    monkeypatch.setattr(loader, "fetch_database_text", lambda url, timeout: database_text)
    result = load_pose_collection(LoaderConfig(limit=2))
    assert len(result.collection) == 2


def test_network_failure_uses_fallback(offline, capsys):
    result = load_pose_collection(LoaderConfig())

    assert result.source == "fallback"
    assert result.collection.names() == ["Initial", "Cross", "Twist"]
    captured = capsys.readouterr()
    assert "Failed to load pose database: offline" in captured.err
    assert "Loader: 3 poses from fallback" in captured.out


def test_undecodable_database_uses_fallback(monkeypatch, capsys):
    monkeypatch.setattr(loader, "fetch_database_text", lambda url, timeout: "Name\n    !!\n")
    result = load_pose_collection(LoaderConfig())
    assert result.source == "fallback"
    assert "no decodable poses" in capsys.readouterr().err


def test_invalid_precomputed_file_and_no_url(tmp_path, capsys):
    path = tmp_path / "poses.json"
    path.write_text("not json", encoding="utf-8")
    result = load_pose_collection(LoaderConfig(precomputed_path=path, url=None))
    assert result.source == "fallback"
    assert "Precomputed poses unavailable" in capsys.readouterr().err


@pytest.mark.parametrize(
    "content",
    [
        '[{"name": "x", "chain1": 5, "chain2": 5}]',
        '["just a string"]',
        '[{"name": "x", "chain1": [null], "chain2": []}]',
    ],
)
def test_malformed_precomputed_records_fall_through(tmp_path, capsys, content):
    path = tmp_path / "poses.json"
    path.write_text(content, encoding="utf-8")
    result = load_pose_collection(LoaderConfig(precomputed_path=path, url=None))
    assert result.source == "fallback"
    assert "Precomputed poses unavailable" in capsys.readouterr().err


def test_fetch_database_text(monkeypatch):
    calls = []

    class FakeResponse:
        text = "Pose\n    aa\n"

        def raise_for_status(self):
            calls.append("checked")

    def fake_get(url, timeout):
        calls.append((url, timeout))
        return FakeResponse()

    monkeypatch.setattr(requests, "get", fake_get)
    assert loader.fetch_database_text("http://example.invalid/db.txt", timeout=2.0) == FakeResponse.text
    assert calls == [("http://example.invalid/db.txt", 2.0), "checked"]


def test_fallback_poses_have_skeletons():
    poses = fallback_poses()
    assert [pose.name for pose in poses] == ["Initial", "Cross", "Twist"]
    for pose in poses:
        assert pose.skeleton1.shape == (18, 3)
        assert pose.skeleton2.shape == (18, 3)
