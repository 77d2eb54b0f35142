"""Tests for the CLI module."""

import pathlib
import tempfile
from unittest.mock import AsyncMock, Mock

import pytest
import yaml

from streamsentry.cli import infer_source_type, load_config_from_yaml, play_with_failover
from streamsentry.servers import ServerManager
from streamsentry.session import StreamSession
from streamsentry.types import ServerStatus, Source, SourceType


def _write_yaml(data: object) -> pathlib.Path:
    with tempfile.NamedTemporaryFile(mode="w", suffix=".yaml", delete=False) as f:
        yaml.dump(data, f)
        return pathlib.Path(f.name)


def test_load_config_from_yaml() -> None:
    """Test loading servers, proxies and resolver settings from YAML."""
    yaml_path = _write_yaml(
        {
            "servers": [
                {"link": "https://example.com/master.m3u8", "type": "hls", "proxy": True},
                "https://example.com/movie.mp4",
            ],
            "proxies": ["https://proxy.example.com/"],
            "resolver": {"timeout": 1.5},
        }
    )

    try:
        config = load_config_from_yaml(yaml_path)
        assert config.sources == [
            Source(link="https://example.com/master.m3u8", type=SourceType.HLS, server_index=0, needs_proxy=True),
            Source(link="https://example.com/movie.mp4", type=SourceType.MP4, server_index=1),
        ]
        assert config.proxies == ["https://proxy.example.com/"]
        assert config.resolver.timeout == 1.5
    finally:
        yaml_path.unlink()


def test_load_config_from_yaml_missing_file() -> None:
    """Test error handling for missing YAML file."""
    with pytest.raises(FileNotFoundError):
        load_config_from_yaml(pathlib.Path("/nonexistent/file.yaml"))


def test_load_config_from_yaml_invalid_format() -> None:
    """Test error handling for invalid YAML format."""
    yaml_path = _write_yaml({"streams": ["url1", "url2"]})

    try:
        with pytest.raises(ValueError, match="must contain a 'servers' key"):
            load_config_from_yaml(yaml_path)
    finally:
        yaml_path.unlink()


def test_load_config_from_yaml_not_dict() -> None:
    """Test error handling when YAML is not a dictionary."""
    yaml_path = _write_yaml(["stream1", "stream2"])

    try:
        with pytest.raises(ValueError, match="must contain a 'servers' key"):
            load_config_from_yaml(yaml_path)
    finally:
        yaml_path.unlink()


def test_load_config_from_yaml_unknown_type() -> None:
    """Test an unknown delivery type is rejected."""
    yaml_path = _write_yaml({"servers": [{"link": "https://example.com/a", "type": "rtsp"}]})

    try:
        with pytest.raises(ValueError, match="unknown type"):
            load_config_from_yaml(yaml_path)
    finally:
        yaml_path.unlink()


@pytest.mark.parametrize("link", [123, None, ""])
def test_load_config_from_yaml_bad_link(link: object) -> None:
    """Test a non-string link is reported as a configuration error."""
    yaml_path = _write_yaml({"servers": [{"link": link}]})

    try:
        with pytest.raises(ValueError, match="non-empty string 'link'"):
            load_config_from_yaml(yaml_path)
    finally:
        yaml_path.unlink()


def test_infer_source_type() -> None:
    """Test delivery kind inference from URLs."""
    assert infer_source_type("https://example.com/master.m3u8?token=1") == SourceType.HLS
    assert infer_source_type("https://example.com/Movie.MP4") == SourceType.MP4
    assert infer_source_type("https://example.com/clip.webm") == SourceType.WEBM
    assert infer_source_type("https://example.com/live") == SourceType.HLS


def _manager(*sources: Source) -> ServerManager:
    resolver = Mock()
    resolver.resolve = AsyncMock(return_value=None)
    return ServerManager(list(sources), resolver=resolver)


def test_play_with_failover_moves_to_next_server() -> None:
    """Test a failing player exit advances to the next server."""
    manager = _manager(
        Source(link="https://a.example.com/movie.mp4", type=SourceType.MP4),
        Source(link="https://b.example.com/movie.mp4", type=SourceType.MP4),
    )
    surface = Mock()
    surface.wait.side_effect = [1, 0]
    session = StreamSession(surface, on_status=manager.update_server_status)

    assert play_with_failover(manager, session, surface) is True

    assert [c.args[0] for c in surface.set_source.call_args_list] == [
        "https://a.example.com/movie.mp4",
        "https://b.example.com/movie.mp4",
    ]
    assert manager.statuses == [ServerStatus.FAILED, ServerStatus.WORKING]


def test_play_with_failover_all_fail() -> None:
    """Test False is returned when every server fails."""
    manager = _manager(Source(link="https://a.example.com/master.m3u8"))
    surface = Mock()
    surface.can_play_type.return_value = False
    session = StreamSession(surface, on_status=manager.update_server_status)

    assert play_with_failover(manager, session, surface) is False
    assert manager.statuses == [ServerStatus.FAILED]
    surface.wait.assert_not_called()
