"""Tests for the player process surface."""

import subprocess
from unittest.mock import MagicMock, Mock, patch

import pytest

from streamsentry.surface import PlayerProcessSurface
from streamsentry.types import HLS_MIME_TYPE

URL = "https://example.com/stream.m3u8"


def test_surface_initialization() -> None:
    """Test a new surface has nothing bound."""
    surface = PlayerProcessSurface()

    assert surface.player_cmd is None
    assert surface.source is None
    assert surface.process is None


def test_find_available_player_vlc_found() -> None:
    """Test finding vlc when mpv is not available but vlc is."""
    surface = PlayerProcessSurface()

    with patch("subprocess.run") as mock_run:

        def side_effect(cmd, *args, **kwargs):  # noqa: ARG001
            if "vlc" in cmd:
                return Mock(returncode=0)
            return Mock(returncode=1)

        mock_run.side_effect = side_effect

        assert surface.resolve_player() == "vlc"
        assert surface.player_cmd == "vlc"


def test_find_available_player_none_found() -> None:
    """Test when no player is available."""
    surface = PlayerProcessSurface()

    with patch("subprocess.run") as mock_run:
        mock_run.return_value = Mock(returncode=1)

        assert surface.resolve_player() is None
        assert surface.can_play_type(HLS_MIME_TYPE) is False


def test_can_play_type_with_player() -> None:
    """Test HLS and progressive types are playable when a player exists."""
    surface = PlayerProcessSurface("mpv")

    assert surface.can_play_type(HLS_MIME_TYPE)
    assert surface.can_play_type("video/mp4")
    assert not surface.can_play_type("application/dash+xml")


@patch("subprocess.Popen")
def test_play_starts_player(mock_popen: MagicMock) -> None:
    """Test play() launches the player on the bound URL."""
    surface = PlayerProcessSurface("mpv")
    surface.set_source(URL)

    surface.play()

    mock_popen.assert_called_once_with(
        ["mpv", URL],
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
    )
    assert surface.process is mock_popen.return_value


@patch("subprocess.Popen")
def test_play_ffplay_autoexit(mock_popen: MagicMock) -> None:
    """Test ffplay gets -autoexit so the exit code reports stream end."""
    surface = PlayerProcessSurface("ffplay")
    surface.set_source(URL)

    surface.play()

    assert mock_popen.call_args.args[0] == ["ffplay", "-autoexit", URL]


def test_play_without_source() -> None:
    """Test play() refuses when nothing is bound."""
    surface = PlayerProcessSurface("mpv")

    with pytest.raises(RuntimeError, match="No source bound"):
        surface.play()


def test_play_without_player() -> None:
    """Test play() raises when no player is installed."""
    surface = PlayerProcessSurface()
    surface.set_source(URL)

    with patch("subprocess.run") as mock_run:
        mock_run.return_value = Mock(returncode=1)
        with pytest.raises(RuntimeError, match="No video player found"):
            surface.play()


def test_clear_source_terminates_process() -> None:
    """Test clearing the source stops the running player."""
    surface = PlayerProcessSurface("mpv")
    mock_process = Mock()
    surface.source = URL
    surface.process = mock_process

    surface.clear_source()

    mock_process.terminate.assert_called_once()
    assert surface.process is None
    assert surface.source is None


def test_wait_returns_exit_code() -> None:
    """Test wait() reports the player exit code."""
    surface = PlayerProcessSurface("mpv")

    assert surface.wait() == -1

    surface.process = Mock()
    surface.process.wait.return_value = 1
    assert surface.wait() == 1
