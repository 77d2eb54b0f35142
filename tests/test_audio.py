"""Tests for audio track selection."""

from streamsentry.audio import select_audio_track
from streamsentry.types import AudioTrack


def test_selects_preferred_language() -> None:
    """Test the English track wins over an earlier non-default track."""
    tracks = [
        AudioTrack(id=0, name="Francais", lang="fr", default=False),
        AudioTrack(id=1, name="English", lang="en", default=False),
    ]

    assert select_audio_track(tracks, "en") == 1


def test_preferred_language_beats_default() -> None:
    """Test a language match is preferred over the default flag."""
    tracks = [
        AudioTrack(id=0, name="Original", lang="ja", default=True),
        AudioTrack(id=1, name="English", lang="en"),
    ]

    assert select_audio_track(tracks) == 1


def test_falls_back_to_default_track() -> None:
    """Test the default track is used when no language matches."""
    tracks = [
        AudioTrack(id=3, name="Deutsch", lang="de"),
        AudioTrack(id=7, name="Espanol", lang="es", default=True),
    ]

    assert select_audio_track(tracks, "en") == 7


def test_regional_tag_matches() -> None:
    """Test a regional tag matches its primary language."""
    tracks = [AudioTrack(id=2, name="English (US)", lang="en-US")]

    assert select_audio_track(tracks, "en") == 2


def test_no_match_returns_none() -> None:
    """Test selection stays unset without a match or default."""
    tracks = [AudioTrack(id=0, name="Unknown"), AudioTrack(id=1, name="Deutsch", lang="de")]

    assert select_audio_track(tracks, "en") is None
    assert select_audio_track([], "en") is None
