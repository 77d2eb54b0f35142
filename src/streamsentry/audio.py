"""Audio track selection."""

from collections.abc import Sequence

from .types import AudioTrack


def _primary_subtag(lang: str) -> str:
    return lang.replace("_", "-").split("-", 1)[0].lower()


def select_audio_track(tracks: Sequence[AudioTrack], preferred_lang: str = "en") -> int | None:
    """
    Pick the audio track to play.

    The first track whose language matches ``preferred_lang`` wins ("en-US"
    matches "en"). Otherwise the first track flagged as default is used.

    Args:
        tracks: Audio tracks reported by the engine.
        preferred_lang: Preferred language tag (default: "en").

    Returns:
        The id of the chosen track, or None to leave selection unset.
    """
    wanted = _primary_subtag(preferred_lang)
    for track in tracks:
        if track.lang and _primary_subtag(track.lang) == wanted:
            return track.id

    for track in tracks:
        if track.default:
            return track.id

    return None
