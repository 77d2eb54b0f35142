"""Contracts for the external playback engine and video surface.

The adaptive playback engine (manifest parsing, ABR, buffering, decoding) and
the video surface are capabilities owned by the host platform. A session only
drives them through the protocols below and listens to the events they push.
"""

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Protocol, TypeAlias

from .types import AudioTrack, EngineConfig, QualityLevel, StreamURL


class EngineEvent(StrEnum):
    """Events a playback engine emits to its listeners."""

    MANIFEST_PARSED = "hlsManifestParsed"
    AUDIO_TRACKS_UPDATED = "hlsAudioTracksUpdated"
    FRAG_LOADED = "hlsFragLoaded"
    ERROR = "hlsError"


class ErrorType(StrEnum):
    """Top-level error categories reported by the engine."""

    NETWORK_ERROR = "networkError"
    MEDIA_ERROR = "mediaError"
    KEY_SYSTEM_ERROR = "keySystemError"
    MUX_ERROR = "muxError"
    OTHER_ERROR = "otherError"


class ErrorDetails(StrEnum):
    """Detailed error codes reported alongside an ErrorType."""

    MANIFEST_LOAD_ERROR = "manifestLoadError"
    MANIFEST_LOAD_TIMEOUT = "manifestLoadTimeOut"
    MANIFEST_PARSING_ERROR = "manifestParsingError"
    LEVEL_LOAD_ERROR = "levelLoadError"
    LEVEL_LOAD_TIMEOUT = "levelLoadTimeOut"
    KEY_LOAD_ERROR = "keyLoadError"
    KEY_LOAD_TIMEOUT = "keyLoadTimeOut"
    FRAG_LOAD_ERROR = "fragLoadError"
    FRAG_LOAD_TIMEOUT = "fragLoadTimeOut"
    FRAG_PARSING_ERROR = "fragParsingError"
    FRAG_DECRYPT_ERROR = "fragDecryptError"
    BUFFER_STALLED_ERROR = "bufferStalledError"
    BUFFER_APPEND_ERROR = "bufferAppendError"
    INTERNAL_EXCEPTION = "internalException"


@dataclass(frozen=True)
class EngineErrorData:
    """Payload of an ERROR event.

    Attributes:
        fatal: Whether the engine gave up on its own.
        type: Error category.
        details: Detailed error code. Unknown codes arrive as plain strings.
        reason: Optional human readable explanation.
    """

    fatal: bool
    type: ErrorType | str
    details: ErrorDetails | str
    reason: str | None = None


@dataclass(frozen=True)
class ManifestParsedData:
    """Payload of a MANIFEST_PARSED event."""

    levels: Sequence[QualityLevel]


@dataclass(frozen=True)
class AudioTracksUpdatedData:
    """Payload of an AUDIO_TRACKS_UPDATED event."""

    audio_tracks: Sequence[AudioTrack]


EventHandler: TypeAlias = Callable[[Any], None]


class VideoSurface(Protocol):
    """Where media is rendered. Either an engine attaches to it or a URL is bound directly."""

    def set_source(self, url: StreamURL) -> None: ...

    def clear_source(self) -> None: ...

    def play(self) -> None: ...

    def can_play_type(self, mime_type: str) -> bool: ...


class PlaybackEngine(Protocol):
    """An adaptive-bitrate playback engine handle.

    A handle serves exactly one source. Once ``destroy`` is called it aborts
    in-flight loads and must not be used again.
    """

    current_level: int
    audio_track: int

    def on(self, event: EngineEvent, handler: EventHandler) -> None: ...

    def load_source(self, url: StreamURL) -> None: ...

    def attach_media(self, surface: VideoSurface) -> None: ...

    def start_load(self) -> None: ...

    def recover_media_error(self) -> None: ...

    def destroy(self) -> None: ...


EngineFactory: TypeAlias = Callable[[EngineConfig], PlaybackEngine]
