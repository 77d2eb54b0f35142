"""Type definitions for streamsentry."""

from dataclasses import dataclass
from enum import StrEnum
from typing import TypeAlias

# Common type aliases
StreamURL: TypeAlias = str
EndpointTemplate: TypeAlias = str

# Quality index meaning "let the engine pick"
AUTO_QUALITY = -1

# MIME type a surface must report to play HLS natively
HLS_MIME_TYPE = "application/vnd.apple.mpegurl"


class SourceType(StrEnum):
    """Delivery kind of a source."""

    HLS = "hls"
    MP4 = "mp4"
    WEBM = "webm"


class ServerStatus(StrEnum):
    """Status a host keeps for each logical server."""

    UNKNOWN = "unknown"
    CHECKING = "checking"
    WORKING = "working"
    FAILED = "failed"


class SessionState(StrEnum):
    """Lifecycle states of a StreamSession."""

    IDLE = "idle"
    ATTACHING = "attaching"
    HEALTHY = "healthy"
    RETRYING_SEGMENT = "retrying_segment"
    RECOVERING_MEDIA = "recovering_media"
    FAILED = "failed"
    DETACHED = "detached"


@dataclass(frozen=True)
class Source:
    """One playable stream.

    Attributes:
        link: The stream URL.
        type: Delivery kind (adaptive manifest or progressive file).
        server_index: Logical server this source belongs to.
        needs_proxy: Whether the link must be fetched through a delivery proxy.
    """

    link: StreamURL
    type: SourceType = SourceType.HLS
    server_index: int = 0
    needs_proxy: bool = False

    @property
    def is_adaptive(self) -> bool:
        return self.type == SourceType.HLS


@dataclass(frozen=True)
class QualityLevel:
    """A bitrate/resolution variant reported by the playback engine."""

    bitrate: int
    width: int = 0
    height: int = 0
    name: str | None = None
    codecs: str | None = None


@dataclass(frozen=True)
class AudioTrack:
    """An alternate audio rendition reported by the playback engine.

    Attributes:
        id: Track id, unique within a session.
        name: Display name.
        lang: Optional language tag (e.g. "en", "pt-BR").
        group_id: Rendition group the track belongs to.
        default: Whether the manifest flags the track as default.
        autoselect: Whether the manifest allows automatic selection.
        forced: Whether the track is forced.
    """

    id: int
    name: str
    lang: str | None = None
    group_id: str = ""
    default: bool = False
    autoselect: bool = False
    forced: bool = False


@dataclass
class EngineConfig:
    """Settings handed to the playback engine and the session's retry policy.

    Load retries stay at zero: the session owns retry decisions, so loads time
    out quickly and are reported back instead of being retried by the engine.

    Attributes:
        manifest_loading_max_retry: Engine retries for manifest loads.
        level_loading_max_retry: Engine retries for quality-index loads.
        frag_loading_max_retry: Engine retries for segment loads.
        manifest_loading_timeout_ms: Timeout for manifest loads.
        level_loading_timeout_ms: Timeout for quality-index loads.
        frag_loading_timeout_ms: Timeout for segment loads.
        back_buffer_length: Seconds of already played media to retain.
        max_segment_retries: Segment failures tolerated before failing.
        preferred_audio_lang: Language tag preferred for audio selection.
    """

    manifest_loading_max_retry: int = 0
    level_loading_max_retry: int = 0
    frag_loading_max_retry: int = 0
    manifest_loading_timeout_ms: int = 8000
    level_loading_timeout_ms: int = 8000
    frag_loading_timeout_ms: int = 8000
    back_buffer_length: float = 90.0
    max_segment_retries: int = 1
    preferred_audio_lang: str = "en"


@dataclass
class ResolverSettings:
    """Settings for delivery-endpoint resolution.

    Attributes:
        timeout: Seconds allowed for each probe request.
        query_param: Query parameter carrying the proxied target URL.
    """

    timeout: float = 3.0
    query_param: str = "m3u8-proxy"
