"""
Streamsentry - Stream session supervision with proxy and server failover.

This package attaches adaptive (HLS) or progressive streams to a playback
engine, classifies engine failures with a bounded retry policy, and finds a
working delivery proxy or server when a stream cannot be played.
"""

from .audio import select_audio_track
from .resolver import EndpointResolver
from .servers import ServerManager
from .session import StreamSession
from .surface import PlayerProcessSurface
from .types import AudioTrack, EngineConfig, QualityLevel, ServerStatus, SessionState, Source, SourceType

__version__ = "0.1.0"
__all__ = [
    "AudioTrack",
    "EndpointResolver",
    "EngineConfig",
    "PlayerProcessSurface",
    "QualityLevel",
    "ServerManager",
    "ServerStatus",
    "SessionState",
    "Source",
    "SourceType",
    "StreamSession",
    "select_audio_track",
]
