"""Stream session: attach, supervise and recover one stream."""

import logging
from collections.abc import Callable
from typing import TypeAlias

from .audio import select_audio_track
from .engine import (
    AudioTracksUpdatedData,
    EngineErrorData,
    EngineEvent,
    EngineFactory,
    ErrorDetails,
    ErrorType,
    ManifestParsedData,
    PlaybackEngine,
    VideoSurface,
)
from .types import (
    AUTO_QUALITY,
    HLS_MIME_TYPE,
    AudioTrack,
    EngineConfig,
    QualityLevel,
    ServerStatus,
    SessionState,
    Source,
)

logger = logging.getLogger(__name__)

# Errors that allow a bounded restart of loading
SEGMENT_LOAD_ERRORS = (ErrorDetails.FRAG_LOAD_ERROR, ErrorDetails.FRAG_LOAD_TIMEOUT)

# Structural failures that are never retried
PLAYLIST_LOAD_ERRORS = (
    ErrorDetails.MANIFEST_LOAD_ERROR,
    ErrorDetails.LEVEL_LOAD_ERROR,
    ErrorDetails.KEY_LOAD_ERROR,
)

StatusCallback: TypeAlias = Callable[[int, ServerStatus], None]


class StreamSession:
    """
    Owns the attachment of one source to one video surface.

    Adaptive sources are played through a playback engine handle created by
    ``engine_factory``. The session owns that handle exclusively: it is
    released whenever a new source is attached, the session is detached, or
    playback fails for good. Engine failures are classified here rather than
    in the engine, which is configured without built-in retries.

    Attributes:
        surface: The video surface media is rendered to.
        on_status: Callback notified with (server_index, FAILED) on terminal failure.
        engine_factory: Builds engine handles, or None when adaptive playback is unavailable.
        config: Engine settings and retry bound.
        source: The currently attached source.
        engine: The live engine handle, if any.
        state: Current lifecycle state.
        quality_levels: Quality catalogue from the last parsed manifest.
        selected_quality: Requested quality index (-1 for automatic).
        audio_tracks: Audio catalogue keyed by track id.
        selected_audio: Selected audio track id, if any.
        network_error: Set once the current attachment has failed permanently.
        segment_retries: Segment failures seen in the current attachment.
    """

    def __init__(
        self,
        surface: VideoSurface,
        on_status: StatusCallback | None = None,
        engine_factory: EngineFactory | None = None,
        config: EngineConfig | None = None,
    ) -> None:
        """
        Initialize an idle session.

        Args:
            surface: Video surface to bind sources or engines to.
            on_status: Host callback for failed-status notifications.
            engine_factory: Factory for adaptive engine handles (None if unsupported).
            config: Engine configuration (uses defaults if None).
        """
        self.surface = surface
        self.on_status = on_status
        self.engine_factory = engine_factory
        self.config = config or EngineConfig()

        self.source: Source | None = None
        self.engine: PlaybackEngine | None = None
        self.state = SessionState.IDLE
        self.quality_levels: tuple[QualityLevel, ...] = ()
        self.selected_quality = AUTO_QUALITY
        self.audio_tracks: dict[int, AudioTrack] = {}
        self.selected_audio: int | None = None
        self.network_error = False
        self.segment_retries = 0
        self._surface_bound = False

    def attach(self, source: Source) -> None:
        """
        Attach a source, tearing down any previous attachment first.

        Args:
            source: The source to play.

        Raises:
            Exception: Whatever the engine raised while being built. The
                partially built handle is released before re-raising.
        """
        self._teardown()

        self.source = source
        self.segment_retries = 0
        self.network_error = False
        self.quality_levels = ()
        self.audio_tracks = {}
        self.state = SessionState.ATTACHING
        logger.info("Attaching %s source for server %d: %s", source.type, source.server_index, source.link)

        if not source.is_adaptive:
            self._bind_surface(source.link)
            return

        if self.engine_factory is not None:
            self._build_engine(self.engine_factory, source)
            return

        if self.surface.can_play_type(HLS_MIME_TYPE):
            logger.info("Adaptive engine unavailable, using native HLS playback")
            self._bind_surface(source.link)
            return

        logger.error("No adaptive engine or native HLS support for %s", source.link)
        self._fail()

    def detach(self) -> None:
        """Release the engine handle and unbind the surface. Safe in any state."""
        self._teardown()
        if self.state != SessionState.FAILED:
            self.state = SessionState.DETACHED
        logger.debug("Session detached")

    def set_quality(self, index: int) -> None:
        """
        Request a quality level.

        Args:
            index: Index into ``quality_levels``, or -1 for automatic.
        """
        self.selected_quality = index
        if self.engine is not None:
            self.engine.current_level = index

    def set_audio_track(self, track_id: int) -> None:
        """
        Request an audio track.

        Args:
            track_id: Id of a track in ``audio_tracks``.
        """
        self.selected_audio = track_id
        if self.engine is not None:
            self.engine.audio_track = track_id

    @property
    def is_failed(self) -> bool:
        return self.state == SessionState.FAILED

    def _build_engine(self, engine_factory: EngineFactory, source: Source) -> None:
        try:
            engine = engine_factory(self.config)
            self.engine = engine
            engine.on(EngineEvent.MANIFEST_PARSED, lambda data: self._on_manifest_parsed(engine, data))
            engine.on(
                EngineEvent.AUDIO_TRACKS_UPDATED,
                lambda data: self._on_audio_tracks_updated(engine, data),
            )
            engine.on(EngineEvent.FRAG_LOADED, lambda _data: self._on_frag_loaded(engine))
            engine.on(EngineEvent.ERROR, lambda data: self._on_error(engine, data))
            engine.load_source(source.link)
            engine.attach_media(self.surface)
        except Exception:
            logger.exception("Failed to set up playback engine for %s", source.link)
            self._release_engine()
            self.state = SessionState.IDLE
            raise

    def _bind_surface(self, url: str) -> None:
        self.surface.set_source(url)
        self._surface_bound = True
        self.state = SessionState.HEALTHY
        self._start_playback()

    def _start_playback(self) -> None:
        # Autoplay may be refused; playback then waits for a user action.
        try:
            self.surface.play()
        except Exception as e:
            logger.debug("Play start refused, staying paused: %s", e)

    def _teardown(self) -> None:
        self._release_engine()
        if self._surface_bound:
            self._surface_bound = False
            self.surface.clear_source()

    def _release_engine(self) -> None:
        engine, self.engine = self.engine, None
        if engine is None:
            return
        try:
            engine.destroy()
        except Exception:
            logger.exception("Error destroying playback engine")

    def _fail(self) -> None:
        """Enter the terminal failed state and tell the host."""
        self.network_error = True
        self.state = SessionState.FAILED
        # Released before notifying: the host may attach the next server from the callback.
        self._teardown()

        if self.on_status is None or self.source is None:
            return
        try:
            self.on_status(self.source.server_index, ServerStatus.FAILED)
        except Exception:
            logger.exception("Error in status callback")

    def _on_manifest_parsed(self, engine: PlaybackEngine, data: ManifestParsedData) -> None:
        if engine is not self.engine:
            return

        self.quality_levels = tuple(data.levels)
        logger.info("Manifest parsed with %d quality levels", len(self.quality_levels))
        self.state = SessionState.HEALTHY
        self._start_playback()

        if self.selected_quality != AUTO_QUALITY:
            engine.current_level = self.selected_quality

    def _on_audio_tracks_updated(self, engine: PlaybackEngine, data: AudioTracksUpdatedData) -> None:
        if engine is not self.engine:
            return

        tracks = list(data.audio_tracks)
        self.audio_tracks = {track.id: track for track in tracks}

        selected = select_audio_track(tracks, self.config.preferred_audio_lang)
        if selected is not None:
            logger.debug("Selected audio track %d of %d", selected, len(tracks))
            self.selected_audio = selected
            engine.audio_track = selected

    def _on_frag_loaded(self, engine: PlaybackEngine) -> None:
        if engine is not self.engine:
            return

        if self.state in (SessionState.RETRYING_SEGMENT, SessionState.RECOVERING_MEDIA):
            logger.info("Stream recovered")
            self.state = SessionState.HEALTHY

    def _on_error(self, engine: PlaybackEngine, data: EngineErrorData) -> None:
        """Classify an engine error and issue at most one corrective command."""
        if engine is not self.engine:
            return

        if not data.fatal:
            logger.debug("Non-fatal engine error: %s (%s)", data.type, data.details)
            return

        if data.type == ErrorType.NETWORK_ERROR:
            self._on_network_error(engine, data)
        elif data.type == ErrorType.MEDIA_ERROR:
            # Media errors (fragment parsing included) are always recovered in place.
            logger.warning("Recovering media error: %s", data.details)
            self.state = SessionState.RECOVERING_MEDIA
            engine.recover_media_error()
        else:
            logger.error("Unrecoverable %s error: %s", data.type, data.details)
            self._fail()

    def _on_network_error(self, engine: PlaybackEngine, data: EngineErrorData) -> None:
        if data.details in SEGMENT_LOAD_ERRORS:
            self.segment_retries += 1
            if self.segment_retries <= self.config.max_segment_retries:
                logger.warning(
                    "Segment load failed (%s), retrying (%d/%d)",
                    data.details,
                    self.segment_retries,
                    self.config.max_segment_retries,
                )
                self.state = SessionState.RETRYING_SEGMENT
                engine.start_load()
            else:
                logger.error("Segment failed permanently: %s", data.details)
                self._fail()
        elif data.details in PLAYLIST_LOAD_ERRORS:
            logger.error("Playlist or key load failed: %s", data.details)
            self._fail()
        else:
            logger.error("Fatal network error: %s", data.details)
            self._fail()
