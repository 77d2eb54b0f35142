"""Native video surface backed by an external player process."""

import logging
import subprocess

from .types import HLS_MIME_TYPE, StreamURL

logger = logging.getLogger(__name__)

# Players tried in order when none is configured
SUPPORTED_PLAYERS = ("mpv", "vlc", "ffplay")

# MIME types every supported player can open directly
PLAYABLE_MIME_TYPES = (HLS_MIME_TYPE, "application/x-mpegurl", "video/mp4", "video/webm")


class PlayerProcessSurface:
    """
    Plays a bound URL in an external video player (mpv, vlc or ffplay).

    Implements the VideoSurface contract for hosts without an embedded
    adaptive engine: the player handles HLS natively.

    Attributes:
        player_cmd: Player to use, or None to pick the first one installed.
        source: URL currently bound to the surface.
        process: Running player process, if any.
    """

    def __init__(self, player_cmd: str | None = None) -> None:
        """
        Initialize the surface.

        Args:
            player_cmd: Preferred player (default: first available).
        """
        self.player_cmd = player_cmd
        self.source: StreamURL | None = None
        self.process: subprocess.Popen | None = None

    def _find_available_player(self) -> str | None:
        """
        Find an available video player on the system.

        Returns:
            Name of the first available player, or None if none found.
        """
        for player in SUPPORTED_PLAYERS:
            result = subprocess.run(
                ["which", player],
                capture_output=True,
                text=True,
                check=False,
            )
            if result.returncode == 0:
                logger.info("Found player: %s", player)
                return player
        return None

    def resolve_player(self) -> str | None:
        if self.player_cmd is None:
            self.player_cmd = self._find_available_player()
        return self.player_cmd

    def _build_player_command(self, player: str, url: StreamURL) -> list[str]:
        if player == "ffplay":
            return ["ffplay", "-autoexit", url]
        return [player, url]

    def can_play_type(self, mime_type: str) -> bool:
        return mime_type.lower() in PLAYABLE_MIME_TYPES and self.resolve_player() is not None

    def set_source(self, url: StreamURL) -> None:
        self.clear_source()
        self.source = url

    def clear_source(self) -> None:
        """Stop the player and unbind the URL."""
        if self.process is not None:
            self.process.terminate()
            self.process = None
            logger.debug("Player process terminated")
        self.source = None

    def play(self) -> None:
        """
        Start the player on the bound URL.

        Raises:
            RuntimeError: If no URL is bound or no player is installed.
        """
        if self.source is None:
            msg = "No source bound to the surface"
            raise RuntimeError(msg)
        if self.process is not None and self.process.poll() is None:
            return

        player = self.resolve_player()
        if player is None:
            msg = "No video player found! Install mpv, vlc, or ffplay"
            raise RuntimeError(msg)

        cmd = self._build_player_command(player, self.source)
        self.process = subprocess.Popen(
            cmd,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
        )
        logger.info("Started %s for %s", player, self.source)

    def wait(self) -> int:
        """
        Wait for the player to exit.

        Returns:
            The player's exit code, or -1 if nothing is playing.
        """
        if self.process is None:
            return -1
        return self.process.wait()
