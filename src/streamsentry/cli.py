"""Command-line interface for streamsentry."""

import argparse
import asyncio
import logging
import pathlib
from dataclasses import dataclass, field

import yaml

from .resolver import EndpointResolver
from .servers import ServerManager
from .session import StreamSession
from .surface import PlayerProcessSurface
from .types import ResolverSettings, ServerStatus, Source, SourceType

logger = logging.getLogger(__name__)


@dataclass
class StreamsConfig:
    """Servers, proxies and resolver settings loaded from configuration.

    Attributes:
        sources: Candidate sources in preference order.
        proxies: Delivery endpoint templates in preference order.
        resolver: Endpoint probe settings.
    """

    sources: list[Source] = field(default_factory=list)
    proxies: list[str] = field(default_factory=list)
    resolver: ResolverSettings = field(default_factory=ResolverSettings)


def setup_logging(debug: bool = False) -> None:
    """
    Configure logging for the application.

    Args:
        debug: Enable debug level logging if True.
    """
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.FileHandler("streamsentry.log"),
            logging.StreamHandler(),
        ],
    )


def infer_source_type(url: str) -> SourceType:
    """
    Guess the delivery kind of a URL from its path.

    Args:
        url: The stream URL.

    Returns:
        SourceType.HLS for manifests, otherwise the matching progressive type.
    """
    path = url.lower().split("?", 1)[0]
    if path.endswith(".webm"):
        return SourceType.WEBM
    if path.endswith(".mp4"):
        return SourceType.MP4
    return SourceType.HLS


def _parse_source(entry: object, index: int) -> Source:
    if isinstance(entry, str):
        return Source(link=entry, type=infer_source_type(entry), server_index=index)

    if not isinstance(entry, dict) or "link" not in entry:
        msg = f"Server entry {index} must be a URL or a mapping with a 'link' key"
        raise ValueError(msg)

    link = entry["link"]
    if not isinstance(link, str) or not link:
        msg = f"Server entry {index} must have a non-empty string 'link'"
        raise ValueError(msg)

    raw_type = entry.get("type")
    try:
        source_type = SourceType(raw_type) if raw_type else infer_source_type(link)
    except ValueError:
        msg = f"Server entry {index} has unknown type {raw_type!r}"
        raise ValueError(msg) from None

    return Source(
        link=link,
        type=source_type,
        server_index=index,
        needs_proxy=bool(entry.get("proxy", False)),
    )


def load_config_from_yaml(yaml_path: pathlib.Path | None = None) -> StreamsConfig:
    """
    Load servers and proxies from a YAML configuration file.

    Args:
        yaml_path: Path to streams.yaml file. If None, looks in the working directory.

    Returns:
        The parsed configuration.

    Raises:
        FileNotFoundError: If the YAML file doesn't exist.
        ValueError: If the YAML format is invalid.
        TypeError: If 'servers' or 'proxies' is not a list.
    """
    if yaml_path is None:
        yaml_path = pathlib.Path.cwd() / "streams.yaml"

    if not yaml_path.exists():
        msg = f"Streams configuration not found at {yaml_path}"
        raise FileNotFoundError(msg)

    with yaml_path.open() as f:
        data = yaml.safe_load(f)

    if not isinstance(data, dict) or "servers" not in data:
        msg = "YAML file must contain a 'servers' key with a list of sources"
        raise ValueError(msg)

    servers = data["servers"]
    if not isinstance(servers, list):
        msg = "'servers' must be a list of sources"
        raise TypeError(msg)

    proxies = data.get("proxies") or []
    if not isinstance(proxies, list):
        msg = "'proxies' must be a list of URLs"
        raise TypeError(msg)

    resolver_data = data.get("resolver") or {}
    resolver = ResolverSettings(**resolver_data)

    return StreamsConfig(
        sources=[_parse_source(entry, index) for index, entry in enumerate(servers)],
        proxies=[str(proxy) for proxy in proxies],
        resolver=resolver,
    )


def play_with_failover(
    manager: ServerManager,
    session: StreamSession,
    surface: PlayerProcessSurface,
) -> bool:
    """
    Play servers in order, moving to the next one whenever playback fails.

    Args:
        manager: Server list and status bookkeeping.
        session: Session bound to ``surface``.
        surface: Player surface the session renders to.

    Returns:
        True if a stream played to completion, False if every server failed.
    """
    index = 0
    try:
        while True:
            source = asyncio.run(manager.select_source(index))
            if source is None:
                return False

            index = source.server_index + 1
            session.attach(source)
            if session.is_failed:
                continue

            manager.update_server_status(source.server_index, ServerStatus.WORKING)
            return_code = surface.wait()
            if return_code == 0:
                logger.info("Stream ended normally")
                return True

            logger.warning("Player exited with code %d on server %d", return_code, source.server_index)
            manager.update_server_status(source.server_index, ServerStatus.FAILED)
    except KeyboardInterrupt:
        logger.info("Playback interrupted by user")
        return True
    finally:
        session.detach()


def main() -> None:
    """Main entry point for the streamsentry CLI."""
    parser = argparse.ArgumentParser(
        description="Streamsentry - play streams with proxy and server failover",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Play the servers listed in streams.yaml
  streamsentry

  # Play a specific stream URL
  streamsentry --url https://example.com/stream.m3u8

  # Play through the first reachable proxy
  streamsentry --url https://example.com/stream.m3u8 --proxy https://proxy.example.com/
        """,
    )
    parser.add_argument(
        "--debug",
        "-d",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--url",
        "-u",
        type=str,
        help="Specific stream URL to watch",
    )
    parser.add_argument(
        "--type",
        "-t",
        choices=[source_type.value for source_type in SourceType],
        help="Delivery kind of --url (default: inferred from the URL)",
    )
    parser.add_argument(
        "--proxy",
        action="append",
        default=[],
        help="Delivery proxy to try for --url (repeatable, tried in order)",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=pathlib.Path,
        help="Path to streams.yaml configuration file",
    )
    parser.add_argument(
        "--player",
        choices=["mpv", "vlc", "ffplay"],
        help="Video player to use (default: first one installed)",
    )
    parser.add_argument(
        "--probe-timeout",
        type=float,
        help="Seconds allowed for each proxy probe (default: 3.0)",
    )

    args = parser.parse_args()
    setup_logging(args.debug)

    if args.url:
        source_type = SourceType(args.type) if args.type else infer_source_type(args.url)
        config = StreamsConfig(
            sources=[Source(link=args.url, type=source_type, needs_proxy=bool(args.proxy))],
            proxies=args.proxy,
        )
    else:
        try:
            config = load_config_from_yaml(args.config)
        except (FileNotFoundError, ValueError, TypeError):
            logger.exception("Error loading streams")
            logger.info("Please provide a --url or create a streams.yaml file")
            return

    if not config.sources:
        logger.error("No servers configured!")
        return

    if args.probe_timeout is not None:
        config.resolver.timeout = args.probe_timeout

    surface = PlayerProcessSurface(args.player)
    if surface.resolve_player() is None:
        logger.error("No video player found! Install mpv, vlc, or ffplay")
        logger.info("On macOS: brew install mpv")
        logger.info("On Linux: sudo apt install mpv (or yum/dnf)")
        return

    manager = ServerManager(config.sources, config.proxies, EndpointResolver(config.resolver))
    session = StreamSession(surface, on_status=manager.update_server_status)

    if not play_with_failover(manager, session, surface):
        logger.error("All servers failed!")


if __name__ == "__main__":
    main()
