"""Server list management with failover to the next server."""

import dataclasses
import logging
from collections.abc import Sequence

from .resolver import EndpointResolver, build_probe_url
from .types import EndpointTemplate, ServerStatus, Source

logger = logging.getLogger(__name__)


class ServerManager:
    """
    Tracks the status of each candidate server and picks the next one to play.

    Sources that need a delivery proxy are rewritten through the first proxy
    that answers. A server whose source fails, or for which no proxy answers,
    is marked failed and skipped from then on.

    Attributes:
        sources: Candidate sources, one per server, in preference order.
        proxies: Delivery endpoint templates in preference order.
        resolver: Resolver used to probe proxies.
        statuses: Current status of each server.
    """

    def __init__(
        self,
        sources: Sequence[Source],
        proxies: Sequence[EndpointTemplate] = (),
        resolver: EndpointResolver | None = None,
    ) -> None:
        """
        Initialize the server manager.

        Args:
            sources: Candidate sources. Each source's server_index is reset
                to its position in this list.
            proxies: Endpoint templates for sources that need a proxy.
            resolver: Endpoint resolver (a default one is created if None).
        """
        self.sources = [
            dataclasses.replace(source, server_index=index) for index, source in enumerate(sources)
        ]
        self.proxies = list(proxies)
        self.resolver = resolver or EndpointResolver()
        self.statuses = [ServerStatus.UNKNOWN] * len(self.sources)

        logger.info("ServerManager initialized with %d servers", len(self.sources))

    def update_server_status(self, index: int, status: ServerStatus) -> None:
        """
        Record a server's status. Matches the StreamSession status callback.

        Args:
            index: Server index.
            status: New status.
        """
        if not 0 <= index < len(self.statuses):
            logger.warning("Ignoring status %s for unknown server %d", status, index)
            return

        self.statuses[index] = status
        if status == ServerStatus.FAILED:
            logger.warning("Marked server %d as failed", index)
        else:
            logger.debug("Server %d is %s", index, status)

    def next_server_index(self, start: int = 0) -> int | None:
        """
        Find the first server at or after ``start`` that has not failed.

        Returns:
            A server index, or None if every remaining server failed.
        """
        for index in range(start, len(self.statuses)):
            if self.statuses[index] != ServerStatus.FAILED:
                return index
        return None

    async def select_source(self, start: int = 0) -> Source | None:
        """
        Pick the next playable source, resolving a proxy where needed.

        Args:
            start: First server index to consider.

        Returns:
            The source to attach (with a proxied link if required), or None
            when all servers are exhausted.
        """
        index = self.next_server_index(start)
        while index is not None:
            source = self.sources[index]
            self.update_server_status(index, ServerStatus.CHECKING)

            if not source.needs_proxy:
                return source

            endpoint = await self.resolver.resolve(source.link, self.proxies)
            if endpoint is not None:
                link = build_probe_url(endpoint, source.link, self.resolver.settings.query_param)
                return dataclasses.replace(source, link=link)

            logger.warning("No proxy available for server %d", index)
            self.update_server_status(index, ServerStatus.FAILED)
            index = self.next_server_index(index + 1)

        logger.error("All servers exhausted!")
        return None
