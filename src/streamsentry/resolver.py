"""Delivery endpoint (proxy) resolution."""

import asyncio
import logging
from collections.abc import Iterable
from functools import partial

import requests

from .types import EndpointTemplate, ResolverSettings, StreamURL

logger = logging.getLogger(__name__)

# HTTP status code constants
HTTP_OK = 200
HTTP_REDIRECTION = 300  # End of success codes


def build_probe_url(
    template: EndpointTemplate,
    target_url: StreamURL,
    query_param: str = "m3u8-proxy",
) -> str:
    """
    Build the URL that fetches ``target_url`` through an endpoint.

    Args:
        template: Endpoint base URL.
        target_url: The resource to fetch through the endpoint.
        query_param: Query parameter carrying the target (default: 'm3u8-proxy').

    Returns:
        The proxied URL.
    """
    return f"{template}?{query_param}={target_url}"


class EndpointResolver:
    """
    Finds the first reachable delivery endpoint for a resource.

    Candidates are probed strictly in order with one short HEAD request each.
    Nothing is cached between calls.

    Attributes:
        settings: Probe timeout and query parameter.
    """

    def __init__(self, settings: ResolverSettings | None = None) -> None:
        """
        Initialize the resolver.

        Args:
            settings: Resolver settings (uses defaults if None).
        """
        self.settings = settings or ResolverSettings()

    def probe(self, url: str) -> bool:
        """
        Check whether an endpoint answers for a proxied URL.

        Args:
            url: Fully built probe URL.

        Returns:
            True on a 2xx response, False otherwise.
        """
        try:
            response = requests.head(url, timeout=self.settings.timeout, allow_redirects=True)
        except requests.RequestException as e:
            logger.debug("Endpoint probe failed: %s - %s", url, e)
            return False

        if HTTP_OK <= response.status_code < HTTP_REDIRECTION:
            return True

        logger.debug("Endpoint probe failed (status %d): %s", response.status_code, url)
        return False

    async def resolve(
        self,
        target_url: StreamURL,
        candidates: Iterable[EndpointTemplate],
    ) -> EndpointTemplate | None:
        """
        Probe candidates in order and return the first that responds.

        Each probe runs in a worker thread and is awaited before the next
        one starts. The whole probe, redirects and name lookup included, is
        cut off after the configured timeout, so the worst case is one
        timeout per candidate.

        Args:
            target_url: The resource the endpoint should deliver.
            candidates: Endpoint templates in preference order.

        Returns:
            The first reachable endpoint template, or None if none responded.
        """
        loop = asyncio.get_running_loop()

        for template in candidates:
            probe_url = build_probe_url(template, target_url, self.settings.query_param)
            try:
                reachable = await asyncio.wait_for(
                    loop.run_in_executor(None, partial(self.probe, probe_url)),
                    self.settings.timeout,
                )
            except TimeoutError:
                logger.debug("Endpoint probe timed out: %s", probe_url)
                reachable = False

            if reachable:
                logger.info("Using endpoint %s", template)
                return template

        logger.warning("No reachable endpoint for %s", target_url)
        return None
