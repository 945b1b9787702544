"""Network reachability check used to pick the write path for each toggle."""

import logging

import httpx

from src.core.config import constants, settings


logger = logging.getLogger(__name__)


class ConnectivityGate:
    """Point-in-time connectivity probe.

    Every call performs a fresh probe; results are never cached. Anything
    that prevents a confident answer counts as offline.
    """

    def __init__(
        self,
        probe_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the gate with the URL to probe."""
        self._transport = transport
        self._probe_url = probe_url or settings.probe_url
        self._timeout = timeout if timeout is not None else constants.CONNECTIVITY_PROBE_TIMEOUT_SECONDS

    @property
    def probe_url(self) -> str:
        return self._probe_url

    async def is_online(self) -> bool:
        """Return True only if the probe URL answered with a success status."""
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.get(self._probe_url)
        except Exception as e:
            logger.info("Connectivity probe failed, treating as offline: %s", e)
            return False

        if not response.is_success:
            logger.info("Connectivity probe returned %d, treating as offline", response.status_code)
            return False
        return True


# Global connectivity gate instance
connectivity_gate = ConnectivityGate()
