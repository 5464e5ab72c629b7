import asyncio
import concurrent.futures
import logging
from typing import Any, Coroutine, Optional, Set, Union

import requests
from aiohttp import ClientSession, ClientTimeout

from discovery_agent.constants import DISCOVERY_URL, DISCOVERY_USER_AGENT
from discovery_agent.models.exceptions import TransportError
from discovery_agent.structures import FlatResponse

Submission = Union[asyncio.Task, concurrent.futures.Future]


class DiscoveryClient:
    """
    Client for the remote device directory.

    Every request is a GET against a single endpoint, with the operation named by
    the ``action`` query parameter. Only ``add_device`` has a blocking variant;
    everything else is submitted to the event loop and failures are
    logged and dropped.
    """

    def __init__(
        self,
        base_url: str = DISCOVERY_URL,
        user_agent: str = DISCOVERY_USER_AGENT,
        timeout: Optional[int] = 15,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ):
        self.logger = logging.getLogger(__name__)
        self.logger.info(f"Initializing DiscoveryClient against {base_url}")
        self.base_url = base_url
        self.user_agent = user_agent
        self.timeout = timeout
        self.loop = loop

        self.base_headers = {"User-Agent": user_agent}
        self.session = requests.Session()
        self.session.headers.update(self.base_headers)
        self._async_session: Optional[ClientSession] = None
        self._pending: Set[Submission] = set()

    # Synchronous requests

    def _request(self, params: dict[str, Any]) -> FlatResponse:
        action = params.get("action")
        self.logger.debug(f"Executing {action} with params: {params}")
        try:
            response = self.session.get(
                url=self.base_url, params=params, timeout=self.timeout
            )
        except requests.RequestException as e:
            self.logger.error(f"Request for {action} failed: {e}")
            raise TransportError(f"Request for {action} failed: {e}") from e

        flat = FlatResponse.from_requests(response)
        if not flat.ok:
            self.logger.error(
                f"Request for {action} was rejected. Code: {flat.status_code} Reason: {flat.reason}"
            )
            raise TransportError(
                f"Request for {action} was rejected with status {flat.status_code}",
                status_code=flat.status_code,
            )
        return flat

    def add_device(self, serial: str, name: str, hostname: str, port: int) -> FlatResponse:
        """Registers the device and waits for the directory to answer."""
        return self._request(
            {
                "action": "add_device",
                "serial": serial,
                "name": name,
                "hostname": hostname,
                "port": port,
            }
        )

    # Asynchronous requests

    def _get_async_session(self) -> ClientSession:
        if self._async_session is None or self._async_session.closed:
            self._async_session = ClientSession(headers=self.base_headers)
        return self._async_session

    async def _async_request(self, params: dict[str, Any]) -> FlatResponse:
        action = params.get("action")
        self.logger.debug(f"Executing {action} asynchronously with params: {params}")
        session = self._get_async_session()
        async with session.get(
            self.base_url,
            params={key: str(value) for key, value in params.items()},
            timeout=ClientTimeout(total=self.timeout),
        ) as response:
            # Return a flat response; the ClientResponse is unusable once the context exits.
            content = await response.read()
            return FlatResponse(
                headers=response.headers,
                url=str(response.url),
                status_code=response.status,
                reason=response.reason,
                content=content,
                encoding=response.charset,
            )

    async def async_add_device(
        self, serial: str, name: str, hostname: str, port: int
    ) -> FlatResponse:
        return await self._async_request(
            {
                "action": "add_device",
                "serial": serial,
                "name": name,
                "hostname": hostname,
                "port": port,
            }
        )

    async def async_remove_device(self, serial: str) -> FlatResponse:
        return await self._async_request({"action": "remove_device", "serial": serial})

    async def async_add_address(
        self, serial: str, hw_address: str, address: str
    ) -> FlatResponse:
        return await self._async_request(
            {
                "action": "add_address",
                "serial": serial,
                "hw_address": hw_address,
                "address": address,
            }
        )

    async def async_remove_address(self, serial: str, hw_address: str) -> FlatResponse:
        return await self._async_request(
            {"action": "remove_address", "serial": serial, "hw_address": hw_address}
        )

    # Fire-and-forget submission

    def submit(self, coro: Coroutine) -> Optional[Submission]:
        """
        Schedules ``coro`` on the client's event loop without waiting for it.

        Safe to call from the loop thread or from any other thread. The result is
        discarded; failures are only logged.
        """
        loop = self.loop
        if loop is None or loop.is_closed():
            self.logger.warning(
                f"No event loop available, dropping {getattr(coro, '__name__', coro)}"
            )
            coro.close()
            return None

        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None

        submission: Submission
        if running is loop:
            submission = loop.create_task(coro)
        else:
            submission = asyncio.run_coroutine_threadsafe(coro, loop)

        self._pending.add(submission)
        submission.add_done_callback(self._submission_done)
        return submission

    def _submission_done(self, submission: Submission):
        self._pending.discard(submission)
        if submission.cancelled():
            return
        exc = submission.exception()
        if exc is not None:
            self.logger.warning(f"Background directory request failed: {exc!r}")
            return
        response = submission.result()
        if isinstance(response, FlatResponse) and not response.ok:
            self.logger.warning(
                f"Background directory request rejected. Code: {response.status_code} Reason: {response.reason}"
            )

    def queue_add_device(self, serial: str, name: str, hostname: str, port: int):
        return self.submit(self.async_add_device(serial, name, hostname, port))

    def queue_remove_device(self, serial: str):
        return self.submit(self.async_remove_device(serial))

    def queue_add_address(self, serial: str, hw_address: str, address: str):
        return self.submit(self.async_add_address(serial, hw_address, address))

    def queue_remove_address(self, serial: str, hw_address: str):
        return self.submit(self.async_remove_address(serial, hw_address))

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def close(self, drain_timeout: float = 5.0):
        """Gives queued requests a chance to finish, then releases both sessions."""
        pending = [
            asyncio.wrap_future(p) if isinstance(p, concurrent.futures.Future) else p
            for p in list(self._pending)
        ]
        if pending:
            self.logger.debug(f"Waiting for {len(pending)} queued requests")
            _done, still_pending = await asyncio.wait(pending, timeout=drain_timeout)
            for submission in still_pending:
                submission.cancel()
            if still_pending:
                await asyncio.gather(*still_pending, return_exceptions=True)

        if self._async_session is not None and not self._async_session.closed:
            await self._async_session.close()
        self._async_session = None
        self.session.close()
        self.logger.info("DiscoveryClient closed")
