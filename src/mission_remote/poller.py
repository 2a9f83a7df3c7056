"""Periodic torrent-list refresh with a bounded tolerance for outages.

The RPC client never retries transport failures itself; this loop is
the caller-side policy. It counts consecutive CONFIG_ERROR results and
reports the outage once the count reaches `max_failures`, while decode
failures and bad credentials are reported immediately with their own
messages.
"""

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable

from mission_remote.models import RpcOutcome, Torrent, TorrentListResult
from mission_remote.services.transmission import TransmissionClient

log = logging.getLogger(__name__)

UpdateHandler = Callable[[list[Torrent]], Awaitable[Any] | Any]
ErrorHandler = Callable[[str], Awaitable[Any] | Any]


async def _invoke(handler, *args):
    if handler is None:
        return
    result = handler(*args)
    if inspect.isawaitable(result):
        await result


class TorrentPoller:
    def __init__(
        self,
        client: TransmissionClient,
        on_update: UpdateHandler,
        on_error: ErrorHandler | None = None,
        interval: float = 5.0,
        max_failures: int = 3,
    ):
        if max_failures < 1:
            raise ValueError("max_failures must be at least 1")
        self.client = client
        self.on_update = on_update
        self.on_error = on_error
        self.interval = interval
        self.max_failures = max_failures
        self.failures = 0
        self._reported = False
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def poll_once(self) -> TorrentListResult:
        result = await self.client.list_torrents()
        if result.outcome == RpcOutcome.SUCCESS:
            if self.failures:
                log.info("Server reachable again after %d failed poll(s)", self.failures)
            self.failures = 0
            self._reported = False
            await _invoke(self.on_update, result.torrents)
        elif result.outcome == RpcOutcome.CONFIG_ERROR:
            self.failures += 1
            log.debug("Poll failed (%d/%d): %s", self.failures, self.max_failures, result.detail)
            if self.failures >= self.max_failures and not self._reported:
                self._reported = True
                await self._report(
                    f"Server unreachable after {self.failures} attempts: {result.detail}"
                )
        elif result.outcome == RpcOutcome.FORBIDDEN:
            await self._report("Server rejected the supplied credentials")
        elif result.outcome == RpcOutcome.REJECTED:
            await self._report(f"Server refused the request: {result.detail}")
        else:
            await self._report(f"Could not parse server response: {result.detail}")
        return result

    async def _report(self, message: str):
        log.error(message)
        await _invoke(self.on_error, message)

    async def run(self):
        while True:
            try:
                await self.poll_once()
            except Exception:
                log.exception("Poll handler failed")
            await asyncio.sleep(self.interval)

    def start(self) -> asyncio.Task:
        if self.running:
            return self._task
        self._task = asyncio.create_task(self.run())
        return self._task

    async def stop(self):
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def __aenter__(self) -> "TorrentPoller":
        self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.stop()
