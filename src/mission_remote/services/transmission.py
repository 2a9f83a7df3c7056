import logging
from pathlib import Path
from typing import Any, Callable

import httpx

from mission_remote import codec
from mission_remote.codec import (
    RpcCall,
    SessionGet,
    TorrentAdd,
    TorrentGet,
    TorrentRemove,
    TorrentSetFiles,
    TorrentSetPriority,
    TorrentStart,
    TorrentStop,
)
from mission_remote.config import Settings
from mission_remote.errors import (
    ProtocolError,
    RejectedError,
    StaleSessionError,
    TransportError,
)
from mission_remote.models import (
    AddTorrentResult,
    DownloadDirResult,
    Host,
    RpcOutcome,
    RpcResult,
    Torrent,
    TorrentListResult,
    TorrentPriority,
    TransferFilesResult,
)
from mission_remote.request import DEFAULT_TIMEOUT, SESSION_HEADER, build_request
from mission_remote.session import Session

log = logging.getLogger(__name__)

# A second consecutive 409 after refreshing the token is reported as FAILED
MAX_SESSION_REFRESHES = 1


class TransmissionClient:
    def __init__(
        self,
        session: Session,
        http_client: httpx.AsyncClient | None = None,
        timeout: float | None = DEFAULT_TIMEOUT,
    ):
        self.session = session
        # Every call keeps a deadline
        self.timeout = DEFAULT_TIMEOUT if timeout is None else timeout
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=self.timeout)

    @classmethod
    def from_host(cls, host: Host, password: str | None, **kwargs) -> "TransmissionClient":
        return cls(Session.from_host(host, password), **kwargs)

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs) -> "TransmissionClient":
        kwargs.setdefault("timeout", settings.request_timeout)
        return cls.from_host(settings.host(), settings.transmission_password, **kwargs)

    async def __aenter__(self) -> "TransmissionClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self):
        if self._owns_client:
            await self._client.aclose()

    async def _send(self, call: RpcCall) -> httpx.Response:
        refreshes = 0
        while True:
            request = build_request(call, self.session, self.timeout)
            log.debug("POST %s method=%s", request.url, call.method)
            try:
                r = await self._client.send(request)
            except httpx.TimeoutException as e:
                raise TransportError(
                    f"Request to {self.session.endpoint.url} timed out"
                ) from e
            except httpx.HTTPError as e:
                raise TransportError(
                    f"Could not reach {self.session.endpoint.url}: {e}"
                ) from e
            if r.status_code != 409:
                return r
            token = r.headers.get(SESSION_HEADER)
            if not token:
                raise ProtocolError(f"HTTP 409 without a {SESSION_HEADER} header", r.text)
            if refreshes >= MAX_SESSION_REFRESHES:
                raise StaleSessionError(refreshes, r.text)
            self.session.update(token)
            refreshes += 1

    async def _rpc(
        self, call: RpcCall, decode: Callable[[bytes], Any] = codec.decode_status
    ) -> tuple[RpcOutcome, Any, str | None]:
        try:
            r = await self._send(call)
        except TransportError as e:
            log.warning("%s failed: %s", call.method, e)
            return RpcOutcome.CONFIG_ERROR, None, str(e)
        except (StaleSessionError, ProtocolError) as e:
            log.warning("%s failed: %s", call.method, e)
            return RpcOutcome.FAILED, None, str(e)
        if r.status_code == 401:
            log.warning("%s rejected: bad credentials for %s", call.method, self.session.endpoint.host)
            return RpcOutcome.FORBIDDEN, None, r.text or None
        if not r.is_success:
            log.warning("%s failed with HTTP %s", call.method, r.status_code)
            return RpcOutcome.FAILED, None, r.text or f"HTTP {r.status_code}"
        self.session.mark_authenticated()
        try:
            value = decode(r.content)
        except RejectedError as e:
            log.warning("%s rejected by server: %s", call.method, e.result)
            return RpcOutcome.REJECTED, None, e.result
        except ProtocolError as e:
            log.warning("%s: %s", call.method, e)
            return RpcOutcome.FAILED, None, e.body or str(e)
        return RpcOutcome.SUCCESS, value, None

    async def list_torrents(self) -> TorrentListResult:
        outcome, torrents, detail = await self._rpc(TorrentGet(), codec.decode_torrents)
        return TorrentListResult(outcome=outcome, torrents=torrents or [], detail=detail)

    async def add_torrent(
        self,
        source: str,
        save_location: str,
        is_file: bool = False,
        paused: bool | None = None,
    ) -> AddTorrentResult:
        """Add a transfer from a magnet link/URL, or from base64 metainfo when is_file."""
        if is_file:
            call = TorrentAdd(metainfo=source, download_dir=save_location, paused=paused)
        else:
            call = TorrentAdd(filename=source, download_dir=save_location, paused=paused)
        outcome, added, detail = await self._rpc(call, codec.decode_added)
        if outcome != RpcOutcome.SUCCESS:
            return AddTorrentResult(outcome=outcome, detail=detail)
        torrent, duplicate = added
        return AddTorrentResult(
            outcome=RpcOutcome.REJECTED if duplicate else RpcOutcome.SUCCESS,
            detail="torrent-duplicate" if duplicate else None,
            transfer_id=torrent.id,
            name=torrent.name,
            hash_string=torrent.hashString,
            duplicate=duplicate,
        )

    async def add_torrent_file(self, path: str | Path, save_location: str, paused: bool | None = None) -> AddTorrentResult:
        return await self.add_torrent(
            codec.encode_torrent_file(path), save_location, is_file=True, paused=paused
        )

    async def delete_torrent(self, torrent_id: int, erase: bool = False) -> RpcResult:
        return await self._plain(TorrentRemove(ids=[torrent_id], delete_local_data=erase))

    async def start_torrent(self, torrent_id: int) -> RpcResult:
        return await self._plain(TorrentStart(ids=[torrent_id]))

    async def stop_torrent(self, torrent_id: int) -> RpcResult:
        return await self._plain(TorrentStop(ids=[torrent_id]))

    async def toggle_torrent(self, torrent: Torrent) -> RpcResult:
        # Stopped transfers are started, anything else is stopped
        if torrent.is_stopped:
            return await self.start_torrent(torrent.id)
        return await self.stop_torrent(torrent.id)

    async def start_all(self) -> RpcResult:
        return await self._plain(TorrentStart())

    async def stop_all(self) -> RpcResult:
        return await self._plain(TorrentStop())

    async def set_priority(self, torrent_id: int, priority: TorrentPriority) -> RpcResult:
        return await self._plain(TorrentSetPriority(ids=[torrent_id], priority=priority))

    async def set_wanted_files(self, torrent_id: int, unwanted: list[int]) -> RpcResult:
        """Mark the given file indices unwanted; the rest keep downloading."""
        return await self._plain(TorrentSetFiles(ids=[torrent_id], files_unwanted=unwanted))

    async def get_transfer_files(self, torrent_id: int) -> TransferFilesResult:
        call = TorrentGet(fields=["files"], ids=[torrent_id])
        outcome, files, detail = await self._rpc(call, codec.decode_files)
        return TransferFilesResult(outcome=outcome, files=files or [], detail=detail)

    async def get_default_download_dir(self) -> DownloadDirResult:
        outcome, download_dir, detail = await self._rpc(SessionGet(), codec.decode_session)
        return DownloadDirResult(outcome=outcome, download_dir=download_dir, detail=detail)

    async def _plain(self, call: RpcCall) -> RpcResult:
        outcome, _, detail = await self._rpc(call)
        return RpcResult(outcome=outcome, detail=detail)
