"""Wire schemas for the Transmission RPC methods.

Each RPC method has its own call model that knows its method name and how
to encode its arguments; the argument maps are irregular (hyphenated keys,
priority flags used as keys, empty maps meaning "all transfers"), so there
is no single generic shape. Responses are decoded per expected shape.
"""

import base64
import json
from pathlib import Path
from typing import Any, ClassVar, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, model_validator

from mission_remote.errors import ProtocolError, RejectedError
from mission_remote.models import (
    Torrent,
    TorrentAdded,
    TorrentPriority,
    TransferFile,
)

TORRENT_FIELDS = [
    "id",
    "name",
    "totalSize",
    "percentDone",
    "status",
    "peersSendingToUs",
    "peersConnected",
]

_torrent_list = TypeAdapter(list[Torrent])
_file_list = TypeAdapter(list[TransferFile])


class _Call(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    method: ClassVar[str]

    def arguments(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def envelope(self) -> dict[str, Any]:
        return {"method": self.method, "arguments": self.arguments()}


class TorrentGet(_Call):
    method: ClassVar[str] = "torrent-get"

    fields: list[str] = Field(default_factory=lambda: list(TORRENT_FIELDS))
    ids: list[int] | None = None


class TorrentAdd(_Call):
    method: ClassVar[str] = "torrent-add"

    filename: str | None = None
    metainfo: str | None = None
    download_dir: str = Field(alias="download-dir")
    paused: bool | None = None

    @model_validator(mode="after")
    def _one_source(self):
        if (self.filename is None) == (self.metainfo is None):
            raise ValueError("exactly one of filename or metainfo is required")
        return self


class TorrentRemove(_Call):
    method: ClassVar[str] = "torrent-remove"

    ids: list[int]
    delete_local_data: bool = Field(default=False, alias="delete-local-data")


class TorrentStart(_Call):
    """Start the given transfers, or every transfer when ids is None."""

    method: ClassVar[str] = "torrent-start"

    ids: list[int] | None = None


class TorrentStop(_Call):
    """Stop the given transfers, or every transfer when ids is None."""

    method: ClassVar[str] = "torrent-stop"

    ids: list[int] | None = None


class TorrentSetPriority(_Call):
    method: ClassVar[str] = "torrent-set"

    ids: list[int]
    priority: TorrentPriority

    def arguments(self) -> dict[str, Any]:
        # An empty file list applies the priority to every file
        return {"ids": list(self.ids), self.priority.value: []}


class TorrentSetFiles(_Call):
    method: ClassVar[str] = "torrent-set"

    ids: list[int]
    files_unwanted: list[int] = Field(alias="files-unwanted")


class SessionGet(_Call):
    method: ClassVar[str] = "session-get"


RpcCall = Union[
    TorrentGet,
    TorrentAdd,
    TorrentRemove,
    TorrentStart,
    TorrentStop,
    TorrentSetPriority,
    TorrentSetFiles,
    SessionGet,
]

_CALLS: dict[str, type[_Call]] = {
    cls.method: cls
    for cls in (TorrentGet, TorrentAdd, TorrentRemove, TorrentStart, TorrentStop, SessionGet)
}


def call_for(method: str, **arguments: Any) -> RpcCall:
    """Build the call model for a method name.

    `torrent-set` is shared by two variants; it is resolved by whether a
    priority or a files-unwanted list is supplied.
    """
    if method == TorrentSetPriority.method:
        if "priority" in arguments:
            return TorrentSetPriority(**arguments)
        return TorrentSetFiles(**arguments)
    try:
        cls = _CALLS[method]
    except KeyError:
        raise ValueError(f"Unknown RPC method: {method}") from None
    return cls(**arguments)


def encode(call: RpcCall) -> bytes:
    return json.dumps(call.envelope(), separators=(",", ":")).encode("utf-8")


def encode_torrent_file(path: str | Path) -> str:
    """Base64 text of a .torrent file, suitable for `metainfo`."""
    return base64.b64encode(Path(path).read_bytes()).decode("ascii")


def _text(body: bytes | str) -> str:
    if isinstance(body, bytes):
        return body.decode("utf-8", errors="replace")
    return body


def decode_arguments(body: bytes | str) -> dict[str, Any]:
    text = _text(body)
    try:
        data = json.loads(text)
    except ValueError:
        raise ProtocolError("Response body is not valid JSON", text) from None
    if not isinstance(data, dict):
        raise ProtocolError("Response body is not a JSON object", text)
    result = data.get("result")
    if result is not None and result != "success":
        raise RejectedError(str(result), text)
    arguments = data.get("arguments")
    if not isinstance(arguments, dict):
        raise ProtocolError("Response has no arguments object", text)
    return arguments


def decode_status(body: bytes | str) -> None:
    """Check the `result` field of a reply that carries no payload we need."""
    text = _text(body)
    if not text.strip():
        return
    try:
        data = json.loads(text)
    except ValueError:
        raise ProtocolError("Response body is not valid JSON", text) from None
    if not isinstance(data, dict):
        raise ProtocolError("Response body is not a JSON object", text)
    result = data.get("result")
    if result is not None and result != "success":
        raise RejectedError(str(result), text)


def decode_torrents(body: bytes | str) -> list[Torrent]:
    arguments = decode_arguments(body)
    if "torrents" not in arguments:
        raise ProtocolError("Response has no torrents list", _text(body))
    try:
        return _torrent_list.validate_python(arguments["torrents"])
    except ValidationError as e:
        raise ProtocolError(f"Malformed torrent list: {e}", _text(body)) from e


def decode_added(body: bytes | str) -> tuple[TorrentAdded, bool]:
    """Return the added transfer and whether the server reported a duplicate."""
    arguments = decode_arguments(body)
    if "torrent-added" in arguments:
        raw, duplicate = arguments["torrent-added"], False
    elif "torrent-duplicate" in arguments:
        raw, duplicate = arguments["torrent-duplicate"], True
    else:
        raise ProtocolError("Response has no torrent-added descriptor", _text(body))
    try:
        return TorrentAdded.model_validate(raw), duplicate
    except ValidationError as e:
        raise ProtocolError(f"Malformed torrent descriptor: {e}", _text(body)) from e


def decode_files(body: bytes | str) -> list[TransferFile]:
    arguments = decode_arguments(body)
    torrents = arguments.get("torrents")
    if not isinstance(torrents, list) or not torrents:
        raise ProtocolError("Response has no torrent entry", _text(body))
    first = torrents[0]
    if not isinstance(first, dict) or "files" not in first:
        raise ProtocolError("Torrent entry has no files list", _text(body))
    try:
        return _file_list.validate_python(first["files"])
    except ValidationError as e:
        raise ProtocolError(f"Malformed file list: {e}", _text(body)) from e


def decode_session(body: bytes | str) -> str:
    arguments = decode_arguments(body)
    download_dir = arguments.get("download-dir")
    if not isinstance(download_dir, str):
        raise ProtocolError("Response has no download-dir", _text(body))
    return download_dir
