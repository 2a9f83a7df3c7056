import base64
from enum import Enum, IntEnum

from pydantic import BaseModel, ConfigDict

RPC_PATH = "/transmission/rpc"


class TorrentStatus(IntEnum):
    # Integer codes sent by the daemon in torrent-get
    STOPPED = 0
    CHECK_WAIT = 1
    CHECKING = 2
    DOWNLOAD_WAIT = 3
    DOWNLOADING = 4
    SEED_WAIT = 5
    SEEDING = 6


class TorrentPriority(str, Enum):
    HIGH = "priority-high"
    NORMAL = "priority-normal"
    LOW = "priority-low"


class Torrent(BaseModel):
    id: int
    name: str
    totalSize: int
    percentDone: float
    status: TorrentStatus
    peersSendingToUs: int
    peersConnected: int

    @property
    def is_stopped(self) -> bool:
        return self.status == TorrentStatus.STOPPED

    @property
    def progress_percent(self) -> float:
        return round(self.percentDone * 100, 2)


class TransferFile(BaseModel):
    name: str
    length: int
    bytesCompleted: int

    @property
    def progress(self) -> float:
        if self.length <= 0:
            return 0.0
        return self.bytesCompleted / self.length


class TorrentAdded(BaseModel):
    id: int
    name: str
    hashString: str


class Host(BaseModel):
    """A configured server, as supplied by whoever stores the host list."""

    name: str = "default"
    server: str | None = None
    port: int | None = None
    ssl: bool = False
    username: str | None = None


class Credentials(BaseModel):
    model_config = ConfigDict(frozen=True)

    username: str
    password: str

    def basic_auth_header(self) -> str:
        login = f"{self.username}:{self.password}".encode("utf-8")
        return "Basic " + base64.b64encode(login).decode("ascii")


class Endpoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    scheme: str = "http"
    host: str
    port: int
    path: str = RPC_PATH

    @classmethod
    def from_host(cls, host: Host) -> "Endpoint":
        return cls(
            scheme="https" if host.ssl else "http",
            host=host.server,
            port=host.port,
        )

    @property
    def url(self) -> str:
        return f"{self.scheme}://{self.host}:{self.port}{self.path}"


class RpcOutcome(str, Enum):
    SUCCESS = "success"
    FORBIDDEN = "forbidden"
    CONFIG_ERROR = "config_error"
    FAILED = "failed"
    # 200 response whose `result` field reports a validation error
    REJECTED = "rejected"


class RpcResult(BaseModel):
    outcome: RpcOutcome
    detail: str | None = None

    @property
    def ok(self) -> bool:
        return self.outcome == RpcOutcome.SUCCESS


class TorrentListResult(RpcResult):
    torrents: list[Torrent] = []

    @property
    def error(self) -> str | None:
        return self.detail

    def as_tuple(self) -> tuple[list[Torrent] | None, str | None]:
        return (self.torrents if self.ok else None, self.detail)


class AddTorrentResult(RpcResult):
    transfer_id: int | None = None
    name: str | None = None
    hash_string: str | None = None
    duplicate: bool = False


class TransferFilesResult(RpcResult):
    files: list[TransferFile] = []


class DownloadDirResult(RpcResult):
    download_dir: str | None = None
