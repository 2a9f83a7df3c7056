import base64
import json

import pytest
from pydantic import ValidationError

from mission_remote import codec
from mission_remote.codec import (
    SessionGet,
    TorrentAdd,
    TorrentGet,
    TorrentRemove,
    TorrentSetFiles,
    TorrentSetPriority,
    TorrentStart,
    TorrentStop,
    call_for,
)
from mission_remote.errors import ProtocolError, RejectedError
from mission_remote.models import TorrentPriority, TorrentStatus
from tests.stubs import LIST_BODY


def envelope(call):
    return json.loads(codec.encode(call))


class TestEncode:
    def test_torrent_get_requests_list_fields(self):
        assert envelope(TorrentGet()) == {
            "method": "torrent-get",
            "arguments": {"fields": codec.TORRENT_FIELDS},
        }

    def test_torrent_get_files_for_one_transfer(self):
        body = envelope(TorrentGet(fields=["files"], ids=[7]))
        assert body["arguments"] == {"fields": ["files"], "ids": [7]}

    def test_torrent_add_magnet(self):
        call = TorrentAdd(filename="magnet:?xt=urn:btih:abc", download_dir="/data")
        assert envelope(call) == {
            "method": "torrent-add",
            "arguments": {"filename": "magnet:?xt=urn:btih:abc", "download-dir": "/data"},
        }

    def test_torrent_add_metainfo(self):
        call = TorrentAdd(metainfo="ZDg6YW5ub3VuY2U=", download_dir="/data", paused=True)
        assert envelope(call)["arguments"] == {
            "metainfo": "ZDg6YW5ub3VuY2U=",
            "download-dir": "/data",
            "paused": True,
        }

    @pytest.mark.parametrize("kwargs", [{}, {"filename": "x", "metainfo": "y"}])
    def test_torrent_add_needs_exactly_one_source(self, kwargs):
        with pytest.raises(ValidationError):
            TorrentAdd(download_dir="/data", **kwargs)

    def test_torrent_remove_uses_hyphenated_key(self):
        body = envelope(TorrentRemove(ids=[3], delete_local_data=True))
        assert body == {
            "method": "torrent-remove",
            "arguments": {"ids": [3], "delete-local-data": True},
        }

    def test_start_and_stop_without_ids_apply_to_all(self):
        assert envelope(TorrentStart()) == {"method": "torrent-start", "arguments": {}}
        assert envelope(TorrentStop()) == {"method": "torrent-stop", "arguments": {}}
        assert envelope(TorrentStop(ids=[1, 2]))["arguments"] == {"ids": [1, 2]}

    def test_set_priority_uses_priority_as_key(self):
        body = envelope(TorrentSetPriority(ids=[4], priority=TorrentPriority.HIGH))
        assert body == {
            "method": "torrent-set",
            "arguments": {"ids": [4], "priority-high": []},
        }

    def test_set_files_unwanted(self):
        body = envelope(TorrentSetFiles(ids=[4], files_unwanted=[0, 2]))
        assert body["arguments"] == {"ids": [4], "files-unwanted": [0, 2]}

    def test_session_get_has_empty_arguments(self):
        assert envelope(SessionGet()) == {"method": "session-get", "arguments": {}}

    def test_encode_torrent_file(self, tmp_path):
        path = tmp_path / "x.torrent"
        path.write_bytes(b"d8:announce3:urle")
        assert base64.b64decode(codec.encode_torrent_file(path)) == b"d8:announce3:urle"


class TestCallFor:
    def test_dispatches_by_method_name(self):
        assert isinstance(call_for("session-get"), SessionGet)
        remove = call_for("torrent-remove", ids=[1], **{"delete-local-data": True})
        assert isinstance(remove, TorrentRemove)
        assert remove.delete_local_data is True

    def test_torrent_set_variants(self):
        assert isinstance(
            call_for("torrent-set", ids=[1], priority=TorrentPriority.LOW),
            TorrentSetPriority,
        )
        assert isinstance(call_for("torrent-set", ids=[1], files_unwanted=[3]), TorrentSetFiles)

    def test_unknown_method(self):
        with pytest.raises(ValueError):
            call_for("torrent-explode")


class TestDecode:
    def test_torrents(self):
        torrents = codec.decode_torrents(json.dumps(LIST_BODY).encode())
        assert [t.id for t in torrents] == [7]
        assert torrents[0].status is TorrentStatus.DOWNLOADING

    def test_empty_torrent_list_is_valid(self):
        assert codec.decode_torrents(b'{"arguments":{"torrents":[]},"result":"success"}') == []

    def test_unexpected_shape_is_protocol_error(self):
        with pytest.raises(ProtocolError) as exc:
            codec.decode_torrents(b'{"not":"expected"}')
        assert exc.value.body == '{"not":"expected"}'

    def test_missing_torrents_key(self):
        with pytest.raises(ProtocolError):
            codec.decode_torrents(b'{"arguments":{},"result":"success"}')

    def test_bad_torrent_entry(self):
        with pytest.raises(ProtocolError):
            codec.decode_torrents(b'{"arguments":{"torrents":[{"id":"x"}]}}')

    @pytest.mark.parametrize("body", [b"", b"<html>oops</html>", b"[1, 2]"])
    def test_unparseable_body(self, body):
        with pytest.raises(ProtocolError):
            codec.decode_arguments(body)

    def test_result_other_than_success_is_rejected(self):
        with pytest.raises(RejectedError) as exc:
            codec.decode_arguments(b'{"arguments":{},"result":"invalid or corrupt torrent file"}')
        assert exc.value.result == "invalid or corrupt torrent file"

    def test_added(self):
        body = b'{"arguments":{"torrent-added":{"id":12,"name":"ubuntu","hashString":"ab12"}},"result":"success"}'
        added, duplicate = codec.decode_added(body)
        assert (added.id, added.name, added.hashString, duplicate) == (12, "ubuntu", "ab12", False)

    def test_added_duplicate(self):
        body = b'{"arguments":{"torrent-duplicate":{"id":5,"name":"ubuntu","hashString":"ab12"}},"result":"success"}'
        added, duplicate = codec.decode_added(body)
        assert added.id == 5 and duplicate

    def test_added_without_descriptor(self):
        with pytest.raises(ProtocolError):
            codec.decode_added(b'{"arguments":{},"result":"success"}')

    def test_files_nested_in_first_torrent(self):
        body = {
            "arguments": {
                "torrents": [
                    {
                        "files": [
                            {"name": "a/1.mkv", "length": 100, "bytesCompleted": 100},
                            {"name": "a/2.nfo", "length": 10, "bytesCompleted": 0},
                        ]
                    }
                ]
            },
            "result": "success",
        }
        files = codec.decode_files(json.dumps(body))
        assert [f.name for f in files] == ["a/1.mkv", "a/2.nfo"]
        assert files[0].progress == 1.0

    def test_files_for_unknown_transfer(self):
        with pytest.raises(ProtocolError):
            codec.decode_files(b'{"arguments":{"torrents":[]},"result":"success"}')

    def test_session_download_dir(self):
        body = b'{"arguments":{"download-dir":"/var/lib/transmission/Downloads","version":"4.0.5"},"result":"success"}'
        assert codec.decode_session(body) == "/var/lib/transmission/Downloads"

    def test_status_tolerates_empty_body(self):
        assert codec.decode_status(b"") is None
        assert codec.decode_status(b'{"arguments":{},"result":"success"}') is None
        with pytest.raises(RejectedError):
            codec.decode_status(b'{"arguments":{},"result":"no such torrent"}')
