import asyncio
import logging
from mission_remote.config import load_settings
from mission_remote.logger import setup_logging
from mission_remote.models import Torrent
from mission_remote.poller import TorrentPoller
from mission_remote.services.transmission import TransmissionClient

log = logging.getLogger(__name__)


def log_torrents(torrents: list[Torrent]):
    log.info("%d transfer(s)", len(torrents))
    for t in torrents:
        log.info(
            "  [%d] %s - %s %.1f%% (%d/%d peers)",
            t.id,
            t.name,
            t.status.name.lower(),
            t.progress_percent,
            t.peersSendingToUs,
            t.peersConnected,
        )


async def run():
    settings = load_settings()
    setup_logging(settings.log_level)
    async with TransmissionClient.from_settings(settings) as client:
        log.info("Connecting to %s", client.session.endpoint.url)
        result = await client.get_default_download_dir()
        if result.ok:
            log.info("Default download directory: %s", result.download_dir)
        else:
            log.warning("Could not read session settings (%s): %s", result.outcome.value, result.detail)

        poller = TorrentPoller(
            client,
            on_update=log_torrents,
            interval=settings.poll_interval,
            max_failures=settings.poll_max_failures,
        )
        async with poller:
            # Runs until cancelled (Ctrl-C)
            await asyncio.Event().wait()


def main():
    try:
        asyncio.run(run())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
