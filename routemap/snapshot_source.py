import json
import logging
from urllib.parse import urlparse

import requests
from PyQt6.QtCore import QThread, pyqtSignal

from .model import Snapshot, SnapshotError, snapshot_from_payload

logger = logging.getLogger(__name__)

HTTP_TIMEOUT = 10


def is_url(source: str) -> bool:
    return urlparse(source).scheme in ("http", "https")


def load_snapshot(source: str, timeout: float = HTTP_TIMEOUT) -> Snapshot:
    """Reads one analysis result from a JSON file or an HTTP(S) endpoint."""
    if is_url(source):
        try:
            response = requests.get(source, timeout=timeout)
            response.raise_for_status()
            payload = response.json()
        except requests.RequestException as e:
            raise SnapshotError(f"Could not fetch analysis result from {source}: {e}") from e
        except ValueError as e:
            raise SnapshotError(f"Invalid JSON from {source}: {e}") from e
    else:
        try:
            with open(source, "r", encoding="utf-8") as f:
                payload = json.load(f)
        except OSError as e:
            raise SnapshotError(f"Could not read {source}: {e}") from e
        except ValueError as e:
            # Also covers files that are not UTF-8
            raise SnapshotError(f"Invalid JSON in {source}: {e}") from e
    return snapshot_from_payload(payload)


SLEEP_SLICE_MS = 50


class SnapshotPoller(QThread):
    """Reloads the snapshot source at a fixed interval off the GUI thread."""
    snapshot_ready = pyqtSignal(object)  # Snapshot
    failed = pyqtSignal(str)

    def __init__(self, source, interval_ms=5000, parent=None):
        super().__init__(parent)
        self.source = source
        self.interval_ms = max(int(interval_ms), SLEEP_SLICE_MS)

    def poll_once(self):
        try:
            snapshot = load_snapshot(self.source)
        except SnapshotError as e:
            logger.warning("%s", e)
            self.failed.emit(str(e))
            return None
        logger.debug("Loaded %d nodes, %d edges from %s", len(snapshot.nodes), len(snapshot.edges), self.source)
        self.snapshot_ready.emit(snapshot)
        return snapshot

    def run(self):
        while not self.isInterruptionRequested():
            self.poll_once()
            # Sleep in small slices so stop() returns promptly
            waited = 0
            while waited < self.interval_ms and not self.isInterruptionRequested():
                self.msleep(SLEEP_SLICE_MS)
                waited += SLEEP_SLICE_MS

    def stop(self):
        self.requestInterruption()
        self.wait()
