import argparse
import logging
import sys

from PyQt6.QtWidgets import QApplication, QLabel, QMainWindow

from .config import DEFAULT_CONFIG
from .model import VisualNode
from .snapshot_source import SnapshotPoller
from .ui.graph_widget import GraphWidget

logger = logging.getLogger(__name__)


class MainWindow(QMainWindow):
    def __init__(self, source, interval_ms=DEFAULT_CONFIG.poll_interval_ms, seed=None):
        super().__init__()
        self.setWindowTitle("routemap - Allowed traffic routes")
        self.resize(1200, 800)

        self.graph_widget = GraphWidget(seed=seed)
        self.graph_widget.elementFocused.connect(self.on_element_focused)
        self.setCentralWidget(self.graph_widget)

        self.info_label = QLabel(f"Analyzing {source}...")
        self.statusBar().addWidget(self.info_label)

        self.poller = SnapshotPoller(source, interval_ms, self)
        self.poller.snapshot_ready.connect(self.on_snapshot)
        self.poller.failed.connect(self.on_failure)
        self.poller.start()

    def on_snapshot(self, snapshot):
        result = self.graph_widget.update_snapshot(snapshot)
        if result is not None:
            self.info_label.setText(f"{len(result.nodes)} pods, {len(result.edges)} allowed routes")

    def on_failure(self, message):
        # Keep showing the last good snapshot
        self.info_label.setText(message)

    def on_element_focused(self, element):
        if element is None:
            return
        if isinstance(element, VisualNode):
            self.statusBar().showMessage(f"Pod {element.id}")
        else:
            self.statusBar().showMessage(f"Allowed route {element.source_id} -> {element.target_id}")

    def closeEvent(self, event):
        self.poller.stop()
        self.graph_widget.dispose()
        super().closeEvent(event)


def positive_seconds(value):
    seconds = float(value)
    if seconds <= 0:
        raise argparse.ArgumentTypeError(f"interval must be positive, got {value}")
    return seconds


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Live force-directed map of allowed traffic routes")
    parser.add_argument("source", help="analysis result JSON file or HTTP(S) URL")
    parser.add_argument("--interval", type=positive_seconds, default=DEFAULT_CONFIG.poll_interval_ms / 1000,
                        help="seconds between two refreshes (default: %(default)s)")
    parser.add_argument("--seed", type=int, default=None, help="seed for initial node placement")
    parser.add_argument("--log-level", default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level))

    logger.info("Polling %s every %.1fs", args.source, args.interval)

    app = QApplication(sys.argv[:1])
    window = MainWindow(args.source, int(args.interval * 1000), args.seed)
    window.show()
    return app.exec()


if __name__ == "__main__":
    sys.exit(main())
