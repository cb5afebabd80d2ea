# main.py

from PyQt5.QtWidgets import QApplication, QMessageBox
import argparse
import logging
import os
import sys
from config import load_settings
from errors import ConfigurationError
from mainwindow import MainWindow


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Interactive force layout with attribute filters.")
    parser.add_argument("dataset", nargs="?", help="JSON dataset (defaults to the settings' dataset_path)")
    parser.add_argument("--settings", help="JSON settings file with forces/simulation/viewer sections")
    parser.add_argument("--log-level", default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level),
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    app = QApplication(sys.argv[:1])
    try:
        settings = load_settings(args.settings)
    except ConfigurationError as e:
        QMessageBox.critical(None, "Settings", str(e))
        return 2

    window = MainWindow(settings)
    window.resize(int(settings.viewer.width) + 320, int(settings.viewer.height) + 80)
    window.show()

    path = args.dataset or settings.viewer.dataset_path
    if path and os.path.exists(path):
        window.loadDataset(path)
    elif args.dataset:
        window.statusBar().showMessage(f"Dataset {path} not found.", 5000)
    return app.exec_()


if __name__ == '__main__':
    sys.exit(main())
