import sys

from PyQt5.QtWidgets import QApplication

from digital_ink.ui import AnnotatorWindow, sources_from_paths
from digital_ink.utils import LoggingConfig, get_log_dir


def main():
    """
    Main function to run the annotator.
    Every command-line argument is opened as one document.
    """
    LoggingConfig.setup_logging(get_log_dir())

    app = QApplication(sys.argv)
    app.setApplicationName("Digital Ink")

    sources = sources_from_paths(sys.argv[1:])

    window = AnnotatorWindow(sources)
    window.showMaximized()
    sys.exit(app.exec_())


if __name__ == '__main__':
    main()
