"""Application entry point and setup for the circuit level map."""

import logging
import sys
from functools import partial

from PySide6.QtCore import QUrl
from PySide6.QtGui import QDesktopServices, QGuiApplication
from PySide6.QtWidgets import QApplication

from circuitmap.core.animation import AnimationController
from circuitmap.core.config import MapConfig
from circuitmap.core.levels import LevelRepository
from circuitmap.core.persistence import KeyValueStore, ProgressStore
from circuitmap.core.progression import Progression
from circuitmap.ui.main_window import MainWindow


def configure_logging() -> None:
    """Configure application-wide logging with a standard format."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def open_level_page(config: MapConfig, level_id: int) -> None:
    """One-way navigation to the page of a level."""
    page = config.level_page(level_id)
    logging.info(f"Opening level page: {page}")
    if not QDesktopServices.openUrl(QUrl.fromLocalFile(str(page))):
        logging.warning(f"Could not open level page: {page}")


def build_progression(config: MapConfig) -> Progression:
    """Wire the level catalogue, store and animator into a loaded progression."""
    levels = LevelRepository(config.levels_file)
    store = ProgressStore(KeyValueStore(config.storage_path), len(levels))
    animator = AnimationController(duration_ms=config.tween_duration_ms, delay_ms=config.tween_delay_ms)
    progression = Progression(
        levels.all(),
        store,
        animator=animator,
        navigator=partial(open_level_page, config),
        unlock_flash_ms=config.unlock_flash_ms,
    )
    progression.load()
    return progression


def run() -> None:
    """Initialize the application, load progress, and start the main window."""
    configure_logging()
    app = QApplication(sys.argv)
    app.setApplicationName("Circuit Map")
    app.setApplicationDisplayName("Circuit Map")

    config = MapConfig.from_env()
    progression = build_progression(config)

    window = MainWindow(progression=progression, config=config)
    screen = QGuiApplication.primaryScreen()
    if screen is not None:
        geometry = screen.availableGeometry()
        window.resize(int(geometry.width() * 0.8), int(geometry.height() * 0.85))
    window.show()

    sys.exit(app.exec())
