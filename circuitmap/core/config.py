"""Runtime settings, overridable through ``CIRCUITMAP_*`` environment variables."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

from circuitmap.core.levels import DEFAULT_LEVELS_FILE
from circuitmap.core.persistence import DEFAULT_STORAGE_PATH

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MapConfig:
    levels_file: Path = DEFAULT_LEVELS_FILE
    storage_path: Optional[Path] = DEFAULT_STORAGE_PATH
    pages_dir: Path = field(default_factory=Path.cwd)
    navigation_template: str = "level{id}.html"
    tween_duration_ms: int = 2000
    tween_delay_ms: int = 500
    unlock_flash_ms: int = 600
    frame_interval_ms: int = 16

    def level_page(self, level_id: int) -> Path:
        return self.pages_dir / self.navigation_template.format(id=level_id)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> MapConfig:
        env = os.environ if environ is None else environ
        defaults = cls()

        storage_path: Optional[Path] = defaults.storage_path
        raw_storage = env.get("CIRCUITMAP_STORAGE")
        if raw_storage is not None:
            # an empty value keeps progress in memory only
            storage_path = Path(raw_storage).expanduser() if raw_storage.strip() else None

        return cls(
            levels_file=Path(env["CIRCUITMAP_LEVELS"]).expanduser() if env.get("CIRCUITMAP_LEVELS") else defaults.levels_file,
            storage_path=storage_path,
            pages_dir=Path(env["CIRCUITMAP_PAGES_DIR"]).expanduser() if env.get("CIRCUITMAP_PAGES_DIR") else defaults.pages_dir,
            navigation_template=env.get("CIRCUITMAP_NAVIGATION_TEMPLATE") or defaults.navigation_template,
            tween_duration_ms=_int_setting(env, "CIRCUITMAP_TWEEN_MS", defaults.tween_duration_ms, minimum=1),
            tween_delay_ms=_int_setting(env, "CIRCUITMAP_TWEEN_DELAY_MS", defaults.tween_delay_ms),
            unlock_flash_ms=_int_setting(env, "CIRCUITMAP_UNLOCK_FLASH_MS", defaults.unlock_flash_ms),
            frame_interval_ms=_int_setting(env, "CIRCUITMAP_FRAME_MS", defaults.frame_interval_ms, minimum=1),
        )


def _int_setting(env: Mapping[str, str], name: str, default: int, minimum: int = 0) -> int:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Ignoring %s=%r: not an integer", name, raw)
        return default
    if value < minimum:
        logger.warning("Ignoring %s=%r: must be at least %d", name, raw, minimum)
        return default
    return value
