"""Theme colors and color utilities for the UI."""

from circuitmap.core.levels import LevelStatus


class MapColors:
    """Dark "circuit board" palette."""

    BG_TOP = "#0b1020"
    BG_BOTTOM = "#05070f"
    PANEL_BG = "rgba(255, 255, 255, 0.08)"
    PANEL_BORDER = "rgba(255, 255, 255, 0.30)"

    TRACE = "#00ffff"
    TRACE_SECONDARY = "#00aaff"
    TRACE_REVEAL = "#0a0a0a"
    PAD_INNER = "#ffffff"

    COMPLETED = "#39ff14"
    CURRENT = "#ff6b35"
    UNLOCKED = "#00d4ff"
    LOCKED = "#666666"

    STAR_FILLED = "#facc15"
    STAR_EMPTY = "#9ca3af"

    TEXT_PRIMARY = "#ffffff"
    TEXT_DARK = "#000000"
    TEXT_MUTED = "#cbd5e1"


STATUS_COLORS = {
    LevelStatus.COMPLETED: MapColors.COMPLETED,
    LevelStatus.CURRENT: MapColors.CURRENT,
    LevelStatus.UNLOCKED: MapColors.UNLOCKED,
    LevelStatus.LOCKED: MapColors.LOCKED,
}


def blend_hex(a: str, b: str, t: float) -> str:
    """Blend two #RRGGBB colors. t=0 -> a, t=1 -> b."""
    a = a.strip()
    b = b.strip()
    if not (a.startswith("#") and b.startswith("#") and len(a) == 7 and len(b) == 7):
        return a
    try:
        ar, ag, ab = int(a[1:3], 16), int(a[3:5], 16), int(a[5:7], 16)
        br, bg, bb = int(b[1:3], 16), int(b[3:5], 16), int(b[5:7], 16)
    except ValueError:
        return a
    t = max(0.0, min(1.0, float(t)))
    r = int(ar + (br - ar) * t)
    g = int(ag + (bg - ag) * t)
    bl = int(ab + (bb - ab) * t)
    return f"#{r:02X}{g:02X}{bl:02X}"
