"""Board presets and custom game configuration."""
import logging
from typing import Any, Dict, Optional

from minesweeper_rooms.errors import InvalidGameConfig
from minesweeper_rooms.types import GameConfig, GameMode

logger = logging.getLogger(__name__)

PRESETS: Dict[GameMode, GameConfig] = {
    GameMode.EASY: GameConfig(rows=8, cols=8, bombs=10),
    GameMode.MEDIUM: GameConfig(rows=16, cols=16, bombs=40),
    GameMode.HARD: GameConfig(rows=16, cols=30, bombs=99),
}

CUSTOM_DEFAULTS = GameConfig(rows=10, cols=10, bombs=20)

MAX_ROWS = 50
MAX_COLS = 50


def _coerce_int(value: Any, default: int) -> int:
    """Return value as an int, or the default when it is not numeric."""
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return default
    return default


def validate_config(config: GameConfig) -> GameConfig:
    """Raise InvalidGameConfig unless the board can actually be built."""
    if not 1 <= config.rows <= MAX_ROWS or not 1 <= config.cols <= MAX_COLS:
        raise InvalidGameConfig(
            f'Board must be between 1x1 and {MAX_ROWS}x{MAX_COLS}.'
        )
    if not 0 <= config.bombs < config.rows * config.cols:
        raise InvalidGameConfig('Too many mines for the board size.')
    return config


def get_game_config(mode: Any, custom_config: Optional[Dict[str, Any]] = None) -> GameConfig:
    """Resolve a game mode (and optional custom values) to a validated config.

    Unknown modes fall back to the easy preset. For the custom mode each of
    rows, cols and bombs falls back to its default when missing or
    non-numeric; the resulting config must still fit on the board.
    """
    try:
        game_mode = GameMode(str(mode).lower())
    except ValueError:
        logger.info(f"Unknown game mode {mode!r}, using easy")
        game_mode = GameMode.EASY

    if game_mode != GameMode.CUSTOM:
        preset = PRESETS[game_mode]
        return GameConfig(rows=preset.rows, cols=preset.cols, bombs=preset.bombs)

    values = custom_config if isinstance(custom_config, dict) else {}
    config = GameConfig(
        rows=_coerce_int(values.get('rows'), CUSTOM_DEFAULTS.rows),
        cols=_coerce_int(values.get('cols'), CUSTOM_DEFAULTS.cols),
        bombs=_coerce_int(values.get('bombs'), CUSTOM_DEFAULTS.bombs),
    )
    return validate_config(config)
