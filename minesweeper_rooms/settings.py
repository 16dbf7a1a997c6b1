"""Server settings read from the environment."""
import logging
import os
from dataclasses import dataclass, field
from typing import List

logger = logging.getLogger(__name__)


def _int_from_env(name: str, default: int) -> int:
    """Read an integer variable, falling back to the default."""
    raw = os.getenv(name)
    if raw is None or raw.strip() == '':
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"Ignoring non-numeric {name}={raw!r}, using {default}")
        return default


@dataclass
class ServerSettings:
    """Process-wide server settings."""

    host: str = '0.0.0.0'
    port: int = 3000
    max_players: int = 2
    room_id_length: int = 6
    cors_origins: List[str] = field(default_factory=lambda: ['*'])
    log_level: str = 'INFO'

    @classmethod
    def from_env(cls) -> 'ServerSettings':
        """Build settings from environment variables."""
        defaults = cls()
        origins = os.getenv('CORS_ORIGINS', '*')
        return cls(
            host=os.getenv('HOST', defaults.host),
            port=_int_from_env('PORT', defaults.port),
            max_players=max(1, _int_from_env('MAX_PLAYERS_PER_ROOM', defaults.max_players)),
            room_id_length=max(4, _int_from_env('ROOM_ID_LENGTH', defaults.room_id_length)),
            cors_origins=[o.strip() for o in origins.split(',') if o.strip()] or ['*'],
            log_level=os.getenv('LOG_LEVEL', defaults.log_level).upper(),
        )

    @property
    def cors_allowed_origins(self):
        """Value for SocketIO's cors_allowed_origins."""
        if self.cors_origins == ['*']:
            return '*'
        return self.cors_origins
