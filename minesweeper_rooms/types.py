"""Type definitions for multiplayer Minesweeper rooms."""
from dataclasses import dataclass, field
from typing import Dict, List, Optional
from enum import Enum


@dataclass
class Cell:
    """Represents a single cell on the minesweeper board."""
    row: int
    col: int
    is_bomb: bool = False
    is_revealed: bool = False
    is_flagged: bool = False
    neighbor_bombs: int = 0


@dataclass
class GameBoard:
    """Represents the game board."""
    cells: List[List[Cell]]
    rows: int
    cols: int
    bombs: int


class GameMode(str, Enum):
    """Board presets a room can be created with."""
    EASY = 'easy'
    MEDIUM = 'medium'
    HARD = 'hard'
    CUSTOM = 'custom'


@dataclass
class GameConfig:
    """Configuration for creating a new board."""
    rows: int
    cols: int
    bombs: int


@dataclass
class GameState:
    """Summary of a room's game, paired with its board."""
    bombs_left: int
    game_over: bool = False
    game_won: bool = False
    moves: int = 0


class PlayerAction(str, Enum):
    """Actions a player can submit on their turn."""
    REVEAL = 'reveal'
    FLAG = 'flag'


class RoomStatus(str, Enum):
    """Turn states of a room."""
    WAITING_FOR_ACTION = 'WAITING_FOR_ACTION'
    ENDED = 'ENDED'


@dataclass
class Player:
    """A connected player; the id is the connection sid."""
    id: str
    name: str


@dataclass
class Room:
    """One game instance with its board, roster and turn state."""
    id: str
    board: GameBoard
    game_config: GameConfig
    game_state: GameState
    host_id: str
    current_player_turn_id: Optional[str]
    # insertion order is join order
    players: Dict[str, Player] = field(default_factory=dict)


@dataclass
class FlagResult:
    """Board and counter after a flag toggle."""
    board: GameBoard
    bombs_left: int


@dataclass
class ActionResult:
    """Outcome of an accepted player action."""
    room: Room
    game_ended: bool = False
    hit_bomb: bool = False


@dataclass
class Departure:
    """What changed when a player left a room."""
    room_id: str
    player_id: str
    room: Optional[Room] = None
    room_deleted: bool = False
    new_host_id: Optional[str] = None
    turn_reassigned: bool = False
