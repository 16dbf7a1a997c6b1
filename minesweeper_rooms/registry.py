"""In-memory store of game rooms."""
import dataclasses
import logging
import secrets
import string
import threading
from contextlib import contextmanager
from typing import Callable, Dict, Iterator, Optional

from minesweeper_rooms.board import create_board
from minesweeper_rooms.errors import RoomFull, RoomNotFound
from minesweeper_rooms.turns import next_player_id
from minesweeper_rooms.types import Departure, GameBoard, GameConfig, GameState, Player, Room

logger = logging.getLogger(__name__)

ROOM_ID_ALPHABET = string.ascii_uppercase + string.digits


class RoomRegistry:
    """Owns every room for the lifetime of the server process.

    Rooms are stored as values: callers fetch a room, build a replacement and
    hand it back with ``save_room``. Read-modify-write sequences on one room
    must run inside ``room_lock`` for that room.
    """

    def __init__(self, max_players: int = 2, id_length: int = 6,
                 board_factory: Callable[[GameConfig], GameBoard] = create_board,
                 id_factory: Optional[Callable[[], str]] = None):
        self.max_players = max_players
        self.id_length = id_length
        self._board_factory = board_factory
        self._id_factory = id_factory or self._random_id
        self._rooms: Dict[str, Room] = {}
        self._room_locks: Dict[str, threading.RLock] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._rooms)

    def __contains__(self, room_id) -> bool:
        with self._lock:
            return room_id in self._rooms

    def _random_id(self) -> str:
        return ''.join(secrets.choice(ROOM_ID_ALPHABET) for _ in range(self.id_length))

    def generate_room_id(self) -> str:
        """Return an id not used by any current room. Caller holds ``_lock``."""
        while True:
            room_id = self._id_factory()
            if room_id not in self._rooms:
                return room_id

    @contextmanager
    def room_lock(self, room_id: str) -> Iterator[None]:
        with self._lock:
            lock = self._room_locks.setdefault(room_id, threading.RLock())
        try:
            with lock:
                yield
        finally:
            with self._lock:
                if room_id not in self._rooms:
                    self._room_locks.pop(room_id, None)

    def create_room(self, config: GameConfig, host: Player) -> Room:
        board = self._board_factory(config)
        with self._lock:
            room_id = self.generate_room_id()
            room = Room(
                id=room_id,
                players={host.id: host},
                board=board,
                game_config=config,
                game_state=GameState(bombs_left=config.bombs),
                host_id=host.id,
                current_player_turn_id=host.id,
            )
            self._rooms[room_id] = room
        logger.info(f"Room {room_id} created by {host.name} ({host.id}), "
                    f"{config.rows}x{config.cols} with {config.bombs} bombs")
        return room

    def find_room(self, room_id) -> Optional[Room]:
        with self._lock:
            return self._rooms.get(room_id)

    def get_room(self, room_id) -> Room:
        room = self.find_room(room_id)
        if room is None:
            raise RoomNotFound()
        return room

    def find_room_for_player(self, player_id: str) -> Optional[Room]:
        with self._lock:
            for room in self._rooms.values():
                if player_id in room.players:
                    return room
        return None

    def save_room(self, room: Room) -> None:
        with self._lock:
            if room.id not in self._rooms:
                raise RoomNotFound()
            self._rooms[room.id] = room

    def remove_room(self, room_id: str) -> None:
        with self._lock:
            self._rooms.pop(room_id, None)
            self._room_locks.pop(room_id, None)
        logger.info(f"Room {room_id} deleted")

    def add_player(self, room_id: str, player: Player) -> Room:
        room = self.get_room(room_id)
        if player.id not in room.players and len(room.players) >= self.max_players:
            raise RoomFull()

        players = dict(room.players)
        players[player.id] = player
        room = dataclasses.replace(room, players=players)
        self.save_room(room)
        logger.info(f"{player.name} ({player.id}) joined room {room_id}")
        return room

    def remove_player(self, room_id: str, player_id: str) -> Departure:
        """Remove a player, deleting the room once nobody is left.

        The empty-room check comes first; otherwise host and turn pass on to
        remaining players when the leaver held them.
        """
        departure = Departure(room_id=room_id, player_id=player_id)
        room = self.find_room(room_id)
        if room is None or player_id not in room.players:
            departure.room = room
            return departure

        remaining_after = next_player_id(room.players.keys(), player_id)
        players = {pid: p for pid, p in room.players.items() if pid != player_id}
        logger.info(f"Player {player_id} left room {room_id}")

        if not players:
            self.remove_room(room_id)
            departure.room_deleted = True
            return departure

        host_id = room.host_id
        if host_id == player_id:
            host_id = next(iter(players))
            departure.new_host_id = host_id
            logger.info(f"New host for room {room_id}: {host_id}")

        turn_id = room.current_player_turn_id
        if turn_id == player_id:
            turn_id = remaining_after
            departure.turn_reassigned = True

        room = dataclasses.replace(
            room, players=players, host_id=host_id, current_player_turn_id=turn_id
        )
        self.save_room(room)
        departure.room = room
        return departure

    def clear(self) -> None:
        with self._lock:
            self._rooms.clear()
            self._room_locks.clear()
