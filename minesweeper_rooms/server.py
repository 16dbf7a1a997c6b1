"""Flask + Socket.IO server for multiplayer Minesweeper rooms."""
import logging
import sys
from datetime import datetime
from typing import Optional, Tuple

from flask import Flask, jsonify, request
from flask_cors import CORS
from flask_socketio import SocketIO, join_room, leave_room

from minesweeper_rooms.config import get_game_config
from minesweeper_rooms.errors import (
    GameAlreadyOver, InvalidCoordinates, InvalidGameConfig, OutOfTurn,
    RoomFull, RoomNotFound, UnknownAction,
)
from minesweeper_rooms.registry import RoomRegistry
from minesweeper_rooms.serialization import (
    serialize_board, serialize_game_config, serialize_game_state,
    serialize_player, serialize_players, serialize_room,
)
from minesweeper_rooms.settings import ServerSettings
from minesweeper_rooms.turns import apply_action
from minesweeper_rooms.types import Departure, Player, Room

logger = logging.getLogger(__name__)

MAX_NAME_LENGTH = 32


def player_name(value, default: str) -> str:
    name = str(value).strip() if value is not None else ''
    return name[:MAX_NAME_LENGTH] or default


def normalize_room_id(value) -> str:
    """Room codes are shared by hand, so match them case-insensitively."""
    if value is None:
        return ''
    return str(value).strip().upper()


def room_snapshot(room: Room) -> tuple:
    """Arguments of gameCreated / gameJoined."""
    return (
        room.id,
        serialize_board(room.board),
        serialize_game_state(room.game_state),
        serialize_game_config(room.game_config),
        room.current_player_turn_id,
    )


class GameSessions:
    """Socket.IO event handlers bound to one registry.

    Each handler validates, updates the room in the registry, then emits.
    Room updates happen under the room's lock so that one room sees one
    action at a time.
    """

    def __init__(self, socketio: SocketIO, registry: RoomRegistry):
        self.socketio = socketio
        self.registry = registry

    def register(self) -> None:
        self.socketio.on_event('connect', self.handle_connect)
        self.socketio.on_event('createGame', self.handle_create_game)
        self.socketio.on_event('joinGame', self.handle_join_game)
        self.socketio.on_event('playerAction', self.handle_player_action)
        self.socketio.on_event('disconnect', self.handle_disconnect)
        self.socketio.on_error_default(self.handle_error)

    def emit(self, event: str, *args, to: str) -> None:
        # a tuple is sent as multiple event arguments
        data = args[0] if len(args) == 1 else args
        self.socketio.emit(event, data, to=to)

    def is_connected(self, sid: str) -> bool:
        """Whether the connection is still open and not being torn down."""
        return self.socketio.server.manager.is_connected(sid, '/')

    def drop_if_disconnected(self, room_id: str, sid: str) -> bool:
        """Undo a join made by a connection that has since gone away.

        Caller holds the room lock.
        """
        if self.is_connected(sid):
            return False
        logger.info(f"Connection {sid} closed while entering room {room_id}")
        self.announce_departure(self.registry.remove_player(room_id, sid))
        return True

    def handle_connect(self, auth=None):
        logger.info(f"Client connected: {request.sid}")

    def handle_create_game(self, game_mode=None, custom_config=None, name=None):
        sid = request.sid

        try:
            config = get_game_config(game_mode, custom_config)
        except InvalidGameConfig as error:
            logger.info(f"Rejected game config from {sid}: {error.message}")
            self.emit('createError', error.message, to=sid)
            return

        self.leave_current_room(sid)
        player = Player(id=sid, name=player_name(name, 'Player 1'))
        room = self.registry.create_room(config, player)
        with self.registry.room_lock(room.id):
            if self.drop_if_disconnected(room.id, sid):
                return
            join_room(room.id)
            self.emit('gameCreated', *room_snapshot(room), to=sid)
            self.emit('playerJoined', serialize_player(player), to=room.id)
            self.emit('roomUpdate', serialize_players(room.players), to=room.id)

    def handle_join_game(self, room_id=None, name=None):
        sid = request.sid
        room_id = normalize_room_id(room_id)

        current = self.registry.find_room_for_player(sid)
        if current is not None and current.id != room_id:
            self.leave_current_room(sid)

        player = Player(id=sid, name=player_name(name, 'Player 2'))
        with self.registry.room_lock(room_id):
            try:
                room = self.registry.add_player(room_id, player)
            except (RoomNotFound, RoomFull) as error:
                logger.info(f"Join of room {room_id!r} by {sid} refused: {error.message}")
                self.emit('joinError', error.message, to=sid)
                return

            if self.drop_if_disconnected(room.id, sid):
                return
            join_room(room.id)
            self.emit('gameJoined', *room_snapshot(room), to=sid)
            self.emit('playerJoined', serialize_player(player), to=room.id)
            self.emit('roomUpdate', serialize_players(room.players), to=room.id)

    def handle_player_action(self, room_id=None, action=None, row=None, col=None):
        sid = request.sid
        room_id = normalize_room_id(room_id)

        with self.registry.room_lock(room_id):
            room = self.registry.find_room(room_id)
            if room is None:
                logger.debug(f"Ignoring action from {sid} for missing room {room_id!r}")
                return

            try:
                result = apply_action(room, sid, action, row, col)
            except GameAlreadyOver:
                logger.debug(f"Ignoring action from {sid} in finished room {room_id}")
                return
            except OutOfTurn as error:
                logger.info(f"Out-of-turn action from {sid} in room {room_id}")
                self.emit('turnError', error.message, to=sid)
                return
            except (UnknownAction, InvalidCoordinates) as error:
                logger.info(f"Rejected action from {sid} in room {room_id}: {error.message}")
                self.emit('actionError', error.message, to=sid)
                return

            room = result.room
            self.registry.save_room(room)
            self.emit(
                'boardUpdate',
                serialize_board(room.board),
                serialize_game_state(room.game_state),
                room.current_player_turn_id,
                to=room.id,
            )
            if result.game_ended:
                self.emit('gameOver', room.game_state.game_won, to=room.id)

    def handle_disconnect(self, reason=None):
        sid = request.sid
        logger.info(f"Client disconnected: {sid}")
        self.leave_current_room(sid, disconnecting=True)

    def leave_current_room(self, sid: str, disconnecting: bool = False) -> Optional[Departure]:
        room = self.registry.find_room_for_player(sid)
        if room is None:
            return None

        with self.registry.room_lock(room.id):
            departure = self.registry.remove_player(room.id, sid)
            if not disconnecting:
                leave_room(room.id, sid=sid)
            self.announce_departure(departure)
        return departure

    def announce_departure(self, departure: Departure) -> None:
        room = departure.room
        if departure.room_deleted or room is None:
            return

        self.emit('playerLeft', departure.player_id, to=room.id)
        self.emit('roomUpdate', serialize_players(room.players), to=room.id)
        if departure.new_host_id is not None:
            self.emit('newHost', departure.new_host_id, to=room.id)
        if departure.turn_reassigned:
            self.emit('turnUpdate', room.current_player_turn_id, to=room.id)

    def handle_error(self, error):
        logger.exception(f"Unhandled error in socket handler: {error}")


def create_app(registry: Optional[RoomRegistry] = None,
               settings: Optional[ServerSettings] = None) -> Tuple[Flask, SocketIO]:
    """Build the Flask app and its SocketIO server around a room registry."""
    settings = settings or ServerSettings.from_env()
    if registry is None:
        registry = RoomRegistry(max_players=settings.max_players, id_length=settings.room_id_length)

    app = Flask(__name__)
    CORS(app, origins=settings.cors_origins)
    socketio = SocketIO(app, cors_allowed_origins=settings.cors_allowed_origins, async_mode='threading')

    sessions = GameSessions(socketio, registry)
    sessions.register()
    app.extensions['game_sessions'] = sessions

    @app.route('/api/health', methods=['GET'])
    def health_check():
        """Health check endpoint."""
        return jsonify({
            'status': 'OK',
            'timestamp': datetime.now().isoformat(),
            'rooms': len(registry),
        })

    @app.route('/api/rooms/<room_id>', methods=['GET'])
    def get_room(room_id):
        """Get a room snapshot."""
        try:
            room = registry.get_room(normalize_room_id(room_id))
            return jsonify({'room': serialize_room(room)})
        except RoomNotFound as error:
            return jsonify({'error': error.message}), 404
        except Exception as error:
            logger.error(f"Error getting room {room_id}: {error}")
            return jsonify({'error': 'Failed to get room'}), 500

    return app, socketio


def main():
    """Start the Socket.IO server."""
    settings = ServerSettings.from_env()
    logging.basicConfig(level=settings.log_level)
    registry = RoomRegistry(max_players=settings.max_players, id_length=settings.room_id_length)

    try:
        app, socketio = create_app(registry=registry, settings=settings)
        logger.info(f"Minesweeper room server running on http://{settings.host}:{settings.port}")
        logger.info(f"Rooms hold up to {settings.max_players} players")
        socketio.run(app, host=settings.host, port=settings.port, allow_unsafe_werkzeug=True)
    except Exception as error:
        logger.error(f"Failed to start server: {error}")
        sys.exit(1)
    finally:
        logger.info(f"Shutting down, dropping {len(registry)} rooms")
        registry.clear()


if __name__ == "__main__":
    main()
