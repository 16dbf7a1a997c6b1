import pytest

from minesweeper_rooms.board import create_board
from minesweeper_rooms.registry import RoomRegistry
from minesweeper_rooms.server import create_app
from minesweeper_rooms.settings import ServerSettings
from minesweeper_rooms.types import GameConfig, GameState, Player, Room

# 3x3 board with one bomb in the bottom-right corner:
#   0 0 0
#   0 1 1
#   0 1 B
CORNER_BOMB = [(2, 2)]
SMALL_CUSTOM = {'rows': 3, 'cols': 3, 'bombs': 1}


def corner_bomb_board(config):
    return create_board(config, bomb_positions=CORNER_BOMB)


def make_room(board, players=('A', 'B'), turn='A', host='A'):
    return Room(
        id='ROOM01',
        players={pid: Player(id=pid, name=f'name-{pid}') for pid in players},
        board=board,
        game_config=GameConfig(rows=board.rows, cols=board.cols, bombs=board.bombs),
        game_state=GameState(bombs_left=board.bombs),
        host_id=host,
        current_player_turn_id=turn,
    )


def received(client):
    """Group the events a test client has received by name."""
    events = {}
    for packet in client.get_received():
        events.setdefault(packet['name'], []).append(packet['args'])
    return events


@pytest.fixture
def registry():
    return RoomRegistry(max_players=2, board_factory=corner_bomb_board)


@pytest.fixture
def server(registry):
    app, socketio = create_app(registry=registry, settings=ServerSettings())
    return app, socketio


@pytest.fixture
def connect(server):
    app, socketio = server
    clients = []

    def _connect():
        client = socketio.test_client(app)
        clients.append(client)
        return client

    yield _connect
    for client in clients:
        if client.is_connected():
            client.disconnect()
