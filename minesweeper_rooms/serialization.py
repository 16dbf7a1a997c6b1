"""Convert room state to the JSON shapes clients expect."""
from typing import Any, Dict, List

from minesweeper_rooms.types import Cell, GameBoard, GameConfig, GameState, Player, Room


def serialize_cell(cell: Cell) -> Dict[str, Any]:
    """Cell as sent to clients, with its derived "row-col" id."""
    return {
        'id': f'{cell.row}-{cell.col}',
        'row': cell.row,
        'col': cell.col,
        'isBomb': cell.is_bomb,
        'isRevealed': cell.is_revealed,
        'isFlagged': cell.is_flagged,
        'neighborBombs': cell.neighbor_bombs,
    }


def serialize_board(board: GameBoard) -> List[List[Dict[str, Any]]]:
    """Board as a list of rows of cell dictionaries."""
    return [[serialize_cell(cell) for cell in row] for row in board.cells]


def serialize_game_state(game_state: GameState) -> Dict[str, Any]:
    """Game summary as sent to clients."""
    return {
        'gameOver': game_state.game_over,
        'gameWon': game_state.game_won,
        'bombsLeft': game_state.bombs_left,
        'moves': game_state.moves,
    }


def serialize_game_config(config: GameConfig) -> Dict[str, Any]:
    """Board dimensions and bomb count."""
    return {'rows': config.rows, 'cols': config.cols, 'bombs': config.bombs}


def serialize_player(player: Player) -> Dict[str, Any]:
    """Player as sent to clients."""
    return {'id': player.id, 'name': player.name}


def serialize_players(players: Dict[str, Player]) -> Dict[str, Dict[str, Any]]:
    """Roster keyed by connection id, in join order."""
    return {pid: serialize_player(p) for pid, p in players.items()}


def serialize_room(room: Room) -> Dict[str, Any]:
    """Full room snapshot, used by the HTTP API."""
    return {
        'id': room.id,
        'players': serialize_players(room.players),
        'board': serialize_board(room.board),
        'gameConfig': serialize_game_config(room.game_config),
        'gameState': serialize_game_state(room.game_state),
        'hostId': room.host_id,
        'currentPlayerTurnId': room.current_player_turn_id,
    }
