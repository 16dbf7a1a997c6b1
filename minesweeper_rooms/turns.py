"""Turn coordination: who may act, how an action changes a room, who moves next."""
import dataclasses
import logging
from typing import Any, Iterable, Optional, Tuple

from minesweeper_rooms import board as engine
from minesweeper_rooms.errors import GameAlreadyOver, InvalidCoordinates, OutOfTurn, UnknownAction
from minesweeper_rooms.types import ActionResult, GameState, PlayerAction, Room, RoomStatus

logger = logging.getLogger(__name__)


def room_status(room: Room) -> RoomStatus:
    """Whether the room still takes actions or has ended."""
    if room.game_state.game_over or room.game_state.game_won:
        return RoomStatus.ENDED
    return RoomStatus.WAITING_FOR_ACTION


def next_player_id(player_ids: Iterable[str], after_id: Optional[str]) -> Optional[str]:
    """Return the player after ``after_id`` in join order, wrapping around.

    If ``after_id`` is not in the roster the first player is returned; an
    empty roster yields None.
    """
    ids = list(player_ids)
    if not ids:
        return None
    if after_id not in ids:
        return ids[0]
    return ids[(ids.index(after_id) + 1) % len(ids)]


def ensure_turn(room: Room, player_id: str) -> None:
    """Raise OutOfTurn unless the player holds the turn."""
    if player_id != room.current_player_turn_id:
        raise OutOfTurn()


def parse_action(action: Any) -> PlayerAction:
    """Map a wire action name to a PlayerAction."""
    try:
        return PlayerAction(action)
    except ValueError:
        raise UnknownAction(f"Unknown action: {action!r}.")


def parse_coordinates(room: Room, row: Any, col: Any) -> Tuple[int, int]:
    """Check that (row, col) are integers on the room's board."""
    for value in (row, col):
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvalidCoordinates()
    if not engine.in_bounds(room.board, row, col):
        raise InvalidCoordinates(
            f"Cell ({row}, {col}) is outside the {room.board.rows}x{room.board.cols} board."
        )
    return row, col


def apply_action(room: Room, player_id: str, action: Any, row: Any, col: Any) -> ActionResult:
    """Apply one player action and return the resulting room.

    Everything is validated before the board is touched, so a rejected
    action leaves ``room`` exactly as it was. The input room is never
    mutated; the caller stores the returned room.
    """
    if room_status(room) == RoomStatus.ENDED:
        raise GameAlreadyOver()
    ensure_turn(room, player_id)
    player_action = parse_action(action)
    row, col = parse_coordinates(room, row, col)

    state = room.game_state
    new_board = room.board
    bombs_left = state.bombs_left
    hit_bomb = False

    if player_action == PlayerAction.REVEAL:
        was_revealed = room.board.cells[row][col].is_revealed
        new_board = engine.reveal_cell(room.board, row, col)
        target = new_board.cells[row][col]
        if target.is_bomb and target.is_revealed and not was_revealed:
            hit_bomb = True
            new_board = engine.reveal_all_bombs(new_board)
    elif player_action == PlayerAction.FLAG:
        result = engine.toggle_flag(room.board, row, col, bombs_left)
        new_board, bombs_left = result.board, result.bombs_left

    game_won = not hit_bomb and engine.check_win_condition(new_board)
    game_over = hit_bomb or game_won

    new_state = GameState(
        bombs_left=bombs_left,
        game_over=game_over,
        game_won=game_won,
        moves=state.moves + 1,
    )

    if game_over:
        next_turn = player_id
        logger.info(f"Room {room.id} ended on move {new_state.moves}: {'won' if game_won else 'lost'}")
    else:
        next_turn = next_player_id(room.players.keys(), player_id)

    new_room = dataclasses.replace(
        room,
        board=new_board,
        game_state=new_state,
        current_player_turn_id=next_turn,
        players=dict(room.players),
    )
    return ActionResult(room=new_room, game_ended=game_over, hit_bomb=hit_bomb)
