import pytest

from conftest import CORNER_BOMB, make_room
from minesweeper_rooms.board import create_board
from minesweeper_rooms.errors import GameAlreadyOver, InvalidCoordinates, OutOfTurn, UnknownAction
from minesweeper_rooms.turns import apply_action, next_player_id, room_status
from minesweeper_rooms.types import GameConfig, RoomStatus


@pytest.fixture
def room():
    board = create_board(GameConfig(rows=3, cols=3, bombs=1), bomb_positions=CORNER_BOMB)
    return make_room(board)


def test_next_player_id_round_robin():
    assert next_player_id(['A', 'B'], 'A') == 'B'
    assert next_player_id(['A', 'B'], 'B') == 'A'
    assert next_player_id(['A', 'B', 'C'], 'C') == 'A'
    assert next_player_id(['A'], 'A') == 'A'
    assert next_player_id(['A', 'B'], 'Z') == 'A'
    assert next_player_id([], 'A') is None


def test_turn_alternates_between_two_players(room):
    moves = [
        ('A', 'reveal', 1, 1),
        ('B', 'reveal', 1, 2),
        ('A', 'flag', 2, 2),
        ('B', 'flag', 2, 2),
    ]
    turns = []
    for player, action, row, col in moves:
        room = apply_action(room, player, action, row, col).room
        turns.append(room.current_player_turn_id)

    assert turns == ['B', 'A', 'B', 'A']
    assert room.game_state.moves == 4


def test_out_of_turn_action_is_rejected_without_changes(room):
    room = apply_action(room, 'A', 'reveal', 1, 1).room
    assert room.current_player_turn_id == 'B'

    with pytest.raises(OutOfTurn):
        apply_action(room, 'A', 'reveal', 1, 2)
    assert room.game_state.moves == 1
    assert not room.board.cells[1][2].is_revealed


def test_rejected_actions_leave_room_untouched(room):
    with pytest.raises(UnknownAction):
        apply_action(room, 'A', 'chord', 0, 0)
    with pytest.raises(InvalidCoordinates):
        apply_action(room, 'A', 'reveal', 3, 0)
    with pytest.raises(InvalidCoordinates):
        apply_action(room, 'A', 'reveal', '1', 0)
    with pytest.raises(InvalidCoordinates):
        apply_action(room, 'A', 'flag', None, None)

    assert room.game_state.moves == 0
    assert room.current_player_turn_id == 'A'


def test_apply_action_does_not_mutate_input(room):
    result = apply_action(room, 'A', 'reveal', 0, 0)
    assert result.room is not room
    assert room.game_state.moves == 0
    assert not room.board.cells[0][0].is_revealed
    assert result.room.board.cells[0][0].is_revealed


def test_revealing_bomb_ends_game_and_pins_turn(room):
    result = apply_action(room, 'A', 'reveal', 2, 2)
    assert result.game_ended and result.hit_bomb
    state = result.room.game_state
    assert state.game_over and not state.game_won
    assert result.room.current_player_turn_id == 'A'
    assert room_status(result.room) == RoomStatus.ENDED

    with pytest.raises(GameAlreadyOver):
        apply_action(result.room, 'A', 'reveal', 0, 0)


def test_clearing_board_wins(room):
    room = apply_action(room, 'A', 'reveal', 1, 1).room
    result = apply_action(room, 'B', 'reveal', 0, 0)

    assert result.game_ended and not result.hit_bomb
    assert result.room.game_state.game_won
    assert result.room.game_state.game_over
    assert result.room.current_player_turn_id == 'B'


def test_flag_updates_bombs_left_and_counts_as_move(room):
    room = apply_action(room, 'A', 'flag', 2, 2).room
    assert room.game_state.bombs_left == 0
    assert room.board.cells[2][2].is_flagged

    # refused flag still uses the turn
    room = apply_action(room, 'B', 'flag', 0, 0).room
    assert room.game_state.bombs_left == 0
    assert not room.board.cells[0][0].is_flagged
    assert room.game_state.moves == 2
    assert room.current_player_turn_id == 'A'


def test_single_player_keeps_turn():
    board = create_board(GameConfig(rows=3, cols=3, bombs=1), bomb_positions=CORNER_BOMB)
    room = make_room(board, players=('A',))
    room = apply_action(room, 'A', 'reveal', 1, 1).room
    assert room.current_player_turn_id == 'A'
    assert room_status(room) == RoomStatus.WAITING_FOR_ACTION
