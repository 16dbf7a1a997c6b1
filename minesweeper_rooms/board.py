"""Board engine: pure functions that return new boards and never mutate their input."""
import copy
import random
from typing import Iterable, List, Optional, Tuple

from minesweeper_rooms.types import Cell, FlagResult, GameBoard, GameConfig

NEIGHBOR_OFFSETS = [(dr, dc) for dr in (-1, 0, 1) for dc in (-1, 0, 1) if (dr, dc) != (0, 0)]


def in_bounds(board: GameBoard, row: int, col: int) -> bool:
    """Whether (row, col) lies on the board."""
    return 0 <= row < board.rows and 0 <= col < board.cols


def neighbors(board: GameBoard, row: int, col: int) -> List[Tuple[int, int]]:
    """Coordinates of the up to 8 cells around (row, col)."""
    return [
        (row + dr, col + dc)
        for dr, dc in NEIGHBOR_OFFSETS
        if in_bounds(board, row + dr, col + dc)
    ]


def count_neighbor_bombs(board: GameBoard, row: int, col: int) -> int:
    """Count the number of bombs in neighboring cells."""
    return sum(1 for r, c in neighbors(board, row, col) if board.cells[r][c].is_bomb)


def create_board(config: GameConfig, rng: Optional[random.Random] = None,
                 bomb_positions: Optional[Iterable[Tuple[int, int]]] = None) -> GameBoard:
    """Create a new board with bombs placed at random.

    Bombs are drawn without replacement from the pool of all cell indices, so
    exactly ``config.bombs`` distinct cells are mined even on nearly full
    boards. ``bomb_positions`` overrides the random placement.
    """
    rows, cols = config.rows, config.cols
    cells: List[List[Cell]] = [
        [Cell(row=row, col=col) for col in range(cols)]
        for row in range(rows)
    ]
    board = GameBoard(cells=cells, rows=rows, cols=cols, bombs=config.bombs)

    if bomb_positions is not None:
        positions = set(bomb_positions)
        for row, col in positions:
            if not in_bounds(board, row, col):
                raise ValueError(f"Bomb position ({row}, {col}) is off the board")
            cells[row][col].is_bomb = True
        board.bombs = len(positions)
    else:
        rng = rng or random.Random()
        available = list(range(rows * cols))
        for _ in range(min(config.bombs, len(available))):
            index = available.pop(rng.randrange(len(available)))
            cells[index // cols][index % cols].is_bomb = True

    for row in range(rows):
        for col in range(cols):
            if not cells[row][col].is_bomb:
                cells[row][col].neighbor_bombs = count_neighbor_bombs(board, row, col)

    return board


def reveal_cell(board: GameBoard, row: int, col: int) -> GameBoard:
    """Reveal a cell, flood-filling outward from cells with no bomb neighbors.

    Off-board coordinates and cells that are already revealed or flagged
    leave the board untouched. A bomb is revealed on its own; detecting the
    hit is up to the caller.
    """
    if not in_bounds(board, row, col):
        return board

    cell = board.cells[row][col]
    if cell.is_revealed or cell.is_flagged:
        return board

    new_board = copy.deepcopy(board)
    new_cell = new_board.cells[row][col]
    new_cell.is_revealed = True

    if new_cell.is_bomb or new_cell.neighbor_bombs > 0:
        return new_board

    stack = [(row, col)]
    visited = set()
    while stack:
        r, c = stack.pop()
        if (r, c) in visited:
            continue
        visited.add((r, c))

        current = new_board.cells[r][c]
        if current.is_flagged:
            continue
        current.is_revealed = True

        if current.neighbor_bombs == 0:
            for nr, nc in neighbors(new_board, r, c):
                neighbor = new_board.cells[nr][nc]
                if not neighbor.is_revealed and not neighbor.is_flagged:
                    stack.append((nr, nc))

    return new_board


def reveal_all_bombs(board: GameBoard) -> GameBoard:
    """Reveal every bomb, for display once a bomb has been hit."""
    new_board = copy.deepcopy(board)
    for row in new_board.cells:
        for cell in row:
            if cell.is_bomb:
                cell.is_revealed = True
    return new_board


def toggle_flag(board: GameBoard, row: int, col: int, bombs_left: int) -> FlagResult:
    """Toggle the flag on a hidden cell.

    A new flag is refused once ``bombs_left`` reaches zero, so the counter
    never goes negative. Removing a flag is always allowed.
    """
    if not in_bounds(board, row, col):
        return FlagResult(board=board, bombs_left=bombs_left)

    cell = board.cells[row][col]
    if cell.is_revealed:
        return FlagResult(board=board, bombs_left=bombs_left)
    if not cell.is_flagged and bombs_left <= 0:
        return FlagResult(board=board, bombs_left=bombs_left)

    new_board = copy.deepcopy(board)
    new_cell = new_board.cells[row][col]
    new_cell.is_flagged = not new_cell.is_flagged

    return FlagResult(
        board=new_board,
        bombs_left=bombs_left - 1 if new_cell.is_flagged else bombs_left + 1,
    )


def check_win_condition(board: GameBoard) -> bool:
    """True once every non-bomb cell has been revealed."""
    return all(
        cell.is_revealed
        for row in board.cells
        for cell in row
        if not cell.is_bomb
    )


def count_flags_around(board: GameBoard, row: int, col: int) -> int:
    """Number of flagged cells around (row, col)."""
    return sum(1 for r, c in neighbors(board, row, col) if board.cells[r][c].is_flagged)
