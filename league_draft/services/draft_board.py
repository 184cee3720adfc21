"""
Draft board: the round x manager grid of committed selections.

The board is the source of truth for "has this manager picked this round". A cell
holds the player the manager chose plus any siblings that came with them; moves do
not rewrite the board (it records who selected, not who currently rosters).
"""
from __future__ import annotations

from league_draft.models import BoardCell, DraftRound


def init_board(manager_ids: list[str], rounds: int) -> list[DraftRound]:
    """Empty board with rounds 1..rounds, every manager waiting."""
    return [DraftRound(round=r, cells={mid: None for mid in manager_ids}) for r in range(1, rounds + 1)]


def get_round(board: list[DraftRound], round_number: int) -> DraftRound | None:
    if 1 <= round_number <= len(board):
        return board[round_number - 1]
    return None


def ensure_round(board: list[DraftRound], round_number: int, manager_ids: list[str]) -> DraftRound:
    """Return the round, appending empty rounds if the board is too short (removals can outrun the buffer)."""
    while len(board) < round_number:
        board.append(DraftRound(round=len(board) + 1, cells={mid: None for mid in manager_ids}))
    return board[round_number - 1]


def has_picked(board: list[DraftRound], round_number: int, manager_id: str) -> bool:
    row = get_round(board, round_number)
    return row is not None and row.cells.get(manager_id) is not None


def record_cell(board: list[DraftRound], round_number: int, manager_id: str, cell: BoardCell) -> None:
    board[round_number - 1].cells[manager_id] = cell


def is_round_complete(
    board: list[DraftRound],
    round_number: int,
    manager_ids: list[str],
) -> bool:
    """Complete iff every manager has a cell in the round."""
    row = get_round(board, round_number)
    if row is None:
        return False
    return all(row.cells.get(mid) is not None for mid in manager_ids)


def waiting_managers(board: list[DraftRound], round_number: int, manager_ids: list[str]) -> list[str]:
    """Managers with no cell yet in the round, in the order given."""
    row = get_round(board, round_number)
    if row is None:
        return list(manager_ids)
    return [mid for mid in manager_ids if row.cells.get(mid) is None]


def detach_player(board: list[DraftRound], player_id: str) -> tuple[int, str] | None:
    """
    Drop every board reference to player_id. A cell whose chosen player is removed
    becomes empty; a removed sibling is dropped from its cell's sibling list.
    Returns (round, manager_id) of the cell touched, or None.
    """
    for row in board:
        for manager_id, cell in row.cells.items():
            if cell is None:
                continue
            if cell.player_id == player_id:
                row.cells[manager_id] = None
                return (row.round, manager_id)
            if player_id in cell.sibling_ids:
                cell.sibling_ids = [sid for sid in cell.sibling_ids if sid != player_id]
                return (row.round, manager_id)
    return None
