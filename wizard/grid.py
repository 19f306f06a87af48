from typing import List, NamedTuple, Optional, Sequence


class Cell(NamedTuple):
    row: int      # index into the hole list
    column: str   # "par", "handicap_index", "notes" or a tee set id


class ScorecardGrid:
    """Keyboard traversal over the scorecard's editable cells.

    Cells are ordered row by row: par, handicap index, one distance column per
    tee set, then notes. Tab/shift-tab move by one position and wrap.
    """

    LEADING_COLUMNS = ("par", "handicap_index")
    TRAILING_COLUMNS = ("notes",)

    def __init__(self, row_count: int, tee_set_ids: Sequence[str] = ()):
        self.columns: List[str] = [
            *self.LEADING_COLUMNS, *tee_set_ids, *self.TRAILING_COLUMNS,
        ]
        self.cells: List[Cell] = [
            Cell(row, column) for row in range(row_count) for column in self.columns
        ]
        self._index = {cell: i for i, cell in enumerate(self.cells)}

    def __len__(self) -> int:
        return len(self.cells)

    def __contains__(self, cell) -> bool:
        return cell in self._index

    def is_distance_column(self, column: str) -> bool:
        return column not in self.LEADING_COLUMNS and column not in self.TRAILING_COLUMNS

    def _step(self, cell: Cell, offset: int) -> Optional[Cell]:
        if not self.cells:
            return None
        position = self._index.get(Cell(*cell))
        if position is None:
            raise KeyError(f"{cell} is not an editable cell")
        return self.cells[(position + offset) % len(self.cells)]

    def next(self, cell: Cell) -> Optional[Cell]:
        return self._step(cell, 1)

    def previous(self, cell: Cell) -> Optional[Cell]:
        return self._step(cell, -1)
