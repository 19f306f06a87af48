import pytest

from wizard.grid import Cell, ScorecardGrid


def test_columns_follow_tee_sets():
    grid = ScorecardGrid(2, ["blue-id", "white-id"])
    assert grid.columns == ["par", "handicap_index", "blue-id", "white-id", "notes"]
    assert len(grid) == 10
    assert Cell(1, "white-id") in grid
    assert Cell(2, "par") not in grid


def test_tab_moves_to_next_row_after_notes():
    grid = ScorecardGrid(2, ["t"])
    assert grid.next(Cell(0, "par")) == Cell(0, "handicap_index")
    assert grid.next(Cell(0, "notes")) == Cell(1, "par")


def test_tab_wraps_from_last_cell():
    grid = ScorecardGrid(18, ["t"])
    assert grid.next(Cell(17, "notes")) == Cell(0, "par")
    assert grid.previous(Cell(0, "par")) == Cell(17, "notes")


def test_accepts_plain_tuples():
    grid = ScorecardGrid(1, ["t"])
    assert grid.previous((0, "t")) == Cell(0, "handicap_index")


def test_unknown_cell_raises():
    grid = ScorecardGrid(1, ["t"])
    with pytest.raises(KeyError):
        grid.next(Cell(0, "gone"))


def test_empty_grid_has_no_neighbours():
    grid = ScorecardGrid(0, ["t"])
    assert len(grid) == 0
    assert grid.next(Cell(0, "par")) is None


def test_distance_columns():
    grid = ScorecardGrid(1, ["t"])
    assert grid.is_distance_column("t")
    assert not grid.is_distance_column("par")
    assert not grid.is_distance_column("notes")
