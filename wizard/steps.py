"""The three wizard steps.

Each step edits one slice of the course form and keeps its own local-only
state (dialog open, row pending delete, cell being edited). Nothing here
touches the store; the container persists a step when the user advances.
"""

import logging
from pydantic import ValidationError
from typing import Any, Dict, List, Mapping, NamedTuple, Optional, Sequence

from models import Hole, TeeSet
from models.hole import MAX_HOLE_DISTANCE, default_holes
from wizard.form_data import CourseFormData, FormValidationError, merge_extracted
from wizard.grid import Cell, ScorecardGrid

logger = logging.getLogger(__name__)

PAR_RANGE = (3, 6)


def _first_error(e: ValidationError):
    err = e.errors()[0]
    field = str(err["loc"][0]) if err.get("loc") else "form"
    return field, err["msg"]


class CourseInfoStep:
    """Step 0: basic course information."""

    title = "Basic Course Information"

    def __init__(self, form: Optional[CourseFormData] = None):
        self.form = form or CourseFormData()
        self.errors: Dict[str, str] = {}

    def update(self, **fields) -> None:
        """Apply user edits. Invalid values raise FormValidationError and leave the form as it was."""
        try:
            self.form = CourseFormData.model_validate({**self.form.model_dump(), **fields})
        except ValidationError as e:
            field, message = _first_error(e)
            self.errors[field] = message
            raise FormValidationError(field, message) from e
        for key in fields:
            self.errors.pop(key, None)

    def validate(self) -> None:
        self.errors.clear()
        try:
            self.form.validate_required()
        except FormValidationError as e:
            self.errors[e.field] = e.message
            raise

    def apply_extraction(self, payload: Mapping[str, Any]) -> CourseFormData:
        self.form = merge_extracted(self.form, payload)
        return self.form


class TeeBoxesStep:
    """Step 1: the course's tee sets, edited through an add/edit dialog."""

    title = "Tee Boxes & Holes"

    def __init__(self, tee_sets: Optional[List[TeeSet]] = None):
        self.tee_sets: List[TeeSet] = list(tee_sets or [])
        self.dialog_open = False
        self.editing_id: Optional[str] = None
        self.pending_delete_id: Optional[str] = None

    def _find(self, tee_id: str) -> TeeSet:
        for tee in self.tee_sets:
            if tee.id == tee_id:
                return tee
        raise KeyError(f"Tee set {tee_id} not found")

    def open_add_dialog(self) -> None:
        self.editing_id = None
        self.dialog_open = True

    def open_edit_dialog(self, tee_id: str) -> TeeSet:
        tee = self._find(tee_id)
        self.editing_id = tee_id
        self.dialog_open = True
        return tee

    def close_dialog(self) -> None:
        self.dialog_open = False
        self.editing_id = None

    def save_dialog(self, values: Mapping[str, Any]) -> TeeSet:
        """Add a tee set, or update the one being edited, from dialog values."""
        data = dict(values)
        if not data.get("name") and data.get("color"):
            data["name"] = data["color"]
        try:
            if self.editing_id:
                current = self._find(self.editing_id)
                tee = TeeSet.model_validate({**current.model_dump(), **data, "id": current.id})
                self.tee_sets = [tee if t.id == tee.id else t for t in self.tee_sets]
            else:
                data.pop("id", None)
                tee = TeeSet.model_validate(data)
                self.tee_sets = [*self.tee_sets, tee]
        except ValidationError as e:
            raise FormValidationError(*_first_error(e)) from e
        self.close_dialog()
        return tee

    def request_delete(self, tee_id: str) -> None:
        self._find(tee_id)
        self.pending_delete_id = tee_id

    def confirm_delete(self) -> None:
        if self.pending_delete_id is None:
            return
        self.tee_sets = [t for t in self.tee_sets if t.id != self.pending_delete_id]
        self.pending_delete_id = None

    def cancel_delete(self) -> None:
        self.pending_delete_id = None

    def replace_from_extraction(self, extracted: Sequence[Mapping[str, Any]]) -> List[TeeSet]:
        """Replace the whole list with extracted tee sets (fresh ids)."""
        tee_sets = []
        for raw in extracted:
            name = raw.get("name") or raw.get("color")
            if not name:
                continue
            try:
                tee_sets.append(TeeSet(
                    name=name,
                    color=raw.get("color"),
                    rating=raw.get("rating"),
                    slope=round(raw["slope"]) if raw.get("slope") is not None else None,
                ))
            except ValidationError as e:
                logger.warning("Skipping extracted tee set %r: %s", name, e.errors()[0]["msg"])
        self.tee_sets = tee_sets
        return tee_sets


class ScorecardTotals(NamedTuple):
    par: int
    out_par: Optional[int]
    in_par: Optional[int]
    distances: Dict[str, int]  # {tee_set_id: total yards}


class ScorecardStep:
    """Step 2: inline-editable grid of holes x (par, handicap, distances, notes)."""

    title = "Scorecard Data"

    def __init__(self, tee_boxes: TeeBoxesStep, holes: Optional[List[Hole]] = None):
        self._tee_boxes = tee_boxes
        self.holes: List[Hole] = list(holes or [])
        self.editing: Optional[Cell] = None
        self.edit_value: str = ""
        self.unsaved_changes = False

    @property
    def tee_sets(self) -> List[TeeSet]:
        return self._tee_boxes.tee_sets

    @property
    def grid(self) -> ScorecardGrid:
        return ScorecardGrid(len(self.holes), [t.id for t in self.tee_sets])

    def seed(self, count: int) -> None:
        """Blank rows 1..count (par 4, handicap index = hole number) when there are none."""
        if self.holes:
            return
        self.holes = [h.model_copy(update={"handicap_index": h.number})
                      for h in default_holes(count)]
        self.unsaved_changes = True

    # --- cell editing ---

    def _value(self, cell: Cell) -> str:
        hole = self.holes[cell.row]
        if cell.column == "notes":
            return hole.notes or ""
        if cell.column in ScorecardGrid.LEADING_COLUMNS:
            value = getattr(hole, cell.column)
            return "" if value is None else str(value)
        return str(hole.distances.get(cell.column, 0))

    def begin_edit(self, cell) -> None:
        cell = Cell(*cell)
        if cell not in self.grid:
            raise KeyError(f"{cell} is not an editable cell")
        if self.editing is not None:
            self.commit()
        self.editing = cell
        self.edit_value = self._value(cell)

    def input(self, value: str) -> None:
        if self.editing is None:
            raise RuntimeError("No cell is being edited")
        self.edit_value = value

    def _parse(self, cell: Cell, text: str):
        text = text.strip()
        if cell.column == "notes":
            return text or None
        if text == "":
            if cell.column == "par":
                return 4
            if cell.column == "handicap_index":
                return cell.row + 1
            return 0
        number = int(float(text))
        if cell.column == "par":
            return max(PAR_RANGE[0], min(PAR_RANGE[1], number))
        if cell.column == "handicap_index":
            return max(1, min(max(len(self.holes), 18), number))
        return max(0, min(MAX_HOLE_DISTANCE, number))

    def commit(self) -> bool:
        """Store the edit value (blur / Enter). Returns True when the hole changed."""
        cell, text = self.editing, self.edit_value
        self.editing, self.edit_value = None, ""
        if cell is None:
            return False
        try:
            value = self._parse(cell, text)
        except (ValueError, OverflowError):
            return False

        hole = self.holes[cell.row]
        if cell.column in ("par", "handicap_index", "notes"):
            if getattr(hole, cell.column) == value:
                return False
            setattr(hole, cell.column, value)
        else:
            if hole.distances.get(cell.column) == value:
                return False
            hole.distances = {**hole.distances, cell.column: value}
        self.unsaved_changes = True
        return True

    def cancel(self) -> None:
        """Discard the edit value (Escape)."""
        self.editing, self.edit_value = None, ""

    def _move(self, forward: bool) -> Optional[Cell]:
        current = self.editing
        if current is None:
            return None
        self.commit()
        grid = self.grid
        target = grid.next(current) if forward else grid.previous(current)
        if target is not None:
            self.begin_edit(target)
        return target

    def tab(self) -> Optional[Cell]:
        return self._move(True)

    def shift_tab(self) -> Optional[Cell]:
        return self._move(False)

    # --- derived values ---

    def totals(self) -> ScorecardTotals:
        par = sum(h.par or 0 for h in self.holes)
        out_par = in_par = None
        if len(self.holes) == 18:
            out_par = sum(h.par or 0 for h in self.holes if h.number <= 9)
            in_par = sum(h.par or 0 for h in self.holes if h.number > 9)
        distances = {
            t.id: sum(h.distances.get(t.id, 0) for h in self.holes)
            for t in self.tee_sets
        }
        return ScorecardTotals(par, out_par, in_par, distances)

    def generate_handicap_indexes(self) -> None:
        """Rank holes by difficulty (par plus first-tee length / 100), hardest = 1."""
        first_tee = self.tee_sets[0].id if self.tee_sets else None

        def difficulty(hole: Hole) -> float:
            length = hole.distances.get(first_tee, 0) if first_tee else 0
            return (hole.par or 0) + length / 100

        ranked = sorted(self.holes, key=difficulty, reverse=True)
        for index, hole in enumerate(ranked, start=1):
            hole.handicap_index = index
        self.unsaved_changes = True

    def apply_extraction(self, extracted: Sequence[Mapping[str, Any]]) -> List[Hole]:
        """Merge extracted holes into the grid by hole number.

        Distances are matched to tee sets by color or name (case-insensitive);
        values that are missing or invalid keep the current cell value.
        """
        by_number = {h.number: h for h in self.holes}
        for index, raw in enumerate(extracted):
            number = raw.get("number")
            if not isinstance(number, int) or not 1 <= number <= 36:
                continue
            hole = by_number.get(number) or Hole(number=number, handicap_index=index + 1)
            rejected = hole.update_fields({
                "par": raw.get("par") or hole.par,
                "handicap_index": raw.get("handicapIndex") or hole.handicap_index,
            })
            if rejected:
                logger.warning("Hole %d: ignored extracted %s", number, rejected)
            distances = dict(hole.distances)
            for key, yards in (raw.get("distances") or {}).items():
                if not yards:
                    continue
                tee = next((t for t in self.tee_sets if t.matches(key)), None)
                if tee is not None:
                    distances[tee.id] = max(0, min(MAX_HOLE_DISTANCE, int(yards)))
            hole.distances = distances
            by_number[number] = hole

        self.holes = sorted(by_number.values(), key=lambda h: h.number)
        self.unsaved_changes = True
        return self.holes
