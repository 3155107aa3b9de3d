"""Per-division financials workbooks.

Every division has a spreadsheet named financials-<code>.xlsx in the assets
directory. New divisions get a copy of the template division's workbook
with the layout preserved and the figures zeroed.
"""

from __future__ import annotations

from numbers import Number
from pathlib import Path

from openpyxl import Workbook, load_workbook

from divisions.domain.value_objects import DivisionCode
from divisions.ports.exceptions import WorkbookTemplateError


class OpenpyxlWorkbookStore:
    """Financials workbooks on the local filesystem, edited with openpyxl."""

    def __init__(self, assets_dir: Path, template_workbook: str):
        self._assets_dir = Path(assets_dir)
        self._template_path = self._assets_dir / template_workbook

    @property
    def template_path(self) -> Path:
        return self._template_path

    def file_name_for(self, code: DivisionCode) -> str:
        return f"financials-{code.prefix}.xlsx"

    def path_for(self, code: DivisionCode) -> Path:
        return self._assets_dir / self.file_name_for(code)

    def exists(self, code: DivisionCode) -> bool:
        return self.path_for(code).is_file()

    def create_for_division(self, code: DivisionCode, name: str) -> Path:
        """Clone the template workbook's first sheet for a new division.

        The header row is copied unchanged. In later rows the first column
        (row labels) is kept, numbers are reset to 0 and text is kept. Column
        widths, row heights and merged ranges are carried over, and the sheet
        is renamed to the division code.

        Raises:
            WorkbookTemplateError: If the template is missing or empty
        """
        if not self._template_path.is_file():
            raise WorkbookTemplateError(
                f"Template workbook not found at: {self._template_path}"
            )

        source_book = load_workbook(self._template_path)
        source = source_book.worksheets[0]
        if source.max_row < 1 or (
            source.max_row == 1 and source.max_column == 1 and source["A1"].value is None
        ):
            raise WorkbookTemplateError("Template workbook is empty")

        target_book = Workbook()
        target = target_book.active
        target.title = code.value
        target_book.properties.title = name

        for row_index, row in enumerate(source.iter_rows(values_only=True), start=1):
            for column_index, value in enumerate(row, start=1):
                if row_index > 1 and column_index > 1:
                    value = _blank_figure(value)
                if value is not None:
                    target.cell(row=row_index, column=column_index, value=value)

        for key, dimension in source.column_dimensions.items():
            if dimension.width:
                target.column_dimensions[key].width = dimension.width
        for key, dimension in source.row_dimensions.items():
            if dimension.height:
                target.row_dimensions[key].height = dimension.height
        for merged in source.merged_cells.ranges:
            target.merge_cells(str(merged))

        destination = self.path_for(code)
        destination.parent.mkdir(parents=True, exist_ok=True)
        target_book.save(destination)
        return destination

    def delete_for_division(self, code: DivisionCode) -> bool:
        """Remove the division's workbook; False if there was none."""
        try:
            self.path_for(code).unlink()
        except FileNotFoundError:
            return False
        return True


def _blank_figure(value: object) -> object:
    if isinstance(value, bool):
        return value
    if isinstance(value, Number):
        return 0
    if value == "":
        return None
    return value
