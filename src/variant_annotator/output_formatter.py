"""Output formatting for annotated variant tables."""

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional, Union

import openpyxl
import pandas as pd
from openpyxl.styles import Font, PatternFill

from .models import (
    ANNOTATION_COLUMNS,
    DERIVED_COLUMNS,
    MUTATION_TYPE,
    OBSERVED_COLUMNS,
    MutationType,
)

# Font colours per mutation type in Excel output
MUTATION_COLORS = {
    MutationType.NONE.value: "008000",
    MutationType.DNA.value: "006400",
    MutationType.NONSENSE.value: "FF0000",
    MutationType.UNKNOWN.value: "808080",
}


class OutputFormatter:
    """Writes annotated variant tables with an optional audit trail."""

    COLUMNS = OBSERVED_COLUMNS + DERIVED_COLUMNS + ANNOTATION_COLUMNS
    FORMATS = ('tsv', 'csv', 'json', 'excel')

    def __init__(self, include_audit_trail: bool = True):
        """
        Initialize the formatter.

        Args:
            include_audit_trail: Whether to write ``<output>.audit.json``
        """
        self.include_audit_trail = include_audit_trail
        self.start_time = datetime.now()

    def write(self,
              frame: pd.DataFrame,
              output_path: Union[str, Path],
              format: str = 'tsv',
              excel_compatible: bool = True,
              diagnostics: Optional[Dict[str, Any]] = None) -> Path:
        """
        Write the annotated table to file.

        Args:
            frame: Annotated variants
            output_path: Path to output file
            format: Output format ('tsv', 'csv', 'json', 'excel')
            excel_compatible: Use UTF-8 BOM for Excel compatibility
            diagnostics: Run diagnostics for the audit trail

        Returns:
            Path of the written table
        """
        path = Path(output_path)
        table = self._ordered(frame)

        if format == 'tsv':
            encoding = 'utf-8-sig' if excel_compatible else 'utf-8'
            table.to_csv(path, sep='\t', index=False, encoding=encoding)
        elif format == 'csv':
            encoding = 'utf-8-sig' if excel_compatible else 'utf-8'
            table.to_csv(path, index=False, encoding=encoding)
        elif format == 'json':
            self._write_json(table, path)
        elif format == 'excel':
            self._write_excel(table, path, diagnostics)
        else:
            raise ValueError(f"Unsupported format: {format}")

        if self.include_audit_trail:
            self._write_audit_trail(path, table, diagnostics or {})

        return path

    def _ordered(self, frame: pd.DataFrame) -> pd.DataFrame:
        """Known columns first, in a stable order, then anything extra."""
        known = [c for c in self.COLUMNS if c in frame.columns]
        extra = [c for c in frame.columns if c not in self.COLUMNS]
        return frame[known + extra]

    def _write_json(self, table: pd.DataFrame, path: Path) -> None:
        output = {
            'metadata': {
                'generated': datetime.now().isoformat(),
                'total_entries': len(table),
                'columns': list(table.columns)
            },
            'results': json.loads(table.to_json(orient='records'))
        }

        with open(path, 'w', encoding='utf-8') as f:
            json.dump(output, f, indent=2, ensure_ascii=False)

    def _write_excel(self, table: pd.DataFrame, path: Path,
                     diagnostics: Optional[Dict[str, Any]]) -> None:
        """Write Excel file with formatting."""
        wb = openpyxl.Workbook()
        ws = wb.active
        ws.title = "Annotated Variants"

        header_font = Font(bold=True)
        header_fill = PatternFill(start_color="CCCCCC", end_color="CCCCCC", fill_type="solid")
        columns = list(table.columns)

        for col, header in enumerate(columns, 1):
            cell = ws.cell(row=1, column=col, value=header)
            cell.font = header_font
            cell.fill = header_fill

        mutation_col = columns.index(MUTATION_TYPE) + 1 if MUTATION_TYPE in columns else None
        for row, values in enumerate(table.itertuples(index=False, name=None), 2):
            for col, value in enumerate(values, 1):
                if not isinstance(value, str) and pd.isna(value):
                    value = None
                elif hasattr(value, 'item'):
                    value = value.item()
                cell = ws.cell(row=row, column=col, value=value)
                if col == mutation_col and value in MUTATION_COLORS:
                    cell.font = Font(color=MUTATION_COLORS[value])

        for column in ws.columns:
            cells = list(column)
            max_length = max((len(str(c.value)) for c in cells if c.value is not None), default=0)
            ws.column_dimensions[cells[0].column_letter].width = min(max_length + 2, 50)

        if self.include_audit_trail:
            meta_ws = wb.create_sheet("Metadata")
            meta_ws.append(["Generated", datetime.now().isoformat()])
            meta_ws.append(["Total Entries", len(table)])
            for name, count in (diagnostics or {}).get('mutation_types', {}).items():
                meta_ws.append([f"Mutation type: {name}", count])

        wb.save(path)

    def _write_audit_trail(self, output_path: Path, table: pd.DataFrame,
                           diagnostics: Dict[str, Any]) -> None:
        audit_path = output_path.with_suffix('.audit.json')

        audit = {
            'start_time': self.start_time,
            'end_time': datetime.now(),
            'output_file': str(output_path),
            'total_variants': len(table),
            'diagnostics': diagnostics,
        }

        with open(audit_path, 'w', encoding='utf-8') as f:
            json.dump(audit, f, indent=2, default=str)

    def get_statistics(self, frame: pd.DataFrame) -> Dict[str, Any]:
        """Summary statistics for console display."""
        counts = frame[MUTATION_TYPE].value_counts().to_dict() if MUTATION_TYPE in frame.columns else {}
        return {
            'total_variants': len(frame),
            'mutation_types': {str(k): int(v) for k, v in counts.items()},
            'duration': str(datetime.now() - self.start_time)
        }
