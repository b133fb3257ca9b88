"""Input parsing for observed barcode/variant tables."""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

import pandas as pd
from Bio.Seq import Seq

from .error_handler import InputSchemaError
from .models import (
    AA_SEQUENCE,
    BARCODE,
    DEGENERACY,
    DNA_CLASS,
    DNA_SEQUENCE,
    FULL_ID,
    OBSERVED_COLUMNS,
    PHASE,
    PROTEIN_ID,
)

logger = logging.getLogger(__name__)

# Header spellings found in sequencing exports
COLUMN_ALIASES = {
    'bc': BARCODE,
    'barcode': BARCODE,
    'ntseq': DNA_SEQUENCE,
    'nt_seq': DNA_SEQUENCE,
    'dna': DNA_SEQUENCE,
    'dna_seq': DNA_SEQUENCE,
    'dna_sequence': DNA_SEQUENCE,
    'aaseq': AA_SEQUENCE,
    'aa_seq': AA_SEQUENCE,
    'aa_sequence': AA_SEQUENCE,
    'full_id': FULL_ID,
    'fullid': FULL_ID,
    'id': FULL_ID,
    'protein_id': PROTEIN_ID,
    'protein': PROTEIN_ID,
    'parent': PROTEIN_ID,
    'phase': PHASE,
    'degeneracy': DEGENERACY,
    'class': DNA_CLASS,
    'dna_class': DNA_CLASS,
}

REQUIRED_COLUMNS = [BARCODE, PROTEIN_ID, DNA_CLASS]


def translate_insert(dna_sequence: Optional[str]) -> str:
    """Translate an observed insert, keeping stop markers and dropping a partial codon."""
    if not dna_sequence or not isinstance(dna_sequence, str):
        return ""
    usable = len(dna_sequence) - len(dna_sequence) % 3
    return str(Seq(dna_sequence[:usable].upper()).translate(to_stop=False))


class InputParser:
    """Parser for observed barcode/variant tables in various file formats."""

    # Common encodings to try
    ENCODINGS = ['utf-8', 'utf-8-sig', 'latin-1', 'cp1252', 'iso-8859-1']

    # Common delimiters
    DELIMITERS = [',', '\t', ';', '|']

    def __init__(self):
        """Initialize the parser."""
        self.last_format = None
        self.last_encoding = None
        self.last_delimiter = None

    def parse_file(self, file_path: Union[str, Path],
                   encoding: Optional[str] = None,
                   delimiter: Optional[str] = None) -> pd.DataFrame:
        """
        Parse a file of observed records into the working table layout.

        Args:
            file_path: Path to input file
            encoding: File encoding (auto-detected if None)
            delimiter: Delimiter for CSV files (auto-detected if None)

        Returns:
            DataFrame with the observed record columns

        Raises:
            InputSchemaError: If required columns are missing
            FileNotFoundError: If file doesn't exist
        """
        path = Path(file_path)

        if not path.exists():
            raise FileNotFoundError(f"Input file not found: {file_path}")

        suffix = path.suffix.lower()

        if suffix in ['.xlsx', '.xls']:
            table = self._parse_excel_file(path)
        elif suffix == '.json':
            table = self._parse_json_file(path, encoding)
        else:
            table = self._parse_csv_file(path, encoding, delimiter)

        records = self.normalize(table, source=str(path))
        logger.info(f"Read {len(records)} observed records from {path} (format: {self.last_format})")
        return records

    def normalize(self, table: pd.DataFrame, source: str = "input") -> pd.DataFrame:
        """Rename known column aliases, check required columns and fill optional ones."""
        renamed = {}
        for column in table.columns:
            key = str(column).strip().lower()
            if key in COLUMN_ALIASES and COLUMN_ALIASES[key] not in renamed.values():
                renamed[column] = COLUMN_ALIASES[key]
        table = table.rename(columns=renamed)

        missing = [c for c in REQUIRED_COLUMNS if c not in table.columns]
        if AA_SEQUENCE not in table.columns and DNA_SEQUENCE not in table.columns:
            missing.append(AA_SEQUENCE)
        if missing:
            raise InputSchemaError(source, missing)

        if AA_SEQUENCE not in table.columns:
            logger.debug(f"No amino-acid column in {source}; translating {DNA_SEQUENCE}")
            table = table.assign(**{AA_SEQUENCE: table[DNA_SEQUENCE].map(translate_insert)})
        if DNA_SEQUENCE not in table.columns:
            table = table.assign(**{DNA_SEQUENCE: ""})
        if PHASE not in table.columns:
            table = table.assign(**{PHASE: None})
        if FULL_ID not in table.columns:
            phase = table[PHASE].fillna("").astype(str)
            full_id = table[PROTEIN_ID].astype(str).where(phase == "", table[PROTEIN_ID].astype(str) + "_" + phase)
            table = table.assign(**{FULL_ID: full_id})

        degeneracy = table[DEGENERACY] if DEGENERACY in table.columns else pd.Series(None, index=table.index)
        table = table.assign(**{
            DEGENERACY: pd.to_numeric(degeneracy, errors='coerce').astype('Int64'),
            AA_SEQUENCE: table[AA_SEQUENCE].fillna("").astype(str).str.strip().str.upper(),
            DNA_CLASS: table[DNA_CLASS].astype(str).str.strip(),
        })

        extra = [c for c in table.columns if c not in OBSERVED_COLUMNS]
        return table[OBSERVED_COLUMNS + extra].reset_index(drop=True)

    def _parse_csv_file(self, path: Path,
                        encoding: Optional[str] = None,
                        delimiter: Optional[str] = None) -> pd.DataFrame:
        """Parse CSV/TSV file."""
        encoding = encoding or self._detect_encoding(path)
        delimiter = delimiter or self._detect_delimiter(path, encoding)

        table = pd.read_csv(path, sep=delimiter, encoding=encoding, dtype=str, keep_default_na=False)

        self.last_format = 'csv'
        self.last_encoding = encoding
        self.last_delimiter = delimiter
        return table

    def _parse_excel_file(self, path: Path) -> pd.DataFrame:
        """Parse the first sheet of an Excel workbook."""
        table = pd.read_excel(path, sheet_name=0, dtype=str, keep_default_na=False)
        self.last_format = 'excel'
        return table

    def _parse_json_file(self, path: Path, encoding: Optional[str] = None) -> pd.DataFrame:
        """Parse a JSON list of records, or an object with a ``records``/``results`` list."""
        encoding = encoding or self._detect_encoding(path)

        with open(path, 'r', encoding=encoding) as f:
            data = json.load(f)

        if isinstance(data, dict):
            for key in ['records', 'results', 'variants']:
                if key in data and isinstance(data[key], list):
                    data = data[key]
                    break
            else:
                raise ValueError(f"Could not parse JSON input {path}: no record list found")

        self.last_format = 'json'
        self.last_encoding = encoding
        return pd.DataFrame(data)

    def _detect_encoding(self, path: Path) -> str:
        """Detect file encoding."""
        with open(path, 'rb') as f:
            bom = f.read(3)
            if bom == b'\xef\xbb\xbf':  # UTF-8 BOM
                return 'utf-8-sig'

        for encoding in self.ENCODINGS:
            try:
                with open(path, 'r', encoding=encoding) as f:
                    f.read(1024)
                return encoding
            except (UnicodeDecodeError, UnicodeError):
                continue

        return 'utf-8'

    def _detect_delimiter(self, path: Path, encoding: str) -> str:
        """Detect CSV delimiter from the header line."""
        with open(path, 'r', encoding=encoding) as f:
            header = f.readline()

        counts = {delim: header.count(delim) for delim in self.DELIMITERS}

        if max(counts.values()) > 0:
            return max(counts.items(), key=lambda x: x[1])[0]

        return ','

    def get_format_info(self) -> Dict[str, Any]:
        """Get information about the last parsed file."""
        return {
            'format': self.last_format,
            'encoding': self.last_encoding,
            'delimiter': self.last_delimiter
        }
