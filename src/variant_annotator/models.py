"""Data models for the variant annotator."""

from dataclasses import dataclass, asdict, fields
from enum import Enum
from typing import Iterable, List, Optional, Union

import pandas as pd

# Barcode placed on reference design rows; never present in final output.
REFERENCE_BARCODE = "not_applicable"

STOP_MARKER = "*"

# Working table columns
BARCODE = "barcode"
DNA_SEQUENCE = "dna_sequence"
FULL_ID = "full_id"
PROTEIN_ID = "protein_id"
PHASE = "phase"
DEGENERACY = "degeneracy"
DNA_CLASS = "dna_class"
AA_SEQUENCE = "aa_sequence"
AA_LENGTH = "aa_length"
CONTAINS_STOP = "contains_stop"
STOP_IN_WINDOW = "stop_in_terminal_window"
AA_CLASS = "aa_class"
AA_PHASE = "aa_phase"
MUTATION_TYPE = "mutation_type"

OBSERVED_COLUMNS = [
    BARCODE, DNA_SEQUENCE, FULL_ID, PROTEIN_ID, PHASE,
    DEGENERACY, DNA_CLASS, AA_SEQUENCE,
]
DERIVED_COLUMNS = [AA_LENGTH, CONTAINS_STOP, STOP_IN_WINDOW]
ANNOTATION_COLUMNS = [AA_CLASS, AA_PHASE, MUTATION_TYPE]


class DnaClass(str, Enum):
    """DNA-level match of an observed sequence to its design."""

    PERFECT = "perfect"
    MUTANT_PHASE = "mutant_phase"
    MUTANT_NOPHASE = "mutant_nophase"


class MutationType(str, Enum):
    """Protein-level difference between a variant and its reference design."""

    NONE = "None"
    DNA = "DNA"
    MISSENSE = "Missense"
    INSERTION = "Insertion"
    DELETION = "Deletion"
    NONSENSE = "Nonsense"
    UNKNOWN = "Unknown"


# Class priority used when collapsing a sequence group, highest first
CLASS_PRIORITY = [DnaClass.PERFECT.value, DnaClass.MUTANT_PHASE.value, DnaClass.MUTANT_NOPHASE.value]


def _class_value(value: Union[DnaClass, str, None]) -> Optional[str]:
    if isinstance(value, Enum):
        return value.value
    return value


@dataclass
class VariantRecord:
    """One (barcode, observed sequence) pairing from the sequencing data."""

    barcode: str
    dna_sequence: str
    full_id: str
    protein_id: str
    phase: Optional[str] = None
    degeneracy: Optional[int] = None
    dna_class: Union[DnaClass, str] = DnaClass.PERFECT
    aa_sequence: str = ""
    aa_length: Optional[int] = None
    contains_stop: Optional[bool] = None
    stop_in_terminal_window: Optional[bool] = None

    @property
    def is_reference(self) -> bool:
        """Whether this row only carries reference design context."""
        return self.barcode == REFERENCE_BARCODE

    def to_dict(self) -> dict:
        data = asdict(self)
        data[DNA_CLASS] = _class_value(self.dna_class)
        return data


@dataclass
class ReferenceDesign:
    """Canonical as-designed protein for a protein/phase combination."""

    full_id: str
    protein_id: str
    aa_sequence: str
    phase: Optional[str] = None
    degeneracy: Optional[int] = None
    dna_sequence: str = ""

    def to_variant_record(self) -> VariantRecord:
        """Tag the design as a perfect, barcode-less working row."""
        return VariantRecord(
            barcode=REFERENCE_BARCODE,
            dna_sequence=self.dna_sequence,
            full_id=self.full_id,
            protein_id=self.protein_id,
            phase=self.phase,
            degeneracy=self.degeneracy,
            dna_class=DnaClass.PERFECT,
            aa_sequence=self.aa_sequence,
        )


@dataclass
class AnnotatedVariant(VariantRecord):
    """Variant record with amino-acid level class, phase and mutation type."""

    aa_class: Optional[str] = None
    aa_phase: Optional[str] = None
    mutation_type: Union[MutationType, str] = MutationType.UNKNOWN

    def to_dict(self) -> dict:
        data = super().to_dict()
        if isinstance(self.mutation_type, Enum):
            data[MUTATION_TYPE] = self.mutation_type.value
        return data


def records_to_frame(records: Iterable[Union[VariantRecord, ReferenceDesign]]) -> pd.DataFrame:
    """Build the working table from typed records."""
    rows = []
    for record in records:
        if isinstance(record, ReferenceDesign):
            record = record.to_variant_record()
        rows.append(record.to_dict())

    columns = [f.name for f in fields(VariantRecord)]
    return pd.DataFrame(rows, columns=columns)


def _none_if_missing(value):
    if value is None:
        return None
    try:
        if pd.isna(value):
            return None
    except (TypeError, ValueError):
        pass
    return value


def frame_to_annotated(frame: pd.DataFrame) -> List[AnnotatedVariant]:
    """Convert an annotated working table back into typed records."""
    names = [f.name for f in fields(AnnotatedVariant)]
    variants = []
    for row in frame.to_dict(orient="records"):
        values = {name: _none_if_missing(row.get(name)) for name in names}

        mutation = values[MUTATION_TYPE]
        values[MUTATION_TYPE] = MutationType(mutation) if mutation is not None else MutationType.UNKNOWN
        dna_class = values[DNA_CLASS]
        if dna_class in {c.value for c in DnaClass}:
            values[DNA_CLASS] = DnaClass(dna_class)
        for int_field in (DEGENERACY, AA_LENGTH):
            if values[int_field] is not None:
                values[int_field] = int(values[int_field])
        for bool_field in (CONTAINS_STOP, STOP_IN_WINDOW):
            if values[bool_field] is not None:
                values[bool_field] = bool(values[bool_field])

        variants.append(AnnotatedVariant(**values))
    return variants
