"""Reference design catalog loading.

Designs are read from FASTA or from a CSV/TSV table. FASTA ids follow the
``<protein_id>_<phase>`` convention used by the library design scripts;
``key=value`` tokens in the description line (``protein_id``, ``phase``,
``degeneracy``) take precedence over the id. Nucleotide designs are
translated before use.
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

import pandas as pd
from Bio import SeqIO
from Bio.Seq import Seq

from .config import FilterConfig
from .error_handler import InputSchemaError
from .models import (
    AA_SEQUENCE,
    DEGENERACY,
    DNA_SEQUENCE,
    FULL_ID,
    PHASE,
    PROTEIN_ID,
    ReferenceDesign,
    records_to_frame,
)
from .sequence_filter import annotate_truncations

logger = logging.getLogger(__name__)

INITIATOR = "M"
NUCLEOTIDES = set("ACGTUN")
FASTA_SUFFIXES = {'.fa', '.fasta', '.faa', '.fna', '.fas'}


def split_full_id(full_id: str, separator: str = "_") -> Tuple[str, Optional[str]]:
    """Split ``<protein_id>_<phase>`` into its parts; no separator means no phase."""
    if separator in full_id:
        protein_id, phase = full_id.rsplit(separator, 1)
        return protein_id, phase or None
    return full_id, None


def strip_initiator(aa_sequence: str) -> str:
    """Remove the leading initiator methionine, if present."""
    if aa_sequence.startswith(INITIATOR):
        return aa_sequence[1:]
    return aa_sequence


def looks_like_nucleotides(sequence: str) -> bool:
    return bool(sequence) and set(sequence.upper()) <= NUCLEOTIDES


def translate_design(dna_sequence: str) -> str:
    """Translate a designed coding sequence, keeping stop markers."""
    trimmed = dna_sequence[:len(dna_sequence) - len(dna_sequence) % 3]
    return str(Seq(trimmed).translate(to_stop=False))


def _parse_description(description: str) -> Dict[str, str]:
    tokens = {}
    for token in description.split()[1:]:
        if '=' in token:
            key, value = token.split('=', 1)
            tokens[key.strip().lower()] = value.strip()
    return tokens


def _to_design(full_id: str,
               sequence: str,
               protein_id: Optional[str] = None,
               phase: Optional[str] = None,
               degeneracy: Optional[int] = None,
               molecule: str = "auto") -> ReferenceDesign:
    sequence = sequence.strip().upper()
    is_dna = molecule == "dna" or (molecule == "auto" and looks_like_nucleotides(sequence))

    dna_sequence = sequence if is_dna else ""
    aa_sequence = translate_design(sequence) if is_dna else sequence

    # An explicit protein id means the phase is taken as given
    if protein_id is None:
        protein_id, default_phase = split_full_id(full_id)
        if phase is None:
            phase = default_phase

    return ReferenceDesign(
        full_id=full_id,
        protein_id=protein_id,
        phase=phase,
        degeneracy=degeneracy,
        aa_sequence=strip_initiator(aa_sequence),
        dna_sequence=dna_sequence,
    )


def _fill_degeneracy(designs: List[ReferenceDesign]) -> List[ReferenceDesign]:
    """Set missing degeneracy to the number of phases designed per protein."""
    phases: Dict[str, set] = {}
    for design in designs:
        phases.setdefault(design.protein_id, set()).add(design.phase)

    for design in designs:
        if design.degeneracy is None:
            design.degeneracy = len(phases[design.protein_id])
    return designs


def parse_fasta_catalog(path: Path, molecule: str = "auto") -> List[ReferenceDesign]:
    """Parse a FASTA design catalog."""
    designs = []
    for record in SeqIO.parse(str(path), "fasta"):
        tokens = _parse_description(record.description)
        degeneracy = int(tokens['degeneracy']) if 'degeneracy' in tokens else None
        designs.append(_to_design(
            full_id=record.id,
            sequence=str(record.seq),
            protein_id=tokens.get('protein_id'),
            phase=tokens.get('phase'),
            degeneracy=degeneracy,
            molecule=molecule,
        ))
    return designs


def parse_table_catalog(path: Path, molecule: str = "auto") -> List[ReferenceDesign]:
    """Parse a CSV/TSV design catalog."""
    sep = '\t' if path.suffix.lower() in ('.tsv', '.tab', '.txt') else ','
    table = pd.read_csv(path, sep=sep, dtype=str, keep_default_na=False)
    table.columns = [c.strip().lower() for c in table.columns]

    if AA_SEQUENCE in table.columns:
        seq_column = AA_SEQUENCE
        column_molecule = "protein" if molecule == "auto" else molecule
    elif DNA_SEQUENCE in table.columns:
        seq_column = DNA_SEQUENCE
        column_molecule = "dna"
    else:
        raise InputSchemaError(str(path), [AA_SEQUENCE])
    if FULL_ID not in table.columns:
        raise InputSchemaError(str(path), [FULL_ID])

    designs = []
    for row in table.to_dict(orient="records"):
        degeneracy = row.get(DEGENERACY) or None
        designs.append(_to_design(
            full_id=row[FULL_ID],
            sequence=row[seq_column],
            protein_id=row.get(PROTEIN_ID) or None,
            phase=row.get(PHASE) or None,
            degeneracy=int(float(degeneracy)) if degeneracy is not None else None,
            molecule=column_molecule,
        ))
    return designs


def load_design_catalog(path: Union[str, Path], molecule: str = "auto") -> List[ReferenceDesign]:
    """
    Load reference designs from FASTA or a delimited table.

    Args:
        path: Catalog file
        molecule: 'protein', 'dna' or 'auto' (detect per sequence)

    Returns:
        List of reference designs with the initiator residue stripped
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Design catalog not found: {path}")

    if path.suffix.lower() in FASTA_SUFFIXES:
        designs = parse_fasta_catalog(path, molecule)
    else:
        designs = parse_table_catalog(path, molecule)

    designs = _fill_degeneracy(designs)
    logger.info(f"Loaded {len(designs)} reference designs "
                f"for {len({d.protein_id for d in designs})} proteins from {path}")
    return designs


def build_reference_frame(designs: List[ReferenceDesign],
                          config: Optional[FilterConfig] = None) -> pd.DataFrame:
    """Tag designs as perfect sentinel-barcode rows with derived length columns."""
    frame = records_to_frame(designs)
    return annotate_truncations(frame, config)
