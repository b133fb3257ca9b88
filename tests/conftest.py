"""Shared test fixtures."""

import pytest

from variant_annotator.design_catalog import build_reference_frame
from variant_annotator.models import ReferenceDesign, VariantRecord, records_to_frame
from variant_annotator.sequence_filter import annotate_truncations


def protein(length: int, residue: str = "A") -> str:
    """A protein sequence of the given length."""
    return residue * length


@pytest.fixture
def make_record():
    """Factory for observed records with sensible defaults."""
    def _make(barcode, protein_id="P1", aa_sequence=None, dna_class="perfect", phase=None, **kwargs):
        full_id = f"{protein_id}_{phase}" if phase else protein_id
        return VariantRecord(
            barcode=barcode,
            dna_sequence=kwargs.pop("dna_sequence", ""),
            full_id=kwargs.pop("full_id", full_id),
            protein_id=protein_id,
            phase=phase,
            degeneracy=kwargs.pop("degeneracy", 2),
            dna_class=dna_class,
            aa_sequence=aa_sequence if aa_sequence is not None else protein(210),
            **kwargs
        )
    return _make


@pytest.fixture
def observed_frame():
    """Build a trimmed working frame from observed records."""
    def _build(records):
        return annotate_truncations(records_to_frame(records))
    return _build


@pytest.fixture
def reference_frame():
    """Build a reference frame from (protein_id, phase, aa_sequence) tuples."""
    def _build(designs):
        return build_reference_frame([
            ReferenceDesign(
                full_id=f"{protein_id}_{phase}" if phase else protein_id,
                protein_id=protein_id,
                phase=phase,
                degeneracy=1,
                aa_sequence=aa_sequence,
            )
            for protein_id, phase, aa_sequence in designs
        ])
    return _build
