"""Tests for record types and frame conversion."""

import pandas as pd

from variant_annotator.models import (
    REFERENCE_BARCODE, AnnotatedVariant, DnaClass, MutationType,
    ReferenceDesign, VariantRecord, frame_to_annotated, records_to_frame
)


class TestRecords:

    def test_reference_design_becomes_perfect_sentinel_row(self):
        design = ReferenceDesign(full_id="P1_A", protein_id="P1", aa_sequence="KVL", phase="A", degeneracy=2)
        record = design.to_variant_record()

        assert record.barcode == REFERENCE_BARCODE
        assert record.is_reference
        assert record.dna_class == DnaClass.PERFECT
        assert record.phase == "A"

    def test_to_dict_uses_plain_values(self):
        record = VariantRecord(barcode="BC1", dna_sequence="", full_id="P1", protein_id="P1",
                               dna_class=DnaClass.MUTANT_PHASE)
        assert record.to_dict()['dna_class'] == "mutant_phase"

        variant = AnnotatedVariant(barcode="BC1", dna_sequence="", full_id="P1", protein_id="P1",
                                   mutation_type=MutationType.NONSENSE)
        assert variant.to_dict()['mutation_type'] == "Nonsense"


class TestFrameConversion:

    def test_records_to_frame_keeps_all_columns(self):
        frame = records_to_frame([
            VariantRecord(barcode="BC1", dna_sequence="ATG", full_id="P1_A", protein_id="P1", phase="A"),
            ReferenceDesign(full_id="P1_A", protein_id="P1", aa_sequence="KVL", phase="A"),
        ])

        assert list(frame['barcode']) == ["BC1", REFERENCE_BARCODE]
        assert list(frame['dna_class']) == ["perfect", "perfect"]
        assert 'stop_in_terminal_window' in frame.columns
        assert frame['aa_length'].isna().all()

    def test_empty_records(self):
        frame = records_to_frame([])
        assert frame.empty
        assert 'barcode' in frame.columns

    def test_frame_to_annotated(self):
        frame = pd.DataFrame({
            'barcode': ["BC1", "BC2"],
            'dna_sequence': ["", ""],
            'full_id': ["P1_A", "P1"],
            'protein_id': ["P1", "P1"],
            'phase': ["A", None],
            'degeneracy': [2.0, float('nan')],
            'dna_class': ["perfect", "chimera_x"],
            'aa_sequence': ["KVL", "KV"],
            'aa_length': [3, 2],
            'contains_stop': [False, True],
            'stop_in_terminal_window': [False, True],
            'aa_class': ["perfect", "chimera_x"],
            'aa_phase': ["A", None],
            'mutation_type': ["None", "Nonsense"],
        })

        first, second = frame_to_annotated(frame)

        assert first.dna_class == DnaClass.PERFECT
        assert first.degeneracy == 2
        assert isinstance(first.degeneracy, int)
        assert first.mutation_type == MutationType.NONE
        assert second.dna_class == "chimera_x"
        assert second.phase is None
        assert second.degeneracy is None
        assert second.contains_stop is True
        assert second.mutation_type == MutationType.NONSENSE
