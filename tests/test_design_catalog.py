"""Tests for reference design catalog loading."""

import pytest

from variant_annotator.design_catalog import (
    build_reference_frame,
    load_design_catalog,
    split_full_id,
    strip_initiator,
    translate_design,
)
from variant_annotator.error_handler import InputSchemaError
from variant_annotator.models import REFERENCE_BARCODE


class TestHelpers:
    """Test cases for id and sequence helpers."""

    def test_split_full_id(self):
        assert split_full_id("mNeon_GFP_+1n") == ("mNeon_GFP", "+1n")
        assert split_full_id("P7") == ("P7", None)

    def test_strip_initiator(self):
        assert strip_initiator("MKV") == "KV"
        assert strip_initiator("KV") == "KV"
        assert strip_initiator("") == ""

    def test_translate_design_keeps_stop(self):
        assert translate_design("ATGAAATAA") == "MK*"
        assert translate_design("ATGAAAT") == "MK"


class TestLoadDesignCatalog:
    """Test cases for catalog files."""

    def test_protein_fasta(self, tmp_path):
        path = tmp_path / "designs.fasta"
        path.write_text(
            ">P1_+1n\nMKVLLA\n"
            ">P1_+1c\nMKVLLAG\n"
            ">P2 degeneracy=4 phase=A\nMGGG\n"
        )

        designs = load_design_catalog(path)

        assert [d.full_id for d in designs] == ["P1_+1n", "P1_+1c", "P2"]
        assert designs[0].protein_id == "P1"
        assert designs[0].phase == "+1n"
        assert designs[0].aa_sequence == "KVLLA"
        assert designs[0].degeneracy == 2
        assert designs[2].phase == "A"
        assert designs[2].degeneracy == 4

    def test_nucleotide_fasta_is_translated(self, tmp_path):
        path = tmp_path / "designs.fa"
        path.write_text(">P3_A\nATGAAAGGC\n")

        designs = load_design_catalog(path)

        assert designs[0].aa_sequence == "KG"
        assert designs[0].dna_sequence == "ATGAAAGGC"

    def test_csv_catalog(self, tmp_path):
        path = tmp_path / "designs.csv"
        path.write_text(
            "full_id,protein_id,phase,degeneracy,aa_sequence\n"
            "P1_x,P1,+1n,3,MKVL\n"
            "P4,P4,,,MAAA\n"
        )

        designs = load_design_catalog(path)

        assert designs[0].phase == "+1n"
        assert designs[0].degeneracy == 3
        assert designs[0].aa_sequence == "KVL"
        assert designs[1].phase is None
        assert designs[1].degeneracy == 1

    def test_csv_missing_sequence_column(self, tmp_path):
        path = tmp_path / "designs.csv"
        path.write_text("full_id,protein_id\nP1,P1\n")

        with pytest.raises(InputSchemaError):
            load_design_catalog(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_design_catalog(tmp_path / "nope.fasta")


def test_build_reference_frame(tmp_path):
    path = tmp_path / "designs.fasta"
    path.write_text(">P1_+1n\nMKVLLA\n")

    frame = build_reference_frame(load_design_catalog(path))

    row = frame.iloc[0]
    assert row['barcode'] == REFERENCE_BARCODE
    assert row['dna_class'] == "perfect"
    assert row['aa_length'] == 5
    assert bool(row['contains_stop']) is False
