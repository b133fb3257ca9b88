"""Tests for output formatting module."""

import json

import openpyxl
import pandas as pd
import pytest

from variant_annotator.output_formatter import OutputFormatter


class TestOutputFormatter:
    """Test cases for output formatting."""

    @pytest.fixture
    def formatter(self):
        return OutputFormatter(include_audit_trail=True)

    @pytest.fixture
    def annotated(self):
        return pd.DataFrame({
            'mutation_type': ["None", "Deletion"],
            'barcode': ["BC1", "BC2"],
            'protein_id': ["P1", "P2"],
            'phase': ["+1n", None],
            'aa_length': [210, 208],
            'aa_class': ["perfect", "mutant_nophase"],
            'read_count': [5, 3],
        })

    @pytest.fixture
    def diagnostics(self):
        return {'mutation_types': {'None': 1, 'Deletion': 1}, 'collisions': {'barcodes_before': 3}}

    def test_write_tsv(self, formatter, annotated, diagnostics, tmp_path):
        output = tmp_path / "out.tsv"
        formatter.write(annotated, output, format='tsv', excel_compatible=False, diagnostics=diagnostics)

        table = pd.read_csv(output, sep='\t', keep_default_na=False)
        assert table.columns[0] == 'barcode'
        assert table.columns[-1] == 'read_count'
        assert table['mutation_type'].tolist() == ["None", "Deletion"]

    def test_write_csv_with_bom(self, formatter, annotated, tmp_path):
        output = tmp_path / "out.csv"
        formatter.write(annotated, output, format='csv', excel_compatible=True)

        assert output.read_bytes().startswith(b'\xef\xbb\xbf')

    def test_write_json(self, formatter, annotated, tmp_path):
        output = tmp_path / "out.json"
        formatter.write(annotated, output, format='json')

        data = json.loads(output.read_text())
        assert data['metadata']['total_entries'] == 2
        assert data['results'][1]['mutation_type'] == "Deletion"
        assert data['results'][1]['phase'] is None

    def test_write_excel(self, formatter, annotated, diagnostics, tmp_path):
        output = tmp_path / "out.xlsx"
        formatter.write(annotated, output, format='excel', diagnostics=diagnostics)

        wb = openpyxl.load_workbook(output)
        ws = wb["Annotated Variants"]
        assert ws.cell(row=1, column=1).value == 'barcode'
        assert ws.cell(row=2, column=1).value == 'BC1'
        assert "Metadata" in wb.sheetnames

    def test_audit_trail(self, formatter, annotated, diagnostics, tmp_path):
        output = tmp_path / "out.tsv"
        formatter.write(annotated, output, diagnostics=diagnostics)

        audit = json.loads((tmp_path / "out.audit.json").read_text())
        assert audit['total_variants'] == 2
        assert audit['diagnostics']['collisions']['barcodes_before'] == 3

    def test_no_audit_trail(self, annotated, tmp_path):
        output = tmp_path / "out.tsv"
        OutputFormatter(include_audit_trail=False).write(annotated, output)

        assert not (tmp_path / "out.audit.json").exists()

    def test_unsupported_format(self, formatter, annotated, tmp_path):
        with pytest.raises(ValueError, match="Unsupported format"):
            formatter.write(annotated, tmp_path / "out.xml", format='xml')

    def test_statistics(self, formatter, annotated):
        stats = formatter.get_statistics(annotated)

        assert stats['total_variants'] == 2
        assert stats['mutation_types'] == {'None': 1, 'Deletion': 1}
