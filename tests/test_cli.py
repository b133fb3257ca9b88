"""Tests for the command-line interface."""

import json

import pytest
from click.testing import CliRunner

from variant_annotator.cli import main

HEADER = "barcode,protein_id,phase,dna_class,aa_sequence\n"


def write_inputs(directory, rows):
    observed = directory / "observed.csv"
    observed.write_text(HEADER + "".join(f"{','.join(row)}\n" for row in rows))
    designs = directory / "designs.fasta"
    designs.write_text(">P1_A\n" + "M" + "A" * 210 + "\n")
    return observed, designs


class TestCLI:
    """Test cases for the CLI entry point."""

    @pytest.fixture
    def runner(self):
        """Create a Click test runner."""
        return CliRunner()

    def test_quiet_and_verbose_conflict(self, runner):
        result = runner.invoke(main, ['--quiet', '--verbose'])

        assert result.exit_code == 1
        assert "Cannot use both --quiet and --verbose" in result.output

    def test_no_arguments_shows_help(self, runner):
        result = runner.invoke(main, [])

        assert result.exit_code == 0
        assert "Usage" in result.output

    def test_generate_config(self, runner):
        with runner.isolated_filesystem():
            result = runner.invoke(main, ['--generate-config'])

            assert result.exit_code == 0
            assert "Generated example configuration file" in result.output
            with open('variant_annotator.config.example.json') as f:
                assert json.load(f)['resolution']['seed'] == 42

    def test_successful_run(self, runner, tmp_path):
        observed, designs = write_inputs(tmp_path, [
            ("BC1", "P1", "A", "perfect", "A" * 210),
            ("BC2", "P1", "A", "mutant_phase", "A" * 205),
        ])
        output = tmp_path / "annotated.tsv"

        result = runner.invoke(main, [
            str(observed), str(designs), str(output),
            '--seed', '1', '--design-molecule', 'protein'
        ])

        assert result.exit_code == 0, result.output
        assert "Read 2 observed records" in result.output
        assert "Read 1 reference designs" in result.output
        assert "Results written to" in result.output
        assert output.exists()
        assert (tmp_path / "annotated.audit.json").exists()

        lines = output.read_text(encoding='utf-8-sig').splitlines()
        header = lines[0].split('\t')
        mutation_types = [line.split('\t')[header.index('mutation_type')] for line in lines[1:]]
        assert mutation_types == ["None", "Deletion"]

    def test_quiet_run_suppresses_progress(self, runner, tmp_path):
        observed, designs = write_inputs(tmp_path, [("BC1", "P1", "A", "perfect", "A" * 210)])
        output = tmp_path / "annotated.json"

        result = runner.invoke(main, [
            str(observed), str(designs), str(output),
            '--seed', '1', '--output-format', 'json', '--no-audit', '--quiet'
        ])

        assert result.exit_code == 0
        assert "Results written to" not in result.output
        assert json.loads(output.read_text())['metadata']['total_entries'] == 1
        assert not (tmp_path / "annotated.audit.json").exists()

    def test_consistency_violation_exits(self, runner, tmp_path):
        observed, designs = write_inputs(tmp_path, [
            ("BC1", "P1", "A", "perfect", "A" * 210),
            ("BC1", "P1", "A", "mutant_phase", "A" * 205),
        ])
        report = tmp_path / "errors.json"

        result = runner.invoke(main, [
            str(observed), str(designs), str(tmp_path / "out.tsv"),
            '--seed', '1', '--error-report', str(report)
        ])

        assert result.exit_code == 1
        assert "ERROR: Data consistency violation" in result.output
        assert not (tmp_path / "out.tsv").exists()
        details = json.loads(report.read_text())['detailed_errors'][0]
        assert details['error_type'] == "data_consistency"
        assert details['details']['barcodes'] == ["BC1"]

    def test_missing_columns_exits(self, runner, tmp_path):
        observed = tmp_path / "observed.csv"
        observed.write_text("barcode,aa_sequence\nBC1,AAA\n")
        designs = tmp_path / "designs.fasta"
        designs.write_text(">P1_A\nMAAA\n")

        result = runner.invoke(main, [str(observed), str(designs)])

        assert result.exit_code == 1
        assert "Missing required columns" in result.output
        assert "Suggestion:" in result.output
