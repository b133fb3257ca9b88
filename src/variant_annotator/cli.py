"""Command-line interface for the variant annotator."""

import sys
from pathlib import Path

import click

from .cli_utils import echo, secho, set_quiet_mode
from .config import Config, create_example_config, get_default_config_path
from .design_catalog import load_design_catalog
from .error_handler import ErrorHandler, VariantAnnotatorError
from .input_parser import InputParser
from .logging_config import get_logger, setup_logging
from .output_formatter import OutputFormatter
from .pipeline import VariantPipeline

logger = get_logger('cli')


@click.command()
@click.argument('observed_file', type=click.Path(exists=True), required=False)
@click.argument('design_file', type=click.Path(exists=True), required=False)
@click.argument('output_file', type=click.Path(), required=False)
@click.option('--seed', type=int, envvar='VARIANT_ANNOTATOR_SEED', help='Seed for degenerate barcode resolution')
@click.option('--design-molecule', type=click.Choice(['auto', 'protein', 'dna']), default='auto',
              help='Sequence type of the design catalog')
@click.option('--output-format', type=click.Choice(['tsv', 'csv', 'json', 'excel']), help='Output file format')
@click.option('--no-audit', is_flag=True, help='Disable audit trail generation')
@click.option('--error-report', type=click.Path(), help='Write a JSON error report on failure')
@click.option('--log-file', help='Also log to this file')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
@click.option('--quiet', '-q', is_flag=True, help='Suppress all output except errors')
@click.option('--config', type=click.Path(exists=True), help='Configuration file path')
@click.option('--generate-config', is_flag=True, help='Generate example configuration file')
def main(observed_file, design_file, output_file, seed, design_molecule, output_format, no_audit,
         error_report, log_file, verbose, quiet, config, generate_config):
    """Barcode variant annotator.

    Filter observed barcode/variant records, resolve barcode collisions and
    annotate each variant against the reference design catalog.

    Examples:
        variant-annotator observed.csv designs.fasta annotated.tsv --seed 42
        variant-annotator observed.csv designs.csv
    """
    if quiet and verbose:
        click.echo("Error: Cannot use both --quiet and --verbose", err=True)
        sys.exit(1)

    set_quiet_mode(quiet)
    setup_logging(
        log_level='DEBUG' if verbose else 'WARNING',
        log_file=log_file,
        quiet=quiet
    )

    if generate_config:
        config_path = create_example_config()
        echo(f"Generated example configuration file: {config_path}")
        sys.exit(0)

    if not observed_file or not design_file:
        ctx = click.get_current_context()
        echo(ctx.get_help())
        return

    cfg = Config.from_file(Path(config) if config else get_default_config_path())
    cfg.merge_env_vars()
    cfg.merge_cli_args(seed=seed, output_format=output_format, no_audit=no_audit)

    if cfg.resolution.seed is None:
        logger.warning("No seed given; degenerate barcode resolution will not be reproducible")

    handler = ErrorHandler()
    operation = "loading input"
    try:
        parser = InputParser()
        observed = parser.parse_file(observed_file)
        echo(f"Read {len(observed)} observed records from {observed_file} "
             f"(format: {parser.get_format_info()['format']})")

        designs = load_design_catalog(design_file, molecule=design_molecule)
        echo(f"Read {len(designs)} reference designs from {design_file}")

        operation = "annotating variants"
        echo("\nAnnotating variants...")
        result = VariantPipeline(cfg).run(observed, designs)

        formatter = OutputFormatter(include_audit_trail=cfg.output.include_audit_trail)
        if output_file:
            operation = "writing results"
            echo("Writing results...")
            formatter.write(
                result.annotated,
                output_file,
                format=cfg.output.format,
                excel_compatible=cfg.output.excel_compatible,
                diagnostics=result.diagnostics
            )
            echo(f"Results written to: {output_file}")
            if cfg.output.include_audit_trail:
                echo(f"Audit trail written to: {Path(output_file).with_suffix('.audit.json')}")
    except (VariantAnnotatorError, OSError, ValueError) as e:
        context = handler.handle_error(e, operation)
        echo(f"ERROR: {context.message}", err=True)
        if context.suggestion:
            echo(f"Suggestion: {context.suggestion}", err=True)
        if error_report:
            handler.export_error_report(Path(error_report))
        sys.exit(1)

    filter_summary = result.filter_summary
    stats = result.collision_stats
    echo("\n" + "=" * 80)
    echo(f"Records passing filter: {filter_summary.records_out}/{filter_summary.records_in}")
    echo(f"Barcodes: {stats.barcodes_before} before, {stats.barcodes_after} after collision resolution")
    echo(f"Ambiguous mutant barcodes dropped: {stats.mutant_barcodes_dropped}")
    echo(f"Degenerate perfect groups resolved: {stats.perfect_collision_groups}")
    echo(f"Annotated variants: {len(result.annotated)}")
    for name, count in result.mutation_counts.items():
        if count:
            secho(f"  {name}: {count}", fg='cyan')


if __name__ == '__main__':
    main()
