"""Command-line interface for stepflow.

Provides CLI commands for inspecting step diagrams and exporting them as
state machine transition tables.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

import click
import yaml

from stepflow import __version__


def setup_logging(verbose: bool = False, debug: bool = False) -> logging.Logger:
    """Setup logging for CLI commands."""
    level = logging.DEBUG if debug else (logging.INFO if verbose else logging.WARNING)
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(levelname)s - %(message)s",
        datefmt="%H:%M:%S",
    )
    return logging.getLogger("stepflow")


def input_option(func):
    return click.option(
        "--input", "-i", "input_path", required=True, type=click.Path(exists=True),
        help="Diagram JSON file",
    )(func)


def keywords_option(func):
    return click.option(
        "--keywords", "-k", type=click.Path(exists=True),
        help="Classification keywords file (YAML)",
    )(func)


def reclassify_option(func):
    return click.option(
        "--reclassify", is_flag=True,
        help="Ignore saved classifications and re-derive them from step names",
    )(func)


def load_document(
    input_path: str,
    keywords: Optional[str] = None,
    reclassify: bool = False,
    state_dict: Optional[str] = None,
    rule_dict: Optional[str] = None,
):
    """Load a diagram file into a FlowDocument ready for conversion.

    Steps without a saved classification are classified from their names.
    A diagram that carries no dictionaries gets identity dictionaries, so
    labels default to qualified names; dictionary files given on the
    command line replace the saved ones.
    """
    from stepflow.config import ClassificationConfig
    from stepflow.core.dictionary import DictionaryFormatError
    from stepflow.core.document import FlowDocument
    from stepflow.io import DiagramFormatError, load_diagram, load_dictionary_json

    try:
        data = load_diagram(input_path)
        doc = FlowDocument.from_dict(data)
        if keywords:
            doc.set_classification_config(ClassificationConfig.from_yaml(keywords))
        if reclassify:
            doc.auto_classify()
        if not data.get("stateDictionary") and not data.get("ruleDictionary"):
            doc.regenerate_dictionaries()
        if state_dict:
            doc.dictionaries.state = load_dictionary_json(state_dict, "state")
        if rule_dict:
            doc.dictionaries.rule = load_dictionary_json(rule_dict, "rule")
    except (DiagramFormatError, DictionaryFormatError, yaml.YAMLError, ValueError) as e:
        raise click.ClickException(str(e))
    return doc


@click.group()
@click.version_option(version=__version__, prog_name="stepflow")
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output")
@click.option("--debug", is_flag=True, help="Enable debug output")
@click.pass_context
def cli(ctx: click.Context, verbose: bool, debug: bool) -> None:
    """stepflow: Compile step diagrams into state machine tables.

    Steps are classified as states, rules or behaviors; every chain of
    rule/behavior steps between two states collapses into one transition
    row.

    Examples:

        # Export the transition table
        stepflow convert --input diagram.json --out state_machine.csv

        # Report dangling chains, cycles and stale dictionary keys
        stepflow validate --input diagram.json

        # Seed editable dictionaries
        stepflow dictionaries --input diagram.json --out dictionaries/
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["debug"] = debug
    ctx.obj["logger"] = setup_logging(verbose, debug)


@cli.command()
@input_option
@click.option("--out", "-o", "output_path", required=True, type=click.Path(),
              help="Output CSV file")
@click.option("--state-dict", type=click.Path(exists=True),
              help="State dictionary JSON (qualified name -> label)")
@click.option("--rule-dict", type=click.Path(exists=True),
              help="Rule dictionary JSON (qualified name -> label)")
@keywords_option
@reclassify_option
@click.option("--log-dir", type=click.Path(),
              help="Write a run log to LOG_DIR/convert_<timestamp>.log and append "
                   "a JSON record of this conversion to LOG_DIR/conversions.jsonl")
@click.pass_context
def convert(
    ctx: click.Context,
    input_path: str,
    output_path: str,
    state_dict: Optional[str],
    rule_dict: Optional[str],
    keywords: Optional[str],
    reclassify: bool,
    log_dir: Optional[str],
) -> None:
    """Convert a diagram to a state machine CSV."""
    logger = ctx.obj["logger"]

    from stepflow.core.state_machine import write_state_machine_csv
    from stepflow.io import close_file_handlers, conversion_record, get_logger, log_json

    previous_level = logger.level
    if log_dir:
        _, log_file = get_logger("stepflow", Path(log_dir) / "convert.log")
        logger.info(f"Logging to: {log_file}")
    try:
        logger.info(f"Converting: {input_path}")
        doc = load_document(input_path, keywords, reclassify, state_dict, rule_dict)
        result = doc.compile()
        output_file = write_state_machine_csv(result.rows, output_path)
        logger.info(f"Wrote {result.row_count} row(s) to: {output_file}")

        if log_dir:
            issues = doc.validate()
            record = conversion_record(
                input_path, output_file, result.row_count, result.outcome_counts(), issues
            )
            log_json(Path(log_dir) / "conversions.jsonl", record)
    finally:
        if log_dir:
            close_file_handlers(logger)
            logger.setLevel(previous_level)

    counts = doc.classification_counts()
    click.echo(
        f"Classified {counts['state']} state, {counts['rule']} rule, "
        f"{counts['behavior']} behavior step(s)"
    )
    if result.branching_steps:
        click.echo(
            f"Warning: {len(result.branching_steps)} rule/behavior step(s) have "
            "several outgoing connections; run 'stepflow validate' for details",
            err=True,
        )
    click.echo(f"Wrote {result.row_count} row(s) to: {output_file}")


@cli.command()
@input_option
@keywords_option
@reclassify_option
@click.option("--strict", is_flag=True, help="Exit with status 1 on any warning or error")
@click.option("--log-dir", type=click.Path(),
              help="Append a YAML report of the issues to LOG_DIR/validation.yaml")
@click.pass_context
def validate(
    ctx: click.Context,
    input_path: str,
    keywords: Optional[str],
    reclassify: bool,
    strict: bool,
    log_dir: Optional[str],
) -> None:
    """Report graph defects that conversion silently works around."""
    from stepflow.core.state_machine import has_issues
    from stepflow.io import log_yaml, validation_record

    doc = load_document(input_path, keywords, reclassify)
    issues = doc.validate()
    if log_dir:
        log_yaml(Path(log_dir) / "validation.yaml", validation_record(input_path, issues))

    if not issues:
        click.echo("No issues found")
        return
    for issue in issues:
        click.echo(str(issue))
    click.echo(f"\n{len(issues)} issue(s)")

    if strict and has_issues(issues, "warning"):
        sys.exit(1)


@cli.command()
@input_option
@keywords_option
@reclassify_option
@click.option("--format", "output_format", type=click.Choice(["summary", "csv"]),
              default="summary", help="Output format")
@click.pass_context
def show(
    ctx: click.Context,
    input_path: str,
    keywords: Optional[str],
    reclassify: bool,
    output_format: str,
) -> None:
    """Print the transition table."""
    from stepflow.core.state_machine import export_csv, format_rows_summary

    doc = load_document(input_path, keywords, reclassify)
    rows = doc.generate_rows()
    if output_format == "csv":
        click.echo(export_csv(rows).decode("utf-8"), nl=False)
    else:
        click.echo(format_rows_summary(rows))


@cli.command()
@input_option
@keywords_option
@reclassify_option
@click.pass_context
def classify(
    ctx: click.Context,
    input_path: str,
    keywords: Optional[str],
    reclassify: bool,
) -> None:
    """Print the role of every step and the rule that decided it."""
    doc = load_document(input_path, keywords, reclassify)
    classifier = doc.classifier
    tree = doc.store.tree()

    for step in doc.store.steps:
        if step.id in doc.classifications:
            category, rule_id = doc.classifications[step.id], "SAVED"
        else:
            result = classifier.explain(step)
            category, rule_id = result.category, result.rule_id
        click.echo(f"{category.value:<9} {rule_id:<17} {tree.qualified_name(step.id)}")

    counts = doc.classification_counts()
    click.echo(
        f"\n{counts['state']} state, {counts['rule']} rule, {counts['behavior']} behavior"
    )


@cli.command()
@input_option
@click.option("--out", "-o", "output_path", required=True, type=click.Path(),
              help="Output directory")
@keywords_option
@reclassify_option
@click.pass_context
def dictionaries(
    ctx: click.Context,
    input_path: str,
    output_path: str,
    keywords: Optional[str],
    reclassify: bool,
) -> None:
    """Write identity state/rule dictionaries for editing."""
    from stepflow.io import ensure_output_dir, save_dictionary_json

    doc = load_document(input_path, keywords, reclassify)
    generated = doc.regenerate_dictionaries()

    out_dir = ensure_output_dir(output_path)
    state_file = save_dictionary_json(generated.state, out_dir / "state_dictionary.json")
    rule_file = save_dictionary_json(generated.rule, out_dir / "rule_dictionary.json")

    click.echo(f"State dictionary ({len(generated.state)} entries): {state_file}")
    click.echo(f"Rule dictionary ({len(generated.rule)} entries): {rule_file}")


@cli.command()
@click.option("--preset", default="default", help="Keyword preset name")
@click.option("--export", "export_path", type=click.Path(),
              help="Write the keywords to this YAML file instead of printing them")
@click.pass_context
def keywords(ctx: click.Context, preset: str, export_path: Optional[str]) -> None:
    """Print or export classification keywords."""
    from stepflow.config import get_classification_config

    try:
        config = get_classification_config(preset)
    except ValueError as e:
        raise click.ClickException(str(e))

    if export_path:
        output_file = config.to_yaml(export_path)
        click.echo(f"Keywords written to: {output_file}")
        return
    click.echo(yaml.safe_dump({"classification": config.to_dict()}, sort_keys=False), nl=False)


def main() -> None:
    """Main entry point for CLI."""
    cli(obj={})


if __name__ == "__main__":
    main()
