"""Command-line entry point for running and inspecting batch ingestion."""
import json

import click

from review_ingestor.exceptions import ReviewIngestorError
from review_ingestor.models.repository import ProcessedFileLedger
from review_ingestor.pipeline import process_new_files
from review_ingestor.schemas.entities import BatchSummary
from review_ingestor.storage.object_store import S3ObjectStore
from review_ingestor.utils.config import ensure_runtime_configuration, get_settings


def format_bytes(num_bytes: int) -> str:
    """Format bytes as human-readable string."""
    size = float(num_bytes)
    for unit in ["B", "KB", "MB", "GB"]:
        if size < 1024.0:
            return f"{size:.1f}{unit}"
        size /= 1024.0
    return f"{size:.1f}TB"


def print_summary(summary: BatchSummary) -> None:
    """Print a formatted summary of one batch run."""
    click.echo("\n" + "=" * 70)
    click.echo("REVIEW PROCESSING SUMMARY")
    click.echo("=" * 70)
    click.echo(f"  Run ID:             {summary.run_id}")
    click.echo(f"  Files discovered:   {summary.files_discovered}")
    click.echo(f"  Already processed:  {summary.files_skipped}")
    click.echo(f"  Files dispatched:   {summary.files_dispatched}")
    click.echo(f"  Succeeded:          {summary.files_succeeded}")
    click.echo(f"  Failed:             {summary.files_failed}")
    click.echo(f"  Records processed:  {summary.records_processed:,}")
    click.echo(f"  Duration:           {summary.duration_ms:,} ms")

    if summary.results:
        click.echo("\nPER-FILE RESULTS")
        click.echo("-" * 70)
        for result in sorted(summary.results, key=lambda item: item.filename):
            marker = "ok" if result.success else "FAILED"
            line = f"  [{marker}] {result.filename}: {result.records_processed:,} records"
            if result.lines_skipped:
                line += f", {result.lines_skipped} lines skipped"
            click.echo(line)
            if result.error:
                click.echo(f"         {result.error}")

    click.echo("=" * 70)


@click.group()
def cli() -> None:
    """Ingest JSONL review files from S3 into the review database."""


@cli.command("process")
@click.option("--json", "output_json", is_flag=True, help="Output the summary as JSON")
@click.option(
    "--max-concurrency",
    type=click.IntRange(min=1),
    default=None,
    help="Override the number of files processed in parallel",
)
def process_command(output_json: bool, max_concurrency: int | None) -> None:
    """
    Process every review file not yet recorded in the ledger.

    Examples:

        review-ingestor process

        review-ingestor process --max-concurrency 2 --json
    """
    try:
        settings = ensure_runtime_configuration(get_settings())
        if max_concurrency is not None:
            settings = settings.model_copy(
                update={
                    "processing": settings.processing.model_copy(
                        update={"max_concurrency": max_concurrency}
                    )
                }
            )
        summary = process_new_files(settings)
    except ReviewIngestorError as exc:
        click.echo(f"Error: {exc}", err=True)
        raise click.Abort()

    if output_json:
        click.echo(json.dumps(summary.as_dict(), indent=2, default=str))
    else:
        print_summary(summary)


@cli.command("list-files")
@click.option("--pending", is_flag=True, help="Only show files not yet processed")
def list_files_command(pending: bool) -> None:
    """List candidate review files and whether each is already processed."""
    try:
        settings = ensure_runtime_configuration(get_settings())
        files = S3ObjectStore.from_settings(settings).list_objects()
        done = ProcessedFileLedger().processed_filenames(item.key for item in files)
    except ReviewIngestorError as exc:
        click.echo(f"Error: {exc}", err=True)
        raise click.Abort()

    for item in files:
        processed = item.key in done
        if pending and processed:
            continue
        status = "processed" if processed else "pending"
        click.echo(f"{status:<10} {format_bytes(item.size):>9}  {item.key}")


if __name__ == "__main__":
    cli()
