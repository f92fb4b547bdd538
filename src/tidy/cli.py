"""
Command line interface for tidy.
"""

import sys
import logging

import click

from tidy import __version__
from tidy.app import TidyApp
from tidy.file_access.local_accessor import FileSystemAccessor
from tidy.utils.error_handler import TidyError
from tidy.utils.progress import Summary

logger = logging.getLogger(__name__)

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


def _print_stats(accessor: FileSystemAccessor):
    dir_stats = accessor.get_directory_stats()
    click.echo(f"\nDirectory Statistics for: {accessor.root_directory}")
    click.echo(f"Total files: {dir_stats['total_files']}")
    click.echo(f"Without extension: {dir_stats['without_extension']}")

    click.echo("\nFiles by extension:")
    for ext, count in sorted(dir_stats["by_extension"].items()):
        click.echo(f"  {ext}: {count}")


def _print_summary(summary: Summary):
    for failure in summary.failures:
        click.echo(
            f"Could not sort {failure.source} -> {failure.target}: {failure.reason}",
            err=True,
        )

    click.echo(
        f"Copied: {summary.copied}  Skipped: {summary.skipped}  "
        f"Failed: {summary.failed}"
    )


@click.command()
@click.argument("source")
@click.argument("outdir", required=False)
@click.option(
    "-o",
    "--output",
    default=None,
    help="Directory where the sorted files are stored in subdirectories "
    "named after their extension (default: ./sorted).",
)
@click.option(
    "--config",
    "config_file",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="JSON or YAML configuration file.",
)
@click.option("--workers", type=click.IntRange(min=1), help="Concurrent file workers.")
@click.option(
    "--verify/--no-verify", default=None, help="Verify checksums after copying."
)
@click.option("--report", "report_path", default=None, help="Write a JSON report.")
@click.option(
    "--error-report",
    "errors_path",
    default=None,
    help="Write a JSON report of the errors met during the run.",
)
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default=None,
    help="Logging level.",
)
@click.option("--quiet", is_flag=True, help="Hide the progress bar.")
@click.option("--stats", is_flag=True, help="Show source statistics and exit.")
@click.version_option(version=__version__, prog_name="tidy")
def main(
    source, outdir, output, config_file, workers, verify, report_path, errors_path,
    log_level, quiet, stats,
):
    """Copy the files of SOURCE into OUTDIR/<extension>/."""
    overrides = {
        "sorting.output_directory": output or outdir,
        "concurrency.max_workers": workers,
        "copy.verify_integrity": verify,
        "report.path": report_path,
        "report.errors_path": errors_path,
        "logging.level": log_level.upper() if log_level else None,
        "ui.show_progress": False if quiet else None,
    }

    try:
        app = TidyApp(config_file=config_file, overrides=overrides)
        app.initialize()

        if stats:
            _print_stats(FileSystemAccessor(source))
            return

        summary = app.run(source)

    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        sys.exit(130)
    except TidyError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    except Exception as e:
        logger.error(f"Application failed: {e}", exc_info=True)
        click.echo(f"Error: {type(e).__name__}: {e}", err=True)
        sys.exit(1)

    _print_summary(summary)


if __name__ == "__main__":
    main()
