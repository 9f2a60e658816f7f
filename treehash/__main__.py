from __future__ import annotations
import logging
from pathlib import Path
from typing import Any, Optional
import click
from click.core import ParameterSource
from . import BACKENDS, __version__
from .bases import DEFAULT_WORKERS
from .config import ScanConfig
from .hashing import DEFAULT_ALGORITHM
from .output import ConsoleReporter

log = logging.getLogger(__name__)


@click.command(context_settings={"auto_envvar_prefix": "TREEHASH"})
@click.version_option(
    __version__,
    "-V",
    "--version",
    message="%(prog)s %(version)s",
)
@click.option(
    "-a",
    "--algorithm",
    default=DEFAULT_ALGORITHM,
    show_default=True,
    help="Name of the hashlib digest algorithm to use",
)
@click.option(
    "-b",
    "--backend",
    type=click.Choice(list(BACKENDS)),
    default="threads",
    show_default=True,
    help="Concurrency implementation to digest files with",
)
@click.option(
    "-c",
    "--config",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Read default settings from this JSON file",
)
@click.option(
    "--fail-on-error",
    is_flag=True,
    help="Exit with status 1 if any file could not be digested",
)
@click.option(
    "--progress/--no-progress",
    default=True,
    show_default=True,
    help="Print a line for each file as it is discovered",
)
@click.option(
    "-q",
    "--queue-size",
    type=click.IntRange(min=1),
    help=(
        "Maximum number of discovered paths waiting for a worker"
        "  [default: worker count; 0 for trio]"
    ),
)
@click.option(
    "--retries",
    type=click.IntRange(min=0),
    default=0,
    show_default=True,
    help="Number of times to retry digesting a file after an I/O error",
)
@click.option(
    "--retry-delay",
    type=click.FloatRange(min=0),
    default=0.1,
    show_default=True,
    help="Seconds to wait between retries",
)
@click.option(
    "--summary",
    is_flag=True,
    help="Print a table of totals on stderr when finished",
)
@click.option(
    "-v",
    "--verbose",
    count=True,
    help="Increase logging verbosity.  Repeat option for more logs.",
)
@click.option(
    "-w",
    "--workers",
    type=click.IntRange(min=1),
    default=DEFAULT_WORKERS,
    show_default=True,
    help="Number of files to digest concurrently",
)
@click.argument("root", type=click.Path(path_type=Path), default=".", required=False)
@click.pass_context
def main(
    ctx: click.Context,
    root: Path,
    config: Optional[Path],
    verbose: int,
    **options: Any,
) -> None:
    """
    Compute the digest of every file beneath ROOT (default: the current
    directory) and print them as they are completed
    """
    if verbose == 0:
        log_level = logging.WARNING
    elif verbose == 1:
        log_level = logging.INFO
    elif verbose == 2:
        log_level = logging.DEBUG
    else:
        log_level = 1
    logging.basicConfig(
        format="%(asctime)s [%(levelname)-8s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        level=log_level,
    )
    options["root"] = root
    try:
        if config is not None:
            overrides = {
                k: v
                for k, v in options.items()
                if ctx.get_parameter_source(k) not in (ParameterSource.DEFAULT, None)
            }
            cfg = ScanConfig.from_file(config, **overrides)
        else:
            cfg = ScanConfig(**options)
    except (OSError, ValueError) as e:
        raise click.UsageError(str(e))
    log.debug("Configuration: %r", cfg)
    reporter = ConsoleReporter(progress=cfg.progress)
    summer = cfg.build_tree_hasher(on_discover=reporter.discovered)
    try:
        summary = summer.scan(cfg.root, reporter)
    except KeyboardInterrupt:
        log.warning("Interrupted; scan of %s stopped", cfg.root)
        ctx.exit(130)
    if summary.walk_error is not None:
        reporter.walk_failed(summary.walk_error)
    if cfg.summary:
        reporter.show_summary(summary)
    if summary.walk_error is not None:
        ctx.exit(2)
    if summary.cancelled or (cfg.fail_on_error and summary.failed):
        ctx.exit(1)


if __name__ == "__main__":
    main()
