"""
Command line interface for commit_splitter.

Three entry points are defined here:

``aisplit`` (:func:`main`)
    Split the currently staged changes into logical commits.
``aisplit-watch`` (:func:`watch`)
    Watch a repository and auto-commit changes as they happen.
``aisplit-session`` (:func:`session`)
    Run an interactive command (``claude`` by default) and auto-commit
    its work, plus ``checkout``/``start``/``list`` for session history.

Exit codes: 0 on success or when there is nothing to do, the git
process's return code when a git command fails, and 1 for any other
error.
"""

from __future__ import annotations

import logging
import signal
import threading
import time
from pathlib import Path
from typing import List, Optional, Tuple

import click

from commit_splitter import __version__
from commit_splitter.commit.pipeline import SplitPipeline
from commit_splitter.config.loader import ConfigError, SplitterConfig, load_config
from commit_splitter.grouping.group_model import CommitResult
from commit_splitter.session.history import SessionNotFoundError, checkout_session, list_sessions, start_session
from commit_splitter.session.wrapper import DEFAULT_COMMAND, SessionWrapper, run_untracked
from commit_splitter.vcs.git_client import FileChange, GitClient, GitError
from commit_splitter.watch.auto_committer import AutoCommitter

# Create a module-level logger. Attach a null handler and disable
# propagation to avoid logging errors when the root logger's stream is
# closed (such as during unit tests). When logging is configured by
# the CLI, root handlers will be added and messages will propagate.
logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())
    logger.propagate = False


# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------
EXIT_SUCCESS = 0
EXIT_GENERIC_ERROR = 1

CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}


# ---------------------------------------------------------------------------
# Progress and status display utilities
# ---------------------------------------------------------------------------

class ProgressIndicator:
    """Simple progress indicator for user feedback."""

    def __init__(self, message: str):
        self.message = message
        self.start_time = None

    def __enter__(self):
        self.start_time = time.time()
        click.echo(f"⠋ {self.message}...", nl=False)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        elapsed = time.time() - self.start_time
        if exc_type is None:
            click.echo(f"\r✓ {self.message} (took {elapsed:.1f}s)")
        else:
            click.echo("")
        return False


def print_info(message: str, indent: int = 0):
    """Print an info message."""
    prefix = "  " * indent
    click.echo(f"{prefix}ℹ {message}", err=False)


def print_success(message: str, indent: int = 0):
    """Print a success message."""
    prefix = "  " * indent
    click.echo(f"{prefix}✓ {message}", err=False)


def print_warning(message: str, indent: int = 0):
    """Print a warning message."""
    prefix = "  " * indent
    click.echo(f"{prefix}⚠ {message}", err=False)


def print_error(message: str, indent: int = 0):
    """Print an error message."""
    prefix = "  " * indent
    click.echo(f"{prefix}✗ {message}", err=True)


def print_summary_box(title: str, items: List[str]):
    """Print a formatted summary box."""
    max_width = max(len(title), max(len(item) for item in items) if items else 0)
    box_width = min(max_width + 4, 60)

    click.echo(f"\n┌{'─' * box_width}┐")
    click.echo(f"│ {title.ljust(box_width - 2)}│")
    click.echo(f"├{'─' * box_width}┤")
    for item in items:
        click.echo(f"│ {item.ljust(box_width - 2)}│")
    click.echo(f"└{'─' * box_width}┘")


# ---------------------------------------------------------------------------
# Shared setup
# ---------------------------------------------------------------------------

def configure_logging(verbose: bool) -> None:
    # force=True reconfigures handlers on repeated invocations (tests).
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s: %(message)s",
        force=True,
    )


def open_repository(start_dir: Path) -> Tuple[GitClient, SplitterConfig]:
    """Locate the repository and load the configuration.

    Raises
    ------
    click.exceptions.Exit
        With ``EXIT_GENERIC_ERROR`` when no repository is found or the
        configuration file is invalid.
    """
    repo_root = GitClient.find_repo_root(start_dir)
    if repo_root is None:
        print_error("Current directory is not inside a Git repository.")
        raise click.exceptions.Exit(EXIT_GENERIC_ERROR)
    try:
        config = load_config()
    except ConfigError as exc:
        print_error(f"Configuration error: {exc}")
        raise click.exceptions.Exit(EXIT_GENERIC_ERROR)
    logger.debug("Repository root: %s, model: %s", repo_root, config.model)
    return GitClient(repo_root), config


def git_exit_code(exc: GitError) -> int:
    return exc.returncode or EXIT_GENERIC_ERROR


def show_results(results: List[CommitResult]) -> None:
    committed = [result for result in results if not result.skipped]
    for result in results:
        if result.skipped:
            print_warning(f"Skipped (nothing staged): {', '.join(result.files)}")
        else:
            suffix = " (fallback title)" if result.used_fallback_title else ""
            print_success(f"{result.title}{suffix}")
            for path in result.files:
                print_info(path, indent=2)
    print_summary_box(
        "Summary",
        [
            f"✓ Committed: {len(committed)} commit{'s' if len(committed) != 1 else ''}",
            f"✓ Files: {sum(len(result.files) for result in committed)}",
        ],
    )


def show_plan(pipeline: SplitPipeline, files: List[FileChange]) -> None:
    outcome = pipeline.plan(files)
    if outcome.used_fallback:
        print_warning(f"Using rule-based grouping: {outcome.reason}")
    for idx, group in enumerate(outcome.groups, 1):
        title = pipeline.title_generator.generate_title(group)
        click.echo(f"\n📦 Commit {idx}/{len(outcome.groups)}: {title.title}")
        for change in group:
            print_info(f"{change.status.value} {change.path}", indent=1)


# ---------------------------------------------------------------------------
# aisplit
# ---------------------------------------------------------------------------

@click.command(context_settings=CONTEXT_SETTINGS)
@click.option("--dry-run", is_flag=True, help="Show the proposed commits without committing.")
@click.option("--verbose", is_flag=True, help="Enable verbose (debug) output.")
@click.version_option(__version__, "-v", "--version", prog_name="aisplit")
def main(dry_run: bool, verbose: bool) -> None:
    """Split the staged changes into logical commits using an LLM.

    Files are grouped by the model and each group is committed with a
    Conventional Commits title. When the model is unavailable, rule-based
    grouping and titles are used instead.
    """
    configure_logging(verbose)
    ctx = click.get_current_context(silent=True)

    try:
        git, config = open_repository(Path.cwd())
        pipeline = SplitPipeline.from_config(git, config)

        with ProgressIndicator("Reading staged changes"):
            files = git.read_staged_changes()
        if not files:
            print_info("Nothing staged to commit.")
            raise click.exceptions.Exit(EXIT_SUCCESS)
        print_success(f"Found {len(files)} staged file{'s' if len(files) != 1 else ''}")

        if dry_run:
            show_plan(pipeline, files)
            raise click.exceptions.Exit(EXIT_SUCCESS)

        results = pipeline.commit_files(files)
        show_results(results)
        raise click.exceptions.Exit(EXIT_SUCCESS)

    except click.exceptions.Exit:
        raise
    except GitError as exc:
        print_error(str(exc))
        raise click.exceptions.Exit(git_exit_code(exc))
    except Exception as exc:
        logging.exception("Unhandled error: %s", exc)
        print_error(f"Unexpected error: {exc}")
        ctx.exit(EXIT_GENERIC_ERROR)


# ---------------------------------------------------------------------------
# aisplit-watch
# ---------------------------------------------------------------------------

def wait_for_stop(stop_event: threading.Event) -> None:
    """Block until Ctrl+C, SIGTERM or ``stop_event`` is set."""

    def _handle_signal(signum, frame):
        stop_event.set()

    signal.signal(signal.SIGTERM, _handle_signal)
    try:
        while not stop_event.is_set():
            stop_event.wait(1.0)
    except KeyboardInterrupt:
        stop_event.set()


@click.command(context_settings=CONTEXT_SETTINGS)
@click.argument("path", required=False, default=".", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.option("--verbose", is_flag=True, help="Enable verbose (debug) output.")
@click.version_option(__version__, "-v", "--version", prog_name="aisplit-watch")
def watch(path: Path, verbose: bool) -> None:
    """Watch PATH and commit changes automatically as they happen.

    Every change stages the whole working tree and splits it into
    commits tagged with a watch session ID.
    """
    configure_logging(verbose)
    ctx = click.get_current_context(silent=True)

    try:
        git, config = open_repository(path)
        committer = AutoCommitter(
            git,
            lambda metadata: SplitPipeline.from_config(git, config, metadata),
            debounce_ms=config.debounce_ms,
            min_commit_interval_ms=config.min_commit_interval_ms,
        )
        committer.start()
        print_info(f"Watching {git.repo_root} (session {committer.session_id}). Press Ctrl+C to stop.")
        try:
            wait_for_stop(threading.Event())
        finally:
            committer.stop()
            click.echo("Watch stopped")

    except click.exceptions.Exit:
        raise
    except GitError as exc:
        print_error(str(exc))
        raise click.exceptions.Exit(git_exit_code(exc))
    except Exception as exc:
        logging.exception("Unhandled error: %s", exc)
        print_error(f"Unexpected error: {exc}")
        ctx.exit(EXIT_GENERIC_ERROR)


# ---------------------------------------------------------------------------
# aisplit-session
# ---------------------------------------------------------------------------

SESSION_EPILOG = """\b
Subcommands:
  checkout <session-id|hash>  Check out a commit or the latest commit of a session
  start <name>                Create branch session/<name>-<timestamp>
  list                        Show the last 10 session commits

\b
Examples:
  aisplit-session                      Start an interactive session
  aisplit-session "Fix the bug"        Single prompt
  aisplit-session --resume abc123      Resume a session
  aisplit-session checkout abc123      Restore code from session abc123
"""


def run_history_command(git: GitClient, args: Tuple[str, ...]) -> Optional[int]:
    """Run ``checkout``/``start``/``list``; returns None for other arguments."""
    if len(args) >= 2 and args[0] == "checkout":
        try:
            checkout_session(git, args[1])
        except SessionNotFoundError as exc:
            print_error(str(exc))
            return EXIT_GENERIC_ERROR
        print_success(f"Checked out: {args[1]}")
        return EXIT_SUCCESS

    if len(args) >= 2 and args[0] == "start":
        branch = start_session(git, args[1])
        print_success(f"Created branch: {branch}")
        return EXIT_SUCCESS

    if args and args[0] == "list":
        entries = list_sessions(git)
        if not entries:
            print_info("No sessions found.")
            return EXIT_SUCCESS
        click.echo("Recent sessions:")
        click.echo("─" * 60)
        for entry in entries:
            click.echo(f"{entry.short_hash} {entry.session_id.ljust(20)} {entry.date}")
        return EXIT_SUCCESS

    return None


@click.command(
    context_settings={
        "help_option_names": ["-h", "--help"],
        "ignore_unknown_options": True,
        "allow_interspersed_args": False,
    },
    epilog=SESSION_EPILOG,
)
@click.option("--command", "command", default=DEFAULT_COMMAND, show_default=True, help="Command to wrap.")
@click.option("--verbose", is_flag=True, help="Enable verbose (debug) output.")
@click.version_option(__version__, "-v", "--version", prog_name="aisplit-session")
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
def session(command: str, verbose: bool, args: Tuple[str, ...]) -> None:
    """Run COMMAND with ARGS and commit its changes as it works."""
    configure_logging(verbose)
    ctx = click.get_current_context(silent=True)

    repo_root = GitClient.find_repo_root(Path.cwd())
    if repo_root is None:
        if args and args[0] in ("checkout", "start", "list"):
            print_error("Current directory is not inside a Git repository.")
            raise click.exceptions.Exit(EXIT_GENERIC_ERROR)
        print_warning("Not a Git repository; running without tracking.")
        raise click.exceptions.Exit(run_untracked(command, args))

    try:
        git, config = open_repository(repo_root)
        code = run_history_command(git, args)
        if code is not None:
            raise click.exceptions.Exit(code)

        print_info(f"Starting {command} session with auto-commit...")
        wrapper = SessionWrapper(
            git,
            lambda metadata: SplitPipeline.from_config(git, config, metadata),
            command=command,
            args=args,
        )
        raise click.exceptions.Exit(wrapper.run())

    except click.exceptions.Exit:
        raise
    except GitError as exc:
        print_error(str(exc))
        raise click.exceptions.Exit(git_exit_code(exc))
    except Exception as exc:
        logging.exception("Unhandled error: %s", exc)
        print_error(f"Unexpected error: {exc}")
        ctx.exit(EXIT_GENERIC_ERROR)
