"""Entry point: allday [check <path>... | serve]."""

import pathlib
import sys
import typing

import typer
from loguru import logger

app = typer.Typer()

# Directories that are never interesting to analyse.
_SKIP_DIRS: frozenset[str] = frozenset(
    {".git", ".bundle", "vendor", "node_modules", "tmp", "log", "coverage", "public"}
)

_RUBY_SUFFIXES: frozenset[str] = frozenset({".rb", ".rake", ".ru", ".gemspec"})
_RUBY_FILENAMES: frozenset[str] = frozenset({"Gemfile", "Rakefile"})

_MAX_FIX_PASSES = 10


def _is_ruby_file(path: pathlib.Path) -> bool:
    return path.suffix in _RUBY_SUFFIXES or path.name in _RUBY_FILENAMES


def _collect_ruby_files(root: pathlib.Path) -> list[pathlib.Path]:
    """Recursively find Ruby files under root, skipping non-source directories."""
    return sorted(
        path
        for path in root.rglob("*")
        if path.is_file()
        and _is_ruby_file(path)
        and not any(part in _SKIP_DIRS for part in path.relative_to(root).parts)
    )


def _git_diff_ruby_files() -> list[pathlib.Path]:
    """Return Ruby files changed relative to HEAD in the current git repository.

    Returns an empty list when git is unavailable or the directory is not a
    git repository.
    """
    import subprocess  # noqa: PLC0415

    try:
        root_proc = subprocess.run(
            ["git", "rev-parse", "--show-toplevel"],  # noqa: S607
            capture_output=True,
            text=True,
            check=False,
        )
        diff_proc = subprocess.run(
            ["git", "diff", "--name-only", "--diff-filter=ACMR", "HEAD"],  # noqa: S607
            capture_output=True,
            text=True,
            check=False,
        )
    except OSError as e:
        logger.debug("git unavailable: {}", e)
        return []
    if root_proc.returncode != 0 or diff_proc.returncode != 0:
        return []
    git_root = pathlib.Path(root_proc.stdout.strip())
    return [
        git_root / line
        for line in diff_proc.stdout.splitlines()
        if _is_ruby_file(pathlib.Path(line))
    ]


def _resolve_files(
    paths: list[pathlib.Path] | None,
    *,
    diff: bool,
) -> list[pathlib.Path]:
    """Expand paths and optionally the git diff into a deduplicated file list."""
    candidates: list[pathlib.Path] = []
    if diff:
        candidates.extend(_git_diff_ruby_files())
    for raw_path in paths or []:
        if raw_path.is_dir():
            candidates.extend(_collect_ruby_files(raw_path))
        else:
            candidates.append(raw_path)
    seen: set[pathlib.Path] = set()
    unique: list[pathlib.Path] = []
    for file_path in candidates:
        resolved = file_path.resolve()
        if resolved not in seen:
            seen.add(resolved)
            unique.append(file_path)
    return unique


def _configure_logging(*, verbose: bool) -> None:
    """Send log records to stderr, at DEBUG when verbose and WARNING otherwise."""
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "WARNING")


@app.command(no_args_is_help=True)
def check(
    paths: typing.Annotated[
        list[pathlib.Path] | None,
        typer.Argument(help="Files or directories to check."),
    ] = None,
    diff: typing.Annotated[  # noqa: FBT002
        bool,
        typer.Option("--diff", help="Check Ruby files changed in the current git diff."),
    ] = False,
    fix: typing.Annotated[  # noqa: FBT002
        bool,
        typer.Option("--fix", help="Apply auto-fixes for fixable violations."),
    ] = False,
    verbose: typing.Annotated[  # noqa: FBT002
        bool,
        typer.Option("--verbose", "-v", help="Log debug output to stderr."),
    ] = False,
) -> None:
    """Check one or more files/directories for rule violations.

    Raises:
        typer.Exit: With code 1 if any unfixed violations remain.
    """
    from allday import analyzer as allday_analyzer  # noqa: PLC0415
    from allday import config as allday_config  # noqa: PLC0415
    from allday import fixes, rules  # noqa: PLC0415

    _configure_logging(verbose=verbose)
    ruby_files = _resolve_files(paths, diff=diff)
    cfg = allday_config.load_config()
    analyzer = allday_analyzer.Analyzer(
        rules=allday_config.active_rules(rules.ALL_RULES, cfg)
    )
    found_any = False

    for file_path in ruby_files:
        try:
            source = file_path.read_text()
        except OSError as e:
            typer.echo(f"error: {e}", err=True)
            continue

        diagnostics = analyzer.analyze(source)

        if fix:
            fixed_source = source
            for _ in range(_MAX_FIX_PASSES):
                updated = fixes.apply_fixes(fixed_source, diagnostics)
                if updated == fixed_source:
                    break
                fixed_source = updated
                # Overlapping fixes are deferred, so re-analyze and go again.
                diagnostics = analyzer.analyze(fixed_source)
            if fixed_source != source:
                file_path.write_text(fixed_source)
                logger.info("Fixed {}", file_path)

        for diag in diagnostics:
            typer.echo(
                f"{file_path}:{diag.line}:{diag.col}: {diag.rule_id} {diag.message}"
            )
        if diagnostics:
            found_any = True

    if found_any:
        raise typer.Exit(code=1)


@app.command()
def serve() -> None:
    """Run the LSP server over stdio."""
    from allday import server  # noqa: PLC0415

    _configure_logging(verbose=False)
    server.start()


def main() -> None:
    """Dispatch to CLI check mode or LSP server mode."""
    app()


if __name__ == "__main__":
    main()
