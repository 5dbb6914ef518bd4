"""Clean logging utilities for book-spreads."""

import click


class Logger:
    """Simple logger that wraps click.echo for clean error/info handling.

    An optional prefix tags every line, which keeps the output of books
    downloaded side by side apart.
    """

    def __init__(self, verbose: bool = False, prefix: str = ""):
        self.verbose = verbose
        self.prefix = prefix

    def child(self, prefix: str) -> "Logger":
        """Return a logger that tags every line with ``[prefix]``."""
        return Logger(verbose=self.verbose, prefix=f"[{prefix}] ")

    def info(self, message: str, nl: bool = True) -> None:
        """Log info message (always shown)."""
        click.echo(f"{self.prefix}{message}", nl=nl)

    def verbose_info(self, message: str, nl: bool = True) -> None:
        """Log verbose info message (only shown if verbose=True)."""
        if self.verbose:
            click.echo(f"{self.prefix}{message}", nl=nl)

    def error(self, message: str) -> None:
        """Log error message to stderr."""
        click.echo(f"{self.prefix}Error: {message}", err=True)

    def warning(self, message: str) -> None:
        """Log warning message to stderr."""
        click.echo(f"{self.prefix}Warning: {message}", err=True)

    def success(self, message: str) -> None:
        """Log success message."""
        click.echo(f"{self.prefix}✓ {message}")

    def section(self, title: str) -> None:
        """Print a section header."""
        click.echo(f"\n{self.prefix}{title}")
        click.echo("=" * 70)

    def subsection(self, title: str) -> None:
        """Print a subsection header."""
        click.echo(f"\n{self.prefix}{title}")
