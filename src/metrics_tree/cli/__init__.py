"""CLI entry point: registers all subcommands."""

import typer

app = typer.Typer(
    name="metrics-tree",
    help="metrics-tree - Object-oriented software metrics for Python projects",
    add_completion=False,
    rich_markup_mode="rich",
)


# Import subcommands to register them
from .analyze import analyze as _analyze  # noqa: F401, E402
from .catalogue import metrics as _metrics  # noqa: F401, E402
from .watch import watch as _watch  # noqa: F401, E402


def main() -> None:
    app()
