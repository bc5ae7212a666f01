"""Command line interface for HashFS."""

from __future__ import annotations

import typer
from rich.console import Console
from rich.markup import escape

from .config import load_config
from .output import ProgressReporter, styled
from .services.export_service import export_tree, render_tree_json
from .services.index_service import build_index
from .store import StoreError
from .text import Messages, Styles

console = Console(highlight=False)

app = typer.Typer(
    help=Messages.APP_HELP,
    add_completion=False,
    context_settings={"help_option_names": ["-h", "--help"]},
)


@app.command()
def main(
    path: str | None = typer.Argument(
        None,
        help=Messages.HELP_PATH,
        show_default=False,
    ),
    database: str | None = typer.Argument(
        None,
        help=Messages.HELP_DATABASE,
        show_default=False,
    ),
    tojson: bool = typer.Option(
        False,
        "--tojson",
        help=Messages.HELP_TOJSON,
    ),
) -> None:
    """Walk PATH into DATABASE, or print DATABASE as a JSON tree with --tojson."""
    config = load_config()

    if tojson:
        # only the JSON document may reach stdout in this mode
        if database is not None:
            raise typer.BadParameter(Messages.ERROR_TOJSON_EXTRA)
        try:
            tree = export_tree(path or config.database)
        except StoreError as exc:
            console.print(styled(escape(str(exc)), Styles.ERROR), soft_wrap=True)
            raise typer.Exit(code=1)
        typer.echo(render_tree_json(tree))
        return

    directory = path or "."
    db_path = database or config.database
    console.print(
        styled(
            escape(Messages.INFO_INDEX_RUNNING.format(path=directory, database=db_path)),
            Styles.INFO,
        )
    )
    try:
        result = build_index(
            directory,
            db_path,
            config=config,
            reporter=ProgressReporter(console),
        )
    except (RuntimeError, OSError) as exc:
        console.print(styled(escape(str(exc)), Styles.ERROR), soft_wrap=True)
        raise typer.Exit(code=1)
    console.print(
        styled(
            Messages.INFO_INDEX_DONE.format(count=result.files_processed, removed=result.removed),
            Styles.SUCCESS,
        )
    )


def run(argv: list[str] | None = None) -> None:
    """Entry point wrapper allowing optional argument override."""
    if argv is None:
        app()
    else:
        app(args=list(argv))
