"""
--------------------------------------------------------------------------------
<classdepth project>
src/classdepth/core/cli.py
--------------------------------------------------------------------------------
"""

from pathlib import Path

import typer
from rich import box
from rich.panel import Panel
from rich.table import Table
from rich.traceback import install as rich_tracebacks

from classdepth.core.artifacts import StateStore
from classdepth.core.config_model import RecipeSpec, build_recipe
from classdepth.core.engine import bake_saved, run_job, tidy_all
from classdepth.core.engine import explain as explain_job
from classdepth.core.engine import validate as validate_job
from classdepth.core.errors import ClassDepthError
from classdepth.core.registry import default_registry
from classdepth.depth.metrics import DEFAULT_METRIC, METRICS
from classdepth.utils.console import THEME, make_console

app = typer.Typer(
    add_completion=False,
    help=(
        "classdepth — class-specific data depth as a recipe step.\n\n"
        "A config.yaml declares the training data, column roles and an ordered list of steps. "
        "'run' preps the steps on the training data, bakes new data, and writes results under outputs/."
    ),
)
console = make_console()
rich_tracebacks(show_locals=False)

_CONFIG_ARG = typer.Argument(
    None,
    metavar="[CONFIG]",
    help="Path to config.yaml • or a directory containing config.yaml (defaults to ./config.yaml)",
)


def _table(title: str) -> Table:
    return Table(
        title=f"[title]{title}[/title]",
        title_justify="left",
        header_style="bold",
        box=box.ROUNDED,
        expand=True,
        show_lines=False,
        show_edge=True,
    )


def _infer_config_path(config: str | None) -> Path:
    """
    Resolve CONFIG:
      • existing directory => <dir>/config.yaml (error if absent)
      • existing file      => as-is
      • omitted            => ./config.yaml
    """
    p = Path(config) if config else Path.cwd()
    if p.is_dir():
        candidate = p / "config.yaml"
        if candidate.exists():
            return candidate.resolve()
        raise typer.BadParameter(f"{p} has no 'config.yaml'. Pass a config file or a directory that contains one.")
    if p.exists():
        return p.resolve()
    raise typer.BadParameter(f"CONFIG not found: {config!r}")


def _fail(e: ClassDepthError) -> None:
    console.print(Panel.fit(f"[error]✗ {type(e).__name__}[/error]\n{e}", border_style="error", box=box.ROUNDED))
    raise typer.Exit(code=1)


@app.command(help="List the installed steps (built-ins and entry points).")
def steps():
    t = _table("Steps")
    t.add_column("uses", style="accent")
    t.add_column("class")
    t.add_column("config fields", style="muted")
    for key, cls in sorted(default_registry().steps().items()):
        fields = ", ".join(f.alias or name for name, f in cls.ConfigModel.model_fields.items())
        t.add_row(f"step/{key}", cls.__name__, fields)
    console.print(Panel(t, border_style="accent", box=box.ROUNDED))


@app.command(help="List the depth metrics, their library function and accepted options.")
def metrics():
    t = _table("Depth metrics")
    t.add_column("name", style="accent")
    t.add_column("depth.model.multivariate")
    t.add_column("options", style="muted")
    t.add_column("rows ≥ columns", justify="center")
    for name, cls in METRICS.items():
        opts = ", ".join(k for k in cls.model_fields if k != "name")
        label = f"{name} (default)" if name == DEFAULT_METRIC else name
        t.add_row(label, cls.function, opts, "[ok]✓[/ok]" if cls.needs_rows_ge_columns else "[muted]—[/muted]")
    console.print(Panel(t, border_style="accent", box=box.ROUNDED))


@app.command(help="Render the recipe described by a config: step order, ids, and what each step selects.")
def explain(config: str | None = _CONFIG_ARG):
    try:
        explain_job(RecipeSpec.load(_infer_config_path(config)), console=console)
    except ClassDepthError as e:
        _fail(e)


@app.command(help="Validate a config: schema, step availability and each step's configuration. Nothing is run.")
def validate(config: str | None = _CONFIG_ARG):
    try:
        validate_job(RecipeSpec.load(_infer_config_path(config)), console=console)
    except ClassDepthError as e:
        _fail(e)


@app.command(
    help=(
        "Prep the recipe on data.training, bake data.new_data (or the training data), and write "
        "baked.csv, tidy.csv and the trained state under outputs/. Logs go to outputs/classdepth.log."
    )
)
def run(
    config: str | None = _CONFIG_ARG,
    log_level: str = typer.Option(
        "INFO", "--log-level", metavar="LEVEL", help="Logging level: DEBUG | INFO | WARNING | ERROR."
    ),
    save_state: bool = typer.Option(True, "--save-state/--no-save-state", help="Persist the trained state."),
):
    try:
        run_job(_infer_config_path(config), log_level=log_level, save_state=save_state, console=console)
    except ClassDepthError as e:
        _fail(e)


@app.command(help="Bake a data file with a trained state saved by 'run'.")
def bake(
    state: Path = typer.Argument(..., metavar="STATE_DIR", help="Directory holding manifest.json (outputs/state)."),
    data: Path = typer.Argument(..., metavar="DATA", help=".csv / .tsv / .parquet file to bake."),
    out: Path = typer.Option(Path("baked.csv"), "--out", "-o", metavar="PATH", help="Output file (.csv or .parquet)."),
    categorical: list[str] = typer.Option([], "--categorical", help="Column to read as 'category' (repeatable)."),
):
    try:
        path = bake_saved(state, data, out, categorical=tuple(categorical))
    except ClassDepthError as e:
        _fail(e)
    console.print(Panel.fit(f"✓ Baked → [path]{path}[/path]", border_style="ok", box=box.ROUNDED))


@app.command(help="Show tidy summaries: of the saved state when --state is given, else of the untrained config.")
def tidy(
    config: str | None = _CONFIG_ARG,
    state: Path | None = typer.Option(None, "--state", metavar="STATE_DIR", help="Saved trained state."),
):
    try:
        if state is not None:
            recipe = StateStore(state).load()
        else:
            recipe = build_recipe(RecipeSpec.load(_infer_config_path(config)))
        frame = tidy_all(recipe)
    except ClassDepthError as e:
        _fail(e)
    t = _table("Tidy")
    for col in frame.columns:
        t.add_column(str(col))
    for row in frame.itertuples(index=False):
        t.add_row(*["—" if v is None or v != v else str(v) for v in row])
    console.print(Panel(t, border_style="accent", box=box.ROUNDED))


def main() -> None:
    app()


__all__ = ["THEME", "app", "main"]
