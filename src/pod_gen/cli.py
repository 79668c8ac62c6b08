from pathlib import Path
import logging
from typing import NoReturn

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from pod_gen.config import Settings, settings
from pod_gen.errors import PodGenError
from pod_gen.services.loaders import load_bundle_manifest, load_inspection

app = typer.Typer(add_completion=False)
console = Console()


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _effective_settings(assets_dir: Path | None, style: Path | None, log_level: str | None) -> Settings:
    update: dict[str, object] = {}
    if assets_dir is not None:
        update["assets_dir"] = assets_dir
    if style is not None:
        update["style_path"] = style
    if log_level is not None:
        update["log_level"] = log_level
    s = settings.model_copy(update=update) if update else settings
    _setup_logging(s.log_level)
    return s


def _fail(e: Exception) -> NoReturn:
    console.print(f"[red]ERROR[/red] {escape(str(e))}")
    raise typer.Exit(code=1)


@app.command()
def generate(
    inspection: Path = typer.Option(..., exists=True, file_okay=True, dir_okay=False),
    out: Path = typer.Option(Path("output/inspection.pdf")),
    assets_dir: Path | None = typer.Option(None, help="Override POD_GEN_ASSETS_DIR."),
    style: Path | None = typer.Option(None, help="Page style yaml (default: config/page_style.yaml)."),
    log_level: str | None = typer.Option(None),
) -> None:
    """Generate the proof of collection / delivery PDF for one inspection record."""
    from pod_gen.services.pdf.assembler import generate_inspection_pdf

    s = _effective_settings(assets_dir, style, log_level)
    try:
        record = load_inspection(inspection)
        data = generate_inspection_pdf(record, s)
    except (PodGenError, FileNotFoundError) as e:
        _fail(e)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_bytes(data)
    console.print(f"[green]OK[/green] wrote {out} ({len(data) // 1024}KB)")


@app.command()
def validate(
    inspection: Path = typer.Option(..., exists=True, file_okay=True, dir_okay=False),
) -> None:
    """Validate an inspection record (yaml/json) without rendering it."""
    from pod_gen.services.overlay.geometry import number_markers

    _setup_logging(settings.log_level)
    try:
        record = load_inspection(inspection)
    except PodGenError as e:
        _fail(e)

    table = Table(title=f"{record.kind.document_title} {record.job_number}")
    table.add_column("#", justify="right")
    table.add_column("id")
    table.add_column("view")
    table.add_column("type")
    table.add_column("size")
    table.add_column("photos", justify="right")
    for nm in number_markers(record.damage_markers):
        m = nm.marker
        table.add_row(str(nm.number), m.id, m.view.label, m.damage_type.label, m.size.label, str(len(m.photos)))
    if record.damage_markers:
        console.print(table)
    console.print(f"[green]OK[/green] schema validated ({len(record.damage_markers)} marker(s))")


@app.command()
def combine(
    manifest: Path = typer.Option(..., exists=True, file_okay=True, dir_okay=False),
    out: Path = typer.Option(Path("output/bundle.pdf")),
    style: Path | None = typer.Option(None),
    log_level: str | None = typer.Option(None),
) -> None:
    """Combine the PDFs listed in a bundle manifest behind a summary page."""
    from pod_gen.services.pdf.bundle import bundle_page_counts, combine_bundle

    s = _effective_settings(None, style, log_level)
    try:
        bundle = load_bundle_manifest(manifest)
        counts = bundle_page_counts([it.document for it in bundle.items])
        data = combine_bundle(bundle, s)
    except (PodGenError, FileNotFoundError) as e:
        _fail(e)

    table = Table(title=f"Bundle {bundle.bundle_reference or '-'}")
    table.add_column("reference")
    table.add_column("job reference")
    table.add_column("pages", justify="right")
    table.add_column("amount", justify="right")
    for it, n in zip(bundle.items, counts):
        table.add_row(it.reference, it.secondary_reference or "-", str(n), f"{s.currency_symbol}{it.amount}")
    if bundle.items:
        console.print(table)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_bytes(data)
    console.print(
        f"[green]OK[/green] wrote {out} ({len(bundle.items)} document(s), total {s.currency_symbol}{bundle.grand_total})"
    )


@app.command("make-outlines")
def make_outlines(
    assets_dir: Path | None = typer.Option(None),
    overwrite: bool = typer.Option(False, help="Replace existing outline templates."),
) -> None:
    """Draw default vehicle outline templates into <assets_dir>/outlines/."""
    from pod_gen.services.overlay.outlines import make_default_outlines

    target = assets_dir or settings.assets_dir
    written = make_default_outlines(target, overwrite=overwrite)
    for p in written:
        console.print(f"[green]OK[/green] wrote {p}")
    if not written:
        console.print(f"[yellow]WARN[/yellow] outlines already present in {target} (use --overwrite)")


if __name__ == "__main__":
    app()
