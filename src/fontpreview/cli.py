"""CLI entry point for fontpreview - list, upload and preview web fonts."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

import click

from fontpreview.cli_helpers import (
    _build_storage,
    _build_style,
    _print_catalog,
    _split_storage_kwargs,
    _split_style_kwargs,
    shared_storage_options,
    shared_style_options,
)
from fontpreview.config import DEFAULT_FAMILY, DEFAULT_PREVIEW_TEXT

# -- CLI group --------------------------------------------------------------------------


@click.group()
@click.version_option(version="0.1.0", prog_name="fontpreview")
@click.option("-v", "--verbose", is_flag=True, hidden=True, help="Verbose output")
@click.pass_context
def cli(ctx: click.Context, verbose: bool):
    """Upload, list and preview WOFF/WOFF2/TTF/OTF fonts."""
    if verbose:
        logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")


def _setup_logging(opts: dict) -> None:
    if opts["verbose"]:
        logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")


def _load_catalog(storage, fallback: bool):
    from fontpreview.preview import refresh_catalog
    from fontpreview.providers import providers_for

    catalog, listing = refresh_catalog(providers_for(storage, fallback=fallback))
    if not listing.ok:
        click.secho(f"Warning: {listing.error}", fg="yellow", err=True)
    elif listing.source == "placeholder":
        msg = "Warning: storage unavailable, showing placeholder list"
        click.secho(msg, fg="yellow", err=True)
    elif listing.source == "cache":
        click.secho("Warning: remote unavailable, showing cached fonts", fg="yellow", err=True)
    return catalog


# -- list ------------------------------------------------------------------------------


@cli.command("list")
@click.option("--json", "as_json", is_flag=True, help="Print the catalog as JSON")
@click.option(
    "--fallback/--no-fallback",
    default=False,
    help="Show the placeholder list when storage cannot be listed",
)
@shared_storage_options
def list_cmd(as_json, fallback, **all_kwargs):
    """List font names and their variant numbers."""
    storage_opts, _ = _split_storage_kwargs(all_kwargs)
    _setup_logging(storage_opts)

    catalog = _load_catalog(_build_storage(storage_opts), fallback)
    if as_json:
        click.echo(json.dumps(catalog.to_dict(), indent=2, ensure_ascii=False))
    else:
        _print_catalog(catalog)


# -- resolve ---------------------------------------------------------------------------


@cli.command()
@click.argument("name")
@click.argument("variant", required=False)
@shared_storage_options
def resolve(name, variant, **all_kwargs):
    """Show which font file a NAME [VARIANT] selection uses."""
    storage_opts, _ = _split_storage_kwargs(all_kwargs)
    _setup_logging(storage_opts)

    from fontpreview.catalog import resolve_font
    from fontpreview.render import describe_selection

    catalog = _load_catalog(_build_storage(storage_opts), fallback=False)
    font = resolve_font(catalog, name, variant)
    label = describe_selection(name, variant, found=font is not None)
    if font is None:
        click.secho(f"{label} -> {DEFAULT_FAMILY}", fg="yellow")
        return
    click.echo(f"{label} -> {font.file_name}")


# -- upload ----------------------------------------------------------------------------


@cli.command()
@click.argument("files", nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False))
@shared_storage_options
def upload(files, **all_kwargs):
    """Upload one or more font files into storage."""
    storage_opts, _ = _split_storage_kwargs(all_kwargs)
    _setup_logging(storage_opts)

    from fontpreview.errors import StorageError

    storage = _build_storage(storage_opts)
    success, failed = 0, 0
    for file_path in files:
        path = Path(file_path)
        try:
            stored = storage.put(path.name, path.read_bytes())
        except (StorageError, OSError) as e:
            click.secho(f"  Rejected {path.name}: {e}", fg="red", err=True)
            failed += 1
            continue
        click.secho(f"  Uploaded {stored.file_name} ({stored.size_bytes} bytes)", fg="green")
        success += 1

    click.echo(f"Done: {success} uploaded, {failed} rejected out of {len(files)}.")
    if failed:
        sys.exit(1)


# -- delete ----------------------------------------------------------------------------


@cli.command()
@click.argument("name")
@shared_storage_options
def delete(name, **all_kwargs):
    """Delete a font file (full file name) from storage."""
    storage_opts, _ = _split_storage_kwargs(all_kwargs)
    _setup_logging(storage_opts)

    from fontpreview.errors import FontNotFoundError, StorageError

    storage = _build_storage(storage_opts)
    try:
        storage.delete(name)
    except FontNotFoundError:
        click.secho(f"Font not found: {name}", fg="yellow", err=True)
        sys.exit(1)
    except StorageError as e:
        click.secho(f"Error: {e}", fg="red", err=True)
        sys.exit(1)
    click.secho(f"Deleted {name}", fg="green")


# -- fontlist --------------------------------------------------------------------------


@cli.command()
@click.option("-o", "--output", type=click.Path(), default="fontlist.json", show_default=True)
@click.option(
    "--fonts-dir",
    type=click.Path(file_okay=False),
    default="fonts",
    show_default=True,
    help="Directory to scan",
)
def fontlist(output, fonts_dir):
    """Write a static font list (for deployments without a list API)."""
    from fontpreview.storage import LocalStorage

    fonts = LocalStorage(fonts_dir).list()
    if not Path(fonts_dir).is_dir():
        click.secho(f"Fonts directory not found: {fonts_dir}; writing empty list", fg="yellow")

    data = [{"name": font.file_name} for font in fonts]
    Path(output).write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
    click.secho(f"Wrote {output} ({len(data)} fonts)", fg="green")


# -- css -------------------------------------------------------------------------------


@cli.command()
@click.option("--url-prefix", default="fonts/", show_default=True, help="Prefix for font URLs")
@click.option("-o", "--output", type=click.Path(), default=None, help="Write to file")
@click.option("--name", default=None, help="Font name to select in the preview rule")
@click.option("--variant", default=None, help="Variant number to select")
@shared_style_options
@shared_storage_options
def css(url_prefix, output, name, variant, **all_kwargs):
    """Generate @font-face rules for every font plus the preview rule."""
    storage_opts, rest = _split_storage_kwargs(all_kwargs)
    style_opts, _ = _split_style_kwargs(rest)
    _setup_logging(storage_opts)

    from fontpreview.catalog import resolve_font
    from fontpreview.render import StylesheetTarget, font_family_for

    catalog = _load_catalog(_build_storage(storage_opts), fallback=False)
    target = StylesheetTarget()
    for font in catalog.files:
        target.register_file(font, f"{url_prefix}{font.file_name}")

    style = _build_style(style_opts)
    font = resolve_font(catalog, name, variant) if name else None
    if font is not None:
        style = style.model_copy(update={"font_family": font_family_for(font)})
    elif name:
        click.secho(f"Font not found: {name} {variant or ''}".rstrip(), fg="yellow", err=True)
    target.apply_style(style)

    stylesheet = target.stylesheet()
    if output:
        Path(output).write_text(stylesheet, encoding="utf-8")
        click.secho(f"Wrote {output} ({len(catalog.files)} font faces)", fg="green")
    else:
        click.echo(stylesheet, nl=False)


# -- preview ---------------------------------------------------------------------------


@cli.command()
@click.argument("name", required=False)
@click.argument("variant", required=False)
@click.option("-o", "--output", type=click.Path(), default="preview.png", show_default=True)
@click.option("--text", default=DEFAULT_PREVIEW_TEXT, help="Preview text (\\n for new lines)")
@shared_style_options
@shared_storage_options
def preview(name, variant, output, text, **all_kwargs):
    """Render a PNG preview of NAME [VARIANT] with the given style."""
    storage_opts, rest = _split_storage_kwargs(all_kwargs)
    style_opts, _ = _split_style_kwargs(rest)
    _setup_logging(storage_opts)

    from fontpreview.preview import prepare_preview
    from fontpreview.render import ImageTarget, text_align_label, writing_mode_label

    storage = _build_storage(storage_opts)
    catalog = _load_catalog(storage, fallback=False)
    target = ImageTarget()
    result = prepare_preview(storage, catalog, target, name, variant, _build_style(style_opts))

    try:
        Path(output).write_bytes(target.render_png(text.replace("\\n", "\n")))
    except OSError as e:
        click.secho(f"Error writing {output}: {e}", fg="red", err=True)
        sys.exit(1)

    color = "green" if result.found or not name else "yellow"
    click.secho(f"Wrote {output}", fg=color)
    click.echo(f"  Font:          {result.label}")
    click.echo(f"  Size:          {result.style.size_px}px")
    click.echo(f"  Letter space:  {result.style.letter_spacing_em:g}em")
    click.echo(f"  Line height:   {result.style.line_height:g}")
    click.echo(f"  Writing mode:  {writing_mode_label(result.style)}")
    click.echo(f"  Align:         {text_align_label(result.style)}")
