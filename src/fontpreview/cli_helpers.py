"""CLI helper functions, decorators, and option definitions for fontpreview."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from fontpreview.config import (
    DEFAULT_CACHE_DIR,
    DEFAULT_FONTS_DIR,
    DEFAULT_STORAGE,
    FONT_SIZE_RANGE,
    LETTER_SPACING_RANGE,
    LINE_HEIGHT_RANGE,
    STORAGE_KINDS,
    TEXT_ALIGNS,
    WRITING_MODES,
)

if TYPE_CHECKING:
    from fontpreview.schema import Catalog, PreviewStyle
    from fontpreview.storage import FontStorage

# Names of the shared storage options (used to split kwargs in commands)
_STORAGE_OPTION_NAMES = ("storage", "fonts_dir", "cache_dir", "ref", "verbose")

# Names of the shared style options
_STYLE_OPTION_NAMES = ("size", "letter_spacing", "line_height", "writing_mode", "text_align")


def shared_storage_options(func):
    """Decorator that adds storage selection options to a command."""
    options = [
        click.option(
            "--storage",
            type=click.Choice(STORAGE_KINDS),
            default=DEFAULT_STORAGE,
            show_default=True,
            help="Storage backend",
        ),
        click.option(
            "--fonts-dir",
            type=click.Path(file_okay=False),
            default=DEFAULT_FONTS_DIR,
            show_default=True,
            help="Font directory for local/layered storage",
        ),
        click.option(
            "--cache-dir",
            type=click.Path(file_okay=False),
            default=DEFAULT_CACHE_DIR,
            help="Font cache directory for github storage",
        ),
        click.option("--ref", default=None, help="Branch or ref for github storage"),
        click.option("-v", "--verbose", is_flag=True, help="Verbose output"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def shared_style_options(func):
    """Decorator that adds preview style options to a command."""
    size_min, size_max, size_default = FONT_SIZE_RANGE
    ls_min, ls_max, ls_default = LETTER_SPACING_RANGE
    lh_min, lh_max, lh_default = LINE_HEIGHT_RANGE
    options = [
        click.option(
            "--size",
            type=click.IntRange(size_min, size_max),
            default=size_default,
            help=f"Font size in px ({size_min}-{size_max}, default: {size_default})",
        ),
        click.option(
            "--letter-spacing",
            type=click.FloatRange(ls_min, ls_max),
            default=ls_default,
            help=f"Letter spacing in em ({ls_min} to {ls_max})",
        ),
        click.option(
            "--line-height",
            type=click.FloatRange(lh_min, lh_max),
            default=lh_default,
            help=f"Line height multiplier ({lh_min} to {lh_max})",
        ),
        click.option(
            "--writing-mode",
            type=click.Choice(WRITING_MODES),
            default=WRITING_MODES[0],
            help="horizontal-tb or vertical-rl",
        ),
        click.option(
            "--text-align",
            type=click.Choice(TEXT_ALIGNS),
            default=TEXT_ALIGNS[0],
            help="left/center/right (top/center/bottom when vertical)",
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _split_kwargs(all_kwargs: dict, names: tuple[str, ...]) -> tuple[dict, dict]:
    """Split kwargs into (named_opts, remaining_opts)."""
    named = {k: all_kwargs[k] for k in names}
    rest = {k: v for k, v in all_kwargs.items() if k not in names}
    return named, rest


def _split_storage_kwargs(all_kwargs: dict) -> tuple[dict, dict]:
    return _split_kwargs(all_kwargs, _STORAGE_OPTION_NAMES)


def _split_style_kwargs(all_kwargs: dict) -> tuple[dict, dict]:
    return _split_kwargs(all_kwargs, _STYLE_OPTION_NAMES)


def _build_storage(opts: dict) -> FontStorage:
    """Open the storage backend described by the CLI options."""
    from fontpreview.storage import open_storage

    try:
        return open_storage(
            opts["storage"],
            fonts_dir=opts["fonts_dir"],
            cache_dir=opts["cache_dir"],
            ref=opts["ref"],
        )
    except (RuntimeError, ValueError) as e:
        raise click.UsageError(str(e)) from e


def _build_style(opts: dict) -> PreviewStyle:
    from fontpreview.schema import PreviewStyle

    return PreviewStyle(
        size_px=opts["size"],
        letter_spacing_em=opts["letter_spacing"],
        line_height=opts["line_height"],
        writing_mode=opts["writing_mode"],
        text_align=opts["text_align"],
    )


def _format_variants(variants: list[str | None]) -> str:
    return ", ".join("(no number)" if v is None else v for v in variants)


def _print_catalog(catalog: Catalog) -> None:
    """Print one line per base name with its variants."""
    if not len(catalog):
        click.secho("No fonts found.", fg="yellow")
        return
    width = max(len(name) for name in catalog.base_names())
    for entry in catalog.entries:
        click.echo(f"  {entry.base_name.ljust(width)}  {_format_variants(entry.variants)}")
    click.echo(f"\n{len(catalog)} font name(s), {len(catalog.files)} file(s)")
