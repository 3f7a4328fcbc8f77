"""Main CLI entry point."""

import base64
import json
import logging
import sys
from pathlib import Path

import click
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler

from scan_enhance.config import EnhanceConfig
from scan_enhance.errors import EnhancementError
from scan_enhance.pdf import PAGE_MIME, parse_page_list, pdf_to_images
from scan_enhance.pipeline import EnhancedPage, enhance_pages

console = Console(stderr=True)
load_dotenv()

IMAGE_TYPES = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".webp": "image/webp",
    ".gif": "image/gif",
    ".bmp": "image/bmp",
    ".tif": "image/tiff",
    ".tiff": "image/tiff",
}

FILE_EXTENSIONS = {
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/webp": ".webp",
    "image/gif": ".gif",
    "image/bmp": ".bmp",
    "image/tiff": ".tif",
}


def _parse_pages(ctx, param, value):
    if value is None:
        return None
    try:
        return parse_page_list(value)
    except ValueError as e:
        raise click.BadParameter(str(e)) from None


@click.command()
@click.argument("input_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--output-dir", "-o",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Write original and enhanced images here. Defaults to JSON on stdout.",
)
@click.option(
    "--pages",
    default=None,
    callback=_parse_pages,
    help="PDF pages to process, e.g. '1,3,5-7'. Defaults to all pages.",
)
@click.option(
    "--dpi",
    default=144,
    show_default=True,
    help="DPI for PDF rendering.",
)
@click.option(
    "--workers", "-w",
    default=1,
    show_default=True,
    type=click.IntRange(min=1),
    help="Number of pages to enhance in parallel.",
)
@click.option(
    "--max-long-edge",
    type=int,
    default=None,
    help="Cap on the long edge of the working image in pixels [default: 1024].",
)
@click.option(
    "--gamma",
    type=float,
    default=None,
    help="Gamma applied before denoising [default: 0.8].",
)
@click.option(
    "--threshold-bias",
    type=float,
    default=None,
    help="Constant subtracted from the local mean when binarising [default: 8].",
)
@click.option("--verbose", "-v", is_flag=True, help="Log per-stage timings.")
@click.version_option(package_name="scan-enhance")
def main(input_path, output_dir, pages, dpi, workers, max_long_edge, gamma, threshold_bias, verbose):
    """Enhance a photographed or scanned page for a vision model.

    INPUT_PATH can be a .pdf or a .png, .jpg, .jpeg, .webp, .gif, .bmp or
    .tiff image.  Each page is binarised, cleaned and deskewed.
    """
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=console, show_path=False)],
        )

    try:
        config = EnhanceConfig.from_env(
            max_long_edge=max_long_edge,
            gamma=gamma,
            threshold_bias=threshold_bias,
        )
    except (RuntimeError, ValueError) as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)

    suffix = input_path.suffix.lower()
    if pages is not None and suffix != ".pdf":
        raise click.UsageError("--pages only applies to PDF input.")

    try:
        if suffix == ".pdf":
            with console.status("[cyan]Converting PDF to images..."):
                images = pdf_to_images(input_path, dpi=dpi, pages=pages)
            page_numbers = pages or list(range(1, len(images) + 1))
            console.print(f"[dim]{len(images)} page(s) extracted[/dim]")
            inputs = [(img, PAGE_MIME) for img in images]
        elif suffix in IMAGE_TYPES:
            page_numbers = None
            inputs = [(input_path.read_bytes(), IMAGE_TYPES[suffix])]
        else:
            console.print(f"[red]Unsupported file type:[/red] {suffix}")
            sys.exit(1)

        with console.status(f"[cyan]Enhancing {len(inputs)} page(s)..."):
            results = enhance_pages(inputs, config=config, workers=workers)
    except EnhancementError as e:
        console.print("[red]Error:[/red] Failed to process file. Ensure it is a valid image or PDF.")
        console.print(f"[dim]{e}[/dim]")
        sys.exit(1)

    if output_dir:
        output_dir.mkdir(parents=True, exist_ok=True)
        for i, page in enumerate(results):
            label = input_path.stem if page_numbers is None else f"{input_path.stem}_page{page_numbers[i]}"
            for path in _write_page(output_dir, label, page):
                console.print(f"[green]Written to {path}[/green]")
    else:
        click.echo(json.dumps([page.to_dict() for page in results], indent=2))


def _write_page(output_dir: Path, label: str, page: EnhancedPage) -> list[Path]:
    original = output_dir / f"{label}_original{FILE_EXTENSIONS[page.original_mime_type]}"
    enhanced = output_dir / f"{label}_enhanced.jpg"
    original.write_bytes(base64.standard_b64decode(page.original_base64))
    enhanced.write_bytes(base64.standard_b64decode(page.processed_base64))
    return [original, enhanced]
