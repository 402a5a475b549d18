from pathlib import Path
from typing import Optional
import mimetypes

import typer

from .config import CropMode, ExtractionOptions, Settings
from .logging import get_logger
from .extraction.detectors import load_seed_file
from .extraction.modes import MODE_DESCRIPTIONS
from .extraction.service import RegionExtractor
from .output.manifest import build_manifest, save_crops, write_manifest_json

app = typer.Typer(help="tessera - model-free screenshot region extractor", no_args_is_help=True)


def safe_echo(message: str) -> None:
    """Echo message with ASCII fallback for consoles that cannot encode it."""
    try:
        typer.echo(message)
    except UnicodeEncodeError:
        fallback_message = (
            message.replace("✅", "[OK]")
            .replace("🖼️", "[IMG]")
            .replace("🎯", "[REG]")
            .replace("📁", "[DIR]")
            .replace("📋", "[LIST]")
            .replace("📊", "[STATS]")
            .replace("⚠️", "[WARN]")
        )
        try:
            typer.echo(fallback_message)
        except UnicodeEncodeError:
            print("Output contains unsupported characters")


def _guess_mime_type(path: Path) -> str:
    mime_type, _ = mimetypes.guess_type(path.name)
    return mime_type or "image/png"


@app.command()
def extract(
    image_path: Path = typer.Argument(..., exists=True, readable=True, dir_okay=False, help="Screenshot or UI image to segment"),
    mode: str = typer.Option(CropMode.CONTOUR.value, "--mode", "-m", help="Detection mode (see 'tessera modes')"),
    out: Path = typer.Option(Path("output"), "--out", "-o", help="Output directory for crops and manifest"),
    crop_format: str = typer.Option("png", "--format", "-f", help="Crop image format (png, webp, tiff, bmp, jpg)"),
    rows: int = typer.Option(2, help="Grid rows (grid mode)"),
    columns: int = typer.Option(2, help="Grid columns (grid mode)"),
    min_size: int = typer.Option(20, help="Minimum region width and height in pixels"),
    edge_threshold: int = typer.Option(30, help="Luma gradient threshold for edge refinement"),
    color_tolerance: Optional[int] = typer.Option(None, help="Background color tolerance (mode default when omitted)"),
    refine: bool = typer.Option(True, "--refine/--no-refine", help="Snap external seeds to nearby edges"),
    detect_only: bool = typer.Option(False, "--detect-only", help="Report regions without writing crops"),
    seeds: Optional[Path] = typer.Option(None, exists=True, readable=True, dir_okay=False, help="JSON seed regions for smart-detect/hybrid"),
    write_manifest: bool = typer.Option(True, "--write-manifest/--no-write-manifest", help="Write JSON manifest file"),
) -> None:
    """
    Detect regions of interest in an image and save each one as a crop.

    Crops are written to the output directory using their suggested file
    names, alongside a manifest.json describing every region.
    """
    logger = get_logger(__name__)

    try:
        options = ExtractionOptions(
            mode=mode,
            min_component_size=min_size,
            edge_detection_threshold=edge_threshold,
            color_tolerance=color_tolerance,
            rows=rows,
            columns=columns,
            refine_with_edge_detection=refine,
            detect_only=detect_only,
        )
        settings = Settings(output_dir=out, crop_format=crop_format)
    except ValueError as exc:
        logger.error(str(exc))
        raise typer.Exit(code=2) from exc

    detector = None
    if seeds is not None:
        try:
            detector = load_seed_file(seeds)
        except (OSError, ValueError) as exc:
            logger.error(f"Failed to load seeds: {exc}")
            raise typer.Exit(code=2) from exc

    extractor = RegionExtractor(detector=detector, settings=settings)

    logger.info(f"Reading image: {image_path}")
    result = extractor.extract(image_path.read_bytes(), _guess_mime_type(image_path), options)

    if result.error_message:
        logger.error(result.error_message)
        safe_echo(f"⚠️  Extraction failed: {result.error_message}")
        raise typer.Exit(code=1)

    try:
        path_mapping = save_crops(result, settings.output_dir) if not detect_only else {}
        if write_manifest:
            manifest = build_manifest(image_path, result, path_mapping)
            write_manifest_json(manifest, settings.output_dir)
    except OSError as exc:
        logger.error(f"Failed to write output: {exc}")
        raise typer.Exit(code=1) from exc

    status = "✅" if result.success else "⚠️ "
    safe_echo(f"\n{status} {result.summary}")
    safe_echo(f"🖼️  Source: {image_path} ({result.source_width}x{result.source_height})")
    safe_echo(f"🎯 Mode: {options.mode.value}")
    safe_echo(f"📊 Regions: {result.total_found}")
    for region in result.regions:
        box = region.box
        safe_echo(f"   {region.suggested_filename}: {box.x},{box.y} {box.width}x{box.height} ({region.confidence}%)")
    if not detect_only:
        safe_echo(f"📁 Output directory: {out}")
    if write_manifest:
        safe_echo("📋 Manifest: manifest.json")


@app.command()
def modes() -> None:
    """List the available detection modes."""
    for crop_mode in CropMode:
        safe_echo(f"{crop_mode.value:<14} {MODE_DESCRIPTIONS[crop_mode]}")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
