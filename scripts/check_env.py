"""Pre-flight check for the report export service configuration.

Loads the settings from an env file the way the service does and prints the
export profile they produce: page geometry, raster size and right-to-left
support. Fonts that cannot be opened and settings that fail validation are
reported as errors; missing Arabic support is only a warning, since exports
still succeed with unshaped text.

Example::

    python -m scripts.check_env --env-file /opt/bankassist/.env
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from PIL import ImageFont, features
from pydantic import ValidationError

from bankassist.core.config import AppSettings, ExportSettings, GeminiSettings
from bankassist.services.pagination import PageFormat

EXIT_OK = 0
EXIT_VALIDATION_ERROR = 2
EXIT_RUNTIME_ERROR = 5

MM_PER_INCH = 25.4


def _load_settings(env_file: Path) -> AppSettings:
    return AppSettings(  # type: ignore[call-arg]
        _env_file=env_file,
        gemini=GeminiSettings(_env_file=env_file),  # type: ignore[call-arg]
        export=ExportSettings(_env_file=env_file),  # type: ignore[call-arg]
    )


def _unreadable_fonts(export: ExportSettings) -> list[tuple[str, str]]:
    """Return configured TrueType fonts that Pillow cannot open."""
    unreadable: list[tuple[str, str]] = []
    for name in ("font_path", "rtl_font_path"):
        path = getattr(export, name)
        if not path:
            continue
        try:
            ImageFont.truetype(path, 12)
        except OSError:
            unreadable.append((f"EXPORT_{name.upper()}", path))
    return unreadable


def _rtl_warnings(export: ExportSettings) -> list[str]:
    warnings: list[str] = []
    if not features.check_feature("raqm"):
        warnings.append("Pillow lacks libraqm; Arabic exports are not shaped.")
    if not (export.rtl_font_path or export.font_path):
        warnings.append(
            "No EXPORT_RTL_FONT_PATH set; Arabic exports use Pillow's default font."
        )
    return warnings


def describe_export(settings: AppSettings) -> list[str]:
    """Summarize the export geometry the settings produce."""
    export = settings.export
    page = PageFormat(
        width=export.page_width_mm,
        height=export.page_height_mm,
        margin=export.page_margin_mm,
    )
    layout_px = round(page.printable_width / MM_PER_INCH * export.render_dpi)
    timeout = (
        f"{export.prompt_timeout_seconds:g} s"
        if export.prompt_timeout_seconds
        else "never"
    )
    return [
        f"Environment:      {settings.environment}",
        f"Gemini model:     {settings.gemini.model_name}",
        f"Default language: {settings.default_language.value}",
        f"Page:             {page.width:g} x {page.height:g} mm, margin {page.margin:g} mm",
        f"Printable area:   {page.printable_width:g} x {page.printable_height:g} mm",
        f"Raster width:     {round(layout_px * export.render_scale)} px "
        f"({layout_px} px layout at {export.render_dpi} dpi, x{export.render_scale:g})",
        f"Prompt expiry:    {timeout}",
    ]


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Validate export settings and print the resulting page profile."
    )
    parser.add_argument(
        "--env-file",
        default=".env",
        type=Path,
        help="Path to the environment file (default: .env in the repo root).",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    env_file: Path = args.env_file

    if not env_file.exists():
        print(f"Environment file {env_file} does not exist.", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    try:
        settings = _load_settings(env_file)
    except ValidationError as exc:
        print(
            "Settings validation failed. Missing or invalid values detected:\n"
            f"{exc.json(indent=2)}",
            file=sys.stderr,
        )
        return EXIT_VALIDATION_ERROR

    unreadable = _unreadable_fonts(settings.export)
    if unreadable:
        print(
            "Configured export fonts could not be loaded:\n"
            + "\n".join(f"  {name}: {path}" for name, path in unreadable),
            file=sys.stderr,
        )
        return EXIT_VALIDATION_ERROR

    print("\n".join(describe_export(settings)))
    for warning in _rtl_warnings(settings.export):
        print(f"warning: {warning}", file=sys.stderr)
    return EXIT_OK


if __name__ == "__main__":  # pragma: no cover - script entry point
    sys.exit(main())
