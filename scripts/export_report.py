#!/usr/bin/env python
"""Analyse a loan row or financial statement and write the PDF export locally."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from bankassist.core.config import get_settings  # noqa: E402
from bankassist.core.logging import configure_logging  # noqa: E402
from bankassist.dependencies import (  # noqa: E402
    get_export_coordinator,
    get_regeneration_service,
    get_report_store,
)
from bankassist.schemas import RegenerationInputs, ReportLanguage, ReportType  # noqa: E402
from bankassist.services import ExportError  # noqa: E402

logger = logging.getLogger("scripts.export_report")


def _build_inputs(args: argparse.Namespace) -> RegenerationInputs:
    if args.report_type is ReportType.LOAN:
        return RegenerationInputs(
            report_type=ReportType.LOAN,
            csv_data=Path(args.source).read_text(encoding="utf-8"),
            loan_id=args.loan_id,
        )
    return RegenerationInputs(
        report_type=ReportType.FINANCIAL,
        pdf_data=Path(args.source).read_bytes(),
    )


async def run_export(args: argparse.Namespace) -> Path:
    inputs = _build_inputs(args)
    store = get_report_store()
    regeneration = get_regeneration_service()
    coordinator = get_export_coordinator()
    language = args.language or get_settings().default_language

    report = await regeneration.regenerate(inputs.report_type, inputs, language)
    handle = store.create(report, language, inputs)

    request = coordinator.request_download(handle)
    artifact = await coordinator.choose_language(
        request.request_id, args.export_language or language
    )

    args.output_dir.mkdir(parents=True, exist_ok=True)
    target = args.output_dir / artifact.filename
    target.write_bytes(artifact.content)
    return target


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Run a loan or financial statement analysis and export it as PDF."
    )
    parser.add_argument("report_type", type=ReportType, choices=list(ReportType))
    parser.add_argument(
        "source",
        help="CSV dataset for loan reports or the statement PDF for financial reports.",
    )
    parser.add_argument("--loan-id", dest="loan_id", default=None)
    parser.add_argument(
        "--language",
        type=ReportLanguage,
        choices=list(ReportLanguage),
        default=None,
        help="Language of the initial analysis (defaults to DEFAULT_REPORT_LANGUAGE).",
    )
    parser.add_argument(
        "--export-language",
        type=ReportLanguage,
        choices=list(ReportLanguage),
        default=None,
        help="Language of the exported document (defaults to --language).",
    )
    parser.add_argument("--output-dir", type=Path, default=Path("."))
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    if args.report_type is ReportType.LOAN and not args.loan_id:
        parser.error("--loan-id is required for loan reports")

    configure_logging(get_settings().log_level)
    try:
        target = asyncio.run(run_export(args))
    except (OSError, ValueError) as exc:
        print(f"Unable to read inputs: {exc}", file=sys.stderr)
        return 2
    except ExportError as exc:
        print(f"Export failed: {exc}", file=sys.stderr)
        return 3

    print(f"Wrote {target}")
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    sys.exit(main())
