"""
KPI telemetry CSV tooling from the command line.

    python -m scripts.kpi_csv template --output template.csv
    python -m scripts.kpi_csv ingest telemetry.csv [--auto-define]
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

from app.config import get_logging_settings
from app.services.kpi_upload_workflow import UploadStep
from app.services.kpi_vault_service import KPIVaultService
from app.services.template_service import TemplateService
from app.services.upload_registry import build_upload_workflow

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_UNDEFINED_METRICS = 2


async def write_template(vault: KPIVaultService, output: Path | None) -> dict[str, Any]:
    template = await TemplateService(vault=vault).build()
    target = output or Path(template.file_name)
    target.write_text(template.content, encoding="utf-8")
    return {"file": str(target), "header": template.content.rstrip("\n")}


async def ingest_file(
    vault: KPIVaultService,
    path: Path,
    *,
    auto_define: bool = False,
) -> tuple[int, dict[str, Any]]:
    """
    Run the upload workflow non-interactively and return (exit code, summary).
    """

    try:
        text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError:
        return EXIT_FAILED, {"file": path.name, "step": UploadStep.UPLOAD.value, "errors": ["CSV must be UTF-8 encoded."]}

    workflow = build_upload_workflow(vault)
    await workflow.load(file_name=path.name, text=text)

    if workflow.step is UploadStep.DISCOVERY:
        if not auto_define:
            return EXIT_UNDEFINED_METRICS, _summary(workflow)
        await workflow.submit_definitions(workflow.drafts)

    if workflow.step is not UploadStep.VALIDATE:
        return EXIT_FAILED, _summary(workflow)

    await workflow.ingest()
    code = EXIT_OK if workflow.step is UploadStep.COMPLETE else EXIT_FAILED
    return code, _summary(workflow)


def _summary(workflow: Any) -> dict[str, Any]:
    report = workflow.last_report
    return {
        "file": workflow.file_name,
        "step": workflow.step.value,
        "tenant": workflow.target_tenant,
        "rows": len(workflow.rows),
        "missing_kpis": list(workflow.missing_kpis),
        "errors": workflow.error_messages,
        "rows_committed": report.rows_committed if report is not None else None,
        "rows_failed": report.rows_failed if report is not None else None,
        "status": report.status.value if report is not None else None,
    }


async def _run(args: argparse.Namespace) -> int:
    from app.services.kpi_vault_service import get_kpi_vault_service
    from db.session import dispose_engine

    vault = get_kpi_vault_service()
    try:
        if args.command == "template":
            payload = await write_template(vault, args.output)
            code = EXIT_OK
        else:
            code, payload = await ingest_file(vault, args.path, auto_define=args.auto_define)
    finally:
        await dispose_engine()

    print(json.dumps(payload, indent=2))
    return code


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="KPI telemetry CSV tooling.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    template_parser = subparsers.add_parser("template", help="Write an empty CSV template.")
    template_parser.add_argument("--output", type=Path, default=None, help="Destination file path.")

    ingest_parser = subparsers.add_parser("ingest", help="Validate and ingest one CSV file.")
    ingest_parser.add_argument("path", type=Path, help="CSV file to ingest.")
    ingest_parser.add_argument(
        "--auto-define",
        action="store_true",
        help="Save placeholder definitions for undiscovered metric keys instead of aborting.",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, get_logging_settings().level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        stream=sys.stderr,
    )
    return asyncio.run(_run(args))


if __name__ == "__main__":
    raise SystemExit(main())
