from __future__ import annotations

import argparse
import json
import sys
from collections.abc import Sequence
from pathlib import Path

from pydantic import BaseModel

from ade_client.batch.runner import BatchRunner
from ade_client.core.config import Settings, get_settings
from ade_client.core.errors import ADEError
from ade_client.core.logging import configure_logging, get_logger
from ade_client.outputs.files import save_extraction_result, save_parse_result, unique_stems
from ade_client.providers.ade import ADEClient
from ade_client.schemas.jobs import JobStatus

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="ade-client", description="Parse and extract documents with the ADE API")
    parser.add_argument("--environment", choices=["production", "eu"], default=None)
    parser.add_argument("--api-key", default=None, help="Overrides ADE_API_KEY")
    parser.add_argument("--output-dir", default=None, help="Write results here instead of stdout")
    subcommands = parser.add_subparsers(dest="command", required=True)

    parse_cmd = subcommands.add_parser("parse", help="Parse a document into markdown and chunks")
    parse_cmd.add_argument("document", help="Local path or http(s) URL")
    parse_cmd.add_argument("--model", default=None)
    parse_cmd.add_argument("--split", choices=["page"], default=None)
    mode = parse_cmd.add_mutually_exclusive_group()
    mode.add_argument("--job", dest="use_job", action="store_true", default=None, help="Force the async job API")
    mode.add_argument("--sync", dest="use_job", action="store_false", help="Force a synchronous parse")
    parse_cmd.set_defaults(use_job=None)

    extract_cmd = subcommands.add_parser("extract", help="Extract schema fields from markdown")
    extract_cmd.add_argument("markdown", help="Markdown file path or http(s) URL")
    extract_cmd.add_argument("--schema", required=True, help="JSON schema file or inline JSON")
    extract_cmd.add_argument("--model", default=None)
    extract_cmd.add_argument("--strict", action="store_true", help="Fail on schema violations")

    job_cmd = subcommands.add_parser("job", help="Show the status of a parse job")
    job_cmd.add_argument("job_id")

    jobs_cmd = subcommands.add_parser("jobs", help="List parse jobs")
    jobs_cmd.add_argument("--status", choices=[status.value for status in JobStatus], default=None)
    jobs_cmd.add_argument("--page", type=int, default=0)
    jobs_cmd.add_argument("--page-size", type=int, default=10)

    batch_cmd = subcommands.add_parser("batch", help="Parse many documents concurrently")
    batch_cmd.add_argument("documents", nargs="+")
    batch_cmd.add_argument("--model", default=None)
    batch_cmd.add_argument("--schema", default=None, help="Also extract these fields from each document")
    batch_cmd.add_argument("--max-workers", type=int, default=None)

    return parser


def main(argv: Sequence[str] | None = None, client: ADEClient | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = _settings_from_args(args)
    configure_logging(level=settings.log_level, json_logs=settings.log_json)

    try:
        if client is None:
            client = ADEClient(settings=settings)
        with client:
            return _dispatch(args, client, settings)
    except ADEError as exc:
        logger.error("ade_cli_failed", command=args.command, error=exc.message, status_code=exc.status_code)
        print(f"error: {exc.message}", file=sys.stderr)
        return 1


def _dispatch(args: argparse.Namespace, client: ADEClient, settings: Settings) -> int:
    output_dir = Path(args.output_dir) if args.output_dir else None

    if args.command == "parse":
        result = client.parse_document(args.document, model=args.model, split=args.split, use_job=args.use_job)
        if output_dir is not None:
            for path in save_parse_result(result, output_dir, stem=Path(args.document).name):
                print(path)
        else:
            _emit(result)
        return 0

    if args.command == "extract":
        markdown_kwargs = (
            {"markdown_url": args.markdown}
            if args.markdown.startswith(("http://", "https://"))
            else {"markdown": Path(args.markdown)}
        )
        extraction = client.extract(args.schema, model=args.model, strict=args.strict, **markdown_kwargs)
        if output_dir is not None:
            print(save_extraction_result(extraction, output_dir, stem=Path(args.markdown).name))
        else:
            _emit(extraction)
        return 0

    if args.command == "job":
        _emit(client.get_parse_job(args.job_id))
        return 0

    if args.command == "jobs":
        _emit(client.list_parse_jobs(status=args.status, page=args.page, page_size=args.page_size))
        return 0

    runner = BatchRunner(client, max_workers=args.max_workers or settings.ade_batch_max_workers)
    if args.schema:
        items = runner.parse_then_extract(args.documents, args.schema, parse_model=args.model)
    else:
        items = runner.parse_all(args.documents, model=args.model)

    stems = unique_stems([Path(str(item.source)).name for item in items])
    summary = []
    for item, stem in zip(items, stems):
        entry: dict[str, object] = {"document": str(item.source), "ok": item.ok}
        if item.error is not None:
            entry["error"] = item.error.message
        if output_dir is not None and item.result is not None:
            files = [str(path) for path in save_parse_result(item.result, output_dir, stem=stem)]
            if item.extraction is not None:
                files.append(str(save_extraction_result(item.extraction, output_dir, stem=stem)))
            entry["files"] = files
        summary.append(entry)
    print(json.dumps(summary, indent=2))
    return 0 if all(item.ok for item in items) else 1


def _settings_from_args(args: argparse.Namespace) -> Settings:
    settings = get_settings()
    overrides: dict[str, str] = {}
    if args.environment:
        overrides["ade_environment"] = args.environment
    if args.api_key:
        overrides["ade_api_key"] = args.api_key
    return settings.model_copy(update=overrides) if overrides else settings


def _emit(model: BaseModel) -> None:
    print(json.dumps(model.model_dump(mode="json", by_alias=True), indent=2, ensure_ascii=False))


if __name__ == "__main__":
    sys.exit(main())
