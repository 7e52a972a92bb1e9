import argparse
import asyncio
import json
import sys
from typing import List, Optional

from pydantic import ValidationError

from client import LeadCaptureClient
from config import get_settings
from errors import LeadLookupError
from logging_setup import init_logging
from models import CompanyRecord, LookupStatus, SubmissionRequest


def _print_record(record: CompanyRecord) -> None:
    print(json.dumps(record.model_dump(exclude_none=True), indent=2, ensure_ascii=False, default=str))


async def _submit(args: argparse.Namespace, client: LeadCaptureClient) -> int:
    request = SubmissionRequest(
        name=args.name,
        email=args.email,
        companyName=args.company_name,
        companyUrl=args.company_url,
    )
    print("Fetching company data...", file=sys.stderr)
    record = await client.submit_and_wait(request)
    _print_record(record)
    return 0


async def _lookup(args: argparse.Namespace, client: LeadCaptureClient) -> int:
    outcome = await client.fetch_company(args.company_name)
    if outcome.status == LookupStatus.FOUND:
        _print_record(outcome.record)
        return 0
    print(outcome.message or "Company not found", file=sys.stderr)
    return 1


def build_parser() -> argparse.ArgumentParser:
    settings = get_settings()
    parser = argparse.ArgumentParser(prog="lead-lookup", description="Submit leads and fetch enriched company data")
    parser.add_argument("--base-url", default=settings.api_base_url, help="Lead API base URL")
    parser.add_argument("--log-level", default=settings.log_level)
    sub = parser.add_subparsers(dest="command", required=True)

    p_submit = sub.add_parser("submit", help="Submit a lead and wait for the enriched company record")
    p_submit.add_argument("--name", required=True)
    p_submit.add_argument("--email", required=True)
    p_submit.add_argument("--company-name", required=True)
    p_submit.add_argument("--company-url", required=True)
    p_submit.add_argument("--interval", type=float, default=settings.poll_interval_seconds)
    p_submit.add_argument("--max-attempts", type=int, default=settings.poll_max_attempts)
    p_submit.set_defaults(func=_submit)

    p_lookup = sub.add_parser("lookup", help="Fetch a company record once")
    p_lookup.add_argument("company_name")
    p_lookup.set_defaults(func=_lookup, interval=settings.poll_interval_seconds, max_attempts=1)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    init_logging(args.log_level)
    client = LeadCaptureClient(args.base_url, interval=args.interval, max_attempts=args.max_attempts)
    try:
        return asyncio.run(args.func(args, client))
    except (LeadLookupError, ValidationError) as e:
        print(str(e), file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("Cancelled", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())
