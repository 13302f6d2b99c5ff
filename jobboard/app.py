import argparse
import json
from pathlib import Path
from typing import Any, List, Optional

from . import __version__
from .env import Settings, get_settings, load_env
from .errors import MalformedResponse, NetworkError, UnknownJob
from .fetch import JobListingClient
from .logger import get_logger
from .models import Job
from .normalize import unwrap_envelope
from .session import JobBoardSession
from .storage import PersistenceBridge, open_store


def file_fetcher(input_path: Path):
    """Fetcher reading a saved API response from disk."""
    def fetch() -> List[Any]:
        try:
            with input_path.open("r", encoding="utf-8") as f:
                payload = json.load(f)
        except ValueError as e:
            raise MalformedResponse(f"Invalid JSON in {input_path}: {e}") from e
        except OSError as e:
            raise NetworkError(f"Could not read {input_path}: {e}") from e
        return unwrap_envelope(payload)
    return fetch


def build_session(args: argparse.Namespace, settings: Optional[Settings] = None) -> JobBoardSession:
    settings = settings or get_settings()
    store_path = Path(args.store) if getattr(args, "store", None) else settings.store_path
    bridge = PersistenceBridge(open_store(store_path))

    if getattr(args, "input", None):
        input_path = Path(args.input)
        if not input_path.exists():
            raise SystemExit(f"Input file not found: {input_path}")
        fetcher = file_fetcher(input_path)
    else:
        client = JobListingClient(
            settings.api_url,
            timeout=settings.timeout,
            limit=settings.fetch_limit,
            max_retries=settings.max_retries,
        )
        fetcher = client.fetch_job_listings
    return JobBoardSession(fetcher, bridge=bridge, limit=settings.fetch_limit)


def load_or_exit(session: JobBoardSession) -> None:
    session.refresh()
    if session.can_retry:
        print(f"Could not load jobs: {session.error}")
        print("Run the command again to retry.")
        raise SystemExit(1)


def format_job(job: Job, saved: bool) -> str:
    marker = "*" if saved else " "
    lines = [
        f"[{marker}] {job.id}  {job.title} at {job.company}",
        f"      {job.salary} | {job.job_type} | {job.work_model} | {job.seniority}",
        f"      {job.display_location}",
    ]
    return "\n".join(lines)


def cmd_jobs(args: argparse.Namespace) -> None:
    session = build_session(args)
    load_or_exit(session)
    jobs = session.search(args.query or "")
    if not jobs:
        print("No jobs found.")
        return
    print(f"{len(jobs)} of {len(session.catalog)} jobs (saved: {session.saved.count})\n")
    for job in jobs:
        print(format_job(job, session.saved.contains(job.id)))


def cmd_save(args: argparse.Namespace) -> None:
    session = build_session(args)
    load_or_exit(session)
    try:
        saved = session.toggle_saved(args.job_id)
    except UnknownJob as e:
        raise SystemExit(str(e))
    print(f"{'Saved' if saved else 'Removed'} {args.job_id} (saved: {session.saved.count})")


def cmd_saved(args: argparse.Namespace) -> None:
    session = build_session(args)
    # Saved records come from the store; a failed refresh only leaves ids unresolved
    session.refresh()
    view = session.open_saved_view()
    for job_id in args.remove or []:
        view.remove(job_id)
    session.return_from_saved(view.close())

    jobs = view.visible_jobs()
    if not jobs:
        print("No saved jobs yet")
        return
    for job in jobs:
        print(format_job(job, True))


def cmd_apply(args: argparse.Namespace) -> None:
    session = build_session(args)
    load_or_exit(session)
    try:
        form = session.open_application(args.job_id)
    except UnknownJob as e:
        raise SystemExit(str(e))

    form.set_name(args.name or "")
    form.set_email(args.email or "")
    form.set_phone(args.phone or "")
    form.set_cover_letter(args.cover_letter or "")
    result = form.submit()
    if not result.accepted:
        print(f"Invalid: {result.message}")
        raise SystemExit(2)
    print(result.message)
    print(f"Application ID: {result.application.id}")


def main(argv: Optional[List[str]] = None):
    # Load .env if present (JOBBOARD_API_URL, JOBBOARD_STORE, etc.)
    load_env()
    parser = argparse.ArgumentParser(prog="jobboard", description="Job board client")
    parser.add_argument("--version", action="store_true", help="Show version")

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--input", help="Read the job listing from a JSON file instead of the API")
    common.add_argument("--store", help="Saved jobs store: a directory, or a *.db SQLite file (default: $JOBBOARD_STORE)")

    subparsers = parser.add_subparsers(dest="command")
    jobs = subparsers.add_parser("jobs", parents=[common], help="List jobs, optionally filtered by title/company")
    jobs.add_argument("--query", default="", help="Case-insensitive search on title or company")
    jobs.set_defaults(func=cmd_jobs)

    save = subparsers.add_parser("save", parents=[common], help="Save or unsave a job")
    save.add_argument("job_id", help="Job ID")
    save.set_defaults(func=cmd_save)

    saved = subparsers.add_parser("saved", parents=[common], help="Show saved jobs")
    saved.add_argument("--remove", nargs="*", metavar="JOB_ID", help="Remove jobs from the saved list")
    saved.set_defaults(func=cmd_saved)

    apply = subparsers.add_parser("apply", parents=[common], help="Submit a mock application")
    apply.add_argument("job_id", help="Job ID")
    apply.add_argument("--name", help="Full name")
    apply.add_argument("--email", help="Email address")
    apply.add_argument("--phone", help="Phone number (11 digits)")
    apply.add_argument("--cover-letter", help="Cover letter text")
    apply.set_defaults(func=cmd_apply)

    args = parser.parse_args(argv)

    if args.version:
        print(__version__)
        return

    if hasattr(args, "func"):
        try:
            args.func(args)
        finally:
            get_logger().log_metrics_summary()
        return

    parser.print_help()


if __name__ == "__main__":
    main()
