"""
mp4convert CLI - server and client entrypoints.

Commands:
- serve:    run the conversion API
- convert:  upload every video in a folder, wait, optionally download the ZIP
- list:     print the job list
- download: save one job's converted MP4
- delete:   delete one job
- clear:    delete all jobs

Exit Codes:
===========
- 0: Success
- 1: Invalid arguments
- 2: One or more conversions from this run failed
- 3: Server rejected a request or could not be reached
"""

import argparse
import sys
from pathlib import Path
from typing import List, NoReturn, Optional

from .client.api import DEFAULT_BASE_URL, JobClient
from .client.errors import ClientError
from .client.poller import JobPoller
from .client.scanner import scan_folder
from .config import Settings
from .jobs.models import ConversionJob, JobStatus
from .logging_setup import configure_logging


def _format_job(job: ConversionJob) -> str:
    line = f"#{job.id:<5} {job.status.value:<11} {job.progress or 0:>3}%  {job.original_name}"
    if job.status == JobStatus.COMPLETED:
        line += f"  -> {job.output_url}"
    elif job.status == JobStatus.FAILED:
        line += f"  ({job.error})"
    return line


def _print_jobs(jobs: List[ConversionJob]) -> None:
    for job in jobs:
        print(_format_job(job))


def cmd_serve(args: argparse.Namespace) -> NoReturn:
    """Run the API server with uvicorn."""
    import uvicorn

    from .main import create_app

    settings = Settings.from_env()
    host = args.host or settings.host
    port = args.port or settings.port

    configure_logging(settings.log_level)
    app = create_app(settings=settings)

    print(f"Starting mp4convert on {host}:{port}")
    uvicorn.run(app, host=host, port=port)
    sys.exit(0)


def cmd_convert(args: argparse.Namespace) -> NoReturn:
    """Upload a folder of videos and wait for every conversion to finish."""
    folder = Path(args.folder)
    try:
        files = scan_folder(folder, recursive=args.recursive)
    except NotADirectoryError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(1)

    if not files:
        print(f"No video files found in {folder}")
        sys.exit(0)

    uploaded_ids = set()
    with JobClient(base_url=args.server) as client:
        try:
            for path in files:
                job = client.upload(path)
                uploaded_ids.add(job.id)
                print(f"Uploaded {path.name} (job #{job.id})")

            # Jobs from earlier runs neither hold up polling nor affect the exit code
            poller = JobPoller(
                lambda: [job for job in client.list_jobs() if job.id in uploaded_ids],
                interval=args.poll_seconds,
            )
            jobs = poller.run()
        except ClientError as e:
            print(f"ERROR: {e}", file=sys.stderr)
            sys.exit(3)

        _print_jobs(jobs)

        if args.download:
            try:
                client.download_all(Path(args.download))
                print(f"Saved {args.download}")
            except ClientError as e:
                print(f"ERROR: {e}", file=sys.stderr)
                sys.exit(3)

    failed = [job for job in jobs if job.status == JobStatus.FAILED]
    sys.exit(2 if failed else 0)


def cmd_list(args: argparse.Namespace) -> NoReturn:
    """Print all jobs, newest first."""
    with JobClient(base_url=args.server) as client:
        try:
            _print_jobs(client.list_jobs())
        except ClientError as e:
            print(f"ERROR: {e}", file=sys.stderr)
            sys.exit(3)
    sys.exit(0)


def cmd_download(args: argparse.Namespace) -> NoReturn:
    """Save one completed job's MP4."""
    with JobClient(base_url=args.server) as client:
        try:
            saved = client.download_job(args.job_id, Path(args.output))
        except ClientError as e:
            print(f"ERROR: {e}", file=sys.stderr)
            sys.exit(3)
    print(f"Saved {saved}")
    sys.exit(0)


def cmd_delete(args: argparse.Namespace) -> NoReturn:
    """Delete one job."""
    with JobClient(base_url=args.server) as client:
        try:
            client.delete_job(args.job_id)
        except ClientError as e:
            print(f"ERROR: {e}", file=sys.stderr)
            sys.exit(3)
    print(f"Deleted job #{args.job_id}")
    sys.exit(0)


def cmd_clear(args: argparse.Namespace) -> NoReturn:
    """Delete every job."""
    with JobClient(base_url=args.server) as client:
        try:
            client.delete_all()
        except ClientError as e:
            print(f"ERROR: {e}", file=sys.stderr)
            sys.exit(3)
    print("All jobs deleted")
    sys.exit(0)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='mp4convert',
        description='Convert folders of video files to MP4',
    )
    parser.add_argument(
        '--server',
        default=DEFAULT_BASE_URL,
        help=f'API base URL for client commands (default: {DEFAULT_BASE_URL})'
    )

    subparsers = parser.add_subparsers(dest='command', required=True, help='Command to execute')

    parser_serve = subparsers.add_parser('serve', help='Run the conversion API server')
    parser_serve.add_argument('--host', default=None, help='Bind address (default: MP4CONVERT_HOST)')
    parser_serve.add_argument('--port', type=int, default=None, help='Port (default: MP4CONVERT_PORT)')
    parser_serve.set_defaults(func=cmd_serve)

    parser_convert = subparsers.add_parser('convert', help='Upload a folder and wait for conversion')
    parser_convert.add_argument('folder', help='Folder containing video files')
    parser_convert.add_argument(
        '--recursive',
        action='store_true',
        help='Include subfolders'
    )
    parser_convert.add_argument(
        '--poll-seconds',
        type=float,
        default=2.0,
        help='Poll interval while jobs are active (default: 2)'
    )
    parser_convert.add_argument(
        '--download',
        default=None,
        metavar='ZIP_PATH',
        help='Save all converted files to this ZIP when done'
    )
    parser_convert.set_defaults(func=cmd_convert)

    parser_list = subparsers.add_parser('list', help='List jobs')
    parser_list.set_defaults(func=cmd_list)

    parser_download = subparsers.add_parser('download', help='Download one converted file')
    parser_download.add_argument('job_id', type=int, help='Job id')
    parser_download.add_argument(
        '--output',
        default='.',
        metavar='PATH',
        help='File or directory to save to (default: current directory)'
    )
    parser_download.set_defaults(func=cmd_download)

    parser_delete = subparsers.add_parser('delete', help='Delete one job')
    parser_delete.add_argument('job_id', type=int, help='Job id')
    parser_delete.set_defaults(func=cmd_delete)

    parser_clear = subparsers.add_parser('clear', help='Delete all jobs')
    parser_clear.set_defaults(func=cmd_clear)

    return parser


def main(argv: Optional[List[str]] = None) -> NoReturn:
    """
    Main CLI entrypoint.

    Parses arguments and dispatches to subcommands.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command != 'serve':
        configure_logging("WARNING")

    if getattr(args, 'poll_seconds', 1.0) <= 0:
        print(f"ERROR: --poll-seconds must be positive: {args.poll_seconds}", file=sys.stderr)
        sys.exit(1)

    args.func(args)


if __name__ == '__main__':
    main()
