"""CLI entry point for repofs — drive a remote-store file system adapter by hand."""

import argparse
import logging
import os
import shutil
import sys

from backend import (
    FileSystemError, TransientFileSystemError, capabilities, supported_commands,
)
from github_client import DEFAULT_API_URL, GithubClient
from rest_client import RestClient

EX_TEMPFAIL = 75

# action -> (required capability, positional arguments, help)
ACTIONS = {
    "ls": ("Lister", ["pattern"], "Expand a path or glob ('dir/*')"),
    "stat": ("Lister", ["path"], "Show file attributes"),
    "cat": ("Reader", ["path"], "Write file content to stdout"),
    "put": ("Writer", ["local", "path"], "Upload a local file"),
    "rm": ("Deleter", ["path"], "Delete a file"),
    "mkdir": ("DirMaker", ["path"], "Create a directory"),
    "rmdir": ("DirRemover", ["path"], "Remove a directory"),
    "mv": ("Renamer", ["src", "dst"], "Move a file (copy, then delete)"),
    "exists": ("Prober", ["path"], "Exit 0 if path exists, 1 otherwise"),
    "caps": ("Prober", [], "List capabilities and enabled FTP commands"),
}


def make_filesystem(args):
    """Build the adapter selected on the command line."""
    if args.backend == "github":
        from backend_github import GithubFileSystem, ReadOnlyGithubFileSystem
        client = GithubClient(args.token, args.repo, api_url=args.api_url, branch=args.branch)
        cls = ReadOnlyGithubFileSystem if args.read_only else GithubFileSystem
    else:
        from backend_rest import ReadOnlyRestFileSystem, RestFileSystem
        if not args.endpoint:
            raise ValueError("No endpoint given (use --endpoint or REPOFS_ENDPOINT)")
        client = RestClient(args.endpoint, resource=args.resource)
        cls = ReadOnlyRestFileSystem if args.read_only else RestFileSystem
    return cls(client)


def run_action(fs, args) -> int:
    action = args.action
    if action == "ls":
        for path in fs.dir(args.pattern):
            print(path)
    elif action == "stat":
        info = fs.file_info(args.path)
        print(f"{info.ftype} {info.mode:o} {info.size} {info.mtime.isoformat()} {info.path}")
    elif action == "cat":
        with fs.read(args.path) as f:
            sys.stdout.flush()
            shutil.copyfileobj(f, sys.stdout.buffer)
    elif action == "put":
        with open(args.local, "rb") as f:
            fs.write(args.path, f)
    elif action == "rm":
        fs.delete(args.path)
    elif action == "mkdir":
        fs.mkdir(args.path)
    elif action == "rmdir":
        fs.rmdir(args.path)
    elif action == "mv":
        fs.rename(args.src, args.dst)
    elif action == "exists":
        return 0 if fs.exists(args.path) else 1
    elif action == "caps":
        print("capabilities:", " ".join(sorted(capabilities(fs))))
        print("commands:", " ".join(sorted(supported_commands(fs))))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="repofs — file system view of a remote content store"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log every remote operation")

    sub = parser.add_subparsers(dest="backend")

    gh = sub.add_parser("github", help="Git repository through the contents API")
    gh.add_argument("--repo", required=True, help="Repository as owner/name")
    gh.add_argument("--token", default=os.environ.get("GITHUB_TOKEN"),
                    help="Access token (default: $GITHUB_TOKEN)")
    gh.add_argument("--branch", help="Branch to read from and commit to")
    gh.add_argument("--api-url", default=DEFAULT_API_URL, help="API root")

    rest = sub.add_parser("rest", help="Flat upload-list REST store")
    rest.add_argument("--endpoint", default=os.environ.get("REPOFS_ENDPOINT"),
                      help="Base URL (default: $REPOFS_ENDPOINT)")
    rest.add_argument("--resource", default="predictions", help="Collection name")

    for p in (gh, rest):
        p.add_argument("--read-only", action="store_true", help="Refuse all modifications")
        actions = p.add_subparsers(dest="action")
        for name, (_, positionals, help_text) in ACTIONS.items():
            a = actions.add_parser(name, help=help_text)
            for positional in positionals:
                a.add_argument(positional)

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.backend or not args.action:
        parser.print_help()
        sys.exit(1)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s %(levelname)s %(message)s")

    try:
        fs = make_filesystem(args)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    required = ACTIONS[args.action][0]
    if required not in capabilities(fs):
        print(f"Error: '{args.action}' is not supported by this backend", file=sys.stderr)
        sys.exit(2)

    try:
        status = run_action(fs, args)
    except TransientFileSystemError as e:
        print(f"Error: {e} (try again later)", file=sys.stderr)
        sys.exit(EX_TEMPFAIL)
    except FileSystemError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    sys.exit(status)


if __name__ == "__main__":
    main()
