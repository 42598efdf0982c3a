"""Git contents backend — serve a hosted Git repository as a file system.

The repository has no empty directories: a directory exists while some file
lives under it. `mkdir` therefore commits a placeholder file, and `rmdir`
deletes the files that keep the directory alive.

Every mutation is a commit that quotes the target's current blob sha. The
sha is looked up right before the mutation; a concurrent writer in between
makes the commit fail with a conflict, which surfaces as a permanent error.
Nothing is retried.
"""

import io
from datetime import datetime, timezone

from backend import (
    IS_A_DIRECTORY, NOT_A_DIRECTORY, NOT_EMPTY,
    Adapter, BackendError, ConflictError, Deleter, DirMaker, DirRemover, FileInfo,
    Lister, NotFoundError, Prober, Reader, Renamer, Writer,
    directory_info, drain, has_glob, join, normalize, parent_of, qualify, translate_errors,
)
from github_client import GithubClient

PLACEHOLDER = ".gitkeep"


class ReadOnlyGithubFileSystem(Adapter, Prober, Reader, Lister):
    """Browse and download from a repository without modifying it."""

    def __init__(self, client: GithubClient, logger=None):
        super().__init__(logger)
        self.client = client

    def accessible(self, path: str) -> bool:
        return True

    @translate_errors
    def exists(self, path: str) -> bool:
        try:
            self.client.contents(normalize(path))
        except NotFoundError:
            return False
        return True

    @translate_errors
    def is_directory(self, path: str) -> bool:
        try:
            info = self.client.contents(normalize(path))
        except NotFoundError:
            return False
        return isinstance(info, list)

    @translate_errors
    def read(self, path: str):
        return io.BytesIO(self.client.get(normalize(path)))

    @translate_errors
    def file_info(self, path: str) -> FileInfo:
        info = self.client.contents(normalize(path))
        if isinstance(info, list):
            return directory_info(path)
        # The contents API carries no timestamps.
        return FileInfo(
            ftype="file",
            path=path,
            size=int(info.get("size") or 0),
            mtime=datetime.now(timezone.utc),
            identifier=info.get("sha"),
        )

    @translate_errors
    def dir(self, path: str) -> list[str]:
        prefix = normalize(path)
        if not has_glob(path):
            try:
                self.client.contents(prefix)
            except NotFoundError:
                return []
            return [qualify(prefix)]

        try:
            listing = self.client.contents(parent_of(prefix))
        except NotFoundError:
            return []
        if not isinstance(listing, list):
            return []
        return [qualify(entry["path"]) for entry in listing if entry["path"].startswith(prefix)]


class GithubFileSystem(ReadOnlyGithubFileSystem, Writer, Deleter, DirMaker, DirRemover, Renamer):
    """Full read-write access to a repository."""

    def _put(self, path: str, content: bytes):
        """Create path, or update it if it already exists."""
        if not path or path.endswith("/"):
            raise BackendError(IS_A_DIRECTORY)
        entry = self.client.entry(path)
        if entry is None:
            self.client.create(path, content)
        elif entry.get("type") == "dir":
            raise BackendError(IS_A_DIRECTORY)
        else:
            self.client.update(path, content, entry["sha"])

    @translate_errors
    def write(self, path: str, stream) -> None:
        content = drain(stream)
        self._put(normalize(path), content)

    @translate_errors
    def delete(self, path: str) -> None:
        path = normalize(path)
        self.client.delete(path, self.client.sha(path))

    @translate_errors
    def mkdir(self, path: str) -> None:
        path = normalize(path).rstrip("/")
        if not path:
            raise ConflictError("File exists: /")
        self.client.create(join(path, PLACEHOLDER), b"")

    @translate_errors
    def rmdir(self, path: str) -> None:
        path = normalize(path).rstrip("/")
        if not path:
            raise BackendError("Cannot remove the root directory")
        listing = self.client.contents(path)
        if not isinstance(listing, list):
            raise BackendError(NOT_A_DIRECTORY)
        if any(entry.get("type") != "file" for entry in listing):
            raise BackendError(NOT_EMPTY)
        for entry in listing:
            self.client.delete(entry["path"], entry["sha"])

    @translate_errors
    def rename(self, from_path: str, to_path: str) -> None:
        src = normalize(from_path)
        dst = normalize(to_path)
        content = self.client.get(src)
        if src == dst:
            return
        self._put(dst, content)
        # Past this point a failure leaves the content at both paths.
        try:
            self.client.delete(src, self.client.sha(src))
        except BackendError:
            self.log.warning("rename left %s in place after copying it to %s", src, dst)
            raise
