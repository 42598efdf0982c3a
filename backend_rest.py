"""Upload-list backend — serve a flat REST collection of uploads as a file system.

There are no directories: every upload is a file at the root, named by its
filename. Uploads are never replaced or deleted, so writing the same name
twice leaves two uploads with that name. Reads pick the newest one.
"""

import io
from datetime import datetime, timezone

from backend import (
    Adapter, FileInfo, Lister, NotFoundError, Prober, Reader, Writer,
    drain, has_glob, normalize, qualify, translate_errors,
)
from rest_client import RestClient, Upload


def _newest(uploads: list[Upload]) -> Upload:
    """Latest upload; equal timestamps go to the one listed last."""
    epoch = datetime.min.replace(tzinfo=timezone.utc)
    _, upload = max(enumerate(uploads), key=lambda iu: (iu[1].created_at or epoch, iu[0]))
    return upload


class ReadOnlyRestFileSystem(Adapter, Prober, Reader, Lister):
    """Browse and download uploads."""

    def __init__(self, client: RestClient, logger=None):
        super().__init__(logger)
        self.client = client

    def _find(self, path: str) -> Upload:
        matches = [u for u in self.client.index() if u.filename == path]
        if not matches:
            raise NotFoundError(path)
        return _newest(matches)

    def accessible(self, path: str) -> bool:
        return True

    @translate_errors
    def exists(self, path: str) -> bool:
        path = normalize(path)
        return any(u.filename == path for u in self.client.index())

    def is_directory(self, path: str) -> bool:
        return False

    @translate_errors
    def read(self, path: str):
        upload = self._find(normalize(path))
        return io.BytesIO(self.client.download(upload.id))

    @translate_errors
    def file_info(self, path: str) -> FileInfo:
        upload = self._find(normalize(path))
        return FileInfo(
            ftype="file",
            path=path,
            size=upload.size,
            mtime=upload.created_at or datetime.now(timezone.utc),
            identifier=upload.id,
        )

    @translate_errors
    def dir(self, path: str) -> list[str]:
        prefix = normalize(path)
        names = [u.filename for u in self.client.index()]
        if not has_glob(path):
            return [qualify(prefix)] if prefix in names else []
        return [qualify(name) for name in names if name.startswith(prefix)]


class RestFileSystem(ReadOnlyRestFileSystem, Writer):
    """Browse, download and upload. Directories, deletes and renames are unsupported."""

    @translate_errors
    def write(self, path: str, stream) -> None:
        content = drain(stream)
        self.client.create(normalize(path), content)
