"""File system contract shared by every remote backend.

Adapters expose a remote content store to an FTP-style front end through a
handful of capability interfaces. A backend implements only the ones it can
honor; the front end asks `capabilities()` once and disables the rest.

Paths are '/'-separated virtual paths. Before any remote call they go
through `normalize()`, which drops leading separators and a trailing glob.
"""

import functools
import logging
from dataclasses import dataclass
from datetime import datetime, timezone

log = logging.getLogger("repofs")

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
FILE_MODE = 0o644
DIR_MODE = 0o755

# Fixed failure messages surfaced to the front end.
NO_SUCH_FILE = "No such file or directory"
IS_A_DIRECTORY = "Is a directory"
NOT_A_DIRECTORY = "Not a directory"
NOT_EMPTY = "Directory not empty"


@dataclass
class FileInfo:
    """Attributes of a file or directory, as reported to the front end.

    Ownership, permissions and link count are synthetic: the remote
    stores have no such concepts.
    """
    ftype: str
    path: str
    size: int = 0
    mtime: datetime = EPOCH
    mode: int = FILE_MODE
    nlink: int = 1
    owner: str = "ftp"
    group: str = "ftp"
    identifier: str | None = None

    @property
    def is_dir(self) -> bool:
        return self.ftype == "directory"

    @property
    def is_file(self) -> bool:
        return self.ftype == "file"


def directory_info(path: str) -> FileInfo:
    """Synthesize the attributes of a directory. Directories are never stored."""
    return FileInfo(ftype="directory", path=path, size=0, mtime=EPOCH, mode=DIR_MODE, nlink=2)


# --- Errors raised by the remote bindings. These never leave an adapter. ---

class BackendError(Exception):
    """Base error for remote store operations."""
    pass


class NotFoundError(BackendError):
    """Object does not exist."""
    pass


class ConflictError(BackendError):
    """Mutation rejected: stale content hash, missing hash, or object already exists."""
    pass


class UnavailableError(BackendError):
    """Remote store unreachable, overloaded or rate-limited."""
    pass


# --- Errors seen by the front end. ---

class FileSystemError(Exception):
    """Base error for adapter operations."""
    pass


class PermanentFileSystemError(FileSystemError):
    """The operation failed and retrying will not help."""
    pass


class TransientFileSystemError(FileSystemError):
    """The operation failed but may succeed later."""
    pass


def translate_errors(method):
    """Wrap an adapter method so every failure leaves as Permanent or Transient.

    Not-found becomes a permanent failure with the fixed catalog message;
    probes that want a boolean must catch NotFoundError themselves.
    """
    name = method.__name__

    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        self.log.debug("%s %s", name, ", ".join(repr(a) for a in args))
        try:
            return method(self, *args, **kwargs)
        except FileSystemError as e:
            self.log.warning("%s failed: %s", name, e)
            raise
        except NotFoundError as e:
            self.log.warning("%s failed: not found (%s)", name, e)
            raise PermanentFileSystemError(NO_SUCH_FILE) from e
        except UnavailableError as e:
            self.log.warning("%s failed: transient (%s)", name, e)
            raise TransientFileSystemError(str(e)) from e
        except (BackendError, OSError) as e:
            self.log.warning("%s failed: permanent (%s)", name, e)
            raise PermanentFileSystemError(str(e)) from e
        except Exception as e:
            self.log.exception("%s failed unexpectedly", name)
            raise PermanentFileSystemError(f"{type(e).__name__}: {e}") from e

    return wrapper


def normalize(path: str) -> str:
    """Canonicalize a virtual path for the remote store.

    Leading separators and trailing '*' globs are removed. Nothing else is
    touched: '..' segments pass through, the front end confines paths.
    """
    return path.lstrip("/").rstrip("*")


def has_glob(path: str) -> bool:
    return path.endswith("*")


def parent_of(path: str) -> str:
    """Parent of a normalized path; '' is the root."""
    return path.rpartition("/")[0]


def join(parent: str, name: str) -> str:
    if not parent:
        return name
    return parent.rstrip("/") + "/" + name


def qualify(path: str) -> str:
    """Turn a remote path into a fully-qualified virtual path."""
    return "/" + path


CHUNK_SIZE = 64 * 1024


def drain(stream) -> bytes:
    """Read a binary stream to exhaustion."""
    chunks = []
    while True:
        chunk = stream.read(CHUNK_SIZE)
        if not chunk:
            break
        chunks.append(chunk)
    return b"".join(chunks)


class Adapter:
    """Common state of every adapter: the injected logger."""

    def __init__(self, logger: logging.Logger | None = None):
        self.log = logger or log


# --- Capability interfaces ---

class Prober:
    """Attribute queries. Every adapter is a Prober."""

    def accessible(self, path: str) -> bool:
        """Return True if the front end may touch path, which need not exist."""
        raise NotImplementedError

    def exists(self, path: str) -> bool:
        raise NotImplementedError

    def is_directory(self, path: str) -> bool:
        raise NotImplementedError


class Reader:
    def read(self, path: str):
        """Return a binary file object holding the whole content of path.

        The object is a context manager; use it in a `with` block so it is
        released when the transfer ends.
        """
        raise NotImplementedError


class Writer:
    def write(self, path: str, stream) -> None:
        """Drain the binary stream and store it at path, creating or updating."""
        raise NotImplementedError


class Lister:
    def file_info(self, path: str) -> FileInfo:
        raise NotImplementedError

    def dir(self, path: str) -> list[str]:
        """Expand a path, optionally ending in '*', into fully-qualified paths.

        For files foo/bar, subdir/baz and subdir/qux:

            dir('subdir')    # => ['/subdir']
            dir('subdir/*')  # => ['/subdir/baz', '/subdir/qux']
            dir('*')         # => ['/foo', '/subdir']
        """
        raise NotImplementedError


class Deleter:
    def delete(self, path: str) -> None:
        raise NotImplementedError


class DirMaker:
    def mkdir(self, path: str) -> None:
        raise NotImplementedError


class DirRemover:
    def rmdir(self, path: str) -> None:
        raise NotImplementedError


class Renamer:
    def rename(self, from_path: str, to_path: str) -> None:
        """Move a file. Not atomic: a failed delete leaves both copies."""
        raise NotImplementedError


CAPABILITIES = {
    "Prober": Prober,
    "Reader": Reader,
    "Writer": Writer,
    "Lister": Lister,
    "Deleter": Deleter,
    "DirMaker": DirMaker,
    "DirRemover": DirRemover,
    "Renamer": Renamer,
}

# FTP verbs each capability turns on.
COMMANDS = {
    "Reader": ("RETR",),
    "Writer": ("STOR", "STOU", "APPE"),
    "Lister": ("LIST", "NLST", "SIZE", "MDTM"),
    "Deleter": ("DELE",),
    "DirMaker": ("MKD",),
    "DirRemover": ("RMD",),
    "Renamer": ("RNFR", "RNTO"),
}


def capabilities(fs) -> frozenset[str]:
    """Names of the capability interfaces fs implements."""
    return frozenset(name for name, cls in CAPABILITIES.items() if isinstance(fs, cls))


def supported_commands(fs) -> frozenset[str]:
    """FTP verbs a front end should enable for fs."""
    commands = set()
    for name in capabilities(fs):
        commands.update(COMMANDS.get(name, ()))
    return frozenset(commands)
