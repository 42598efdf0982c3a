"""Tests for the shared file system contract."""

import io
import logging
import unittest

from backend import (
    NO_SUCH_FILE, Adapter, BackendError, ConflictError, Deleter, FileInfo, Lister,
    NotFoundError, PermanentFileSystemError, Prober, Reader, TransientFileSystemError,
    UnavailableError, capabilities, directory_info, drain, join, normalize, parent_of,
    supported_commands, translate_errors,
)


class TestNormalize(unittest.TestCase):
    CASES = [
        "", "/", "*", "/*", "a", "/a", "//a", "a/", "/a/b.txt", "a*", "a**",
        "/dir/*", "../x", "/../x/*", "*/*", "/*/", " /a",
    ]

    def test_strips_leading_slash(self):
        self.assertEqual(normalize("/docs/readme.md"), "docs/readme.md")

    def test_strips_trailing_glob(self):
        self.assertEqual(normalize("/docs/*"), "docs/")
        self.assertEqual(normalize("*"), "")

    def test_leaves_dotdot_alone(self):
        self.assertEqual(normalize("/../etc/passwd"), "../etc/passwd")

    def test_idempotent(self):
        for path in self.CASES:
            with self.subTest(path=path):
                once = normalize(path)
                self.assertEqual(normalize(once), once)


class TestPathHelpers(unittest.TestCase):
    def test_parent_of(self):
        self.assertEqual(parent_of("a/b/c"), "a/b")
        self.assertEqual(parent_of("a"), "")
        self.assertEqual(parent_of("subdir/"), "subdir")
        self.assertEqual(parent_of(""), "")

    def test_join(self):
        self.assertEqual(join("", "x"), "x")
        self.assertEqual(join("a", "x"), "a/x")
        self.assertEqual(join("a/", "x"), "a/x")

    def test_drain(self):
        data = b"x" * 200_000
        self.assertEqual(drain(io.BytesIO(data)), data)
        self.assertEqual(drain(io.BytesIO(b"")), b"")


class TestFileInfo(unittest.TestCase):
    def test_directory_info(self):
        info = directory_info("/docs")
        self.assertTrue(info.is_dir)
        self.assertFalse(info.is_file)
        self.assertEqual(info.size, 0)
        self.assertEqual(info.mtime.year, 1970)
        self.assertEqual(info.nlink, 2)

    def test_file_defaults(self):
        info = FileInfo(ftype="file", path="/a", size=3)
        self.assertTrue(info.is_file)
        self.assertEqual((info.owner, info.group), ("ftp", "ftp"))


class Faulty(Adapter):
    """Raises whatever it is told to, through the translator."""

    def __init__(self, error, logger=None):
        super().__init__(logger)
        self.error = error

    @translate_errors
    def run(self, path):
        raise self.error


class TestTranslateErrors(unittest.TestCase):
    def _run(self, error):
        logger = logging.getLogger("repofs.test")
        logger.addHandler(logging.NullHandler())
        logger.propagate = False
        Faulty(error, logger).run("/x")

    def test_not_found_is_permanent_with_catalog_message(self):
        with self.assertRaises(PermanentFileSystemError) as cm:
            self._run(NotFoundError("HTTP 404: Not Found"))
        self.assertEqual(str(cm.exception), NO_SUCH_FILE)

    def test_unavailable_is_transient(self):
        with self.assertRaises(TransientFileSystemError):
            self._run(UnavailableError("HTTP 503"))

    def test_conflict_is_permanent(self):
        with self.assertRaises(PermanentFileSystemError) as cm:
            self._run(ConflictError("HTTP 409: sha mismatch"))
        self.assertIn("409", str(cm.exception))

    def test_backend_and_os_errors_are_permanent(self):
        for error in (BackendError("bad"), OSError("disk")):
            with self.subTest(error=error):
                with self.assertRaises(PermanentFileSystemError):
                    self._run(error)

    def test_unexpected_error_is_permanent_and_chained(self):
        with self.assertRaises(PermanentFileSystemError) as cm:
            self._run(KeyError("sha"))
        self.assertIsInstance(cm.exception.__cause__, KeyError)

    def test_filesystem_errors_pass_through(self):
        original = TransientFileSystemError("busy")
        with self.assertRaises(TransientFileSystemError) as cm:
            self._run(original)
        self.assertIs(cm.exception, original)

    def test_logs_to_injected_logger(self):
        logger = logging.getLogger("repofs.injected")
        with self.assertLogs(logger, level="DEBUG") as logs:
            with self.assertRaises(PermanentFileSystemError):
                Faulty(NotFoundError("gone"), logger).run("/x")
        self.assertTrue(any("run" in line for line in logs.output))
        self.assertTrue(any("WARNING" in line for line in logs.output))


class TestCapabilities(unittest.TestCase):
    def test_capabilities_by_isinstance(self):
        class ReadOnly(Prober, Reader, Lister):
            pass

        self.assertEqual(capabilities(ReadOnly()), {"Prober", "Reader", "Lister"})

    def test_methods_alone_grant_nothing(self):
        class Duck:
            def delete(self, path):
                pass

        self.assertEqual(capabilities(Duck()), frozenset())
        self.assertEqual(supported_commands(Duck()), frozenset())

    def test_supported_commands(self):
        class Removable(Prober, Deleter):
            pass

        self.assertEqual(supported_commands(Removable()), {"DELE"})


if __name__ == "__main__":
    unittest.main()
