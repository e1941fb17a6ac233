"""
Local document store.

Uploaded blobs live flat in one directory, named `<field>-<millis>-<random><ext>`.
Files are written once and only removed on replacement or cleanup.
"""
from __future__ import annotations

import logging
import os
import re
import secrets
import time

from utils import NotFoundError, StorageError


_log = logging.getLogger("storage")

_SAFE_EXT_RE = re.compile(r"^\.[A-Za-z0-9]{1,8}$")
_SAFE_FIELD_RE = re.compile(r"[^A-Za-z0-9_]+")


def safe_ext(filename: str) -> str:
    _base, ext = os.path.splitext(str(filename or "").strip())
    if ext and _SAFE_EXT_RE.fullmatch(ext):
        return ext.lower()
    return ""


def generate_stored_name(field: str, original_filename: str) -> str:
    """pdf upload for sscDoc -> sscDoc-1718000000000-123456789.pdf"""
    prefix = _SAFE_FIELD_RE.sub("", str(field or "")) or "file"
    suffix = f"{int(time.time() * 1000)}-{secrets.randbelow(10**9)}"
    return f"{prefix}-{suffix}{safe_ext(original_filename)}"


def is_safe_filename(filename: str) -> bool:
    name = str(filename or "").strip()
    if not name or name in {".", ".."}:
        return False
    if "/" in name or "\\" in name or ".." in name or "\x00" in name:
        return False
    return os.path.basename(name) == name


class DocumentStore:
    def __init__(self, root: str):
        self.root = os.path.abspath(str(root or "./uploads"))
        os.makedirs(self.root, exist_ok=True)

    def _path(self, filename: str) -> str:
        return os.path.join(self.root, filename)

    def save(self, field: str, original_filename: str, data: bytes) -> str:
        """Write a new blob and return its generated filename."""
        filename = generate_stored_name(field, original_filename)
        path = self._path(filename)
        try:
            # "xb" so a name collision fails loudly instead of overwriting.
            with open(path, "xb") as f:
                f.write(data)
        except OSError as e:
            _log.error("write failed file=%s error=%s", filename, e)
            raise StorageError() from e
        _log.info("stored file=%s size=%s", filename, len(data))
        return filename

    def delete(self, filename: str) -> bool:
        """Remove a blob. Returns False if it was already gone."""
        if not is_safe_filename(filename):
            return False
        try:
            os.remove(self._path(filename))
        except FileNotFoundError:
            return False
        except OSError as e:
            _log.error("delete failed file=%s error=%s", filename, e)
            raise StorageError() from e
        _log.info("deleted file=%s", filename)
        return True

    def discard(self, filenames) -> None:
        """Delete several blobs, logging instead of raising on failure."""
        for name in filenames:
            try:
                self.delete(name)
            except StorageError:
                _log.exception("cleanup failed file=%s", name)

    def exists(self, filename: str) -> bool:
        return is_safe_filename(filename) and os.path.isfile(self._path(filename))

    def resolve(self, filename: str) -> str:
        if not self.exists(filename):
            raise NotFoundError("File not found")
        return self._path(filename)
