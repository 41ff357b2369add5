"""
L4 Execution — Idempotent line-level file mutation.

Every edit the installer makes to the shell profile or the downstream
script goes through here.  Each operation is check-then-write and lands
on the same file content no matter how many times it runs:

    ensure_line_present       exact line present once, else append
    replace_or_append_pattern exact line present → no-op,
                              prefix match → replace in place,
                              otherwise → append
    replace_exact_line        one exact line swapped for another,
                              verified after the write

Matching is literal, line-by-line (``grep -Fx`` semantics); patterns are
fixed prefixes, not regular expressions.  Writes are atomic (temp file
in the same directory, then rename) and keep the file's mode.  Lines
are split on newlines only; a rewrite touches the matched line and
leaves every other byte, CRLF endings included, as it was.
"""

from __future__ import annotations

import logging
import os
import shutil
import stat
import tempfile
from enum import StrEnum
from pathlib import Path

from riverspider_setup.core.errors import FatalSetupError

logger = logging.getLogger(__name__)

# Undecodable bytes survive a read/write cycle unchanged.
ENCODING = "utf-8"
ENCODING_ERRORS = "surrogateescape"

Line = tuple[str, str]


class MutationStatus(StrEnum):
    """Outcome of a single mutation."""

    UNCHANGED = "unchanged"     # already converged
    APPENDED = "appended"
    REPLACED = "replaced"
    SKIPPED = "skipped"         # expected old line not found
    FAILED = "failed"           # write or verification failed

    @property
    def changed(self) -> bool:
        return self in (MutationStatus.APPENDED, MutationStatus.REPLACED)


# ── File access ─────────────────────────────────────────────────


def ensure_file_writable(path: Path, description: str = "File") -> None:
    """Make sure ``path`` is a regular file this process can write.

    Creates the file when missing and adds the owner write bit when it
    is read-only.

    Raises:
        FatalSetupError: Parent directory missing or unwritable, path is
            not a regular file, or permissions cannot be fixed.
    """
    if not path.exists():
        parent = path.parent
        if not parent.is_dir():
            raise FatalSetupError(f"Parent directory does not exist: {parent}")
        if not os.access(parent, os.W_OK):
            raise FatalSetupError(f"Parent directory is not writable: {parent}")
        try:
            path.touch()
        except OSError as e:
            raise FatalSetupError(f"Failed to create {description}: {path}. {e}") from e
        logger.debug("Created %s: %s", description, path)
    elif not path.is_file():
        raise FatalSetupError(f"Path exists but is not a regular file: {path}")

    if not os.access(path, os.W_OK):
        try:
            path.chmod(path.stat().st_mode | stat.S_IWUSR)
        except OSError as e:
            raise FatalSetupError(
                f"Failed to modify permissions for {description}: {path}. "
                "Check ownership and permissions."
            ) from e
        if not os.access(path, os.W_OK):
            raise FatalSetupError(f"Still not writable after chmod (unexpected): {path}.")
        logger.debug("Made %s writable: %s", description, path)


def read_text(path: Path) -> str:
    """Raw file content; line endings and stray bytes are kept as-is."""
    return path.read_bytes().decode(ENCODING, ENCODING_ERRORS)


def split_lines(raw: str) -> list[Line]:
    """Split on ``\\n`` only, as ``(text, terminator)`` pairs.

    A ``\\r`` before the newline belongs to the terminator so CRLF files
    match and are written back with CRLF.  Other control characters stay
    inside the line.
    """
    parts = raw.split("\n")
    lines: list[Line] = []
    for i, part in enumerate(parts):
        last = i == len(parts) - 1
        if last and not part:
            break
        ending = "" if last else "\n"
        if part.endswith("\r"):
            part, ending = part[:-1], "\r" + ending
        lines.append((part, ending))
    return lines


def join_lines(lines: list[Line]) -> str:
    return "".join(text + ending for text, ending in lines)


def read_lines(path: Path) -> list[str]:
    """File content split into lines, without line terminators."""
    return [text for text, _ in split_lines(read_text(path))]


def contains_line(path: Path, line: str) -> bool:
    """Exact, whole-line match (``grep -Fxq``)."""
    return line in read_lines(path)


def contains_declaration(path: Path, function_name: str) -> bool:
    """True when a line starts a shell function declaration ``name()``."""
    prefix = f"{function_name}()"
    return any(line.startswith(prefix) for line in read_lines(path))


def _atomic_write(path: Path, content: str) -> None:
    fd, tmp_path = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}_", suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(content.encode(ENCODING, ENCODING_ERRORS))
        shutil.copymode(path, tmp_path)
        os.replace(tmp_path, path)
    except BaseException:
        Path(tmp_path).unlink(missing_ok=True)
        raise


def _append(path: Path, text: str) -> None:
    with open(path, "ab") as f:
        f.write(text.encode(ENCODING, ENCODING_ERRORS))


# ── Mutations ───────────────────────────────────────────────────


def ensure_line_present(path: Path, line: str) -> MutationStatus:
    """Append ``line`` (between blank lines) unless it is already there.

    Raises:
        FatalSetupError: The file cannot be made writable.
    """
    ensure_file_writable(path)
    if contains_line(path, line):
        logger.debug("%s - already exists in %s", line, path)
        return MutationStatus.UNCHANGED

    logger.debug("Adding line to %s: %s", path, line)
    _append(path, f"\n{line}\n\n")
    return MutationStatus.APPENDED


def replace_or_append_pattern(path: Path, prefix: str, new_line: str) -> MutationStatus:
    """Converge the lines starting with ``prefix`` to exactly ``new_line``.

    An exact ``new_line`` already present is a no-op.  Otherwise the first
    line starting with ``prefix`` is replaced in place and any later ones
    are dropped; with no match the line is appended.  Every other line is
    written back byte for byte.

    Raises:
        FatalSetupError: The file cannot be made writable.
    """
    ensure_file_writable(path)
    lines = split_lines(read_text(path))

    if any(text == new_line for text, _ in lines):
        logger.debug("%s - already set in %s", new_line, path)
        return MutationStatus.UNCHANGED

    matches = [i for i, (text, _) in enumerate(lines) if text.startswith(prefix)]
    if not matches:
        logger.debug("No line starting with %r in %s, appending", prefix, path)
        _append(path, f"\n{new_line}\n\n")
        return MutationStatus.APPENDED

    first = matches[0]
    stale = set(matches[1:])
    updated = [
        (new_line, ending) if i == first else (text, ending)
        for i, (text, ending) in enumerate(lines)
        if i not in stale
    ]
    logger.debug("Replacing %r with %r in %s", lines[first][0], new_line, path)
    _atomic_write(path, join_lines(updated))
    return MutationStatus.REPLACED


def replace_exact_line(path: Path, old_line: str, new_line: str) -> MutationStatus:
    """Swap one exact line for another, then verify.

    Never raises for content problems: a missing ``old_line`` is
    ``SKIPPED`` (file hand-edited or already migrated) and a failed read,
    write or verification is ``FAILED``.  Callers treat both as warnings.

    Raises:
        FatalSetupError: The file cannot be made writable.
    """
    ensure_file_writable(path)
    try:
        lines = split_lines(read_text(path))
    except (OSError, UnicodeError) as e:
        logger.debug("Reading %s failed: %s", path, e)
        return MutationStatus.FAILED

    texts = [text for text, _ in lines]
    if new_line in texts:
        return MutationStatus.UNCHANGED
    if old_line not in texts:
        logger.debug("Expected line %r not found in %s", old_line, path)
        return MutationStatus.SKIPPED

    updated = [
        (new_line if text == old_line else text, ending) for text, ending in lines
    ]
    try:
        _atomic_write(path, join_lines(updated))
        verified = contains_line(path, new_line)
    except (OSError, UnicodeError) as e:
        logger.debug("Write to %s failed: %s", path, e)
        return MutationStatus.FAILED

    if not verified:
        return MutationStatus.FAILED
    return MutationStatus.REPLACED


def append_block(path: Path, block: str) -> None:
    """Append a multi-line block followed by one blank line."""
    ensure_file_writable(path)
    existing = read_text(path)
    text = block if block.endswith("\n") else block + "\n"
    if existing and not existing.endswith("\n"):
        text = "\n" + text
    _append(path, text + "\n")
