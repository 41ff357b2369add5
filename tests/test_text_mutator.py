"""
Tests for the idempotent text mutator — line presence, prefix
convergence, exact-line replacement, block append.
"""

from pathlib import Path
from unittest.mock import patch

import pytest

from riverspider_setup.core.errors import FatalSetupError
from riverspider_setup.core.services.bootstrap.execution.text_mutator import (
    MutationStatus,
    append_block,
    contains_declaration,
    contains_line,
    ensure_file_writable,
    ensure_line_present,
    replace_exact_line,
    replace_or_append_pattern,
)

EXPORT_PREFIX = "export RIVER_SPIDER_DIR="


def _count_prefixed(path: Path, prefix: str) -> int:
    return sum(1 for line in path.read_text().splitlines() if line.startswith(prefix))


class TestEnsureFileWritable:
    """Tests for file creation and permission fixes."""

    def test_creates_missing_file(self, tmp_path: Path):
        path = tmp_path / ".zprofile"
        ensure_file_writable(path)
        assert path.is_file()

    def test_missing_parent_is_fatal(self, tmp_path: Path):
        with pytest.raises(FatalSetupError, match="Parent directory does not exist"):
            ensure_file_writable(tmp_path / "nope" / ".zprofile")

    def test_directory_is_fatal(self, tmp_path: Path):
        with pytest.raises(FatalSetupError, match="not a regular file"):
            ensure_file_writable(tmp_path)


class TestEnsureLinePresent:
    """Tests for append-once semantics."""

    def test_appends_once(self, tmp_path: Path):
        path = tmp_path / ".zprofile"
        path.write_text("# existing\n")
        line = 'eval "$(/opt/homebrew/bin/brew shellenv)"'

        assert ensure_line_present(path, line) == MutationStatus.APPENDED
        assert ensure_line_present(path, line) == MutationStatus.UNCHANGED
        assert path.read_text().splitlines().count(line) == 1

    def test_second_run_leaves_bytes_untouched(self, tmp_path: Path):
        path = tmp_path / ".zprofile"
        ensure_line_present(path, "export A=1")
        before = path.read_bytes()
        ensure_line_present(path, "export A=1")
        assert path.read_bytes() == before

    def test_substring_is_not_a_match(self, tmp_path: Path):
        path = tmp_path / ".zprofile"
        path.write_text("# export A=1 was here\n")
        assert ensure_line_present(path, "export A=1") == MutationStatus.APPENDED

    def test_read_only_file_still_updated(self, tmp_path: Path):
        path = tmp_path / ".zprofile"
        path.write_text("# locked\n")
        path.chmod(0o444)
        ensure_line_present(path, "export A=1")
        assert contains_line(path, "export A=1")


class TestReplaceOrAppendPattern:
    """Tests for prefix convergence."""

    def test_appends_when_absent(self, tmp_path: Path):
        path = tmp_path / ".zprofile"
        path.write_text("alias ll='ls -l'\n")
        status = replace_or_append_pattern(path, EXPORT_PREFIX, f'{EXPORT_PREFIX}"/a"')
        assert status == MutationStatus.APPENDED
        assert contains_line(path, f'{EXPORT_PREFIX}"/a"')

    def test_replaces_stale_value_in_place(self, tmp_path: Path):
        path = tmp_path / ".zprofile"
        path.write_text(f'# top\n{EXPORT_PREFIX}"/old"\n# bottom\n')
        status = replace_or_append_pattern(path, EXPORT_PREFIX, f'{EXPORT_PREFIX}"/new"')
        assert status == MutationStatus.REPLACED
        assert path.read_text() == f'# top\n{EXPORT_PREFIX}"/new"\n# bottom\n'

    def test_exact_line_is_noop(self, tmp_path: Path):
        path = tmp_path / ".zprofile"
        path.write_text(f'{EXPORT_PREFIX}"/a"\n')
        before = path.read_bytes()
        status = replace_or_append_pattern(path, EXPORT_PREFIX, f'{EXPORT_PREFIX}"/a"')
        assert status == MutationStatus.UNCHANGED
        assert path.read_bytes() == before

    def test_duplicates_collapse_to_one(self, tmp_path: Path):
        path = tmp_path / ".zprofile"
        path.write_text(f'{EXPORT_PREFIX}"/one"\necho hi\n{EXPORT_PREFIX}"/two"\n')
        replace_or_append_pattern(path, EXPORT_PREFIX, f'{EXPORT_PREFIX}"/three"')
        assert _count_prefixed(path, EXPORT_PREFIX) == 1
        assert path.read_text() == f'{EXPORT_PREFIX}"/three"\necho hi\n'

    @pytest.mark.parametrize("initial", [
        "",
        "# nothing here\n",
        f'{EXPORT_PREFIX}"/somewhere/else"\n',
        f'{EXPORT_PREFIX}"/x"\n{EXPORT_PREFIX}"/y"\n',
    ])
    def test_converges_from_any_start(self, tmp_path: Path, initial: str):
        path = tmp_path / ".zprofile"
        path.write_text(initial)
        target = f'{EXPORT_PREFIX}"/Users/me/riverSpider"'

        replace_or_append_pattern(path, EXPORT_PREFIX, target)
        after_first = path.read_bytes()
        assert replace_or_append_pattern(path, EXPORT_PREFIX, target) == MutationStatus.UNCHANGED
        assert path.read_bytes() == after_first

        prefixed = [l for l in path.read_text().splitlines() if l.startswith(EXPORT_PREFIX)]
        assert prefixed == [target]


class TestReplaceExactLine:
    """Tests for single-line substitution."""

    def test_replace_then_unchanged(self, tmp_path: Path):
        path = tmp_path / "submit.sh"
        path.write_text("#!/bin/bash\nsecretPath=secretString.txt\necho done\n")
        new = 'secretPath="/r/secretString.txt"'

        assert replace_exact_line(path, "secretPath=secretString.txt", new) == MutationStatus.REPLACED
        assert path.read_text() == f"#!/bin/bash\n{new}\necho done\n"
        assert replace_exact_line(path, "secretPath=secretString.txt", new) == MutationStatus.UNCHANGED

    def test_missing_line_is_skipped(self, tmp_path: Path):
        path = tmp_path / "submit.sh"
        path.write_text("#!/bin/bash\n")
        before = path.read_bytes()
        assert replace_exact_line(path, "logisimPath=x.jar", 'logisimPath="/r/x.jar"') == MutationStatus.SKIPPED
        assert path.read_bytes() == before

    def test_keeps_executable_bit(self, tmp_path: Path):
        path = tmp_path / "submit.sh"
        path.write_text("a=b\n")
        path.chmod(0o755)
        replace_exact_line(path, "a=b", 'a="/c"')
        assert path.stat().st_mode & 0o777 == 0o755

    def test_no_trailing_newline_preserved(self, tmp_path: Path):
        path = tmp_path / "submit.sh"
        path.write_text("x=1\na=b")
        replace_exact_line(path, "a=b", "a=c")
        assert path.read_text() == "x=1\na=c"

    def test_status_changed_flag(self):
        assert MutationStatus.REPLACED.changed
        assert MutationStatus.APPENDED.changed
        assert not MutationStatus.UNCHANGED.changed
        assert not MutationStatus.SKIPPED.changed


class TestAppendBlock:
    """Tests for block append and declaration lookup."""

    def test_separates_from_unterminated_last_line(self, tmp_path: Path):
        path = tmp_path / ".zprofile"
        path.write_text("export A=1")
        append_block(path, "hello() {\n  echo hi\n}")
        assert path.read_text() == "export A=1\nhello() {\n  echo hi\n}\n\n"

    def test_declaration_lookup(self, tmp_path: Path):
        path = tmp_path / ".zprofile"
        path.write_text("# riverspider() in a comment\nriverspider() {\n}\n")
        assert contains_declaration(path, "riverspider")
        assert not contains_declaration(path, "logisim")


class TestByteFidelity:
    """Tests for content that is not plain UTF-8 LF text."""

    def test_latin1_profile_appends(self, tmp_path: Path):
        path = tmp_path / ".zprofile"
        path.write_bytes(b"# caf\xe9\nexport A=1\n")

        assert ensure_line_present(path, "export B=2") == MutationStatus.APPENDED
        assert path.read_bytes() == b"# caf\xe9\nexport A=1\n\nexport B=2\n\n"
        assert ensure_line_present(path, "export B=2") == MutationStatus.UNCHANGED

    def test_latin1_profile_pattern_replace(self, tmp_path: Path):
        path = tmp_path / ".zprofile"
        path.write_bytes(b'# r\xe9pertoire\n' + f'{EXPORT_PREFIX}"/old"\n'.encode())

        status = replace_or_append_pattern(path, EXPORT_PREFIX, f'{EXPORT_PREFIX}"/new"')

        assert status == MutationStatus.REPLACED
        assert path.read_bytes() == b'# r\xe9pertoire\n' + f'{EXPORT_PREFIX}"/new"\n'.encode()

    def test_latin1_script_replace(self, tmp_path: Path):
        path = tmp_path / "submit.sh"
        path.write_bytes(b"#!/bin/bash\n# \xff\xfe\nsecretPath=secretString.txt\n")

        status = replace_exact_line(path, "secretPath=secretString.txt", 'secretPath="/r/s.txt"')

        assert status == MutationStatus.REPLACED
        assert path.read_bytes() == b'#!/bin/bash\n# \xff\xfe\nsecretPath="/r/s.txt"\n'

    def test_latin1_block_append(self, tmp_path: Path):
        path = tmp_path / ".zprofile"
        path.write_bytes(b"# \xe9")
        append_block(path, "riverspider() {\n}")
        assert path.read_bytes() == b"# \xe9\nriverspider() {\n}\n\n"
        assert contains_declaration(path, "riverspider")

    def test_crlf_script_keeps_line_endings(self, tmp_path: Path):
        path = tmp_path / "submit.sh"
        path.write_bytes(b"#!/bin/bash\r\nsecretPath=secretString.txt\r\necho ok\r\n")

        status = replace_exact_line(path, "secretPath=secretString.txt", 'secretPath="/r/s.txt"')

        assert status == MutationStatus.REPLACED
        assert path.read_bytes() == b'#!/bin/bash\r\nsecretPath="/r/s.txt"\r\necho ok\r\n'

    def test_form_feed_inside_line_is_kept(self, tmp_path: Path):
        path = tmp_path / ".zprofile"
        path.write_bytes(b"PS1='a\x0cb'\n" + f'{EXPORT_PREFIX}"/old"\n'.encode())

        replace_or_append_pattern(path, EXPORT_PREFIX, f'{EXPORT_PREFIX}"/new"')

        assert path.read_bytes() == b"PS1='a\x0cb'\n" + f'{EXPORT_PREFIX}"/new"\n'.encode()

    def test_unwritable_directory_fails_softly(self, tmp_path: Path):
        path = tmp_path / "submit.sh"
        path.write_text("a=b\n")
        with patch(
            "riverspider_setup.core.services.bootstrap.execution.text_mutator.tempfile.mkstemp",
            side_effect=PermissionError("denied"),
        ):
            assert replace_exact_line(path, "a=b", "a=c") == MutationStatus.FAILED
        assert path.read_text() == "a=b\n"
