"""Tests for typeann.writer."""

from __future__ import annotations

import errno
from pathlib import Path

import pytest

from typeann.errors import AnnotationWriteError
from typeann.models import FIRST_LINE, UNKNOWN_LINE, FunctionSignature
from typeann.writer import AnnotationWriter, PendingAnnotation, annotated_path, inject_annotations

F1 = FunctionSignature("f", 1)
G0 = FunctionSignature("g", 0)


def _render(signature: FunctionSignature) -> str:
    return f"-spec {signature.name}() -> ok."


def _inject(content: bytes, *entries: PendingAnnotation, render=_render) -> bytes:
    return b"".join(inject_annotations(content, entries, render))


def _lines(count: int) -> bytes:
    return b"".join(f"line {number}\n".encode() for number in range(1, count + 1))


def test_annotation_is_inserted_after_declared_line() -> None:
    original = _lines(10)

    output = _inject(original, PendingAnnotation(5, F1))

    before = original.splitlines(keepends=True)
    after = output.splitlines(keepends=True)
    assert len(after) == 11
    assert after[:5] == before[:5]
    assert after[5] == b"-spec f() -> ok.\n"
    assert after[6:] == before[5:]


def test_removing_annotation_lines_restores_original() -> None:
    original = _lines(6) + b"tail without newline"
    output = _inject(original, PendingAnnotation(2, F1), PendingAnnotation(4, G0))

    stripped = b"".join(
        line for line in output.splitlines(keepends=True) if not line.startswith(b"-spec ")
    )
    assert stripped == original


def test_multiple_annotations_on_same_line_keep_order() -> None:
    output = _inject(_lines(3), PendingAnnotation(1, F1), PendingAnnotation(1, G0))

    assert output.split(b"\n")[1:3] == [b"-spec f() -> ok.", b"-spec g() -> ok."]


def test_entries_are_sorted_by_line() -> None:
    output = _inject(_lines(3), PendingAnnotation(3, G0), PendingAnnotation(1, F1))

    assert output.split(b"\n")[:5] == [
        b"line 1",
        b"-spec f() -> ok.",
        b"line 2",
        b"line 3",
        b"-spec g() -> ok.",
    ]


def test_first_line_sentinel_emits_before_content() -> None:
    output = _inject(b"-module(m).\n", PendingAnnotation(FIRST_LINE, F1))

    assert output == b"-spec f() -> ok.\n-module(m).\n"


def test_unknown_line_is_never_annotated() -> None:
    original = _lines(4)

    assert _inject(original, PendingAnnotation(UNKNOWN_LINE, F1)) == original


def test_line_past_end_is_skipped() -> None:
    original = _lines(2)

    assert _inject(original, PendingAnnotation(9, F1)) == original


def test_unterminated_last_line_is_not_annotated() -> None:
    original = b"line 1\nline 2"

    assert _inject(original, PendingAnnotation(2, F1)) == original


def test_crlf_terminator_is_reused() -> None:
    output = _inject(b"a\r\nb\r\n", PendingAnnotation(1, F1))

    assert output == b"a\r\n-spec f() -> ok.\r\nb\r\n"


def test_mixed_terminators_follow_crossed_line() -> None:
    output = _inject(b"a\nb\r\nc\n", PendingAnnotation(1, F1), PendingAnnotation(2, G0))

    assert output == b"a\n-spec f() -> ok.\nb\r\n-spec g() -> ok.\r\nc\n"


def test_render_none_emits_nothing() -> None:
    original = _lines(3)

    assert _inject(original, PendingAnnotation(2, F1), render=lambda signature: None) == original


def test_empty_pending_copies_content() -> None:
    original = b"\x00\xff binary-ish\nrest"

    assert _inject(original) == original


def test_annotated_path_layout() -> None:
    assert annotated_path(Path("/src/lib/m.erl")) == Path("/src/lib/typer_ann/m.ann.erl")
    assert annotated_path(Path("/src/inc.hrl")) == Path("/src/typer_ann/inc.ann.hrl")


def test_writer_creates_derived_copy(source_tree) -> None:
    source = source_tree.write({"m.erl": "-module(m).\nf(X) -> X.\n"})["m.erl"]

    target = AnnotationWriter().write(source, [PendingAnnotation(2, F1)], _render)

    assert target == source.parent / "typer_ann" / "m.ann.erl"
    assert target.read_bytes() == b"-module(m).\nf(X) -> X.\n-spec f() -> ok.\n"
    assert source.read_bytes() == b"-module(m).\nf(X) -> X.\n"


def test_writer_overwrites_in_place(source_tree) -> None:
    source = source_tree.write({"m.erl": "-module(m).\nf(X) -> X.\n"})["m.erl"]

    target = AnnotationWriter(in_place=True).write(source, [PendingAnnotation(1, F1)], _render)

    assert target == source
    assert source.read_bytes() == b"-module(m).\n-spec f() -> ok.\nf(X) -> X.\n"
    assert not (source.parent / "typer_ann").exists()


def test_writer_replaces_stale_output(source_tree) -> None:
    files = source_tree.write({"m.erl": "a.\n", "typer_ann/m.ann.erl": "stale stale stale\n"})

    target = AnnotationWriter().write(files["m.erl"], [], _render)

    assert target.read_bytes() == b"a.\n"


def test_writer_reports_blocked_annotation_dir(source_tree) -> None:
    files = source_tree.write({"m.erl": "a.\n", "typer_ann": "not a directory"})

    with pytest.raises(AnnotationWriteError) as excinfo:
        AnnotationWriter().write(files["m.erl"], [], _render)

    assert excinfo.value.path == str(files["typer_ann"])


def test_writer_reports_missing_source(tmp_path: Path) -> None:
    with pytest.raises(AnnotationWriteError, match="Cannot read"):
        AnnotationWriter().write(tmp_path / "gone.erl", [], _render)


def _failing_open(monkeypatch, code: int, message: str) -> None:
    original_open = Path.open

    def _open(self, mode="r", *args, **kwargs):
        if mode == "xb":
            raise OSError(code, message, str(self))
        return original_open(self, mode, *args, **kwargs)

    monkeypatch.setattr(Path, "open", _open)


@pytest.mark.parametrize(
    ("code", "message", "expected"),
    [
        (errno.ENOSPC, "No space left on device", "Not enough space in {target}"),
        (errno.EACCES, "Permission denied", "No write permission in {target}"),
        (errno.EPERM, "Operation not permitted", "No write permission in {target}"),
        (errno.EIO, "Input/output error", "Unhandled error Input/output error when writing {target}"),
    ],
)
def test_writer_classifies_write_failures(
    source_tree, monkeypatch, code: int, message: str, expected: str
) -> None:
    source = source_tree.write({"m.erl": "a.\n"})["m.erl"]
    target = annotated_path(source)
    _failing_open(monkeypatch, code, message)

    with pytest.raises(AnnotationWriteError) as excinfo:
        AnnotationWriter().write(source, [PendingAnnotation(1, F1)], _render)

    assert str(excinfo.value) == expected.format(target=target)
    assert excinfo.value.path == str(target)


def test_writer_reports_unwritable_annotation_dir(source_tree, monkeypatch) -> None:
    source = source_tree.write({"m.erl": "a.\n"})["m.erl"]

    def _deny(self, *args, **kwargs):
        raise OSError(errno.EACCES, "Permission denied", str(self))

    monkeypatch.setattr(Path, "mkdir", _deny)

    with pytest.raises(AnnotationWriteError) as excinfo:
        AnnotationWriter().write(source, [], _render)

    assert str(excinfo.value) == f"No write permission in {source.parent}"
    assert excinfo.value.path == str(source.parent / "typer_ann")


def test_writer_reports_delete_failure(source_tree, monkeypatch) -> None:
    source = source_tree.write({"m.erl": "a.\n"})["m.erl"]

    def _busy(self, *args, **kwargs):
        raise OSError(errno.EBUSY, "Device or resource busy", str(self))

    monkeypatch.setattr(Path, "unlink", _busy)

    with pytest.raises(AnnotationWriteError) as excinfo:
        AnnotationWriter(in_place=True).write(source, [], _render)

    assert str(excinfo.value) == f"Error in deleting file {source}"
    assert excinfo.value.path == str(source)
    assert source.read_bytes() == b"a.\n"
