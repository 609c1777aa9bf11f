"""
lcov tracefile parsing.

Only the records coverage uploads need are read:

    SF:<source file>
    DA:<line>,<hits>[,<checksum>]
    BRDA:<line>,<block>,<branch>,<taken>     (taken is "-" when never evaluated)
    end_of_record

Everything else (TN, FN, FNDA, LF, LH, ...) is ignored.
"""
from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple


class LcovError(ValueError):
    """Malformed lcov tracefile."""


@dataclass
class FileCoverage:
    path: str
    lines: Dict[int, int] = field(default_factory=dict)                      # line -> hits
    branches: List[Tuple[int, int, int, int]] = field(default_factory=list)  # (line, block, branch, hits)

    @property
    def lines_found(self) -> int:
        return len(self.lines)

    @property
    def lines_hit(self) -> int:
        return sum(1 for hits in self.lines.values() if hits > 0)


def parse(text: str) -> List[FileCoverage]:
    files: List[FileCoverage] = []
    current: Optional[FileCoverage] = None

    for lineno, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if not line:
            continue
        tag, _, value = line.partition(":")

        if tag == "SF":
            current = FileCoverage(path=value)
            files.append(current)
        elif tag == "end_of_record":
            current = None
        elif tag == "DA":
            if current is None:
                raise LcovError(f"line {lineno}: DA outside of a record")
            parts = value.split(",")
            try:
                ln, hits = int(parts[0]), int(parts[1])
            except (IndexError, ValueError):
                raise LcovError(f"line {lineno}: bad DA record {value!r}") from None
            # the same line may appear twice (e.g. generics); hits add up
            current.lines[ln] = current.lines.get(ln, 0) + hits
        elif tag == "BRDA":
            if current is None:
                raise LcovError(f"line {lineno}: BRDA outside of a record")
            parts = value.split(",")
            try:
                ln, block, branch = int(parts[0]), int(parts[1]), int(parts[2])
                hits = 0 if parts[3] == "-" else int(parts[3])
            except (IndexError, ValueError):
                raise LcovError(f"line {lineno}: bad BRDA record {value!r}") from None
            current.branches.append((ln, block, branch, hits))

    return files


def load(path: str | Path) -> List[FileCoverage]:
    return parse(Path(path).read_text(encoding="utf-8"))


def _relative_name(path: str, root: Path) -> str:
    p = Path(path)
    if not p.is_absolute():
        return p.as_posix()
    try:
        return p.resolve().relative_to(root.resolve()).as_posix()
    except ValueError:
        return p.as_posix()


def to_source_files(files: List[FileCoverage], root: str | Path) -> List[Dict[str, Any]]:
    """
    Convert parsed coverage into the coverage service's `source_files` list.

    `coverage` holds one entry per source line: hit count, or None for lines
    that are not instrumented. When the source is unreadable, the array
    stops at the last instrumented line and no digest is sent.
    """
    root_p = Path(root)
    out: List[Dict[str, Any]] = []

    for fc in files:
        name = _relative_name(fc.path, root_p)
        src = Path(fc.path)
        if not src.is_absolute():
            src = root_p / src

        entry: Dict[str, Any] = {"name": name}
        try:
            content = src.read_bytes()
        except OSError:
            content = None

        if content is not None:
            entry["source_digest"] = hashlib.md5(content).hexdigest()
            n_lines = len(content.decode("utf-8", errors="replace").splitlines())
        else:
            n_lines = 0
        n_lines = max([n_lines, *fc.lines.keys()]) if fc.lines else n_lines

        coverage: List[Optional[int]] = [None] * n_lines
        for ln, hits in fc.lines.items():
            if ln >= 1:
                coverage[ln - 1] = hits
        entry["coverage"] = coverage

        if fc.branches:
            entry["branches"] = [v for br in fc.branches for v in br]
        out.append(entry)

    return out
