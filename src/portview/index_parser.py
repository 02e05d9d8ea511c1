"""PortIndex parser.

The index is a sequence of entries::

    NAME LENGTH\\n
    <LENGTH bytes of "attr value" pairs>

where each value is a bare token or a brace list that may nest. The scan is a
single left-to-right pass over the bytes with an explicit cursor; braces are
matched with a depth counter. A bad entry is logged and skipped, it never
stops the rest of the file from loading.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import structlog

from portview.errors import ParseEntryError
from portview.models.package import (
    AttributeValue,
    NestedList,
    PackageRecord,
    StringList,
    StringValue,
)

if TYPE_CHECKING:
    from collections.abc import Iterator

    from portview.repository import Repository

log = structlog.get_logger()


@dataclass
class ParseReport:
    loaded: int = 0
    skipped: int = 0
    errors: list[ParseEntryError] = field(default_factory=list)

    def skip(self, error: ParseEntryError) -> None:
        self.skipped += 1
        self.errors.append(error)
        log.warning(
            "index_entry_skipped",
            name=error.name,
            offset=error.offset,
            reason=error.message,
        )


class _Braced(str):
    """Raw text found between a matching pair of braces."""


def _parse_header(line: bytes, offset: int) -> tuple[str, int]:
    parts = line.split()
    if len(parts) != 2:
        name = parts[0].decode("utf-8", errors="replace") if parts else None
        raise ParseEntryError("malformed entry header", name=name, offset=offset)
    name = parts[0].decode("utf-8", errors="replace")
    if not parts[1].isdigit():
        raise ParseEntryError(f"invalid entry length {parts[1]!r}", name=name, offset=offset)
    return name, int(parts[1])


def _match_brace(text: str, start: int, name: str) -> int:
    """Index of the ``}`` closing the ``{`` at ``start``."""
    depth = 0
    i = start
    n = len(text)
    while i < n:
        ch = text[i]
        if ch == "\\":
            i += 2
            continue
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return i
        i += 1
    raise ParseEntryError("unmatched '{'", name=name, offset=start)


def _unescape(word: str) -> str:
    if "\\" not in word:
        return word
    out = []
    i = 0
    while i < len(word):
        if word[i] == "\\" and i + 1 < len(word):
            out.append(word[i + 1])
            i += 2
        else:
            out.append(word[i])
            i += 1
    return "".join(out)


def _tokenize(text: str, name: str) -> list[str]:
    tokens: list[str] = []
    i = 0
    n = len(text)
    while i < n:
        ch = text[i]
        if ch.isspace():
            i += 1
        elif ch == "{":
            close = _match_brace(text, i, name)
            tokens.append(_Braced(text[i + 1 : close]))
            i = close + 1
        elif ch == "}":
            raise ParseEntryError("unmatched '}'", name=name, offset=i)
        else:
            j = i
            while j < n and not text[j].isspace():
                if text[j] in "{}":
                    raise ParseEntryError(f"unmatched {text[j]!r}", name=name, offset=j)
                j += 2 if text[j] == "\\" else 1
            tokens.append(text[i:j])
            i = j
    return tokens


def _to_value(token: str, name: str) -> AttributeValue:
    if not isinstance(token, _Braced):
        return StringValue(text=_unescape(token))
    inner = _tokenize(token, name)
    if any(isinstance(t, _Braced) for t in inner):
        return NestedList(items=tuple(_to_value(t, name) for t in inner))
    return StringList(items=tuple(_unescape(t) for t in inner))


def _braced_pair(token: _Braced, name: str) -> tuple[str, str]:
    inner = _tokenize(token, name)
    if len(inner) != 2 or isinstance(inner[0], _Braced):
        raise ParseEntryError("attribute name must be a bare word", name=name)
    return inner[0], inner[1]


def parse_body(text: str, name: str) -> dict[str, AttributeValue]:
    """Parse one entry body into its attribute map.

    Pairs are either ``attr value`` or wrapped as ``{attr value}``.

    Raises:
        ParseEntryError: unbalanced braces, a dangling attribute name, or a
            brace list where an attribute name is expected that isn't a pair.
    """
    tokens = _tokenize(text, name)

    attributes: dict[str, AttributeValue] = {}
    i = 0
    while i < len(tokens):
        token = tokens[i]
        if isinstance(token, _Braced):
            attr, raw = _braced_pair(token, name)
            i += 1
        elif i + 1 < len(tokens):
            attr, raw = token, tokens[i + 1]
            i += 2
        else:
            raise ParseEntryError(f"attribute {token!r} has no value", name=name)
        value = _to_value(raw, name)
        if attr == "categories" and isinstance(value, NestedList):
            raise ParseEntryError("categories must be a flat list", name=name)
        attributes[attr] = value
    return attributes


def _ends_on_line(data: bytes, body_end: int) -> bool:
    if body_end > len(data):
        return False
    return body_end == len(data) or data[body_end - 1 : body_end] == b"\n"


def iter_entries(data: bytes, report: ParseReport | None = None) -> Iterator[PackageRecord]:
    """Yield one record per well-formed entry in ``data``."""
    if report is None:
        report = ParseReport()

    pos = 0
    end = len(data)
    resyncing = False
    while pos < end:
        newline = data.find(b"\n", pos)
        line_end = end if newline == -1 else newline
        header = data[pos:line_end]
        body_start = line_end + 1

        if not header.strip():
            pos = body_start
            continue

        try:
            name, length = _parse_header(header, pos)
        except ParseEntryError as exc:
            # Without a length there is no way to find the body; resync on a later line.
            if not resyncing:
                report.skip(exc)
                resyncing = True
            pos = body_start
            continue

        body_end = body_start + length
        if resyncing:
            # A body line can look like a header; only accept one whose body
            # ends on a line boundary.
            if not _ends_on_line(data, body_end):
                pos = body_start
                continue
            resyncing = False

        if body_end > end:
            report.skip(ParseEntryError("entry body is truncated", name=name, offset=pos))
            return
        pos = body_end

        try:
            body = data[body_start:body_end].decode("utf-8", errors="replace")
            attributes = parse_body(body, name)
        except ParseEntryError as exc:
            exc.offset = body_start + exc.offset
            report.skip(exc)
            continue

        report.loaded += 1
        yield PackageRecord(name=name, attributes=attributes)


def parse_index(repo: Repository, *sources: bytes) -> ParseReport:
    """Rebuild ``repo`` from index files given in precedence order (last wins)."""
    report = ParseReport()
    records: list[PackageRecord] = []
    for data in sources:
        records.extend(iter_entries(data, report))
    repo.rebuild(records)
    log.info("index_parsed", loaded=report.loaded, skipped=report.skipped, packages=len(repo))
    return report
