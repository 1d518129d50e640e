"""
Reader - parses zone file text into the structured form.

Directives are case-insensitive. Records whose owner name is omitted
(line starts with whitespace) inherit the previous record's name.
Malformed directives or rdata raise ValueError.
"""

from __future__ import annotations

from typing import Any

from nameid._zonefile.spec import (
    COMMENT_CHAR, NON_RECORD_PREFIXES, ORIGIN_DIRECTIVE, RECORD_CLASS,
    RECORD_TYPES, TOKEN_RE, TTL_DIRECTIVE, unquote,
)


def _tokenize(line: str) -> list[str]:
    tokens = []
    for token in TOKEN_RE.findall(line):
        if token.startswith(COMMENT_CHAR):
            break
        tokens.append(token)
    return tokens


def _parse_int(value: str, what: str) -> int:
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"Invalid {what}: {value!r}") from None


def _parse_rdata(rtype: str, rdata: list[str]) -> dict[str, Any]:
    if rtype == "URI":
        if len(rdata) != 3:
            raise ValueError(f"URI record needs priority, weight and target: {rdata!r}")
        return {
            "priority": _parse_int(rdata[0], "URI priority"),
            "weight": _parse_int(rdata[1], "URI weight"),
            "target": unquote(rdata[2]),
        }
    if not rdata:
        raise ValueError(f"{rtype} record has no data")
    if rtype == "TXT":
        chunks = [unquote(t) for t in rdata]
        return {"txt": chunks[0] if len(chunks) == 1 else chunks}
    field = RECORD_TYPES[rtype][1][0]
    return {field: unquote(rdata[0])}


class ZoneFileReader:

    def __init__(self) -> None:
        self.zone: dict[str, Any] = {}
        self._last_name = ""

    def feed(self, line: str) -> None:
        stripped = line.strip()
        if not stripped or stripped.startswith(NON_RECORD_PREFIXES):
            return
        tokens = _tokenize(line)
        if not tokens:
            return

        head = tokens[0].upper()
        if head == ORIGIN_DIRECTIVE:
            if len(tokens) < 2:
                raise ValueError("$ORIGIN directive without a name")
            self.zone["$origin"] = tokens[1]
            return
        if head == TTL_DIRECTIVE:
            if len(tokens) < 2:
                raise ValueError("$TTL directive without a value")
            self.zone["$ttl"] = _parse_int(tokens[1], "$TTL")
            return

        inherited = line[0].isspace()
        self._feed_record(tokens, inherited)

    def _feed_record(self, tokens: list[str], inherited: bool) -> None:
        if inherited:
            name = self._last_name
        else:
            name, tokens = tokens[0], tokens[1:]

        ttl = None
        rtype = None
        for i, token in enumerate(tokens):
            upper = token.upper()
            if upper in RECORD_TYPES and not token.startswith('"'):
                rtype, rdata = upper, tokens[i + 1:]
                break
            if upper == RECORD_CLASS:
                continue
            if token.isdigit() and ttl is None:
                ttl = int(token)
                continue
            return  # not a record line

        if rtype is None:
            return

        record: dict[str, Any] = {"name": name}
        if ttl is not None:
            record["ttl"] = ttl
        record.update(_parse_rdata(rtype, rdata))
        self.zone.setdefault(RECORD_TYPES[rtype][0], []).append(record)
        self._last_name = name


def parse_zone_file(text: str) -> dict[str, Any]:
    """Parse zone file text. Raises ValueError on malformed directives/rdata."""
    if not isinstance(text, str):
        raise ValueError("Zone file must be text")
    reader = ZoneFileReader()
    for line in text.splitlines():
        reader.feed(line)
    return reader.zone
