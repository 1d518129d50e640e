"""
Writer - renders the structured form back to zone file text.

Each "{section}" placeholder in the template is replaced by that
section's records, one per line; absent sections render empty.
"""

from __future__ import annotations

from typing import Any

from nameid._zonefile.spec import (
    DEFAULT_TEMPLATE, ORIGIN_DIRECTIVE, RECORD_CLASS, RECORD_TYPES,
    SECTION_ORDER, TTL_DIRECTIVE, quote,
)

_TYPE_FOR_SECTION = {key: rtype for rtype, (key, _) in RECORD_TYPES.items()}


def _rdata(section: str, record: dict[str, Any]) -> list[str]:
    if section == "uri":
        return [str(record["priority"]), str(record["weight"]), quote(record["target"])]
    if section == "txt":
        chunks = record["txt"]
        if isinstance(chunks, str):
            chunks = [chunks]
        return [quote(c) for c in chunks]
    field = RECORD_TYPES[_TYPE_FOR_SECTION[section]][1][0]
    return [str(record[field])]


def _render_section(section: str, records: list[dict[str, Any]]) -> str:
    lines = []
    for record in records:
        fields = [record["name"]]
        if record.get("ttl") is not None:
            fields.append(str(record["ttl"]))
        fields += [RECORD_CLASS, _TYPE_FOR_SECTION[section]]
        fields += _rdata(section, record)
        lines.append("\t".join(fields))
    return "\n".join(lines)


def make_zone_file(zone: dict[str, Any], template: str = DEFAULT_TEMPLATE) -> str:
    """Render zone to text. Does not mutate the input."""
    text = template
    origin = zone.get("$origin")
    text = text.replace("{$origin}", f"{ORIGIN_DIRECTIVE} {origin}" if origin else "")
    ttl = zone.get("$ttl")
    text = text.replace("{$ttl}", f"{TTL_DIRECTIVE} {ttl}" if ttl is not None else "")
    for section in SECTION_ORDER:
        placeholder = "{%s}" % section
        if placeholder in text:
            text = text.replace(placeholder, _render_section(section, zone.get(section) or []))
    return text
