"""
Zone file text format (RFC 1035 master file subset).

Layout:
    $ORIGIN <name>                          <- Origin directive
    $TTL <seconds>                          <- Default TTL directive
    <name> [<ttl>] [IN] <TYPE> <rdata...>   <- Resource records
    ; comment                               <- Ignored to end of line

Records kept:
    URI    <priority> <weight> "<target>"
    TXT    "<chunk>" ["<chunk>" ...]
    A      <ipv4>
    AAAA   <ipv6>
    CNAME  <alias>
    NS     <host>

Structured form (what parse_zone_file returns and make_zone_file consumes):
    {"$origin": str, "$ttl": int,
     "uri": [{"name", "ttl"?, "priority", "weight", "target"}],
     "txt": [{"name", "ttl"?, "txt"}], "a": [{"name", "ttl"?, "ip"}],
     "aaaa": [...], "cname": [{"name", "ttl"?, "alias"}], "ns": [{"name", "ttl"?, "host"}]}

Lines that are not directives or records are skipped, so arbitrary text
(e.g. a JSON blob) parses to a record with no "$origin".
"""

import re

ORIGIN_DIRECTIVE = "$ORIGIN"
TTL_DIRECTIVE = "$TTL"
RECORD_CLASS = "IN"
COMMENT_CHAR = ";"

# record type -> (structured key, rdata field names)
RECORD_TYPES = {
    "URI": ("uri", ("priority", "weight", "target")),
    "TXT": ("txt", ("txt",)),
    "A": ("a", ("ip",)),
    "AAAA": ("aaaa", ("ip",)),
    "CNAME": ("cname", ("alias",)),
    "NS": ("ns", ("host",)),
}

# Emission order for the default template
SECTION_ORDER = ("ns", "a", "aaaa", "cname", "txt", "uri")

DEFAULT_TEMPLATE = "{$origin}\n{$ttl}\n" + "".join("{%s}\n" % s for s in SECTION_ORDER)

# Lines beginning with these can never be records
NON_RECORD_PREFIXES = ("{", "}", "[", "]", '"')

TOKEN_RE = re.compile(r'"(?:[^"\\]|\\.)*"|\S+')


def quote(value: str) -> str:
    return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'


def unquote(token: str) -> str:
    if len(token) >= 2 and token[0] == '"' and token[-1] == '"':
        return re.sub(r"\\(.)", r"\1", token[1:-1])
    return token
