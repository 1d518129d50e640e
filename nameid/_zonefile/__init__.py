"""
Zone file codec: the subset of RFC 1035 master files used by the naming
system to point a name at its profile token file.

This is nameid's own reader and writer, not a vendored copy of a zone file
library. Only $ORIGIN, $TTL and the record types in RECORD_TYPES are handled.
"""

from nameid._zonefile.spec import DEFAULT_TEMPLATE, RECORD_TYPES
from nameid._zonefile.reader import parse_zone_file
from nameid._zonefile.writer import make_zone_file
