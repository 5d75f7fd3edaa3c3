import re
from typing import Iterable

PREFIX = "BRW"
RECORD_ID = re.compile(rf"^{PREFIX}(\d+)$")


def next_record_id(records: Iterable) -> str:
    """Next sequential record id, one past the highest BRW number seen.

    Counting records is not enough: the loaded set may be partial, and a
    reused number would overwrite another record at the same address.
    """
    highest = 0
    for record in records:
        record_id = record if isinstance(record, str) else getattr(record, "id", None)
        match = RECORD_ID.match(record_id or "")
        if match:
            highest = max(highest, int(match.group(1)))
    return f"{PREFIX}{highest + 1:03d}"
