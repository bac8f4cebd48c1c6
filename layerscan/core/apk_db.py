"""
apk_db.py
Parser for the Alpine apk installed database (/lib/apk/db/installed).

Each line is `<letter>:<value>`. A `P:` line starts a new package record;
the following field lines belong to it until the next `P:` line.

Handled keys:
- P  package name
- V  version
- p  provides (space separated, `name=ver` qualifiers stripped)
- D  depends (space separated, `!name` exclusions skipped)
- r  replaces/depends, treated like D

Everything else is ignored; parsing never raises.
"""

import re
from typing import List, Optional, Tuple

from .models import PackageRecord, split_lines

CONSTRAINT_RE = re.compile(r"[<>=~]")


def strip_constraint(token: str) -> str:
    return CONSTRAINT_RE.split(token, 1)[0]


def parse_apk_db(text: str) -> List[PackageRecord]:
    records: List[PackageRecord] = []
    current: Optional[PackageRecord] = None
    for line in split_lines(text):
        finished, current = _fold_line(current, line)
        if finished is not None and finished.name:
            records.append(finished)
    if current is not None and current.name:
        records.append(current)
    return records


def _fold_line(current: Optional[PackageRecord],
               line: str) -> Tuple[Optional[PackageRecord], Optional[PackageRecord]]:
    """Apply one line; returns (record finished by this line, current record)."""
    if len(line) < 2 or line[1] != ":":
        return None, current
    key, value = line[0], line[2:]

    if key == "P":
        return current, PackageRecord(name=value)
    if current is None:
        # field line before the first record
        return None, current

    if key == "V":
        current.version = value
    elif key == "p":
        for token in value.split(" "):
            current.add_provides(strip_constraint(token))
    elif key in ("D", "r"):
        for token in value.split(" "):
            if token.startswith("!"):
                continue
            current.add_dep(strip_constraint(token))
    return None, current
