"""
dpkg_db.py
Parsers for the Debian package databases:
- /var/lib/dpkg/status          (installed packages, RFC822-like stanzas)
- /var/lib/apt/extended_states  (Auto-Installed flags kept by apt)

Both are read line by line as `Key: value`. Continuation lines (leading
space) and unknown fields are ignored, as are version constraints in
relationship fields: `libc6 (>= 2.34)` becomes `libc6`.
"""

from typing import Iterable, List, Optional, Set, Tuple

from .models import PackageRecord, split_lines

DEP_FIELDS = {"Depends", "Pre-Depends"}


def split_field(line: str) -> Tuple[str, Optional[str]]:
    parts = line.split(": ", 1)
    if len(parts) != 2:
        return line, None
    return parts[0], parts[1]


def relation_name(item: str) -> str:
    parts = item.strip().split(" ")
    return parts[0]


def parse_dpkg_status(text: str) -> List[PackageRecord]:
    records: List[PackageRecord] = []
    current: Optional[PackageRecord] = None
    for line in split_lines(text):
        finished, current = _fold_status_line(current, line)
        if finished is not None and finished.name:
            records.append(finished)
    if current is not None and current.name:
        records.append(current)
    return records


def _fold_status_line(current: Optional[PackageRecord],
                      line: str) -> Tuple[Optional[PackageRecord], Optional[PackageRecord]]:
    key, value = split_field(line)
    if value is None:
        return None, current

    if key == "Package":
        return current, PackageRecord(name=value)
    if current is None:
        return None, current

    if key == "Version":
        current.version = value
    elif key == "Source":
        tokens = value.split()
        if tokens:
            current.source = tokens[0]
    elif key == "Provides":
        for item in value.split(","):
            current.add_provides(relation_name(item))
    elif key in DEP_FIELDS:
        # every alternative of `a | b` is recorded
        for group in value.split(","):
            for alternative in group.split("|"):
                current.add_dep(relation_name(alternative))
    return None, current


def parse_extended_states(text: str) -> Set[str]:
    """Names of packages marked `Auto-Installed: 1`."""
    auto: Set[str] = set()
    current_name: Optional[str] = None
    for line in split_lines(text):
        key, value = split_field(line)
        if value is None:
            continue
        if key == "Package":
            current_name = value
        elif key == "Auto-Installed" and current_name is not None:
            try:
                flag = int(value.strip())
            except ValueError:
                continue
            if flag == 1:
                auto.add(current_name)
    return auto


def set_auto_installed(records: Iterable[PackageRecord], auto_names: Set[str]) -> None:
    for record in records:
        if record.name in auto_names:
            record.auto_installed = True
