"""
cve_lookup.py
Offline CVE matching against an image's package inventory.

Mechanism:
- Loads local JSON feeds from the configured directories, by default:
  ./cve_data/
  ~/.cache/layerscan/cve/
- Expects JSON list entries of form:
  {
    "cve": "CVE-2024-XXXX",
    "product": "openssl",
    "version_pattern": "^3\\.0\\.",
    "cvss": 7.5,
    "summary": "Short description"
  }
- A package matches when the product equals its name or its source package
  name (case-insensitive) and the version pattern is found in its version.

Falls back to a small static list if no feeds are available.
"""

import json
import logging
import os
import re
from typing import Dict, Iterable, List

from .models import AnalysisResult

log = logging.getLogger(__name__)

FALLBACK_CVES = [
    {
        "cve": "CVE-2021-3156",
        "product": "sudo",
        "version_pattern": r"^1\.(8\.|9\.[0-4]([^0-9]|$)|9\.5p1)",
        "cvss": 7.8,
        "summary": "Baron Samedit heap overflow in sudo."
    }
]

REQUIRED_KEYS = {"cve", "product", "version_pattern", "cvss"}


def load_local_cve_feeds(dirs: Iterable[str]) -> List[Dict]:
    entries = []
    for base in dirs:
        if not os.path.isdir(base):
            continue
        for f in sorted(os.listdir(base)):
            if not f.endswith(".json"):
                continue
            fp = os.path.join(base, f)
            try:
                with open(fp, "r", encoding="utf-8") as h:
                    data = json.load(h)
            except (OSError, ValueError) as e:
                log.warning("Skipping CVE feed %s: %s", fp, e)
                continue
            if isinstance(data, list):
                entries.extend(item for item in data if _valid_cve_item(item))
    if not entries:
        entries = FALLBACK_CVES
    return entries


def _valid_cve_item(item) -> bool:
    return isinstance(item, dict) and REQUIRED_KEYS.issubset(item)


def match_cves(results: Iterable[AnalysisResult], cve_entries: List[Dict]) -> List[Dict]:
    findings = []
    for result in results:
        for pkg in result.packages:
            if pkg.version is None:
                continue
            names = {pkg.name.lower()}
            if pkg.source:
                names.add(pkg.source.lower())
            for entry in cve_entries:
                if entry["product"].lower() not in names:
                    continue
                try:
                    if not re.search(entry["version_pattern"], pkg.version):
                        continue
                except re.error:
                    log.warning("Bad version pattern for %s: %r", entry["cve"], entry["version_pattern"])
                    continue
                findings.append({
                    "cve": entry["cve"],
                    "kind": result.kind,
                    "product": pkg.name,
                    "version": pkg.version,
                    "cvss": entry["cvss"],
                    "summary": entry.get("summary", "")
                })
    return findings
