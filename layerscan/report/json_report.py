"""
json_report.py
Produces machine-parseable JSON structure for SCA/API ingestion.

Schema summary (top-level keys):
- meta
- summary   (package counts per manager)
- analyses  (one {Image, Kind, Packages} object per package manager)
- cve
"""

from typing import Dict, Any

from layerscan import __version__


def generate_json_report(scan: Dict[str, Any]) -> Dict[str, Any]:
    analyses = scan["analyses"]
    return {
        "meta": {
            "tool": "layerscan",
            "version": __version__,
            "image": scan["image"],
            "timestamp": scan["timestamp"]
        },
        "summary": {
            "package_count": sum(len(a.packages) for a in analyses),
            "by_kind": {a.kind: len(a.packages) for a in analyses},
            "auto_installed": sum(1 for a in analyses for p in a.packages if p.auto_installed)
        },
        "analyses": [a.to_dict() for a in analyses],
        "cve": scan["cve"]
    }
