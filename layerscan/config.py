"""
config.py
Scan settings: where reports go, where offline CVE feeds are read from and
how many layers are decoded in parallel.

Environment overrides:
- LAYERSCAN_REPORT_DIR
- LAYERSCAN_CVE_DIR   (searched before the default feed directories)
- LAYERSCAN_WORKERS
- LAYERSCAN_PDF       ("0" disables the PDF report)
"""

import os
from dataclasses import dataclass, field
from typing import List

from .core.image_extractor import DEFAULT_WORKERS

REPORT_DIR = os.path.expanduser("~/layerscan/reports")
CVE_DIRS = [
    "./cve_data",
    os.path.expanduser("~/.cache/layerscan/cve"),
]


@dataclass
class ScanSettings:
    report_dir: str = REPORT_DIR
    cve_dirs: List[str] = field(default_factory=lambda: list(CVE_DIRS))
    max_workers: int = DEFAULT_WORKERS
    write_pdf: bool = True

    @classmethod
    def from_env(cls, environ=None) -> "ScanSettings":
        env = os.environ if environ is None else environ
        settings = cls()
        if env.get("LAYERSCAN_REPORT_DIR"):
            settings.report_dir = os.path.expanduser(env["LAYERSCAN_REPORT_DIR"])
        if env.get("LAYERSCAN_CVE_DIR"):
            settings.cve_dirs.insert(0, os.path.expanduser(env["LAYERSCAN_CVE_DIR"]))
        if env.get("LAYERSCAN_WORKERS"):
            settings.max_workers = max(1, int(env["LAYERSCAN_WORKERS"]))
        if env.get("LAYERSCAN_PDF") == "0":
            settings.write_pdf = False
        return settings
