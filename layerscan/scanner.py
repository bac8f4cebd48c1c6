"""
scanner.py
Scan workflow for one container image.

Workflow:
1. Save the image once and extract every package database any configured
   manager needs (a single `docker save`).
2. Run each package manager analyzer on the extracted files.
3. Perform offline CVE lookup against the inventory.
4. Generate TXT, JSON and (optionally) PDF reports.

The image is never run; the only external command is `docker save`.
"""

import datetime
import json
import logging
import os
from typing import Any, Dict, Iterable, List, Optional, Sequence

from .config import ScanSettings
from .core.analyzers import FileProvider, analyze
from .core.cve_lookup import load_local_cve_feeds, match_cves
from .core.docker import Docker, DockerOptions
from .core.models import DEFAULT_MANAGERS, ManagerConfig
from .report.charts import dependency_histogram, packages_per_manager, top_dependencies
from .report.json_report import generate_json_report
from .report.pdf_report import generate_pdf
from .report.txt_report import generate_txt_report
from .terminal_ui import TerminalUI

log = logging.getLogger(__name__)


class CachedProvider:
    """Serves analyzer requests from one up-front extraction."""

    def __init__(self, files: Dict[str, bytes]):
        self.files = files

    def __call__(self, paths: Sequence[str]) -> Dict[str, bytes]:
        return {p: self.files[p] for p in paths if p in self.files}


def requested_paths(managers: Iterable[ManagerConfig]) -> List[str]:
    paths: List[str] = []
    for manager in managers:
        for path in manager.paths:
            if path not in paths:
                paths.append(path)
    return paths


def generate_charts(scan: Dict[str, Any]) -> Dict[str, Any]:
    analyses = scan["analyses"]
    charts = {}
    charts["Packages by Manager"] = packages_per_manager({a.kind: len(a.packages) for a in analyses})
    charts["Most Depended-Upon Packages"] = top_dependencies(analyses)
    charts["Dependencies per Package"] = dependency_histogram(analyses)
    return charts


def write_reports(scan: Dict[str, Any], settings: ScanSettings) -> Dict[str, str]:
    os.makedirs(settings.report_dir, exist_ok=True)
    stamp = datetime.datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
    txt_path = os.path.join(settings.report_dir, f"{stamp}.txt")
    json_path = os.path.join(settings.report_dir, f"{stamp}.json")
    reports = {}

    with open(txt_path, "w", encoding="utf-8") as f:
        f.write(generate_txt_report(scan))
    reports["txt"] = txt_path

    with open(json_path, "w", encoding="utf-8") as f:
        json.dump(generate_json_report(scan), f, indent=2)
    reports["json"] = json_path

    if settings.write_pdf:
        pdf_path = os.path.join(settings.report_dir, f"{stamp}.pdf")
        pdf_ok, pdf_msg = generate_pdf(scan, generate_charts(scan), pdf_path)
        if pdf_ok:
            reports["pdf"] = pdf_path
        else:
            log.warning(pdf_msg)
    return reports


def scan_image(image: str, options: Optional[DockerOptions] = None,
               managers: Sequence[ManagerConfig] = DEFAULT_MANAGERS,
               settings: Optional[ScanSettings] = None,
               provider: Optional[FileProvider] = None,
               ui: Optional[TerminalUI] = None) -> Dict[str, Any]:
    settings = settings or ScanSettings()
    ui = ui or TerminalUI(enabled=False)
    ui.start(total_tasks=len(managers) + 3)  # + extraction, CVE, reporting

    try:
        if provider is None:
            provider = Docker(image, options, max_workers=settings.max_workers).extract
        files = provider(requested_paths(managers))
        shared = CachedProvider(files)
        ui.update(f"Extracted {len(files)} package databases")

        analyses = []
        for manager in managers:
            result = analyze(image, manager, provider=shared)
            log.info("%s: %d packages", manager.kind, len(result.packages))
            analyses.append(result)
            ui.update(f"Completed: {manager.kind}")

        cve_entries = load_local_cve_feeds(settings.cve_dirs)
        cve_matches = match_cves(analyses, cve_entries)
        ui.update("Completed: CVE lookup")

        scan = {
            "image": image,
            "timestamp": datetime.datetime.now(datetime.timezone.utc).isoformat(),
            "analyses": analyses,
            "cve": {"matches": cve_matches, "count": len(cve_matches)},
        }
        scan["reports"] = write_reports(scan, settings)
        ui.update("Completed: reports")
    finally:
        ui.stop()
    return scan
