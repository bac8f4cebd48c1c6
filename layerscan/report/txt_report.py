"""
txt_report.py
Generates clean, structured ASCII report without ANSI color,
including clear section separators and summary block.

Input: scan dictionary from scanner.scan_image
Output: multiline string
"""

from typing import Dict, Any, List

SEP = "=" * 78
SUB_SEP = "-" * 78


def generate_txt_report(scan: Dict[str, Any]) -> str:
    lines: List[str] = []
    lines.append(SEP)
    lines.append("layerscan - Container Image Package Inventory")
    lines.append(f"Image: {scan['image']}")
    lines.append(f"Generated: {scan['timestamp']}")
    lines.append(SEP)
    lines.append("")

    # Summary
    lines.append("SUMMARY")
    lines.append(SUB_SEP)
    for result in scan["analyses"]:
        auto = sum(1 for p in result.packages if p.auto_installed)
        lines.append(f"{result.kind}: {len(result.packages)} packages ({auto} auto-installed)")
    lines.append(f"CVE matches: {scan['cve']['count']}")
    lines.append("")

    # Per-manager package listing
    for result in scan["analyses"]:
        lines.append(SEP)
        lines.append(f"{result.kind.upper()} PACKAGES")
        lines.append(SEP)
        if not result.packages:
            lines.append("No packages found.")
            lines.append("")
            continue
        for pkg in result.packages:
            flag = " [auto]" if pkg.auto_installed else ""
            lines.append(f"{pkg.name} {pkg.version or '?'}{flag}")
            if pkg.source:
                lines.append(f"  source:   {pkg.source}")
            if pkg.provides:
                lines.append(f"  provides: {', '.join(pkg.provides)}")
            if pkg.deps:
                lines.append(f"  depends:  {', '.join(sorted(pkg.deps))}")
        lines.append("")

    # CVE
    lines.append(SEP)
    lines.append("CVE MATCHES")
    lines.append(SEP)
    matches = scan["cve"]["matches"]
    if matches:
        for m in matches:
            lines.append(f"{m['product']} {m['version']} -> {m['cve']} (CVSS {m['cvss']}) {m['summary']}")
    else:
        lines.append("No local CVE matches found.")
    lines.append("")

    return "\n".join(lines)
