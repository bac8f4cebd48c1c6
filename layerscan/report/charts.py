"""
charts.py
Generates matplotlib charts (grayscale) and returns them as BytesIO objects.

Charts:
- Packages per package manager (bar)
- Most depended-upon packages (horizontal bar)
- Dependency count distribution (histogram)
"""

import collections
from io import BytesIO
from typing import Dict, Iterable

# Use non-interactive backend
import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np

from layerscan.core.models import AnalysisResult

plt.style.use("grayscale")


def _to_png(fig) -> BytesIO:
    bio = BytesIO()
    fig.tight_layout()
    fig.savefig(bio, format="png", bbox_inches="tight")
    plt.close(fig)
    bio.seek(0)
    return bio


def packages_per_manager(counts: Dict[str, int]) -> BytesIO:
    if not counts:
        counts = {"none": 0}
    labels = list(counts.keys())
    values = [counts[l] for l in labels]
    fig, ax = plt.subplots(figsize=(6, 3))
    ax.bar(labels, values)
    ax.set_title("Packages by Manager")
    ax.set_ylabel("Count")
    ax.grid(axis='y', linestyle='--', linewidth=0.5)
    return _to_png(fig)


def top_dependencies(results: Iterable[AnalysisResult], limit: int = 15) -> BytesIO:
    counter = collections.Counter(
        dep for result in results for pkg in result.packages for dep in pkg.deps
    )
    top = counter.most_common(limit)
    labels = [name for name, _ in reversed(top)]
    values = [count for _, count in reversed(top)]
    fig, ax = plt.subplots(figsize=(6, 4))
    ax.barh(labels, values)
    ax.set_title("Most Depended-Upon Packages")
    ax.set_xlabel("Dependents")
    ax.grid(axis='x', linestyle='--', linewidth=0.5)
    return _to_png(fig)


def dependency_histogram(results: Iterable[AnalysisResult]) -> BytesIO:
    counts = np.array([len(pkg.deps) for result in results for pkg in result.packages], dtype=int)
    if counts.size == 0:
        counts = np.zeros(1, dtype=int)
    bins = np.arange(0, counts.max() + 2) - 0.5
    fig, ax = plt.subplots(figsize=(6, 3))
    ax.hist(counts, bins=bins, hatch="//")
    ax.set_title("Dependencies per Package")
    ax.set_xlabel("Declared dependencies")
    ax.set_ylabel("Packages")
    ax.grid(axis='y', linestyle='--', linewidth=0.5)
    return _to_png(fig)
