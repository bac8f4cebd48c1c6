"""
analyzers.py
Per package manager analysis: request the manager's database files from the
image, parse them and return a tagged AnalysisResult.

A missing database file is read as empty text, so an image without the
manager yields an empty package list rather than an error.
"""

from typing import Callable, Dict, Optional, Sequence

from .apk_db import parse_apk_db
from .docker import Docker, DockerOptions
from .dpkg_db import parse_dpkg_status, parse_extended_states, set_auto_installed
from .models import (
    APK_MANAGER, APT_MANAGER, DEFAULT_ENCODING, KIND_APK, KIND_APT,
    AnalysisResult, ManagerConfig,
)

FileProvider = Callable[[Sequence[str]], Dict[str, bytes]]


def read_text(files: Dict[str, bytes], path: Optional[str]) -> str:
    data = files.get(path) if path else None
    if data is None:
        return ""
    return data.decode(DEFAULT_ENCODING, errors="replace")


def analyze(image: str, manager: ManagerConfig, provider: Optional[FileProvider] = None,
            options: Optional[DockerOptions] = None) -> AnalysisResult:
    if provider is None:
        provider = Docker(image, options).extract
    files = provider(manager.paths)

    if manager.kind == KIND_APK:
        packages = parse_apk_db(read_text(files, manager.db_path))
    elif manager.kind == KIND_APT:
        packages = parse_dpkg_status(read_text(files, manager.db_path))
        ext_text = read_text(files, manager.ext_states_path)
        if ext_text:
            set_auto_installed(packages, parse_extended_states(ext_text))
    else:
        raise ValueError(f"Unsupported package manager: {manager.kind}")

    return AnalysisResult(image=image, kind=manager.kind, packages=tuple(packages))


def analyze_apk(image: str, provider: Optional[FileProvider] = None,
                options: Optional[DockerOptions] = None,
                manager: ManagerConfig = APK_MANAGER) -> AnalysisResult:
    return analyze(image, manager, provider, options)


def analyze_apt(image: str, provider: Optional[FileProvider] = None,
                options: Optional[DockerOptions] = None,
                manager: ManagerConfig = APT_MANAGER) -> AnalysisResult:
    return analyze(image, manager, provider, options)
