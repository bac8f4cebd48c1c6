"""
models.py
Shared record types: package records, analysis results and the per-manager
configuration that tells the analyzers which database files to request.
"""

from dataclasses import dataclass, field
from typing import Dict, Any, List, Optional, Set, Tuple

KIND_APK = "Apk"
KIND_APT = "Apt"

DEFAULT_ENCODING = "utf-8"


def split_lines(text: str) -> List[str]:
    """Split database text on "\n" only; a trailing "\r" is dropped from each line."""
    return [line[:-1] if line.endswith("\r") else line for line in text.split("\n")]


@dataclass
class PackageRecord:
    name: str
    version: Optional[str] = None
    source: Optional[str] = None
    provides: List[str] = field(default_factory=list)
    deps: Set[str] = field(default_factory=set)
    auto_installed: Optional[bool] = None

    def add_provides(self, name: str) -> None:
        if name and name not in self.provides:
            self.provides.append(name)

    def add_dep(self, name: str) -> None:
        if name:
            self.deps.add(name)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"Name": self.name}
        if self.version is not None:
            out["Version"] = self.version
        if self.source is not None:
            out["Source"] = self.source
        out["Provides"] = list(self.provides)
        out["Deps"] = sorted(self.deps)
        if self.auto_installed:
            out["AutoInstalled"] = True
        return out


@dataclass(frozen=True)
class AnalysisResult:
    image: str
    kind: str
    packages: Tuple[PackageRecord, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "Image": self.image,
            "Kind": self.kind,
            "Packages": [p.to_dict() for p in self.packages],
        }


@dataclass(frozen=True)
class ManagerConfig:
    """Fixed database locations for one package manager."""
    kind: str
    db_path: str
    ext_states_path: Optional[str] = None

    @property
    def paths(self) -> List[str]:
        paths = [self.db_path]
        if self.ext_states_path:
            paths.append(self.ext_states_path)
        return paths


APK_MANAGER = ManagerConfig(kind=KIND_APK, db_path="/lib/apk/db/installed")
APT_MANAGER = ManagerConfig(
    kind=KIND_APT,
    db_path="/var/lib/dpkg/status",
    ext_states_path="/var/lib/apt/extended_states",
)

DEFAULT_MANAGERS = (APK_MANAGER, APT_MANAGER)
