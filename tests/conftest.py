"""Shared pytest fixtures: synthetic `docker save` tarballs and a fake docker binary."""

from __future__ import annotations

import io
import json
import tarfile
from typing import Dict, List, Optional, Tuple

import pytest


def make_tar(entries: Dict[str, bytes], compress: bool = False) -> bytes:
    """Build a tar archive in memory; names ending with "/" become directories."""
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w:gz" if compress else "w") as tar:
        for name, data in entries.items():
            info = tarfile.TarInfo(name.rstrip("/"))
            if name.endswith("/"):
                info.type = tarfile.DIRTYPE
                tar.addfile(info)
                continue
            info.size = len(data)
            tar.addfile(info, io.BytesIO(data))
    return buf.getvalue()


def make_image(layers: List[Tuple[str, Dict[str, bytes]]],
               manifest: Optional[object] = "auto",
               oci: bool = False,
               compress_layers: bool = False,
               extra: Optional[Dict[str, bytes]] = None) -> bytes:
    """
    Build a `docker save` style image tarball.

    layers: (layer id, files) base first. In the legacy layout each layer is
    stored as `<id>/layer.tar`; with oci=True as `blobs/sha256/<id>` next to
    a JSON config blob.
    """
    entries: Dict[str, bytes] = {}
    layer_paths = []
    if oci:
        entries["blobs/sha256/configdigest"] = json.dumps({"architecture": "amd64"}).encode()
        entries["oci-layout"] = b'{"imageLayoutVersion": "1.0.0"}'
    for layer_id, files in layers:
        path = f"blobs/sha256/{layer_id}" if oci else f"{layer_id}/layer.tar"
        if not oci:
            entries[f"{layer_id}/VERSION"] = b"1.0"
            entries[f"{layer_id}/json"] = b"{}"
        entries[path] = make_tar(files, compress=compress_layers)
        layer_paths.append(path)
    entries.update(extra or {})
    if manifest == "auto":
        manifest = [{"Config": "config.json", "RepoTags": ["test:latest"], "Layers": layer_paths}]
    if manifest is not None:
        text = manifest if isinstance(manifest, str) else json.dumps(manifest)
        entries["manifest.json"] = text.encode()
    return make_tar(entries)


class FakeDocker:
    """Stands in for safe_run: writes a prepared image tarball to `docker save -o`."""

    def __init__(self, image_bytes: bytes = b"", code: int = 0, stderr: str = ""):
        self.image_bytes = image_bytes
        self.code = code
        self.stderr = stderr
        self.calls: List[List[str]] = []
        self.saved_paths: List[str] = []

    def __call__(self, args):
        self.calls.append(list(args))
        out = args[args.index("-o") + 1]
        self.saved_paths.append(out)
        if self.code != 0:
            return self.code, "", self.stderr
        with open(out, "wb") as f:
            f.write(self.image_bytes)
        return 0, "", ""


APK_DB = (
    "C:Q1abc=\n"
    "P:musl\n"
    "V:1.2.4-r2\n"
    "A:x86_64\n"
    "p:so:libc.musl-x86_64.so.1=1\n"
    "\n"
    "P:busybox\n"
    "V:1.36.1-r5\n"
    "D:so:libc.musl-x86_64.so.1 !busybox-extras\n"
    "p:cmd:sh=1.36.1-r5 cmd:ls\n"
    "\n"
)

DPKG_STATUS = (
    "Package: libc6\n"
    "Status: install ok installed\n"
    "Version: 2.36-9\n"
    "Source: glibc\n"
    "Depends: libgcc-s1\n"
    "Description: GNU C Library\n"
    " Contains the standard libraries.\n"
    "\n"
    "Package: apt\n"
    "Version: 2.6.1\n"
    "Pre-Depends: libc6 (>= 2.34)\n"
    "Depends: adduser, gpgv | gpgv2, libapt-pkg6.0 (>= 2.6.1)\n"
    "Provides: apt-transport-https (= 2.6.1)\n"
    "\n"
    "Package: gpgv\n"
    "Version: 2.2.40-1.1\n"
    "Source: gnupg2 (2.2.40-1.1)\n"
    "\n"
)

EXTENDED_STATES = (
    "Package: gpgv\n"
    "Architecture: amd64\n"
    "Auto-Installed: 1\n"
    "\n"
    "Package: apt\n"
    "Architecture: amd64\n"
    "Auto-Installed: 0\n"
)


@pytest.fixture
def apk_db_text() -> str:
    return APK_DB


@pytest.fixture
def dpkg_status_text() -> str:
    return DPKG_STATUS


@pytest.fixture
def extended_states_text() -> str:
    return EXTENDED_STATES


@pytest.fixture
def alpine_image() -> bytes:
    """Two-layer image whose top layer rewrites the apk database."""
    return make_image([
        ("base", {"lib/apk/db/installed": b"P:stale\nV:0.1\n", "etc/os-release": b"ID=alpine\n"}),
        ("top", {"lib/apk/db/installed": APK_DB.encode()}),
    ])


@pytest.fixture
def debian_image() -> bytes:
    return make_image([
        ("base", {
            "var/": b"",
            "var/lib/dpkg/status": DPKG_STATUS.encode(),
            "var/lib/apt/extended_states": EXTENDED_STATES.encode(),
        }),
        ("app", {"srv/app.py": b"print('hi')\n"}),
    ])


@pytest.fixture
def image_file(tmp_path):
    """Write image bytes to a file and return its path."""
    def write(data: bytes, name: str = "image.tar") -> str:
        path = tmp_path / name
        path.write_bytes(data)
        return str(path)
    return write
