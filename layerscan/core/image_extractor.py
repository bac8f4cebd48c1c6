"""
image_extractor.py
Pulls selected files out of a `docker save` tarball without unpacking it.

The image tarball is read strictly in entry order (tarfile stream mode):
- manifest.json is kept as text
- every layer tarball (`<id>/layer.tar`, or a tar blob under `blobs/` in the
  OCI layout) is drained to a spooled temp file and decoded on a worker
  thread, capturing the bytes of any requested path it contains
- everything else is skipped

All layer decodes are joined before the result is returned, so the
captured files are complete once extract_files() comes back.

Requested paths are matched against entry names with leading "/" and "./"
ignored; captured files are keyed by the path exactly as requested.
"""

import logging
import posixpath
import shutil
import tarfile
import tempfile
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Dict, IO, Iterable, List, Optional

from .errors import ArchiveError
from .models import DEFAULT_ENCODING

log = logging.getLogger(__name__)

MANIFEST_JSON = "manifest.json"
LAYER_TAR = "layer.tar"
BLOBS_DIR = "blobs/"

CHUNK_SIZE = 65536
SPOOL_MAX_BYTES = 8 * 1024 * 1024
DEFAULT_WORKERS = 4

TAR_MAGIC_OFFSET = 257
TAR_MAGIC = b"ustar"
GZIP_MAGIC = b"\x1f\x8b"
BLOCK_SIZE = 512


@dataclass
class Extracted:
    manifest: Optional[str] = None
    layers: Dict[str, Dict[str, bytes]] = field(default_factory=dict)


def normalize_path(path: str) -> str:
    while path.startswith("./"):
        path = path[2:]
    return path.lstrip("/")


def extract_files(image_path: str, paths: Iterable[str],
                  max_workers: int = DEFAULT_WORKERS) -> Extracted:
    """Read manifest.json and the requested files of every layer of an image tarball."""
    with open(image_path, "rb") as fh:
        return extract_stream(fh, paths, max_workers=max_workers)


def extract_stream(fileobj: IO[bytes], paths: Iterable[str],
                   max_workers: int = DEFAULT_WORKERS) -> Extracted:
    wanted: Dict[str, List[str]] = {}
    for p in paths:
        keys = wanted.setdefault(normalize_path(p), [])
        if p not in keys:
            keys.append(p)
    result = Extracted()
    pending = {}

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        try:
            with tarfile.open(fileobj=fileobj, mode="r|*") as outer:
                for member in outer:
                    if not member.isfile():
                        continue
                    name = normalize_path(member.name)
                    if name == MANIFEST_JSON:
                        data = outer.extractfile(member).read()
                        result.manifest = data.decode(DEFAULT_ENCODING, errors="replace")
                        continue
                    strict = posixpath.basename(name) == LAYER_TAR
                    if not strict and not name.startswith(BLOBS_DIR):
                        continue
                    spool = _spool_layer(outer.extractfile(member), sniff=not strict)
                    if spool is None:
                        continue
                    log.debug("Queueing layer %s (%d bytes)", member.name, member.size)
                    future = executor.submit(_scan_layer, spool, wanted, name, strict)
                    pending[future] = (name, spool)
        except tarfile.TarError as e:
            _cancel(pending)
            raise ArchiveError(f"Cannot read image archive: {e}") from e
        except BaseException:
            _cancel(pending)
            raise

        for future in as_completed(pending):
            layer_name, _ = pending[future]
            found = future.result()
            if found:
                result.layers[layer_name] = found

    log.debug("Scanned %d layers, %d with matches", len(pending), len(result.layers))
    return result


def _cancel(pending) -> None:
    # a cancelled decode never reaches _scan_layer, which owns closing its spool
    for future, (_, spool) in pending.items():
        if future.cancel():
            spool.close()


def _spool_layer(src: IO[bytes], sniff: bool):
    """Drain one entry into a temp file; with sniff, only keep tar/gzip payloads."""
    head = b""
    if sniff:
        head = src.read(BLOCK_SIZE)
        if not _looks_like_layer(head):
            return None
    spool = tempfile.SpooledTemporaryFile(max_size=SPOOL_MAX_BYTES)
    spool.write(head)
    shutil.copyfileobj(src, spool, CHUNK_SIZE)
    spool.seek(0)
    return spool


def _looks_like_layer(head: bytes) -> bool:
    if head.startswith(GZIP_MAGIC):
        return True
    return head[TAR_MAGIC_OFFSET:TAR_MAGIC_OFFSET + len(TAR_MAGIC)] == TAR_MAGIC


def _scan_layer(spool, wanted: Dict[str, List[str]], layer_name: str,
                strict: bool) -> Dict[str, bytes]:
    found: Dict[str, bytes] = {}
    try:
        with tarfile.open(fileobj=spool, mode="r|*") as layer:
            for member in layer:
                if not member.isfile():
                    continue
                keys = wanted.get(normalize_path(member.name))
                if not keys:
                    continue
                data = layer.extractfile(member).read()
                for requested in keys:
                    found[requested] = data
                log.debug("Found %s in layer %s", member.name, layer_name)
    except tarfile.TarError as e:
        if strict:
            raise ArchiveError(f"Cannot read layer {layer_name}: {e}") from e
        log.debug("Skipping blob %s: not a layer archive (%s)", layer_name, e)
        return {}
    finally:
        spool.close()
    return found
