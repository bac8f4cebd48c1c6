"""
docker.py
Materializes an image with `docker save` and extracts files from it.

Safety:
- safe_run only executes whitelisted commands (docker)
- the image is never run; only `docker save` is invoked
- the saved tarball lives in a temp file that is removed on every exit path
"""

import contextlib
import logging
import os
import subprocess
import tempfile
from dataclasses import dataclass
from typing import Callable, Dict, Iterator, List, Optional, Sequence, Tuple

from .errors import ImageNotFound, ProcessFailure
from .image_extractor import DEFAULT_WORKERS, extract_files
from .layers import resolve_layers

log = logging.getLogger(__name__)

WHITELIST_CMDS = {"docker"}

IMAGE_NOT_FOUND_MARKERS = ("No such image", "reference does not exist")

RunFunc = Callable[[List[str]], Tuple[int, str, str]]


def safe_run(args: List[str]) -> Tuple[int, str, str]:
    """
    Execute a whitelisted command without a shell.
    Returns (code, stdout, stderr).
    """
    base = args[0]
    if base not in WHITELIST_CMDS:
        return 127, "", f"Command '{base}' blocked"
    try:
        proc = subprocess.run(args, stdout=subprocess.PIPE, stderr=subprocess.PIPE, text=True)
    except FileNotFoundError:
        return 127, "", f"{base}: command not found"
    return proc.returncode, proc.stdout, proc.stderr


@dataclass(frozen=True)
class DockerOptions:
    host: Optional[str] = None
    tls_verify: Optional[str] = None
    tls_cert: Optional[str] = None
    tls_ca_cert: Optional[str] = None
    tls_key: Optional[str] = None

    @classmethod
    def from_env(cls, environ=None) -> "DockerOptions":
        env = os.environ if environ is None else environ
        cert_path = env.get("DOCKER_CERT_PATH")
        tls_verify = env.get("DOCKER_TLS_VERIFY")
        return cls(
            host=env.get("DOCKER_HOST") or None,
            tls_verify="true" if tls_verify and tls_verify != "0" else None,
            tls_cert=os.path.join(cert_path, "cert.pem") if cert_path else None,
            tls_ca_cert=os.path.join(cert_path, "ca.pem") if cert_path else None,
            tls_key=os.path.join(cert_path, "key.pem") if cert_path else None,
        )

    def to_args(self) -> List[str]:
        opts = []
        if self.host:
            opts.append(f"--host={self.host}")
        if self.tls_cert:
            opts.append(f"--tlscert={self.tls_cert}")
        if self.tls_ca_cert:
            opts.append(f"--tlscacert={self.tls_ca_cert}")
        if self.tls_key:
            opts.append(f"--tlskey={self.tls_key}")
        if self.tls_verify:
            opts.append(f"--tlsverify={self.tls_verify}")
        return opts


@contextlib.contextmanager
def saved_image(image: str, options: Optional[DockerOptions] = None,
                run_func: RunFunc = safe_run) -> Iterator[str]:
    """Yield the path of a temporary `docker save` tarball of image."""
    options = options or DockerOptions()
    fd, path = tempfile.mkstemp(prefix="docker-", suffix=".image")
    os.close(fd)
    os.chmod(path, 0o644)
    try:
        args = ["docker", *options.to_args(), "save", "-o", path, image]
        log.info("Saving image %s", image)
        code, _, stderr = run_func(args)
        if code != 0:
            if any(marker in stderr for marker in IMAGE_NOT_FOUND_MARKERS):
                raise ImageNotFound(image)
            raise ProcessFailure("docker save", code, stderr)
        yield path
    finally:
        with contextlib.suppress(FileNotFoundError):
            os.remove(path)


class Docker:
    def __init__(self, image: str, options: Optional[DockerOptions] = None,
                 run_func: RunFunc = safe_run, max_workers: int = DEFAULT_WORKERS):
        self.image = image
        self.options = options or DockerOptions()
        self.run_func = run_func
        self.max_workers = max_workers

    def extract(self, paths: Sequence[str]) -> Dict[str, bytes]:
        """
        Save the image and return the final (top-layer) content of each
        requested path that exists in it.
        """
        with saved_image(self.image, self.options, self.run_func) as tar_path:
            extracted = extract_files(tar_path, paths, max_workers=self.max_workers)
        resolved = resolve_layers(extracted)
        log.info("Extracted %d of %d requested files from %s", len(resolved), len(paths), self.image)
        return resolved
