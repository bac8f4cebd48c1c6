"""
errors.py
Exception hierarchy for image materialization and archive decoding.

Missing package database files and unparseable database lines are not
errors: they yield empty results.
"""


class LayerscanError(Exception):
    pass


class ImageNotFound(LayerscanError):
    def __init__(self, image: str):
        super().__init__(f"No such image: {image}")
        self.image = image


class ProcessFailure(LayerscanError):
    def __init__(self, cmd: str, returncode: int, stderr: str):
        super().__init__(f"'{cmd}' failed with exit code {returncode}: {stderr.strip()}")
        self.cmd = cmd
        self.returncode = returncode
        self.stderr = stderr


class MalformedManifest(LayerscanError):
    pass


class ArchiveError(LayerscanError):
    pass
