"""
layerscan
Static OS package inventory for container images.

Reads the layers of a `docker save` tarball without running the image and
parses the apk / dpkg package databases found in them.
"""

__version__ = "1.0.0"
