"""
layers.py
Union resolution of captured files across image layers.

manifest.json lists the layers base-to-top; a file's visible content is the
copy from the topmost layer that contains it.

Known limitation: whiteout files (.wh.*) are not honored, so a file deleted
in an upper layer still resolves to the copy in the lower layer.
"""

import json
from typing import Dict, List

from .errors import MalformedManifest
from .image_extractor import Extracted, normalize_path


def parse_manifest(text: str) -> List[str]:
    """Layer ids, base first, from the first image entry of manifest.json."""
    try:
        manifest = json.loads(text)
    except ValueError as e:
        raise MalformedManifest(f"manifest.json is not valid JSON: {e}") from e

    if not isinstance(manifest, list) or not manifest or not isinstance(manifest[0], dict):
        raise MalformedManifest("manifest.json must be a non-empty array of image objects")
    layers = manifest[0].get("Layers")
    if not isinstance(layers, list) or not all(isinstance(l, str) for l in layers):
        raise MalformedManifest("manifest.json image entry has no 'Layers' list")
    return layers


def resolve_layers(extracted: Extracted) -> Dict[str, bytes]:
    if extracted.manifest is None:
        return {}

    resolved: Dict[str, bytes] = {}
    for layer_name in reversed(parse_manifest(extracted.manifest)):
        layer_name = normalize_path(layer_name)
        for path, data in extracted.layers.get(layer_name, {}).items():
            # topmost copy wins
            if path not in resolved:
                resolved[path] = data
    return resolved
