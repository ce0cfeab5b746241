"""
Run manifest

Records the base tag set of a run as metadata.json in the run directory.
The pipeline never reads it back.
"""

import json
from pathlib import Path
from typing import Mapping, Union

from ..core.constants import MANIFEST_FILE_NAME


def write_manifest(run_dir: Union[str, Path], base_tags: Mapping[str, str]) -> Path:
    """Write the run's base tags and return the manifest path."""
    manifest_path = Path(run_dir) / MANIFEST_FILE_NAME
    with open(manifest_path, 'w', encoding='utf-8') as f:
        json.dump(dict(base_tags), f, indent=2, ensure_ascii=False)
    return manifest_path
