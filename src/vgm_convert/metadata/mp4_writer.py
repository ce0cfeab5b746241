"""
MP4 tag writer backed by mutagen.

Accepts a plain tag mapping plus an options object shaped like
{"disposition": bool, "attachments": [cover_path]} and writes iTunes-style
atoms into an .m4a file. Cover attachments are embedded as 'covr'.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

from mutagen.mp4 import MP4, MP4Cover

logger = logging.getLogger(__name__)

# Tag name -> MP4 atom
MP4_TAG_ATOMS = {
    'title': '\xa9nam',
    'album': '\xa9alb',
    'artist': '\xa9ART',
    'genre': '\xa9gen',
    'date': '\xa9day',
    'comment': '\xa9cmt',
}

COVER_FORMATS = {
    '.jpg': MP4Cover.FORMAT_JPEG,
    '.jpeg': MP4Cover.FORMAT_JPEG,
    '.png': MP4Cover.FORMAT_PNG,
}


def load_cover(cover_path: Union[str, Path]) -> MP4Cover:
    """Read an image file into an MP4Cover."""
    cover_path = Path(cover_path)
    image_format = COVER_FORMATS.get(cover_path.suffix.lower())
    if image_format is None:
        raise ValueError(f"Unsupported cover image type: {cover_path.suffix or cover_path.name}")
    return MP4Cover(cover_path.read_bytes(), imageformat=image_format)


def write_mp4_tags(file_path: Union[str, Path],
                   tags: Dict[str, str],
                   options: Optional[Dict[str, Any]] = None) -> None:
    """
    Write tags (and optionally cover art) into an MP4 file.

    Args:
        file_path: Target .m4a file
        tags: Tag name to value; names must be in MP4_TAG_ATOMS
        options: {"disposition": True, "attachments": [paths]} embeds the
            attachments as cover art; an empty mapping writes tags only

    Raises:
        KeyError: For a tag name without an MP4 atom
        ValueError: For an unsupported cover image type
        mutagen.MutagenError: If the file cannot be parsed or saved
        OSError: If an attachment cannot be read
    """
    options = options or {}
    audio = MP4(str(file_path))
    if audio.tags is None:
        audio.add_tags()

    for name, value in tags.items():
        audio.tags[MP4_TAG_ATOMS[name]] = [value]

    attachments = options.get('attachments') or []
    if options.get('disposition') and attachments:
        audio.tags['covr'] = [load_cover(path) for path in attachments]

    audio.save()
    logger.debug(f"Wrote {len(tags)} tags to {file_path}")
