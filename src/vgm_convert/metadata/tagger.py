"""
Metadata Tagger

Combines the run's base tag set with a per-file title and hands the result
to the tag writer. A tagging failure never undoes the conversion: the
untagged file stays in the run directory.
"""

import logging
import shutil
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional, Union

from ..core.audio_file import AudioFile, FileStage
from ..core.constants import COVER_FILE_STEM, RECOGNIZED_TAGS
from ..core.exceptions import InvalidStateError, MetadataWriteError
from .mp4_writer import COVER_FORMATS, write_mp4_tags

STAGE_TAGGING = "tagging"

TagWriter = Callable[[Union[str, Path], Dict[str, str], Dict[str, Any]], None]


def build_base_tags(album: Optional[str] = None,
                    artist: Optional[str] = None,
                    genre: Optional[str] = None,
                    date: Optional[str] = None,
                    comment: Optional[str] = None) -> Dict[str, str]:
    """Build a base tag set, dropping empty values."""
    values = {'album': album, 'artist': artist, 'genre': genre,
              'date': date, 'comment': comment}
    return {key: value.strip() for key, value in values.items() if value and value.strip()}


def validate_tags(tags: Mapping[str, str]) -> Dict[str, str]:
    """Return a copy of tags, raising ValueError for unrecognized names."""
    unknown = set(tags) - set(RECOGNIZED_TAGS)
    if unknown:
        raise ValueError(f"Unrecognized tag names: {', '.join(sorted(unknown))}")
    return {key: str(value) for key, value in tags.items() if value}


def check_cover(cover_path: Union[str, Path]) -> Path:
    """
    Make sure a cover image exists and can be embedded.

    Raises:
        FileNotFoundError: If the cover image does not exist
        ValueError: If the image type cannot be embedded (only JPEG and PNG)
    """
    cover_path = Path(cover_path)
    if not cover_path.is_file():
        raise FileNotFoundError(f"Cover image does not exist: {cover_path}")
    if cover_path.suffix.lower() not in COVER_FORMATS:
        raise ValueError(
            f"Unsupported cover image type: {cover_path.suffix or cover_path.name} "
            f"(use one of {', '.join(sorted(COVER_FORMATS))})"
        )
    return cover_path


def prepare_cover(cover_path: Union[str, Path], run_dir: Union[str, Path]) -> Path:
    """
    Copy a cover image into the run directory as cover<ext>.

    Raises:
        FileNotFoundError: If the cover image does not exist
        ValueError: If the image type cannot be embedded
    """
    cover_path = check_cover(cover_path)
    target = Path(run_dir) / f"{COVER_FILE_STEM}{cover_path.suffix}"
    shutil.copyfile(cover_path, target)
    return target


class MetadataTagger:
    """Writes the per-run tag set into converted files."""

    def __init__(self,
                 base_tags: Mapping[str, str],
                 cover_path: Optional[Union[str, Path]] = None,
                 writer: TagWriter = write_mp4_tags):
        self.base_tags = validate_tags(base_tags)
        self.cover_path = Path(cover_path) if cover_path else None
        self.writer = writer
        self.logger = logging.getLogger(__name__)

    def build_tags(self, audio: AudioFile) -> Dict[str, str]:
        tags = dict(self.base_tags)
        tags['title'] = audio.base_name
        return tags

    def build_options(self) -> Dict[str, Any]:
        if self.cover_path is None:
            return {}
        return {'disposition': True, 'attachments': [str(self.cover_path)]}

    def tag(self, audio: AudioFile) -> Dict[str, str]:
        """
        Write tags into a converted file.

        Args:
            audio: FINAL AudioFile produced by the transcoder

        Returns:
            The tag mapping that was written

        Raises:
            InvalidStateError: If the file has not finished conversion
            MetadataWriteError: If the writer fails
        """
        if audio.stage is not FileStage.FINAL:
            raise InvalidStateError(
                f"Only converted files can be tagged, got {audio}",
                file_name=audio.name, stage=STAGE_TAGGING
            )

        tags = self.build_tags(audio)
        try:
            self.writer(audio.path, tags, self.build_options())
        except Exception as e:
            raise MetadataWriteError(
                f"Metadata writing failed: {e}",
                file_name=audio.name, stage=STAGE_TAGGING
            ) from e

        self.logger.info(f"[Metadata] {audio.base_name}: Metadata written")
        return tags
