"""
Metadata embedding for converted tracks.
"""

from .tagger import MetadataTagger, build_base_tags, check_cover, prepare_cover, validate_tags
from .mp4_writer import write_mp4_tags, MP4_TAG_ATOMS

__all__ = [
    'MetadataTagger',
    'build_base_tags',
    'check_cover',
    'prepare_cover',
    'validate_tags',
    'write_mp4_tags',
    'MP4_TAG_ATOMS',
]
