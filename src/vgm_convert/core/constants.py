"""
Core Constants for VGM Convert

Central place for accepted formats, tool defaults and output file names.
"""

# Game-audio container formats understood by vgmstream
ACCEPTED_CONTAINER_FORMATS = {
    '.ast': 'AST (GameCube/Wii)',
    '.brstm': 'BRSTM (Wii)',
    '.bfstm': 'BFSTM (Wii U/Switch)',
    '.bcstm': 'BCSTM (3DS)',
    '.bwav': 'BWAV (Switch)',
    '.nus3audio': 'NUS3AUDIO (Smash Bros.)',
}

# External tools
VGMSTREAM_COMMAND = "vgmstream-cli"
FFMPEG_COMMAND = "ffmpeg"
DEFAULT_LOOP_COUNT = 1.0

# Stage file extensions
INTERMEDIATE_EXTENSION = ".wav"
OUTPUT_EXTENSION = ".m4a"
OUTPUT_CODEC = "alac"

# Output layout
DEFAULT_OUTPUT_ROOT = "./out"
COVER_FILE_STEM = "cover"
MANIFEST_FILE_NAME = "metadata.json"
RUN_DIRECTORY_PATTERN = r"[0-9]+"

# Performance & Threading
DEFAULT_WORKER_THREADS = 4
MAX_WORKER_THREADS = 16

# Tags accepted in a tag set
RECOGNIZED_TAGS = ('title', 'album', 'artist', 'genre', 'date', 'comment')
