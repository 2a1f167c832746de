"""
Configuration constants for phototidy.
"""
import re

# --- File Type Definitions ---
IMAGE_EXTS = {'.jpg', '.jpeg', '.png', '.tiff', '.tif', '.heic'}
VIDEO_EXTS = {'.mp4', '.mov', '.avi'}

# Broader set used only to pick the resolver branch and the name prefix
VIDEO_DETECT_EXTS = {'.mp4', '.mov', '.avi', '.mkv', '.flv', '.wmv'}

# Files the classifier visits at all
SUPPORTED_EXTS = IMAGE_EXTS | VIDEO_EXTS

# --- Metadata Parsing ---
DATE_TAGS = [
    'EXIF DateTimeOriginal',
    'EXIF DateTimeDigitized',
    'Image DateTime',
]

# MediaInfo General-track fields, most trustworthy first
CONTAINER_DATE_FIELDS = [
    'recorded_date',
    'encoded_date',
    'tagged_date',
]

# ISO-BMFF (MP4/MOV) structure
BMFF_TOP_LEVEL_BOXES = {b'ftyp', b'moov', b'mdat', b'free', b'skip', b'wide', b'pnot', b'uuid'}
BMFF_CONTAINER_BOXES = {b'moov', b'trak', b'mdia'}
# Seconds between 1904-01-01 (QuickTime epoch) and 1970-01-01
BMFF_EPOCH_OFFSET = 2082844800

# --- Naming ---
IMAGE_PREFIX = 'IMG'
VIDEO_PREFIX = 'VID'
# Year is formatted separately so it is always four digits
STEM_TIME_FORMAT = '%m%d_%H%M%S'
SEQUENCE_WIDTH = 3
MAX_SEQUENCE = 999

# Stem pattern template; filled with the kind's prefix
CANONICAL_STEM_TEMPLATE = r'^{prefix}_\d{{8}}_\d{{6}}(?:_\d{{3}})?$'

# --- Organization ---
FOLDER_PATTERN = "{year:04d}-{month:02d}"
YEAR_MONTH_DIR_RE = re.compile(r'^\d{4}-\d{2}$')

# --- Logging ---
LOG_FILE_FORMAT = "%Y-%m-%d_%H_%M_%S.log"
