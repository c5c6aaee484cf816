"""
Constants and configuration values for Print Studio.

This module centralizes all constant values, magic numbers, and
configuration settings used throughout the library.
"""

# Session file constants
SESSIONS_DIR_NAME = "Sessions"
SESSION_EXTENSION = ".pssession"
SCHEMA_VERSION = 1

# Paper (4R at 300 dpi)
DEFAULT_PAPER_WIDTH = 1200
DEFAULT_PAPER_HEIGHT = 1800
DEFAULT_PREVIEW_SCALE = 1.0
DEFAULT_CANVAS_COLOR = (240, 240, 240, 255)

# Filter selection
ORIGINAL_FILTER_ID = "original"
DEFAULT_PREVIEW_MAX_SIZE = 256

# Cube file keywords
CUBE_KEYWORD_TITLE = "TITLE"
CUBE_KEYWORD_SIZE = "LUT_3D_SIZE"
CUBE_KEYWORD_SIZE_1D = "LUT_1D_SIZE"
CUBE_KEYWORD_DOMAIN_MIN = "DOMAIN_MIN"
CUBE_KEYWORD_DOMAIN_MAX = "DOMAIN_MAX"
CUBE_COMMENT_PREFIX = "#"
DEFAULT_DOMAIN_MIN = (0.0, 0.0, 0.0)
DEFAULT_DOMAIN_MAX = (1.0, 1.0, 1.0)

# LUT backends
BACKEND_NUMPY = "numpy"
BACKEND_PIL = "pil"
SUPPORTED_BACKENDS = (BACKEND_NUMPY, BACKEND_PIL)
DEFAULT_BACKEND = BACKEND_NUMPY
MIN_ROWS_PER_BAND = 16

# Issue kinds
ISSUE_MALFORMED_HEADER = "MalformedHeader"
ISSUE_INVALID_DATA_LINE = "InvalidDataLine"
ISSUE_SIZE_MISMATCH = "SizeMismatch"
ISSUE_DEGENERATE_CUBE = "DegenerateCube"
ISSUE_INVALID_DIMENSIONS = "InvalidDimensions"
ISSUE_MISSING_PHOTO = "MissingPhoto"

# Draw layer kinds
LAYER_KIND_PHOTO = "photo"
LAYER_KIND_TEMPLATE = "template"

# Session field names
FIELD_SCHEMA_VERSION = "schema_version"
FIELD_CREATED_AT = "created_at"
FIELD_TEMPLATE = "template"
FIELD_FILTER_ID = "filter_id"
FIELD_CUBE_TEXT = "cube_text"
FIELD_SCALE = "scale"
FIELD_BACKEND = "backend"
FIELD_USE_THREADING = "use_threading"
FIELD_MAX_WORKERS = "max_workers"

# Template field names
FIELD_TEMPLATE_ID = "id"
FIELD_TEMPLATE_NAME = "name"
FIELD_BACKGROUND_PATH = "background_path"
FIELD_WIDTH = "width"
FIELD_HEIGHT = "height"
FIELD_FRAMES = "frames"

# Frame field names
FIELD_FRAME_ID = "id"
FIELD_FRAME_X = "x"
FIELD_FRAME_Y = "y"
FIELD_FRAME_WIDTH = "width"
FIELD_FRAME_HEIGHT = "height"
FIELD_ASSIGNED_PHOTO_ID = "assigned_photo_id"
FIELD_PAN_OFFSET_X = "pan_offset_x"
FIELD_PAN_OFFSET_Y = "pan_offset_y"

# Safe filename characters
SAFE_FILENAME_CHARS = "-_"
FILENAME_REPLACEMENT_CHAR = "_"
