import os

# Retained undo (and redo) snapshots per pattern editor.
HISTORY_LIMIT = int(os.getenv("BLOCK_DESIGNER_HISTORY_LIMIT", "50"))
MAX_BLEND_COUNT = int(os.getenv("BLOCK_DESIGNER_MAX_BLEND", "64"))
MAX_GRID_SIZE = int(os.getenv("BLOCK_DESIGNER_MAX_GRID", "128"))
DEFAULT_GRID_SIZE = int(os.getenv("BLOCK_DESIGNER_DEFAULT_GRID", "12"))
LOG_LEVEL = os.getenv("BLOCK_DESIGNER_LOG_LEVEL", "INFO")
