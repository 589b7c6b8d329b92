"""repostruct - repository structure classification and recommendations."""

# Load .env so REPOSTRUCT_* settings are visible to any entry point
# (CLI, pytest, library callers) that imports repostruct.
from dotenv import load_dotenv

load_dotenv()

# Keep in sync with pyproject.toml [project] version.
__version__ = "0.1.0"
