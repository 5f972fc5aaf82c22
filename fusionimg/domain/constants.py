from pathlib import Path

# Configuration
CONFIG_DIRNAME = ".fusion"
CONFIG_FILENAME = "config.yml"
DEFAULT_OUTPUT_DIR = Path("fusion-output")

# Remote models
DEFAULT_TEXT_MODEL = "gemini-2.5-pro"
DEFAULT_IMAGE_MODEL = "gemini-2.5-flash-image"

# Sampling
DEFAULT_TEMPERATURE = 1.25
DEFAULT_TOP_P = 1.0
DEFAULT_THINKING_BUDGET = 32768

# Result images are tagged PNG unless the response says otherwise
DEFAULT_IMAGE_MIME_TYPE = "image/png"

# Checked in order when no explicit key is configured
API_KEY_ENV_VARS = ("GEMINI_API_KEY", "GOOGLE_API_KEY", "API_KEY")
