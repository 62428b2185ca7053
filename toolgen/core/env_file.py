"""
.env file helpers - written by the CLI configuration wizard.

Settings reads .env on every get_settings() call, so values saved here take
effect on the next pipeline reload. Real environment variables still win
over the file.
"""

import logging
from pathlib import Path
from typing import Dict, Optional, Union

from dotenv import set_key

logger = logging.getLogger("toolgen.core.env_file")

ENV_FILE = ".env"
EXAMPLE_FILE = "env.example"

EXAMPLE_CONFIG = """# Toolgen configuration template
# 1. Copy this file to .env in the directory you run toolgen from
# 2. Fill in at least one provider's API key
# 3. Save; run 'reload' in the CLI or POST /api/reload to apply

# ============================================
# Volcengine Ark (Doubao) - tried first
# ============================================
DOUBAO_API_KEY=your_api_key_here
DOUBAO_ENDPOINT_ID=your_endpoint_id_here
# DOUBAO_BASE_URL=https://ark.cn-beijing.volces.com/api/v3

# Backup endpoints (optional), tried in order after the primary one
# DOUBAO_API_KEY_2=
# DOUBAO_ENDPOINT_ID_2=
# DOUBAO_API_KEY_3=
# DOUBAO_ENDPOINT_ID_3=

# ============================================
# Other providers (optional), tried after Doubao
# ============================================
# OPENAI_API_KEY=
# ANTHROPIC_API_KEY=
# GEMINI_API_KEY=

# ============================================
# Other settings
# ============================================
# Enable AI generation (true/false)
USE_AI=true

# Output directory for generated tools
# OUTPUT_DIR=output

# Timeouts in seconds - raise these if generation often times out
# AI_CONNECT_TIMEOUT=30
# AI_READ_TIMEOUT=120
# AI_WRITE_TIMEOUT=60
"""


def save_config(values: Dict[str, str], env_file: Union[str, Path] = ENV_FILE) -> Path:
    """
    Write key/value pairs into the .env file, keeping its other lines.

    The file is created when missing.
    """
    path = Path(env_file)
    path.touch(exist_ok=True)
    for key, value in values.items():
        set_key(str(path), key, value, quote_mode="never")
    logger.info(f"Saved {', '.join(values)} to {path}")
    return path


def create_example_config(directory: Union[str, Path] = ".") -> Optional[Path]:
    """Write env.example unless it already exists; returns the path when written."""
    path = Path(directory) / EXAMPLE_FILE
    if path.exists():
        return None
    path.write_text(EXAMPLE_CONFIG, encoding="utf-8")
    logger.info(f"Configuration template written to {path}")
    return path
