"""
Centralized defaults for nautilus-gen.

Environment variable overrides:
- NAUTILUS_GEN_OUT_DIR: where `nautilus-gen build` writes artifacts
- NAUTILUS_GEN_MANIFEST: project manifest to read name/version from
"""

from __future__ import annotations

import os

DEFAULT_OUT_DIR = os.environ.get("NAUTILUS_GEN_OUT_DIR", "target/nautilus")

DEFAULT_MANIFEST = os.environ.get("NAUTILUS_GEN_MANIFEST", "pyproject.toml")

# Wire tag width; every variant gets one value of this type.
DISCRIMINANT_TYPE = "u8"
MAX_INSTRUCTIONS = 256

# IDL metadata
IDL_ORIGIN = "nautilus"

# Suffixes of the two artifacts written per program
ENTRYPOINT_SUFFIX = "_entrypoint.py"
IDL_SUFFIX = ".json"

# Logger that generated dispatchers report instruction names to
PROGRAM_LOGGER_NAME = "nautilus_gen.program"
