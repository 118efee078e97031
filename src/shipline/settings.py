from __future__ import annotations
import os

STATE_DIR = os.environ.get("SHIPLINE_STATE_DIR", ".shipline")
SHELL = os.environ.get("SHIPLINE_SHELL", "/bin/bash")
OUTPUT_TAIL = int(os.environ.get("SHIPLINE_OUTPUT_TAIL", "4000"))
SECRET_PREFIX = os.environ.get("SHIPLINE_SECRET_PREFIX", "SHIPLINE_SECRET_")
