"""Centralized config loading, read once at import time."""

import os
from pathlib import Path

import yaml
from dotenv import load_dotenv

# Load .env from project root (parent of questgen/)
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
load_dotenv(_PROJECT_ROOT / ".env")

CONFIG_PATH = Path(__file__).resolve().parent / "config.yaml"

_config = yaml.safe_load(CONFIG_PATH.read_text())

# Deployment overrides
if os.getenv("OPENROUTER_API_BASE"):
    _config["openrouter_api_base"] = os.environ["OPENROUTER_API_BASE"]
if os.getenv("OPENROUTER_SITE_URL"):
    _config["site_url"] = os.environ["OPENROUTER_SITE_URL"]


def get_config() -> dict:
    """Return the loaded config dictionary."""
    return _config
