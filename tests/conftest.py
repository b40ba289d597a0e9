"""Shared test configuration.

Loads ``.env.test`` (then ``.env``) when present so local runs can point the
factories at real backends; without them every factory falls back to its
in-memory or stub implementation.
"""

from pathlib import Path

from dotenv import load_dotenv

_ROOT = Path(__file__).parent.parent

env_test_path = _ROOT / ".env.test"
if env_test_path.exists():
    load_dotenv(env_test_path, override=True)

env_path = _ROOT / ".env"
if env_path.exists():
    load_dotenv(env_path)
