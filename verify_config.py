#!/usr/bin/env python3
"""Verify that config.example.yaml (or a given file) passes configuration validation."""

import sys
from pathlib import Path

from resume_matcher.config import validate_config_file


def verify_config(path: Path) -> bool:
    if not path.exists():
        print(f"✗ {path} not found")
        return False
    return validate_config_file(path)


if __name__ == "__main__":
    target = Path(sys.argv[1]) if len(sys.argv) > 1 else Path("config.example.yaml")
    sys.exit(0 if verify_config(target) else 1)
