"""Centralised path constants for the reminder service."""

from pathlib import Path

# src/paths.py -> project root
PROJECT_ROOT = Path(__file__).resolve().parent.parent
