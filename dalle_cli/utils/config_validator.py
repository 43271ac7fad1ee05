"""
JSON Schema validation for configuration files.
Allows external tools to validate configs and provides better error messages.
"""

import json
from pathlib import Path
from typing import Any

from jsonschema import Draft7Validator

from dalle_cli.models.config import MAX_IMAGES, MIN_IMAGES, SIZE_MAP

CONFIG_SCHEMA = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "dalle-cli Configuration",
    "description": "Configuration schema for dalle-cli image sessions",
    "type": "object",
    "properties": {
        # Authentication & API
        "api_key": {
            "type": "string",
            "minLength": 1,
            "description": "Secret key for the image-generation API",
        },
        "user": {
            "type": "string",
            "description": "End-user identifier sent with every request",
        },
        "base_url": {
            "type": "string",
            "pattern": "^https?://",
            "description": "Base URL of the image-generation API",
        },
        "model": {
            "type": "string",
            "minLength": 1,
            "description": "Image model name",
        },
        "request_timeout": {
            "type": "integer",
            "minimum": 1,
            "description": "Seconds before a generation request is abandoned",
        },
        # Generation settings
        "n": {
            "type": "integer",
            "minimum": MIN_IMAGES,
            "maximum": MAX_IMAGES,
            "description": "Images generated per prompt",
        },
        "size": {
            "type": "string",
            "enum": list(SIZE_MAP),
            "description": "Image dimensions",
        },
        # Display
        "spinner_type": {
            "type": "string",
            "minLength": 1,
            "description": "Rich spinner used as the progress indicator",
        },
        "display_width": {
            "type": "integer",
            "minimum": 10,
            "maximum": 400,
            "description": "Width in columns of rendered images",
        },
        "cache_dir": {
            "type": "string",
            "minLength": 1,
            "description": "Root directory of the per-session image cache",
        },
    },
    "required": ["api_key"],
    "additionalProperties": False,
}


def validate_config_schema(config_dict: dict[str, Any]) -> tuple[bool, list[str]]:
    """
    Validate configuration against JSON schema.

    Args:
        config_dict: Configuration dictionary

    Returns:
        Tuple of (is_valid, error_messages)
    """
    validator = Draft7Validator(CONFIG_SCHEMA)
    errors = sorted(validator.iter_errors(config_dict), key=lambda e: [str(p) for p in e.path])

    if not errors:
        return True, []

    error_messages = []
    for error in errors:
        path = ".".join(str(p) for p in error.path) if error.path else "root"
        error_messages.append(f"{path}: {error.message}")

    return False, error_messages


def export_schema(output_path: Path) -> None:
    """
    Export JSON schema to file for external validation tools.

    Args:
        output_path: Path to save schema file
    """
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(CONFIG_SCHEMA, f, indent=2)
