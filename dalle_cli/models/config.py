"""
Pydantic model for application configuration.
Provides robust validation for all settings.
"""

from pydantic import BaseModel, Field, field_validator
from rich.spinner import SPINNERS

DEFAULT_BASE_URL = "https://api.openai.com/v1"

# Dimensions accepted by the generation endpoint, with display metadata
SIZE_MAP = {
    "256x256": {"name": "Small (256x256)", "short": "S", "color": "yellow"},
    "512x512": {"name": "Medium (512x512)", "short": "M", "color": "green"},
    "1024x1024": {"name": "Large (1024x1024)", "short": "L", "color": "cyan"},
}

MIN_IMAGES, MAX_IMAGES = 1, 10


def get_size_info(size: str) -> dict[str, str]:
    """Gets all information for a given image size from the central map."""
    return SIZE_MAP.get(size, {"name": "Unknown", "short": "?", "color": "white"})


class SessionConfig(BaseModel):
    """A validated configuration model shared by every session."""

    # Authentication & API
    api_key: str = ""
    user: str = ""
    base_url: str = DEFAULT_BASE_URL
    model: str = "dall-e-2"
    request_timeout: int = 120

    # Generation Settings
    n: int = 1
    size: str = "1024x1024"

    # Display Settings
    spinner_type: str = "dots"
    display_width: int = 60

    # Storage
    cache_dir: str

    # Internal fields not loaded from INI file
    config_path: str = Field(..., repr=False)

    class Config:
        """Pydantic model configuration."""

        validate_assignment = True
        str_strip_whitespace = True

    @field_validator("n")
    @classmethod
    def validate_n(cls, v: int) -> int:
        """Ensures the per-request image count is within the service limits."""
        if v < MIN_IMAGES or v > MAX_IMAGES:
            raise ValueError(
                f"Image count must be between {MIN_IMAGES} and {MAX_IMAGES}."
            )
        return v

    @field_validator("size")
    @classmethod
    def validate_size(cls, v: str) -> str:
        if v not in SIZE_MAP:
            raise ValueError(f"Size must be one of {', '.join(SIZE_MAP)}.")
        return v

    @field_validator("spinner_type")
    @classmethod
    def validate_spinner(cls, v: str) -> str:
        if v not in SPINNERS:
            raise ValueError(f"Unknown spinner '{v}'. Run `python -m rich.spinner`.")
        return v

    @field_validator("display_width")
    @classmethod
    def validate_display_width(cls, v: int) -> int:
        if v < 10 or v > 400:
            raise ValueError("Display width must be between 10 and 400 columns.")
        return v

    @field_validator("request_timeout")
    @classmethod
    def validate_timeout(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Request timeout must be at least 1 second.")
        return v

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError("Base URL must start with http:// or https://.")
        return v.rstrip("/")

    @classmethod
    def get_ini_keys(cls) -> set[str]:
        """Returns a set of all keys that are expected in the INI file."""
        internal_fields = {"config_path"}
        return {key for key in cls.model_fields if key not in internal_fields}
