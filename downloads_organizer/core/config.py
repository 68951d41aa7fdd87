"""
Configuration for the organizer.

Two layers live here:

* ``OrganizerConfig`` - the category rules (which extensions go to which
  folder). Loaded once, validated, then passed explicitly into every
  component. Invalid rules abort the run before any file is touched.
* ``Settings`` - runtime settings (source directory, history file, log file)
  read from ``ORGANIZER_*`` environment variables or a ``.env`` file.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    ValidationInfo,
    field_validator,
    model_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigurationError
from .types import CategoryRule

logger = logging.getLogger(__name__)


def _home() -> Path:
    return Path.home()


# Categories of the original Downloads sorter, in match order
DEFAULT_EXTENSIONS: Dict[str, List[str]] = {
    "images": [".jpg", ".png", ".jpeg", ".svg"],
    "videos": [".mp4", ".mkv"],
    "music": [".mp3", ".wav"],
    "documents": [".txt", ".pdf", ".docx"],
}

DEFAULT_FOLDERS: Dict[str, str] = {
    "images": "Pictures",
    "videos": "Videos",
    "music": "Music",
    "documents": "Documents",
}


class OrganizerConfig(BaseModel):
    """Extension rules: category -> extensions, category -> folder."""

    extensions: Dict[str, List[str]] = Field(
        description="Category name to list of extensions (declaration order matters)"
    )
    folders: Dict[str, Path] = Field(description="Category name to destination folder")

    model_config = ConfigDict(frozen=True)

    @field_validator("extensions")
    @classmethod
    def normalize_extensions(cls, value: Dict[str, List[str]]) -> Dict[str, List[str]]:
        """Lower-case every extension and make sure it starts with a dot."""
        normalized: Dict[str, List[str]] = {}
        for category, extensions in value.items():
            cleaned: List[str] = []
            for ext in extensions:
                ext = ext.strip().lower()
                if not ext or ext == ".":
                    raise ValueError(f"Empty extension in category '{category}'")
                if not ext.startswith("."):
                    ext = "." + ext
                if ext not in cleaned:
                    cleaned.append(ext)
            normalized[category] = cleaned
        return normalized

    @field_validator("folders")
    @classmethod
    def resolve_folders(cls, value: Dict[str, Path], info: ValidationInfo) -> Dict[str, Path]:
        """Expand '~' and anchor relative folders at the config file's directory."""
        base_dir: Optional[Path] = None
        if info.context:
            base_dir = info.context.get("base_dir")

        resolved: Dict[str, Path] = {}
        for category, folder in value.items():
            folder = folder.expanduser()
            if not folder.is_absolute():
                folder = (base_dir or Path.cwd()) / folder
            resolved[category] = folder.resolve()
        return resolved

    @model_validator(mode="after")
    def check_folders_present(self) -> "OrganizerConfig":
        """Every category with extensions needs a destination folder."""
        missing = [name for name in self.extensions if name not in self.folders]
        if missing:
            raise ValueError(
                f"No destination folder for categories: {', '.join(missing)}"
            )
        return self

    @property
    def rules(self) -> Tuple[CategoryRule, ...]:
        """Category rules in declaration order."""
        return tuple(
            CategoryRule(
                name=name,
                extensions=tuple(extensions),
                folder=self.folders[name],
            )
            for name, extensions in self.extensions.items()
        )

    def overlapping_extensions(self) -> Dict[str, List[str]]:
        """
        Find extensions claimed by more than one category.

        Returns:
            Extension to the categories listing it, in declaration order
        """
        owners: Dict[str, List[str]] = {}
        for name, extensions in self.extensions.items():
            for ext in extensions:
                owners.setdefault(ext, []).append(name)
        return {ext: names for ext, names in owners.items() if len(names) > 1}


def default_config(home: Optional[Path] = None) -> OrganizerConfig:
    """
    Build the built-in configuration.

    Args:
        home: Directory the default folders live in (defaults to the user's home)

    Returns:
        Configuration sorting images, videos, music and documents
    """
    base = home or _home()
    return OrganizerConfig(
        extensions=DEFAULT_EXTENSIONS,
        folders={name: base / folder for name, folder in DEFAULT_FOLDERS.items()},
    )


def parse_config(data: Any, base_dir: Optional[Path] = None) -> OrganizerConfig:
    """
    Validate raw configuration data.

    Args:
        data: Decoded JSON object
        base_dir: Directory relative folder paths are resolved against

    Returns:
        Validated configuration

    Raises:
        ConfigurationError: If the data does not describe a valid configuration
    """
    if not isinstance(data, dict):
        raise ConfigurationError("Configuration must be a JSON object")

    try:
        config = OrganizerConfig.model_validate(data, context={"base_dir": base_dir})
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e

    for ext, names in config.overlapping_extensions().items():
        logger.warning(
            f"Extension {ext} is listed by {', '.join(names)}; "
            f"'{names[0]}' wins (first match)"
        )

    return config


def load_config(path: Optional[Path] = None) -> OrganizerConfig:
    """
    Load configuration from a JSON file, or the defaults when no path is given.

    Args:
        path: Configuration file

    Returns:
        Validated configuration

    Raises:
        ConfigurationError: If the file is missing, unreadable or invalid
    """
    if path is None:
        return default_config()

    path = Path(path).expanduser()
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError as e:
        raise ConfigurationError(f"Configuration file not found: {path}") from e
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ConfigurationError(f"Configuration file is not valid JSON: {e}") from e
    except OSError as e:
        raise ConfigurationError(f"Cannot read configuration file {path}: {e}") from e

    config = parse_config(data, base_dir=path.resolve().parent)
    logger.debug(f"Loaded {len(config.rules)} categories from {path}")
    return config


class Settings(BaseSettings):
    """Runtime settings loaded from environment variables."""

    source_directory: Path = Field(default_factory=lambda: _home() / "Downloads")
    config_file: Optional[Path] = None
    history_file: Path = Field(
        default_factory=lambda: _home() / ".downloads-organizer" / "history.json"
    )
    log_file: Optional[Path] = None
    settle_seconds: float = 1.0

    model_config = SettingsConfigDict(
        env_prefix="ORGANIZER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )
