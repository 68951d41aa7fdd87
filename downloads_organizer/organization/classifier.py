"""Extension based file classification."""

from pathlib import Path
from typing import Optional, Tuple

from ..core.config import OrganizerConfig
from ..core.types import CategoryRule


class Classifier:
    """
    Map file extensions to categories.

    Rules are checked in the order the configuration declares them and the
    first category listing the extension wins.
    """

    def __init__(self, config: OrganizerConfig):
        self.rules: Tuple[CategoryRule, ...] = config.rules

    def classify(self, extension: str) -> Optional[CategoryRule]:
        """
        Find the category for an extension.

        Args:
            extension: Extension including the leading dot (any case)

        Returns:
            Matching category rule, or None if the extension is unsupported
        """
        if not extension:
            return None

        extension = extension.lower()
        for rule in self.rules:
            if extension in rule.extensions:
                return rule
        return None

    def classify_path(self, path: Path) -> Optional[CategoryRule]:
        """Classify a file by its name's extension."""
        return self.classify(Path(path).suffix)
