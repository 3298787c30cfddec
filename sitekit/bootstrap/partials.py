"""Style partial renaming for a fetched template."""
from pathlib import Path
from typing import List

from sitekit.core.logger import get_logger

logger = get_logger(__name__)

ENTRY_STEM = "index"
ENTRY_NAME = "index.scss"


def normalize_style_partials(styles_dir: Path) -> List[Path]:
    """Promote ``index.css`` to the stylesheet entry point and prefix the rest.

    ``index.css`` becomes ``index.scss``; every other ``*.css`` file directly
    under *styles_dir* becomes ``_<name>.css``. Files already starting with an
    underscore are left alone, so running this twice is a no-op. A rename
    whose target already exists is skipped with a warning.

    Returns:
        Paths created by renaming, in processing order
    """
    if not styles_dir.is_dir():
        logger.debug(f"No styles directory at {styles_dir}, skipping")
        return []

    renamed: List[Path] = []
    for css_file in sorted(styles_dir.glob("*.css")):
        if not css_file.is_file() or css_file.name.startswith("_"):
            continue

        if css_file.stem == ENTRY_STEM:
            target = styles_dir / ENTRY_NAME
        else:
            target = styles_dir / f"_{css_file.name}"

        if target.exists():
            logger.warning(f"Not renaming {css_file.name}: {target.name} already exists")
            continue

        css_file.rename(target)
        renamed.append(target)
        logger.debug(f"Renamed {css_file.name} -> {target.name}")

    return renamed
