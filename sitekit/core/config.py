"""sitekit project configuration loaded from sitekit.yml."""
import os
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from sitekit.core.logger import get_logger

logger = get_logger(__name__)

DEFAULT_CONFIG_FILE = "sitekit.yml"


class ConfigError(Exception):
    """Raised when sitekit.yml cannot be parsed or has unknown or mistyped keys."""
    pass


@dataclass
class SiteConfig:
    """Settings for the site tasks and the template bootstrapper.

    Attributes:
        output_dir: Generator output directory synced on deploy
        deploy_server: rsync destination (user@host:path)
        rsync_options: Flags passed to rsync, whitespace separated
        jekyll_config: Comma separated config files used by `dev`
        js_sources: Glob of bundler entry points
        js_output_dir: Bundler output directory
        preview_host: Host the preview server binds to
        preview_port: Port the preview server binds to
        backup_compression_options: Flags passed to 7z, whitespace separated
        backup_date_format: strftime format used in backup archive names
        enable_start: Whether `start` may run (flipped off after a successful run)
        starter_repo: Template repository cloned by `start`
        starter_dir: Local source directory the template is merged into
        compose_service: docker-compose service used by `bash`
        fix_permissions: Run `sudo chmod -R 777 .` before `up`
    """

    output_dir: str = "dist/"
    deploy_server: str = "user@server.com:path/to/public_html/"
    rsync_options: str = "-avz --delete --delete-excluded --include=*.htaccess"
    jekyll_config: str = "_config.yml,_config_dev.yml"
    js_sources: str = "src/scripts/*.js"
    js_output_dir: str = "src/scripts/dist/"
    preview_host: str = "192.168.1.126"
    preview_port: int = 3000
    backup_compression_options: str = "-t7z -mx=9 -m0=LZMA2 -mmt=on"
    backup_date_format: str = "%d-%m-%Y"
    enable_start: bool = False
    starter_repo: str = "https://github.com/agragregra/starter"
    starter_dir: str = "src"
    compose_service: str = "jekyll"
    fix_permissions: bool = True

    # Where the config was loaded from; not a YAML key
    path: Optional[Path] = None

    @classmethod
    def load(cls, config_path: Optional[str] = None) -> "SiteConfig":
        """Load configuration, falling back to defaults when the file is absent.

        Raises:
            ConfigError: If the file is not a YAML mapping, has unknown keys,
                or a value has the wrong type
        """
        path = Path(find_config(config_path))
        if not path.exists():
            logger.debug(f"No config at {path}, using defaults")
            return cls(path=path)

        data = _read_yaml(path)
        known = {f.name: f.type for f in fields(cls) if f.name != "path"}
        unknown = sorted(set(data) - set(known))
        if unknown:
            raise ConfigError(f"Unknown keys in {path}: {', '.join(unknown)}")

        errors = _type_errors(data, known)
        if errors:
            raise ConfigError(f"Invalid values in {path}:\n  " + "\n  ".join(errors))

        config = cls(path=path, **data)
        logger.debug(f"Loaded config from {path}")
        return config

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data.pop("path")
        return data

    def disable_start(self) -> None:
        """Persist `enable_start: false` so `start` cannot run again silently."""
        self.enable_start = False
        if self.path is None:
            return

        data = _read_yaml(self.path) if self.path.exists() else {}
        data["enable_start"] = False
        self.path.write_text(yaml.safe_dump(data, default_flow_style=False, sort_keys=False))
        logger.debug(f"Disabled start in {self.path}")


def find_config(config_path: Optional[str] = None) -> str:
    """Locate the active sitekit configuration file."""
    if config_path:
        return config_path

    if env_config := os.environ.get("SITEKIT_CONFIG"):
        return env_config

    return DEFAULT_CONFIG_FILE


def _type_errors(data: Dict[str, Any], expected: Dict[str, type]) -> List[str]:
    """Check each value against its field type; quoted "false" is not a bool."""
    errors = []
    for key, value in data.items():
        field_type = expected[key]
        # bool is an int subclass; `preview_port: true` is still wrong
        if isinstance(value, bool) and field_type is not bool:
            ok = False
        else:
            ok = isinstance(value, field_type)
        if not ok:
            errors.append(
                f"'{key}' must be {field_type.__name__}, got {type(value).__name__} ({value!r})"
            )
    return errors


def _read_yaml(path: Path) -> Dict[str, Any]:
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a mapping, got {type(data).__name__}")
    return data
