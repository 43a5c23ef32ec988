"""
Configuration Manager for sshroster
Resolves the connection file path and the session preferences
"""

import copy
import json
import logging
import os
from typing import Any, Dict, Optional, Tuple

from .platform_utils import get_config_dir, get_default_data_file, get_default_mount_root

logger = logging.getLogger(__name__)

# Increment this whenever the configuration format changes
CONFIG_VERSION = 1


def _is_outdated(stored_version: Any) -> bool:
    # Anything but a plain integer version is treated as an old format
    if not isinstance(stored_version, int) or isinstance(stored_version, bool):
        return True
    return stored_version < CONFIG_VERSION

class Config:
    """Configuration manager for sshroster"""

    def __init__(self, config_file: Optional[str] = None):
        self.config_file = config_file or os.path.join(get_config_dir(), 'config.json')
        self.config_data = self.load_json_config()

    def load_json_config(self) -> Dict[str, Any]:
        """Load configuration from JSON file"""
        try:
            if os.path.exists(self.config_file):
                with open(self.config_file, 'r', encoding='utf-8') as f:
                    config = json.load(f)

                if not isinstance(config, dict):
                    raise ValueError("configuration root must be an object")

                # Purge outdated configurations
                stored_version = config.get('config_version', CONFIG_VERSION)
                if _is_outdated(stored_version):
                    backup_file = f"{self.config_file}.bak"
                    try:
                        os.replace(self.config_file, backup_file)
                        logger.warning(
                            "Outdated config version %s detected; backing up to %s and regenerating defaults",
                            stored_version,
                            backup_file,
                        )
                    except OSError:
                        os.remove(self.config_file)
                        logger.warning(
                            "Outdated config version %s detected; old config removed and new defaults generated",
                            stored_version,
                        )

                    config = self.get_default_config()
                    self.save_json_config(config)
                else:
                    config, updated = self._ensure_config_defaults(config)
                    if updated:
                        self.save_json_config(config)

                return config
            else:
                # Create default config
                default_config = self.get_default_config()
                self.save_json_config(default_config)
                return default_config
        except (OSError, ValueError, TypeError) as e:
            logger.error(f"Failed to load JSON config: {e}")
            return self.get_default_config()

    def save_json_config(self, config_data: Dict[str, Any] = None):
        """Save configuration to JSON file"""
        try:
            if config_data is None:
                config_data = self.config_data

            os.makedirs(os.path.dirname(self.config_file), exist_ok=True)
            with open(self.config_file, 'w', encoding='utf-8') as f:
                json.dump(config_data, f, indent=2)

            logger.debug("Configuration saved to JSON file")
        except OSError as e:
            logger.error(f"Failed to save JSON config: {e}")

    def get_default_config(self) -> Dict[str, Any]:
        """Get default configuration values"""
        return {
            'config_version': CONFIG_VERSION,
            'path_to_data_json': get_default_data_file(),
            'exit_after_session': False,
            'debug_enabled': False,
            'ssh': {
                'keepalive_interval': 15,
                'keepalive_count_max': 3,
                'strict_host_key_checking': 'no',
            },
            'sshfs': {
                'mount_root': get_default_mount_root(),
            },
        }

    def _ensure_config_defaults(self, config: Dict[str, Any]) -> Tuple[Dict[str, Any], bool]:
        """Fill in keys missing from *config*; returns the config and whether it changed."""
        updated = False
        for key, default in self.get_default_config().items():
            if key not in config:
                config[key] = copy.deepcopy(default)
                updated = True
            elif isinstance(default, dict):
                section = config.get(key)
                if not isinstance(section, dict):
                    config[key] = copy.deepcopy(default)
                    updated = True
                    continue
                for sub_key, sub_default in default.items():
                    if sub_key not in section:
                        section[sub_key] = sub_default
                        updated = True
        return config, updated

    def get_setting(self, key: str, default=None):
        """Get a setting value; dotted keys address nested sections."""
        value: Any = self.config_data
        for part in key.split('.'):
            if isinstance(value, dict) and part in value:
                value = value[part]
            else:
                return default
        return value

    def set_setting(self, key: str, value: Any):
        """Set a setting value and persist it"""
        parts = key.split('.')
        target = self.config_data
        for part in parts[:-1]:
            child = target.get(part)
            if not isinstance(child, dict):
                child = {}
                target[part] = child
            target = child
        target[parts[-1]] = value
        self.save_json_config()

    @property
    def data_file(self) -> str:
        path = self.get_setting('path_to_data_json') or get_default_data_file()
        return os.path.abspath(os.path.expanduser(str(path)))

    def get_ssh_config(self) -> Dict[str, Any]:
        """Get SSH session settings with defaults applied"""
        defaults = self.get_default_config()['ssh']
        ssh_cfg = self.get_setting('ssh', {}) or {}
        merged = dict(defaults)
        merged.update({k: v for k, v in ssh_cfg.items() if v is not None})
        return merged

    def get_sshfs_config(self) -> Dict[str, Any]:
        defaults = self.get_default_config()['sshfs']
        sshfs_cfg = self.get_setting('sshfs', {}) or {}
        merged = dict(defaults)
        merged.update({k: v for k, v in sshfs_cfg.items() if v})
        return merged


__all__ = ["Config", "CONFIG_VERSION"]
