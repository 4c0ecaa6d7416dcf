# OSCChecker - Configuration
# Copyright (C) 2025 maigre - Hemisphere Project
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.

import copy
import json
import os
from pathlib import Path

from .osc.arguments import OSCArgument
from .osc.errors import ConfigError, ValidationError
from .osc.message_log import DEFAULT_MAX_ENTRIES
from .osc.sender import SendTarget


DEFAULT_CONFIG = {
    "app": {
        "name": "OSC Checker",
        "version": "1.0.0"
    },
    "sender": {
        "list": [
            {
                "name": "Default",
                "host": "127.0.0.1",
                "port": 7000,
                "address": "/test",
                "arguments": [
                    {"type": "int", "default_value": "42", "description": "Test integer"}
                ]
            }
        ],
        "window": {"width": 900, "height": 600, "title": "OSC Sender"}
    },
    "receiver": {
        "default_port": 7000,
        "max_log_entries": DEFAULT_MAX_ENTRIES,
        "window": {"width": 1000, "height": 700, "title": "OSC Receiver"}
    }
}


def get_config_path():
    """config.json in the per-user config directory, ./config.json as fallback"""
    if os.name == 'posix':
        if os.uname().sysname == 'Darwin':
            config_dir = Path.home() / "Library" / "Application Support" / "OSCChecker"
        else:
            config_dir = Path.home() / ".config" / "oscchecker"
    elif os.name == 'nt':
        appdata = os.getenv('APPDATA')
        config_dir = Path(appdata) / "OSCChecker" if appdata else Path(".")
    else:
        config_dir = Path(".")

    return config_dir / "config.json"


def get_default_config():
    """Return default configuration"""
    return copy.deepcopy(DEFAULT_CONFIG)


def apply_defaults(config):
    """Fill in missing sections and keys in place"""
    defaults = get_default_config()

    for section in ("app", "sender", "receiver"):
        if not isinstance(config.get(section), dict):
            config[section] = {}

    for key, value in defaults["app"].items():
        config["app"].setdefault(key, value)

    sender = config["sender"]
    sender.setdefault("list", defaults["sender"]["list"])
    # A single target may be given instead of a list
    if isinstance(sender["list"], dict):
        sender["list"] = [sender["list"]]
    sender.setdefault("window", {})
    for key, value in defaults["sender"]["window"].items():
        sender["window"].setdefault(key, value)

    receiver = config["receiver"]
    receiver.setdefault("default_port", defaults["receiver"]["default_port"])
    receiver.setdefault("max_log_entries", defaults["receiver"]["max_log_entries"])
    receiver.setdefault("window", {})
    for key, value in defaults["receiver"]["window"].items():
        receiver["window"].setdefault(key, value)

    return config


def save_config(config, config_file):
    """Write config as JSON. Returns True on success."""
    try:
        Path(config_file).parent.mkdir(parents=True, exist_ok=True)
        with open(config_file, 'w') as f:
            json.dump(config, f, indent=2)
        print(f"Config saved to {config_file}")
        return True
    except OSError as e:
        print(f"⚠️ Could not save config: {e}")
        return False


def load_config(config_file=None):
    """Load configuration, creating a default file on first run

    Raises:
        ConfigError if the file exists but cannot be read or parsed
    """
    config_file = str(config_file or get_config_path())

    if not os.path.exists(config_file):
        print(f"No config file found at {config_file}, using defaults")
        config = get_default_config()
        save_config(config, config_file)
        return config

    try:
        with open(config_file, 'r') as f:
            config = json.load(f)
    except (OSError, ValueError) as e:
        raise ConfigError(f"Could not load {config_file}: {e}") from e

    if not isinstance(config, dict):
        raise ConfigError(f"Could not load {config_file}: top level must be an object")

    apply_defaults(config)
    # Fail at startup rather than on first send
    build_send_targets(config)
    receiver_settings(config)
    print(f"Config loaded from {config_file}")
    return config


def build_send_targets(config):
    """Turn the sender.list section into SendTarget objects"""
    targets = []
    for index, entry in enumerate(config["sender"]["list"]):
        if not isinstance(entry, dict):
            raise ConfigError(f"sender.list[{index}] must be an object")
        try:
            arguments = [
                OSCArgument(arg.get("type", "int"),
                            str(arg.get("default_value", "")),
                            arg.get("description", ""))
                for arg in entry.get("arguments") or []
            ]
            port = int(entry.get("port", 0))
        except (ValidationError, ValueError, TypeError, AttributeError) as e:
            raise ConfigError(f"sender.list[{index}]: {e}") from e
        targets.append(SendTarget(
            name=entry.get("name") or f"Target {index + 1}",
            host=entry.get("host", ""),
            port=port,
            address=entry.get("address", ""),
            arguments=arguments,
        ))
    return targets


def receiver_settings(config):
    """Return (default_port, max_log_entries) from the receiver section"""
    receiver = config["receiver"]
    try:
        default_port = int(receiver["default_port"])
        max_log_entries = int(receiver["max_log_entries"])
    except (ValueError, TypeError) as e:
        raise ConfigError(f"receiver: {e}") from e
    if max_log_entries < 1:
        raise ConfigError(f"receiver.max_log_entries must be at least 1, got {max_log_entries}")
    return default_port, max_log_entries
