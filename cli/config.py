"""
CLI Configuration Management
"""

import os
import json
from pathlib import Path
from dataclasses import dataclass, field, asdict
from typing import Optional, Dict, Any


@dataclass
class CLIConfig:
    """Configuration for the pengaduan CLI"""

    # API settings
    api_base_url: str = "http://localhost:8000/api/v1"
    timeout: int = 30

    # Output settings
    verbose: bool = False
    page: int = 1

    # Paths
    config_dir: str = field(default_factory=lambda: str(Path.home() / ".pengaduan"))

    def __post_init__(self):
        self.api_base_url = self.api_base_url.rstrip("/")

    @property
    def credentials_file(self) -> Path:
        return Path(self.config_dir) / "credentials.json"

    def load_from_file(self, config_path: str) -> None:
        """Load configuration from JSON file"""
        path = Path(config_path)
        if path.exists():
            with open(path) as f:
                data = json.load(f)
                for key, value in data.items():
                    if hasattr(self, key):
                        setattr(self, key, value)
        self.api_base_url = self.api_base_url.rstrip("/")

    def save_to_file(self, config_path: Optional[str] = None) -> None:
        """Save configuration to JSON file"""
        path = Path(config_path or (Path(self.config_dir) / "config.json"))
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w') as f:
            json.dump(asdict(self), f, indent=2)

    @classmethod
    def load_default(cls) -> "CLIConfig":
        """Load default configuration from user config directory"""
        config = cls()
        default_config_path = Path(config.config_dir) / "config.json"
        if default_config_path.exists():
            config.load_from_file(str(default_config_path))

        # Override with environment variables
        config._load_from_env()

        return config

    def _load_from_env(self) -> None:
        """Load configuration from environment variables"""
        env_mappings = {
            "PENGADUAN_API_URL": "api_base_url",
            "PENGADUAN_CONFIG_DIR": "config_dir",
            "PENGADUAN_TIMEOUT": ("timeout", int),
            "PENGADUAN_VERBOSE": ("verbose", lambda x: x.lower() == "true"),
        }

        for env_var, mapping in env_mappings.items():
            value = os.environ.get(env_var)
            if value:
                if isinstance(mapping, tuple):
                    attr, converter = mapping
                    setattr(self, attr, converter(value))
                else:
                    setattr(self, mapping, value)
        self.api_base_url = self.api_base_url.rstrip("/")

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary"""
        return asdict(self)
