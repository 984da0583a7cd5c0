"""
Console Configuration Management
"""

import os
import json
from pathlib import Path
from dataclasses import dataclass, asdict
from typing import Optional, Dict, Any

from dotenv import load_dotenv


@dataclass
class ConsoleConfig:
    """Configuration for the CampusDesk console"""

    # API settings
    api_base_url: str = "http://localhost:8000/api/v1"
    timeout: float = 30.0

    # Acting user (identity propagation only)
    user_id: Optional[str] = None
    role: str = "admin"  # admin, faculty, student
    user_name: Optional[str] = None
    department_id: Optional[str] = None

    # Logging
    log_level: str = "WARNING"
    log_file: Optional[str] = None

    # Output settings
    output_format: str = "table"  # table, json

    ENV_MAPPINGS = {
        "CAMPUSDESK_API_URL": ("api_base_url", str),
        "CAMPUSDESK_TIMEOUT": ("timeout", float),
        "CAMPUSDESK_USER_ID": ("user_id", str),
        "CAMPUSDESK_ROLE": ("role", str),
        "CAMPUSDESK_USER_NAME": ("user_name", str),
        "CAMPUSDESK_DEPARTMENT_ID": ("department_id", str),
        "CAMPUSDESK_LOG_LEVEL": ("log_level", str),
        "CAMPUSDESK_LOG_FILE": ("log_file", str),
        "CAMPUSDESK_OUTPUT": ("output_format", str),
    }

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> "ConsoleConfig":
        """Build from CAMPUSDESK_* variables (and a .env file when present)"""
        load_dotenv(env_file)
        config = cls()
        for env_var, (attr, cast) in cls.ENV_MAPPINGS.items():
            value = os.getenv(env_var)
            if value:
                setattr(config, attr, cast(value))
        return config

    def load_from_file(self, path: str):
        """Load configuration from JSON file"""
        config_path = Path(path)
        if config_path.exists():
            with open(config_path) as f:
                data = json.load(f)
            for key, value in data.items():
                if hasattr(self, key) and key != "ENV_MAPPINGS":
                    setattr(self, key, value)

    def save_to_file(self, path: str):
        """Save configuration to JSON file"""
        with open(path, "w") as f:
            json.dump(self.to_dict(), f, indent=2)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
