"""Configuration loading and management."""

import copy
import os
import yaml
from pathlib import Path
from typing import Dict, Any, Optional

from dotenv import load_dotenv


def load_config(config_path: Optional[str] = None, load_env_file: bool = True) -> Dict[str, Any]:
    """
    Load configuration from YAML file.

    Built-in defaults are merged with the file, then with environment
    variables (a ``.env`` file in the working directory is honoured).

    Args:
        config_path: Path to config file (defaults to configs/default.yaml)
        load_env_file: Load ``.env`` before reading environment variables

    Returns:
        Configuration dictionary
    """
    if load_env_file:
        load_dotenv()

    config = get_default_config()

    if config_path is None:
        possible_paths = [
            Path("configs/default.yaml"),
            Path(__file__).parent.parent.parent / "configs" / "default.yaml"
        ]
        for path in possible_paths:
            if path.exists():
                config_path = str(path)
                break

    if config_path is not None:
        path = Path(config_path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        with open(path, "r", encoding="utf-8") as f:
            file_config = yaml.safe_load(f) or {}
        config = merge_config(config, file_config)

    return override_with_env(config)


def save_config(config: Dict[str, Any], config_path: str) -> None:
    """
    Save configuration to YAML file.

    Args:
        config: Configuration dictionary
        config_path: Output path
    """
    path = Path(config_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "w", encoding="utf-8") as f:
        yaml.dump(config, f, default_flow_style=False, sort_keys=False, allow_unicode=True)


def merge_config(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge ``override`` into a copy of ``base``."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_config(merged[key], value)
        else:
            merged[key] = value
    return merged


def override_with_env(config: Dict[str, Any]) -> Dict[str, Any]:
    """Override config with environment variables."""
    env_mappings = {
        "SARVAM_API_KEY": (["api_keys", "sarvam"], str),
        "OPENAI_API_KEY": (["api_keys", "openai"], str),
        "ANTHROPIC_API_KEY": (["api_keys", "anthropic"], str),
        "HUGGINGFACE_API_KEY": (["api_keys", "huggingface"], str),
        "VIDEOSPEAK_DEFAULT_METHOD": (["translation", "default_method"], str),
        "VIDEOSPEAK_MAX_CONCURRENT_JOBS": (["jobs", "max_concurrent_jobs"], int),
        "VIDEOSPEAK_LOG_LEVEL": (["logging", "level"], str),
    }

    for env_var, (path, cast) in env_mappings.items():
        value = os.getenv(env_var)
        if value:
            current = config
            for key in path[:-1]:
                if key not in current:
                    current[key] = {}
                current = current[key]
            current[path[-1]] = cast(value)

    return config


def get_default_config() -> Dict[str, Any]:
    """Get default configuration."""
    return {
        "translation": {
            "default_method": "llm",
            "default_llm_provider": "huggingface",
            "max_chunk_size": 1500,
            "chunk_overlap": 200,
            "overlap_threshold": 0.5,
            "enable_fallback": True,
            "enable_caching": True,
            "cache_ttl": 3600
        },
        "providers": {
            "sarvam": {
                "base_url": "https://api.sarvam.ai",
                "model": "sarvam-translate:v1",
                "mode": "formal"
            },
            "openai": {
                "model": "gpt-3.5-turbo",
                "base_url": None
            },
            "anthropic": {
                "model": "claude-3-5-sonnet-20241022"
            },
            "huggingface": {
                "base_url": "https://api-inference.huggingface.co/models",
                "model": "facebook/mbart-large-50-many-to-many-mmt"
            }
        },
        "retry": {
            "max_attempts": 3,
            "base_delay": 1.0,
            "max_delay": 10.0,
            "backoff_factor": 2.0
        },
        "jobs": {
            "max_concurrent_jobs": 5,
            "poll_interval": 5.0,
            "retention_seconds": 3600,
            "sweep_interval": 3600
        },
        "logging": {
            "level": "INFO",
            "file": None
        },
        "api_keys": {
            "sarvam": "",
            "openai": "",
            "anthropic": "",
            "huggingface": ""
        }
    }
