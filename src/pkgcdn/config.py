"""
Process configuration
Priority: OS Environment > .env > defaults
"""
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


MAXIMUM_DEPTH = 128
DEFAULT_ORIGIN = "https://unpkg.com"

# Module-level settings cache
_settings = None


@dataclass(frozen=True)
class Settings:
    packages_dir: str
    origin: str = DEFAULT_ORIGIN
    auto_index: bool = True
    maximum_depth: int = MAXIMUM_DEPTH
    host: str = "127.0.0.1"
    port: int = 8080
    log_level: str = "INFO"


def get_settings(env_file: Optional[Path] = None) -> Settings:
    """
    Load settings from the environment and the project's .env file (cached)

    Args:
        env_file: Alternative .env location, mostly for tests
    """
    global _settings
    if _settings is not None:
        return _settings

    if env_file is None:
        env_file = Path(__file__).parent.parent.parent / '.env'
    load_dotenv(env_file)

    _settings = Settings(
        packages_dir=os.path.abspath(os.getenv('PKGCDN_PACKAGES_DIR', 'packages')),
        origin=os.getenv('PKGCDN_ORIGIN', DEFAULT_ORIGIN).rstrip('/'),
        # Automatically generate HTML pages that show package contents
        auto_index=not os.getenv('PKGCDN_DISABLE_INDEX'),
        maximum_depth=int(os.getenv('PKGCDN_MAXIMUM_DEPTH', str(MAXIMUM_DEPTH))),
        host=os.getenv('PKGCDN_HOST', '127.0.0.1'),
        port=int(os.getenv('PKGCDN_PORT', '8080')),
        log_level=os.getenv('PKGCDN_LOG_LEVEL', 'INFO').upper(),
    )
    return _settings


def reset_settings():
    """Drop the cached settings so the next get_settings() reloads them"""
    global _settings
    _settings = None


def configure_logging(level: str = "INFO"):
    """Root logging setup; called by the runner and the CLI, never on import"""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
