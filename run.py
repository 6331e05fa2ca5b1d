"""
pkgcdn Runner
Starts the package CDN server with settings from the environment / .env
"""
import sys
from pathlib import Path

import uvicorn

# Add src to path
sys.path.insert(0, str(Path(__file__).parent / "src"))

from pkgcdn.config import configure_logging, get_settings


def run_server():
    """Runs the package CDN server"""
    settings = get_settings()
    configure_logging(settings.log_level)
    print(f"[pkgcdn] Serving {settings.packages_dir} on {settings.host}:{settings.port}...")
    uvicorn.run(
        "pkgcdn.server:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    try:
        run_server()
    except KeyboardInterrupt:
        print("\nShutting down...")
