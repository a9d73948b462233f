# crudui/utils/cache_utils.py
import hashlib
import logging
from pathlib import Path

logger = logging.getLogger(__name__)

STATIC_DIR = Path(__file__).resolve().parent.parent / "static"


class CacheManager:
    """
    Utility for managing static asset cache versions.
    The version is a digest of the bundled assets, so it only changes when they do.
    """

    def __init__(self, static_dir: Path = STATIC_DIR):
        self.static_dir = static_dir
        self.version = self._generate_version()
        logger.debug(f"Initialized cache manager with version: {self.version}")

    def _generate_version(self) -> str:
        """Hash the contents of every file under the static directory"""
        digest = hashlib.sha1()
        if self.static_dir.is_dir():
            for path in sorted(self.static_dir.rglob("*")):
                if path.is_file():
                    digest.update(path.name.encode())
                    digest.update(path.read_bytes())
        return digest.hexdigest()[:12]

    def versioned_url(self, path: str) -> str:
        """
        Generate a versioned URL for a static resource

        Args:
            path: URL of the static resource

        Returns:
            str: URL with cache-busting version parameter
        """
        # Strip any existing version params to avoid duplication
        base_path = path.split("?")[0]
        return f"{base_path}?v={self.version}"


# Create singleton instance
cache_manager = CacheManager()
