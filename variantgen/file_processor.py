"""File system operations for the uploads directory."""

import logging
from pathlib import Path
from typing import List

from variantgen.data_models import VideoAsset
from variantgen.errors import ScanError


VIDEO_EXTENSIONS = (".mp4", ".avi", ".mov", ".mkv", ".webm", ".flv", ".wmv")


class FileProcessor:
    """Discovers source videos and manages the uploads directory."""

    def __init__(self, uploads_dir: Path):
        """
        Initialize FileProcessor with the uploads directory path.

        Args:
            uploads_dir: Directory holding source videos and generated variants
        """
        self.uploads_dir = uploads_dir

    def ensure_uploads_dir(self) -> bool:
        """
        Create the uploads directory if it does not exist.

        Returns:
            True if the directory was newly created, False if it already existed

        Raises:
            ScanError: If the path exists but is not a directory, or cannot be created
        """
        if self.uploads_dir.exists():
            if not self.uploads_dir.is_dir():
                raise ScanError(f"Uploads path is not a directory: {self.uploads_dir}")
            return False

        try:
            self.uploads_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ScanError(f"Failed to create uploads directory {self.uploads_dir}: {e}") from e

        logging.info(f"Created uploads directory: {self.uploads_dir}")
        return True

    @staticmethod
    def is_video_file(path: Path) -> bool:
        """Check whether a path is a regular file with a supported video extension."""
        return path.suffix.lower() in VIDEO_EXTENSIONS and path.is_file()

    def find_video_assets(self) -> List[VideoAsset]:
        """
        Scan the uploads directory (non-recursively) for video files.

        Returns:
            List of VideoAsset objects sorted by file name

        Raises:
            ScanError: If the uploads directory cannot be read
        """
        try:
            entries = sorted(self.uploads_dir.iterdir(), key=lambda p: p.name)
        except OSError as e:
            raise ScanError(f"Cannot read uploads directory {self.uploads_dir}: {e}") from e

        assets = [VideoAsset.from_path(entry) for entry in entries if self.is_video_file(entry)]
        logging.debug(f"Found {len(assets)} video file(s) in {self.uploads_dir}")
        return assets

    def get_folder_size(self, folder: Path) -> int:
        """
        Calculate total size of all files in a folder in bytes.

        Args:
            folder: Path to the folder

        Returns:
            Total size in bytes
        """
        try:
            total_size = 0
            for item in folder.rglob("*"):
                if item.is_file():
                    total_size += item.stat().st_size
            return total_size
        except OSError:
            return 0
