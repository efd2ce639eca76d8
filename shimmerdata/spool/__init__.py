from .uploader import FileUploader, file_md5
from .watcher import SpoolWatcher, scan_directory
from .writer import RotatingWriter, spool_filename

__all__ = [
    "FileUploader",
    "RotatingWriter",
    "SpoolWatcher",
    "file_md5",
    "scan_directory",
    "spool_filename",
]
