"""
Packaging pipeline: staging, dependency install and zip archive.

Modules:
    staging: Filtered copy of the source tree into .lambda
    builder: pip install and post_install.sh invocation
    archive: Zip payload creation, reuse and package-only output
"""

from .archive import archive, package, read_archive

__all__ = ["archive", "package", "read_archive"]
