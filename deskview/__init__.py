"""
deskview: live desktop image streaming over HTTP multipart
Pushes JPEG frames to any number of connected viewers
"""

import subprocess
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

RELEASE = "1.0.0"


def _revision_get() -> str | None:
    """Short git revision when running from a source checkout"""
    checkout = Path(__file__).resolve().parent.parent
    if not (checkout / ".git").exists():
        return None
    try:
        result = subprocess.run(
            ["git", "rev-parse", "--short", "HEAD"],
            cwd=checkout,
            capture_output=True,
            text=True,
            timeout=1,
            check=True,
        )
    except (OSError, subprocess.SubprocessError):
        return None
    return result.stdout.strip() or None


def _version_get() -> str:
    """Installed distribution version, tagged with the checkout revision"""
    try:
        release = version("deskview")
    except PackageNotFoundError:
        release = RELEASE
    revision = _revision_get()
    return f"{release}+g{revision}" if revision else release


__version__ = _version_get()
