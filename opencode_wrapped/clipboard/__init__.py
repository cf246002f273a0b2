"""
Copy the rendered PNG to the system clipboard.

Best-effort: failures come back as a ClipboardResult, never as exceptions.
"""

import os
import sys
import tempfile
from typing import Iterable, Optional

from .providers import PROVIDERS, ClipboardProvider, ClipboardResult, NO_LINUX_TOOL


def get_provider(providers: Iterable[ClipboardProvider] = PROVIDERS) -> Optional[ClipboardProvider]:
    """First provider available on this platform."""
    for provider in providers:
        if provider.is_available():
            return provider
    return None


def unsupported_platform_error() -> str:
    if sys.platform.startswith("linux"):
        return NO_LINUX_TOOL
    return f"Clipboard not supported on platform: {sys.platform}"


def copy_image_to_clipboard(
    png: bytes,
    filename: str,
    providers: Iterable[ClipboardProvider] = PROVIDERS,
) -> ClipboardResult:
    """Copy PNG bytes to the clipboard via a temporary file.

    Args:
        png: Image data
        filename: Name the unique temporary file is derived from
        providers: Providers to try, in order

    Returns:
        ClipboardResult describing success or the failure reason
    """
    provider = get_provider(providers)
    if provider is None:
        return ClipboardResult(success=False, error=unsupported_platform_error())

    stem, suffix = os.path.splitext(filename)
    try:
        fd, temp_path = tempfile.mkstemp(prefix=f"{stem}-", suffix=suffix or ".png")
    except OSError as e:
        return ClipboardResult(success=False, error=str(e))

    try:
        with os.fdopen(fd, "wb") as f:
            f.write(png)
        return provider.copy_image(temp_path)
    except OSError as e:
        return ClipboardResult(success=False, error=str(e))
    finally:
        try:
            os.unlink(temp_path)
        except OSError:
            pass


__all__ = ["ClipboardResult", "copy_image_to_clipboard", "get_provider"]
