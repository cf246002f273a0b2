"""
Platform clipboard providers.

Each provider shells out to a platform tool to place a PNG file on the
system clipboard:

- macOS: osascript
- Linux: wl-copy (Wayland), then xclip or xsel (X11)
- Windows and WSL: PowerShell with System.Windows.Forms
"""

import os
import shutil
import subprocess
import sys
from dataclasses import dataclass
from typing import List, Optional

DEFAULT_TIMEOUT = 2.0


@dataclass(frozen=True)
class ClipboardResult:
    """Outcome of a clipboard copy."""
    success: bool
    error: Optional[str] = None


def is_wsl() -> bool:
    return bool(os.environ.get("WSL_DISTRO_NAME"))


def run_tool(args: List[str], stdin_path: Optional[str] = None, timeout: float = DEFAULT_TIMEOUT) -> ClipboardResult:
    """Run a clipboard command and map its exit status to a ClipboardResult."""
    try:
        if stdin_path is not None:
            with open(stdin_path, "rb") as f:
                proc = subprocess.run(args, stdin=f, capture_output=True, timeout=timeout)
        else:
            proc = subprocess.run(args, stdin=subprocess.DEVNULL, capture_output=True, timeout=timeout)
    except subprocess.TimeoutExpired:
        return ClipboardResult(success=False, error=f"{args[0]} timed out")
    except OSError as e:
        return ClipboardResult(success=False, error=str(e))

    if proc.returncode == 0:
        return ClipboardResult(success=True)

    stderr = proc.stderr.decode("utf-8", errors="replace").strip()
    return ClipboardResult(success=False, error=stderr or f"{args[0]} exited with code {proc.returncode}")


class ClipboardProvider:
    """Base class for platform providers."""
    name = "unknown"

    def is_available(self) -> bool:
        raise NotImplementedError

    def copy_image(self, image_path: str) -> ClipboardResult:
        raise NotImplementedError


class MacOSProvider(ClipboardProvider):
    name = "macOS (osascript)"

    def is_available(self) -> bool:
        return sys.platform == "darwin"

    def copy_image(self, image_path: str) -> ClipboardResult:
        script = f'set the clipboard to (read POSIX file "{image_path}" as «class PNGf»)'
        return run_tool(["osascript", "-e", script])


@dataclass(frozen=True)
class LinuxTool:
    cmd: str
    name: str
    uses_stdin: bool

    def args(self, image_path: str) -> List[str]:
        if self.cmd == "wl-copy":
            return ["wl-copy", "--type", "image/png"]
        if self.cmd == "xclip":
            return ["xclip", "-selection", "clipboard", "-t", "image/png", "-i", image_path]
        return ["xsel", "--clipboard", "--input", "--type", "image/png"]


# Wayland first, then X11
LINUX_TOOLS = (
    LinuxTool("wl-copy", "wl-copy (Wayland)", uses_stdin=True),
    LinuxTool("xclip", "xclip (X11)", uses_stdin=False),
    LinuxTool("xsel", "xsel (X11)", uses_stdin=True),
)

NO_LINUX_TOOL = "No clipboard tool found. Install wl-clipboard (Wayland) or xclip/xsel (X11)."


class LinuxProvider(ClipboardProvider):
    name = "Linux"

    def is_available(self) -> bool:
        if not sys.platform.startswith("linux") or is_wsl():
            return False
        return any(shutil.which(tool.cmd) for tool in LINUX_TOOLS)

    def copy_image(self, image_path: str) -> ClipboardResult:
        tried = []
        for tool in LINUX_TOOLS:
            if not shutil.which(tool.cmd):
                continue
            tried.append(tool.name)
            stdin_path = image_path if tool.uses_stdin else None
            result = run_tool(tool.args(image_path), stdin_path=stdin_path)
            if result.success:
                return result

        if not tried:
            return ClipboardResult(success=False, error=NO_LINUX_TOOL)
        return ClipboardResult(success=False, error=f"Clipboard copy failed. Tried: {', '.join(tried)}")


POWERSHELL_SCRIPT = """
Add-Type -AssemblyName System.Windows.Forms
Add-Type -AssemblyName System.Drawing
try {{
  $img = [System.Drawing.Image]::FromFile("{path}")
  [System.Windows.Forms.Clipboard]::SetImage($img)
  $img.Dispose()
  exit 0
}} catch {{
  Write-Error $_.Exception.Message
  exit 1
}}
""".strip()


class WindowsProvider(ClipboardProvider):

    @property
    def name(self) -> str:
        return "Windows (via WSL)" if is_wsl() else "Windows"

    def is_available(self) -> bool:
        return sys.platform == "win32" or is_wsl()

    def _windows_path(self, image_path: str) -> str:
        if not is_wsl():
            return image_path
        proc = subprocess.run(["wslpath", "-w", image_path], capture_output=True, timeout=DEFAULT_TIMEOUT)
        if proc.returncode != 0:
            raise OSError("Failed to convert WSL path to Windows path")
        return proc.stdout.decode("utf-8").strip()

    def copy_image(self, image_path: str) -> ClipboardResult:
        try:
            win_path = self._windows_path(image_path)
        except (OSError, subprocess.TimeoutExpired) as e:
            return ClipboardResult(success=False, error=str(e))

        script = POWERSHELL_SCRIPT.format(path=win_path.replace("\\", "\\\\"))
        return run_tool(["powershell.exe", "-NoProfile", "-NonInteractive", "-Command", script])


PROVIDERS = (MacOSProvider(), LinuxProvider(), WindowsProvider())
