"""
Inline image display for terminals that support it.

Supports the iTerm2 inline image protocol (iTerm2, WezTerm) and the kitty
graphics protocol. Other terminals are reported as unsupported.
"""

import base64
import os
import sys
from typing import Mapping, Optional, TextIO

ITERM_PROGRAMS = {"iTerm.app", "WezTerm"}
KITTY_CHUNK_SIZE = 4096


def get_terminal_name(env: Optional[Mapping[str, str]] = None) -> str:
    env = os.environ if env is None else env
    return env.get("TERM_PROGRAM") or env.get("TERM") or "unknown"


def detect_protocol(env: Optional[Mapping[str, str]] = None) -> Optional[str]:
    """Return "iterm", "kitty" or None for the current terminal."""
    env = os.environ if env is None else env
    if env.get("TERM_PROGRAM") in ITERM_PROGRAMS:
        return "iterm"
    if env.get("TERM") == "xterm-kitty" or env.get("KITTY_WINDOW_ID"):
        return "kitty"
    return None


def encode_iterm(png: bytes, width: str = "20%") -> str:
    payload = base64.b64encode(png).decode("ascii")
    return (
        f"\033]1337;File=inline=1;size={len(png)};width={width};"
        f"preserveAspectRatio=1:{payload}\a"
    )


def encode_kitty(png: bytes) -> str:
    """Kitty transmits base64 PNG data in chunks; ``m=1`` marks more to come."""
    payload = base64.b64encode(png).decode("ascii")
    chunks = [payload[i:i + KITTY_CHUNK_SIZE] for i in range(0, len(payload), KITTY_CHUNK_SIZE)] or [""]

    parts = []
    for index, chunk in enumerate(chunks):
        more = 1 if index < len(chunks) - 1 else 0
        control = f"a=T,f=100,m={more}" if index == 0 else f"m={more}"
        parts.append(f"\033_G{control};{chunk}\033\\")
    return "".join(parts)


def display_in_terminal(
    png: bytes,
    stream: Optional[TextIO] = None,
    env: Optional[Mapping[str, str]] = None,
) -> bool:
    """Write ``png`` inline to the terminal.

    Returns:
        True if an image escape sequence was written, False when the
        terminal is unsupported or the stream is not a TTY
    """
    stream = stream or sys.stdout
    protocol = detect_protocol(env)
    if protocol is None or not stream.isatty():
        return False

    encoded = encode_iterm(png) if protocol == "iterm" else encode_kitty(png)
    stream.write(encoded + "\n")
    stream.flush()
    return True
