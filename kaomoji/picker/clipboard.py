"""System clipboard access with a single platform-tool fallback."""

import asyncio
import os
import shutil
import subprocess
from typing import List, Optional
import pyperclip
from loguru import logger

# Tried in order by the fallback path on non-Windows platforms
FALLBACK_COMMANDS = [
    ["wl-copy"],
    ["xclip", "-selection", "clipboard"],
    ["xsel", "--clipboard", "--input"],
    ["pbcopy"],
]


def _fallback_command() -> Optional[List[str]]:
    if os.name == 'nt':
        return ["clip"]
    for cmd in FALLBACK_COMMANDS:
        if shutil.which(cmd[0]):
            return cmd
    return None


class SystemClipboard:
    """
    Clipboard collaborator for the copy orchestrator.

    write() goes through pyperclip; write_fallback() pipes the text to a
    platform clipboard tool. Both report success as a bool and never raise.
    """

    def __init__(self, timeout: float = 2.0):
        self.timeout = timeout

    async def write(self, text: str) -> bool:
        try:
            await asyncio.to_thread(pyperclip.copy, text)
            return True
        except pyperclip.PyperclipException as e:
            logger.warning(f"pyperclip copy failed: {e}")
            return False

    async def write_fallback(self, text: str) -> bool:
        cmd = _fallback_command()
        if cmd is None:
            logger.warning("No clipboard command available for fallback copy")
            return False
        try:
            result = await asyncio.to_thread(
                subprocess.run,
                cmd,
                input=text.encode("utf-8"),
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                timeout=self.timeout
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.warning(f"Fallback copy via {cmd[0]} failed: {e}")
            return False
        if result.returncode != 0:
            logger.warning(f"Fallback copy via {cmd[0]} exited with {result.returncode}")
            return False
        return True
