"""Async subprocess helper.

Runs external commands (Mercurial) without blocking the event loop, so
issue lookups can proceed while a command is running.

Example:
    >>> from prune_landed.utils.async_subprocess import run_command
    >>> stdout, stderr, code = await run_command("hg", "-R", "/repo", "pull")
"""

import asyncio
import subprocess


async def run_command(*args: str, timeout: float | None = None) -> tuple[str, str, int]:
    """Run a command asynchronously without shell interpolation.

    Args:
        *args: Executable followed by its arguments.
        timeout: Seconds to wait before killing the process. None waits
            indefinitely.

    Returns:
        Tuple of (stdout, stderr, return_code), decoded as UTF-8 with
        replacement of invalid bytes.

    Raises:
        subprocess.CalledProcessError: If the command exits non-zero.
            stdout and stderr are attached to the exception.
        TimeoutError: If timeout is exceeded. The process is killed first.
        FileNotFoundError: If the executable is not found.
    """
    process = await asyncio.create_subprocess_exec(
        *args,
        stdin=asyncio.subprocess.DEVNULL,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )

    try:
        stdout_bytes, stderr_bytes = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except TimeoutError:
        process.kill()
        await process.wait()
        raise

    stdout = (stdout_bytes or b"").decode("utf-8", errors="replace")
    stderr = (stderr_bytes or b"").decode("utf-8", errors="replace")

    if process.returncode != 0:
        raise subprocess.CalledProcessError(process.returncode, args, stdout, stderr)

    return stdout, stderr, 0
