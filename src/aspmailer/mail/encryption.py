"""Launching of the optional external encryption helper (e.g. PGP).

The helper is started before the message is composed and is never waited
on: its exit status and output are not inspected.
"""

from __future__ import annotations

import logging
import shlex
import subprocess

from aspmailer.exceptions import EncryptionHelperError

log = logging.getLogger(__name__)


def launch_encryption_helper(path: str, params: str | None = None) -> subprocess.Popen[bytes]:
    """Start the helper at *path* with *params* and return immediately.

    Args:
        path: Executable to run.
        params: Command line arguments as a single string, split with
            POSIX shell rules.

    Returns:
        The running process. Callers must not block on it.

    Raises:
        EncryptionHelperError: If the arguments cannot be split or the
            process cannot be started.
    """
    try:
        args = shlex.split(params) if params else []
    except ValueError as e:
        raise EncryptionHelperError(f"Invalid encryption helper arguments {params!r}: {e}") from e

    command = [path, *args]
    log.debug("Starting encryption helper: %r", command)
    try:
        return subprocess.Popen(  # noqa: S603
            command,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
        )
    except OSError as e:
        raise EncryptionHelperError(f"Cannot start encryption helper '{path}': {e}") from e


__all__ = ["launch_encryption_helper"]
