import subprocess
import time
from datetime import datetime

from . import console
from .errors import CommandFailed, ManagerError


def timestamp(now=None):
    return (now or datetime.now()).strftime('%Y%m%d-%H%M%S')


def timestamped(prefix, now=None):
    return f"{prefix}-{timestamp(now)}"


def run_command(argv, verbose=False, check=False, capture=True, cwd=None, env=None):
    """Run a host command and return the CompletedProcess.

    With ``check`` a non-zero exit raises CommandFailed. Output is captured
    as text unless ``capture`` is False (streamed commands).
    """
    argv = [str(a) for a in argv]
    if verbose:
        console.trace(argv)
    try:
        result = subprocess.run(argv, capture_output=capture, text=True, cwd=cwd, env=env)
    except FileNotFoundError:
        raise ManagerError(f"{argv[0]} command not found. Run 'solana-testnet install' to install prerequisites.")
    if check and result.returncode != 0:
        raise CommandFailed(argv, result.returncode, result.stderr if capture else "")
    return result


def wait_until(predicate, timeout, interval=1.0):
    """Poll ``predicate`` until it returns truthy or ``timeout`` seconds of polling pass."""
    attempts = max(1, int(timeout / interval))
    for attempt in range(attempts):
        if predicate():
            return True
        if attempt < attempts - 1:
            time.sleep(interval)
    return False
