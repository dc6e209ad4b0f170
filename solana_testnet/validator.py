"""Start, stop, pause and resume solana-test-validator inside the container.

The validator is found by matching its command line with ``pgrep -f``.
Pausing sends SIGSTOP and resuming sends SIGCONT, so a paused validator keeps
its ledger and sockets but stops producing blocks.
"""

import shlex

from . import console
from .errors import ManagerError
from .util import wait_until

PROCESS_NAME = 'solana-test-validator'


def parse_pids(output):
    return [int(token) for token in output.split() if token.isdigit()]


class Validator:
    def __init__(self, docker, settings, rpc):
        self.docker = docker
        self.settings = settings
        self.rpc = rpc

    def pids(self):
        result = self.docker.exec(['pgrep', '-f', PROCESS_NAME])
        if result.returncode != 0:
            return []
        return parse_pids(result.stdout)

    def is_running(self):
        return bool(self.pids())

    def is_paused(self):
        pids = self.pids()
        if not pids:
            return False
        result = self.docker.exec(['ps', '-o', 'stat=', '-p', ','.join(str(p) for p in pids)])
        states = result.stdout.split()
        return bool(states) and all(state.startswith('T') for state in states)

    def state(self):
        if not self.is_running():
            return 'stopped'
        return 'paused' if self.is_paused() else 'running'

    def command_line(self, entrypoint=None, reset=True):
        s = self.settings
        argv = [PROCESS_NAME,
                '--ledger', s.container_ledger_dir,
                '--rpc-port', str(s.rpc_port),
                '--rpc-bind-address', '0.0.0.0',
                '--gossip-port', str(s.gossip_port),
                '--gossip-host', '0.0.0.0',
                '--dynamic-port-range', s.dynamic_port_range,
                '--no-poh-speed-test']
        if entrypoint:
            argv += ['--entrypoint', entrypoint]
        if reset:
            argv.append('--reset')
        return argv

    def start(self, entrypoint=None, reset=True):
        """Launch the validator detached. Returns False if one is already running."""
        if self.is_running():
            console.warning("Validator is already running!")
            return False

        argv = self.command_line(entrypoint=entrypoint, reset=reset)
        script = f"exec {' '.join(shlex.quote(a) for a in argv)} > {shlex.quote(self.settings.validator_log)} 2>&1"
        console.info("Launching validator process...")
        self.docker.exec(['bash', '-c', script], detach=True, check=True)

        if not wait_until(self.is_running, self.settings.startup_timeout):
            raise ManagerError("Failed to start validator. Check logs with: solana-testnet logs")

        if not self.rpc.wait_until_healthy(self.settings.startup_timeout):
            console.warning(f"Validator process is up but RPC at {self.settings.rpc_url} is not healthy yet.")
        return True

    def stop(self):
        """Terminate the validator. Returns False if it was not running."""
        if not self.is_running():
            console.warning("Validator is not running.")
            return False

        # a stopped process only handles SIGTERM once continued
        if self.is_paused():
            self.docker.exec(['pkill', '-CONT', '-f', PROCESS_NAME])
        self.docker.exec(['pkill', '-f', PROCESS_NAME])

        if not wait_until(lambda: not self.is_running(), self.settings.startup_timeout):
            raise ManagerError(f"Validator did not exit after SIGTERM (pids: {self.pids()})")
        return True

    def pause(self):
        if not self.is_running():
            console.warning("Validator is not running.")
            return False
        if self.is_paused():
            console.warning("Validator is already paused.")
            return False
        self.docker.exec(['pkill', '-STOP', '-f', PROCESS_NAME], check=True)
        return True

    def resume(self):
        if not self.is_running():
            console.warning("Validator is not running.")
            return False
        if not self.is_paused():
            console.warning("Validator is not paused.")
            return False
        self.docker.exec(['pkill', '-CONT', '-f', PROCESS_NAME], check=True)
        return True
