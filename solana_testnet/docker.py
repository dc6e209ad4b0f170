"""Thin wrapper around the docker and docker compose command lines."""

import os
import shutil

from .errors import DockerError
from .util import run_command, wait_until


class Docker:
    def __init__(self, settings):
        self.settings = settings
        self._compose = None

    def run(self, argv, check=False, capture=True, cwd=None, env=None):
        return run_command(argv, verbose=self.settings.verbose, check=check, capture=capture, cwd=cwd, env=env)

    def check(self):
        if self.run(['docker', 'info']).returncode != 0:
            raise DockerError("Docker is not running. Please start Docker first.")

    def compose_command(self):
        """``docker compose`` when the plugin exists, else standalone ``docker-compose``."""
        if self._compose is None:
            if self.run(['docker', 'compose', 'version']).returncode == 0:
                self._compose = ['docker', 'compose']
            elif shutil.which('docker-compose'):
                self._compose = ['docker-compose']
            else:
                raise DockerError("Docker Compose is not installed. Run 'solana-testnet install' first.")
        return list(self._compose)

    def compose(self, *args):
        """Run a compose sub-command from the project directory, streaming its output.

        Container name, data directory and ports reach docker-compose.yml
        through its ${SOLANA_TESTNET_*} variables.
        """
        env = {**os.environ, **self.settings.compose_env()}
        return self.run(self.compose_command() + list(args), check=True, capture=False,
                        cwd=self.settings.project_dir, env=env)

    def container_running(self, name=None):
        name = name or self.settings.container
        result = self.run(['docker', 'ps', '--filter', f'name=^/{name}$', '--format', '{{.Names}}'])
        if result.returncode != 0:
            return False
        return name in result.stdout.split()

    def require_container(self, hint=None):
        if not self.container_running():
            message = f"Container {self.settings.container} is not running."
            if hint:
                message = f"{message} {hint}"
            raise DockerError(message)

    def wait_for_container(self, timeout=10):
        return wait_until(self.container_running, timeout)

    def exec(self, argv, detach=False, check=False, capture=True):
        """Run ``argv`` inside the test network container."""
        cmd = ['docker', 'exec']
        if detach:
            cmd.append('-d')
        cmd.append(self.settings.container)
        return self.run(cmd + list(argv), check=check, capture=capture)

    def copy_to(self, host_path, container_path):
        return self.run(['docker', 'cp', host_path, f"{self.settings.container}:{container_path}"], check=True)

    def copy_from(self, container_path, host_path):
        return self.run(['docker', 'cp', f"{self.settings.container}:{container_path}", host_path], check=True)
