"""Check for and install the host prerequisites: Docker, Docker Compose, curl and git."""

import getpass
import os
import platform
import shlex
import shutil
import tempfile

import click
import requests

from . import console
from .errors import ManagerError
from .util import run_command, wait_until

OS_RELEASE = '/etc/os-release'

PACKAGE_MANAGERS = {
    'ubuntu': 'apt',
    'debian': 'apt',
    'centos': 'yum',
    'rhel': 'yum',
    'fedora': 'yum',
}

DOCKER_PACKAGES = ['docker-ce', 'docker-ce-cli', 'containerd.io', 'docker-buildx-plugin', 'docker-compose-plugin']
COMPOSE_RELEASES_URL = 'https://api.github.com/repos/docker/compose/releases/latest'
COMPOSE_DOWNLOAD_URL = 'https://github.com/docker/compose/releases/download/{version}/docker-compose-{system}-{machine}'


def read_os_release(path=OS_RELEASE):
    """Parse an os-release file into a dict (values unquoted)."""
    values = {}
    with open(path, 'r') as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith('#') or '=' not in line:
                continue
            key, value = line.split('=', 1)
            parts = shlex.split(value)
            values[key] = parts[0] if parts else ''
    return values


class Installer:
    def __init__(self, docker, os_release_path=OS_RELEASE):
        self.docker = docker
        self.os_release_path = os_release_path
        self.os_id = None
        self.sudo = []

    def detect_os(self):
        if not os.path.exists(self.os_release_path):
            raise ManagerError("Cannot detect OS. Please install Docker and Docker Compose manually.")
        release = read_os_release(self.os_release_path)
        self.os_id = release.get('ID', '')
        console.info(f"Detected OS: {self.os_id} {release.get('VERSION_ID', '')}".rstrip())
        return self.os_id

    @property
    def package_manager(self):
        return PACKAGE_MANAGERS.get(self.os_id)

    @property
    def verbose(self):
        return self.docker.settings.verbose

    def run(self, *argv):
        return run_command(self.sudo + list(argv), verbose=self.verbose, check=True, capture=False)

    def shell(self, script):
        return run_command(['sh', '-c', script], verbose=self.verbose, check=True, capture=False)

    def version(self, argv):
        try:
            result = run_command(argv, verbose=self.verbose)
        except ManagerError:
            return None
        if result.returncode != 0:
            return None
        return result.stdout.strip().splitlines()[0] if result.stdout.strip() else None

    def install_packages(self, *packages):
        if self.package_manager == 'apt':
            self.run('apt-get', 'install', '-y', *packages)
        elif self.package_manager == 'yum':
            self.run('yum', 'install', '-y', *packages)
        else:
            console.warning(f"Cannot install {', '.join(packages)} on {self.os_id}. Please install manually.")

    def install_docker(self):
        sudo = ' '.join(self.sudo)
        if self.package_manager == 'apt':
            keyring = '/etc/apt/keyrings/docker.gpg'
            repo = f"https://download.docker.com/linux/{self.os_id}"
            self.run('apt-get', 'update')
            self.run('apt-get', 'install', '-y', 'ca-certificates', 'curl', 'gnupg', 'lsb-release')
            self.run('install', '-m', '0755', '-d', '/etc/apt/keyrings')
            self.shell(f"curl -fsSL {repo}/gpg | {sudo} gpg --dearmor --yes -o {keyring}")
            self.run('chmod', 'a+r', keyring)
            self.shell(f'echo "deb [arch=$(dpkg --print-architecture) signed-by={keyring}] {repo} $(lsb_release -cs) stable"'
                       f" | {sudo} tee /etc/apt/sources.list.d/docker.list > /dev/null")
            self.run('apt-get', 'update')
            self.run('apt-get', 'install', '-y', *DOCKER_PACKAGES)
        elif self.package_manager == 'yum':
            self.run('yum', 'install', '-y', 'yum-utils')
            self.run('yum-config-manager', '--add-repo', 'https://download.docker.com/linux/centos/docker-ce.repo')
            self.run('yum', 'install', '-y', *DOCKER_PACKAGES)
            self.run('systemctl', 'start', 'docker')
            self.run('systemctl', 'enable', 'docker')
        else:
            raise ManagerError(f"Unsupported OS: {self.os_id}. "
                               "Please install Docker manually from: https://docs.docker.com/engine/install/")
        console.info("Docker installed successfully!")

    def ensure_daemon(self):
        if self.docker.run(['docker', 'info']).returncode == 0:
            console.info("Docker daemon is running.")
            return
        console.warning("Docker daemon is not running. Starting Docker...")
        self.run('systemctl', 'start', 'docker')
        self.run('systemctl', 'enable', 'docker')
        if not wait_until(lambda: self.docker.run(['docker', 'info']).returncode == 0, 10):
            raise ManagerError("Failed to start Docker daemon. Please start it manually.")
        console.info("Docker daemon started successfully!")

    def install_compose_standalone(self):
        response = requests.get(COMPOSE_RELEASES_URL, timeout=30)
        response.raise_for_status()
        version = response.json()['tag_name']
        url = COMPOSE_DOWNLOAD_URL.format(version=version, system=platform.system(), machine=platform.machine())
        console.info(f"Downloading Docker Compose {version}...")
        with requests.get(url, stream=True, timeout=60) as download, tempfile.NamedTemporaryFile(delete=False) as f:
            download.raise_for_status()
            for chunk in download.iter_content(chunk_size=1 << 16):
                f.write(chunk)
        try:
            self.run('install', '-m', '0755', f.name, '/usr/local/bin/docker-compose')
        finally:
            os.unlink(f.name)

    def ensure_compose(self):
        version = self.version(['docker', 'compose', 'version']) or self.version(['docker-compose', '--version'])
        if version:
            console.info(f"Docker Compose is already installed: {version}")
            return
        console.warning("Docker Compose is not installed. Installing Docker Compose...")
        if self.package_manager == 'apt':
            self.run('apt-get', 'update')
            self.install_packages('docker-compose-plugin')
        elif self.package_manager == 'yum':
            self.install_packages('docker-compose-plugin')
        else:
            try:
                self.install_compose_standalone()
            except requests.exceptions.RequestException as e:
                raise ManagerError(f"Failed to download Docker Compose: {e}")
        console.info("Docker Compose installed successfully!")

    def ensure_docker_group(self):
        user = getpass.getuser()
        groups = run_command(['id', '-nG', user], verbose=self.verbose).stdout.split()
        if 'docker' in groups:
            console.info(f"User {user} is already in docker group.")
            return
        self.run('usermod', '-aG', 'docker', user)
        console.warning(f"User {user} added to docker group.")
        console.warning("You need to log out and log back in for this to take effect.")
        console.warning("Or run: newgrp docker")

    def ensure_tool(self, name):
        if shutil.which(name):
            console.info(f"{name} is installed.")
            return
        console.warning(f"{name} is not installed. Installing...")
        self.install_packages(name)

    def install(self):
        console.info("Checking and installing prerequisites...")
        click.echo()
        self.detect_os()

        if os.geteuid() != 0:
            console.warning("This script needs sudo privileges to install packages.")
            self.sudo = ['sudo']

        console.info("Checking Docker...")
        docker_version = self.version(['docker', '--version'])
        if docker_version:
            console.info(f"Docker is already installed: {docker_version}")
        else:
            console.warning("Docker is not installed. Installing Docker...")
            self.install_docker()

        console.info("Checking Docker daemon...")
        self.ensure_daemon()

        console.info("Checking Docker Compose...")
        self.ensure_compose()

        if self.sudo:
            console.info("Adding current user to docker group...")
            self.ensure_docker_group()

        console.info("Checking additional tools...")
        self.ensure_tool('curl')
        self.ensure_tool('git')

        click.echo()
        console.info("Prerequisites check completed!")
        click.echo()
        console.info("Summary:")
        summary = [
            ('Docker', ['docker', '--version']),
            ('Docker Compose', ['docker', 'compose', 'version']),
            ('curl', ['curl', '--version']),
            ('git', ['git', '--version']),
        ]
        for label, argv in summary:
            click.echo(f"  ✓ {label}: {self.version(argv) or 'Installed'}")
        click.echo()
        console.info("You can now run: solana-testnet init")
