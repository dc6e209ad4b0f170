import pytest
import requests

from solana_testnet import install as install_module
from solana_testnet.config import Settings
from solana_testnet.docker import Docker
from solana_testnet.errors import ManagerError
from solana_testnet.install import Installer, read_os_release


def os_release(tmp_path, os_id, version="22.04"):
    path = tmp_path / "os-release"
    path.write_text(f'# generated\nNAME="Some Linux"\nID={os_id}\nVERSION_ID="{version}"\n\n')
    return path


@pytest.fixture
def host(monkeypatch):
    monkeypatch.setattr(install_module.os, "geteuid", lambda: 0)
    monkeypatch.setattr(install_module.shutil, "which", lambda name: f"/usr/bin/{name}")
    monkeypatch.setattr(install_module.getpass, "getuser", lambda: "alice")


def installer(fake_run, path):
    return Installer(Docker(Settings()), os_release_path=str(path))


def test_read_os_release(tmp_path):
    values = read_os_release(os_release(tmp_path, "ubuntu"))
    assert values["ID"] == "ubuntu"
    assert values["VERSION_ID"] == "22.04"
    assert values["NAME"] == "Some Linux"


def test_detect_os_without_os_release(fake_run, tmp_path):
    with pytest.raises(ManagerError, match="Cannot detect OS"):
        installer(fake_run, tmp_path / "missing").detect_os()


def test_everything_installed(fake_run, host, tmp_path, capsys):
    fake_run.on("docker", "--version", stdout="Docker version 24.0.7\n")
    fake_run.on("docker", "compose", "version", stdout="Docker Compose version v2.24.0\n")
    installer(fake_run, os_release(tmp_path, "ubuntu")).install()

    out = capsys.readouterr().out
    assert "Docker is already installed: Docker version 24.0.7" in out
    assert "Docker Compose is already installed: Docker Compose version v2.24.0" in out
    assert "Prerequisites check completed!" in out
    assert not fake_run.ran("apt-get")
    assert not fake_run.ran("usermod")


def test_installs_docker_with_apt_and_sudo(fake_run, host, monkeypatch, tmp_path, capsys):
    monkeypatch.setattr(install_module.os, "geteuid", lambda: 1000)
    installer(fake_run, os_release(tmp_path, "ubuntu")).install()

    assert fake_run.ran("sudo", "apt-get", "install", "-y", "docker-ce", "docker-ce-cli")
    assert fake_run.ran("sudo", "apt-get", "install", "-y", "docker-compose-plugin")
    assert fake_run.ran("sudo", "usermod", "-aG", "docker", "alice")
    out = capsys.readouterr().out
    assert "Docker installed successfully!" in out
    assert "newgrp docker" in out


def test_installs_docker_with_yum(fake_run, host, tmp_path):
    installer(fake_run, os_release(tmp_path, "centos", "8")).install()
    assert fake_run.ran("yum-config-manager", "--add-repo")
    assert fake_run.ran("yum", "install", "-y", "docker-ce")
    assert not fake_run.ran("sudo")


def test_unsupported_os(fake_run, host, tmp_path):
    with pytest.raises(ManagerError, match="Unsupported OS: arch"):
        installer(fake_run, os_release(tmp_path, "arch")).install()


def test_starts_stopped_daemon(fake_run, host, tmp_path):
    fake_run.on("docker", "--version", stdout="Docker version 24.0.7\n")
    fake_run.on("docker", "info", responses=[(1, "", ""), (0, "", "")])
    installer(fake_run, os_release(tmp_path, "ubuntu")).install()
    assert fake_run.ran("systemctl", "start", "docker")


def test_daemon_never_starts(fake_run, host, tmp_path):
    fake_run.on("docker", "--version", stdout="Docker version 24.0.7\n")
    fake_run.on("docker", "info", returncode=1)
    with pytest.raises(ManagerError, match="Failed to start Docker daemon"):
        installer(fake_run, os_release(tmp_path, "ubuntu")).install()


def test_compose_download_failure(fake_run, host, monkeypatch, tmp_path):
    def offline(url, **kwargs):
        raise requests.exceptions.ConnectionError("offline")
    monkeypatch.setattr(install_module.requests, "get", offline)

    inst = installer(fake_run, os_release(tmp_path, "alpine", "3.19"))
    inst.detect_os()
    with pytest.raises(ManagerError, match="Failed to download Docker Compose: offline"):
        inst.ensure_compose()


def test_host_commands_bypass_docker_wrapper(fake_run, host, monkeypatch, tmp_path):
    through_docker = []
    docker_run = Docker.run

    def recording_run(self, argv, **kwargs):
        through_docker.append(list(argv))
        return docker_run(self, argv, **kwargs)
    monkeypatch.setattr(Docker, "run", recording_run)

    installer(fake_run, os_release(tmp_path, "ubuntu")).install()
    assert fake_run.ran("apt-get", "install", "-y", "docker-ce")
    assert through_docker
    assert all(argv[0] == "docker" for argv in through_docker)
