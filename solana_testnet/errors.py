"""Exceptions raised by solana-testnet commands."""

import click


class ManagerError(click.ClickException):
    """Base error. Click prints it as ``[ERROR] <message>`` and exits with 1."""

    def show(self, file=None):
        click.echo(f"{click.style('[ERROR]', fg='red')} {self.format_message()}", err=True)


class DockerError(ManagerError):
    pass


class ValidationError(ManagerError):
    pass


class KeyNotFoundError(ManagerError):
    pass


class RpcError(ManagerError):
    pass


class CommandFailed(ManagerError):
    """An external command exited with a non-zero status."""

    def __init__(self, argv, returncode, stderr="", message=None):
        self.argv = list(argv)
        self.returncode = returncode
        self.stderr = (stderr or "").strip()
        if message is None:
            message = f"Command failed with exit code {returncode}: {' '.join(self.argv)}"
        if self.stderr:
            message = f"{message}\n{self.stderr}"
        super().__init__(message)
