"""Tagged status messages, printed the same way by every command."""

import shlex

import click


def info(message):
    click.echo(f"{click.style('[INFO]', fg='green')} {message}")


def warning(message):
    click.echo(f"{click.style('[WARNING]', fg='yellow')} {message}")


def error(message):
    click.echo(f"{click.style('[ERROR]', fg='red')} {message}", err=True)


def heading(message, ok=True):
    click.secho(message, fg='green' if ok else 'red')


def trace(argv):
    """Echo an external command before it runs (verbose mode)."""
    click.echo(click.style(f"$ {' '.join(shlex.quote(str(a)) for a in argv)}", dim=True), err=True)
