#!/usr/bin/env python3

"""Main CLI module for solana-testnet commands."""

import json
import os
import shutil
from pathlib import Path

import click

from . import __version__, console
from .errors import DockerError, KeyNotFoundError, ManagerError, RpcError
from .install import Installer
from .keys import keys
from .keystore import KEY_LABELS, KEY_TYPES
from .network import common_options, requires_container, setup_context
from .validation import parse_node_address


def ensure_container(net):
    """Start the container with compose when it is not running."""
    if net.docker.container_running():
        return
    console.warning("Container is not running. Starting container first...")
    net.docker.compose('up', '-d')
    if not net.docker.wait_for_container():
        raise DockerError(f"Container {net.settings.container} did not start.")


@click.group()
@click.version_option(version=__version__)
@common_options
@click.pass_context
def main(ctx, verbose, config_path, container, data_dir, rpc_url):
    """Solana private test network manager."""
    setup_context(ctx, verbose, config_path, container, data_dir, rpc_url)


main.add_command(keys)


@main.command('install')
@click.pass_obj
def install(net):
    """Check and install prerequisites (Docker, Docker Compose, curl, git)."""
    Installer(net.docker).install()


@main.command('init')
@click.pass_obj
def init_network(net):
    """Initialize a new network (creates keys and genesis)."""
    net.docker.check()
    console.info("Initializing new Solana test network...")

    for directory in net.settings.data_dirs:
        directory.mkdir(parents=True, exist_ok=True)

    console.info("Building Docker image...")
    net.docker.compose('build')

    console.info("Starting container...")
    net.docker.compose('up', '-d')
    if not net.docker.wait_for_container():
        raise DockerError(f"Container {net.settings.container} did not start.")

    for key_type in KEY_TYPES:
        console.info(f"Generating {KEY_LABELS[key_type].lower()} keypair...")
        net.tools.keygen_new(net.keystore.typed_container_path(key_type))

    console.info("Creating genesis configuration...")
    net.tools.genesis(*(net.keystore.typed_container_path(t) for t in ('validator', 'vote', 'stake')))

    console.info("Network initialized successfully!")
    identity = net.tools.pubkey(net.keystore.typed_container_path('validator'))
    console.info(f"Validator identity: {identity or 'N/A'}")


@main.command('validate')
@click.option('--stop', '-s', is_flag=True, help='Stop the validator instead of starting it')
@click.option('--reset/--no-reset', default=True, help='Reset the ledger on start (default: reset)')
@click.pass_obj
def validate(net, stop, reset):
    """Start the validator (or stop it with -s)."""
    net.docker.check()

    if stop:
        console.info("Stopping Solana validator...")
        if net.validator.stop():
            console.info("Validator stopped successfully!")
        return

    console.info("Starting Solana validator...")
    ensure_container(net)
    if net.validator.start(reset=reset):
        console.info("Validator started successfully!")
        console.info(f"RPC endpoint: {net.settings.rpc_url}")
        console.info("Check logs: solana-testnet logs -f")


@main.command('pause')
@click.pass_obj
@requires_container
def pause(net):
    """Pause the validator (SIGSTOP)."""
    console.info("Pausing Solana validator...")
    if net.validator.pause():
        console.info("Validator paused. Resume with: solana-testnet resume")


@main.command('resume')
@click.pass_obj
@requires_container
def resume(net):
    """Resume a paused validator (SIGCONT)."""
    console.info("Resuming Solana validator...")
    if net.validator.resume():
        console.info("Validator resumed.")


@main.command('stop')
@click.pass_obj
def stop_docker(net):
    """Stop the Docker container."""
    net.docker.check()
    console.info("Stopping Docker container...")
    net.docker.compose('down')
    console.info("Container stopped successfully!")


@main.command('purge')
@click.option('--yes', '-y', is_flag=True, help='Do not ask for confirmation')
@click.pass_obj
def purge(net, yes):
    """Delete all ledger data and configurations."""
    net.docker.check()
    console.warning("This will delete all ledger data and configurations!")
    if not yes and click.prompt("Are you sure? (yes/no)", default="no") != "yes":
        console.info("Purge cancelled.")
        return

    console.info("Stopping validator and container...")
    if net.docker.container_running():
        net.validator.stop()
    net.docker.compose('down')

    console.info("Removing data directories...")
    for directory in net.settings.data_dirs:
        try:
            shutil.rmtree(directory)
        except FileNotFoundError:
            pass
        except OSError as e:
            raise ManagerError(f"Cannot remove {directory}: {e}. Files written by the container may need sudo to delete.")

    console.info("Purge completed successfully!")


@main.command('connect')
@click.argument('address')
@click.pass_obj
def connect(net, address):
    """Restart the validator with another node (ip:port) as gossip entrypoint."""
    host, port = parse_node_address(address)
    net.docker.check()
    net.docker.require_container("Please start it first with: solana-testnet init")
    entrypoint = f"{host}:{port}"

    console.info(f"Connecting to node at {entrypoint}...")
    if net.validator.is_running():
        console.info("Stopping current validator...")
        net.validator.stop()

    console.info(f"Starting validator with connection to {entrypoint}...")
    net.validator.start(entrypoint=entrypoint, reset=False)
    console.info(f"Validator connected to {entrypoint} successfully!")


@main.command('set-key')
@click.argument('key_file', required=False)
@click.argument('key_type', required=False, type=click.Choice(list(KEY_TYPES)))
@click.pass_obj
def set_key(net, key_file, key_type):
    """Generate or import a validator, vote or stake keypair.

    Without KEY_FILE a new keypair is generated. KEY_TYPE defaults to
    validator; "set-key vote" generates a vote keypair.
    """
    if key_type is None and key_file in KEY_TYPES and not os.path.exists(key_file):
        key_file, key_type = None, key_file
    key_type = key_type or 'validator'
    label = KEY_LABELS[key_type]

    net.docker.check()
    console.info(f"Setting {key_type} keypair...")
    click.echo()
    net.docker.require_container("Please start it first with: solana-testnet init")

    host_path = net.keystore.typed_path(key_type)
    container_path = net.keystore.typed_container_path(key_type)
    host_path.parent.mkdir(parents=True, exist_ok=True)

    if not key_file:
        console.info(f"No key file provided. Generating new {key_type} keypair...")
        net.tools.keygen_new(container_path)
        console.info(f"New {label.lower()} keypair generated!")
    else:
        if not os.path.isfile(key_file):
            raise KeyNotFoundError(f"Key file not found: {key_file}")
        console.info(f"Importing {key_type} keypair from: {key_file}")
        if Path(key_file).resolve() != host_path.resolve():
            shutil.copyfile(key_file, host_path)
        net.docker.copy_to(key_file, container_path)
        console.info(f"{label} keypair imported successfully!")

    console.info(f"Public key: {net.tools.pubkey(container_path) or 'N/A'}")
    click.echo()
    console.warning("Note: If you've already initialized the network, you may need to run:")
    console.warning("  solana-testnet purge")
    console.warning("  solana-testnet init")
    console.warning("  solana-testnet validate")


@main.command('export-keys')
@click.argument('directory', required=False, default='.', type=click.Path(file_okay=False))
@click.pass_obj
def export_keys(net, directory):
    """Export the validator, vote and stake keypairs to DIRECTORY."""
    net.docker.check()
    console.info(f"Exporting validator keys to: {directory}")
    click.echo()
    net.docker.require_container()

    os.makedirs(directory, exist_ok=True)
    for key_type, label in KEY_LABELS.items():
        path = net.keystore.typed_path(key_type)
        if not path.is_file():
            console.warning(f"{label} keypair not found")
            continue
        dest = os.path.join(directory, path.name)
        shutil.copyfile(path, dest)
        console.info(f"{label} keypair exported: {dest}")
        pubkey = net.tools.pubkey(net.keystore.typed_container_path(key_type))
        console.info(f"  Public key: {pubkey or 'N/A'}")

    click.echo()
    console.info("Keys exported successfully!")
    console.warning("Keep these keys secure! Anyone with access to these files can control your validator.")


@main.command('show-keys')
@click.pass_obj
def show_keys(net):
    """Display validator keys information."""
    net.docker.check()
    console.info("Validator Keys Information:")
    click.echo()
    net.docker.require_container()

    for key_type, label in KEY_LABELS.items():
        path = net.keystore.typed_path(key_type)
        if path.is_file():
            console.heading(f"{label}:")
            click.echo(f"  Location: {path}")
            pubkey = net.tools.pubkey(net.keystore.typed_container_path(key_type))
            if pubkey:
                click.echo(f"  Public Key: {pubkey}")
        else:
            console.heading(f"{label}: Not found", ok=False)
        click.echo()


STATE_COLORS = {'running': 'green', 'paused': 'yellow', 'stopped': 'red'}


@main.command('status')
@click.option('--json', 'output_json', is_flag=True, help='Output status in JSON format')
@click.pass_obj
def status(net, output_json):
    """Show current network status."""
    net.docker.check()
    settings = net.settings

    container_running = net.docker.container_running()
    validator_state = net.validator.state() if container_running else 'stopped'

    version = slot = None
    if validator_state == 'running':
        try:
            version = net.rpc.get_version()
            slot = net.rpc.get_slot()
        except RpcError as e:
            if settings.verbose:
                console.warning(e.format_message())

    if output_json:
        data = {
            "container": "running" if container_running else "stopped",
            "validator": validator_state,
            "rpc_url": settings.rpc_url,
            "ledger_path": str(settings.ledger_dir),
            "config_path": str(settings.config_dir),
            "accounts_path": str(settings.accounts_dir),
        }
        if version:
            data["version"] = version
        if slot is not None:
            data["slot"] = slot
        click.echo(json.dumps(data, indent=2))
        return

    console.info("Solana Test Network Status:")
    click.echo()
    container_label = "Running" if container_running else "Stopped"
    click.echo(f"Container: {click.style(container_label, fg='green' if container_running else 'red')}")
    click.echo(f"Validator: {click.style(validator_state.title(), fg=STATE_COLORS[validator_state])}")
    if version:
        click.echo()
        click.echo(f"Cluster Version: {version}")
        click.echo(f"Current Slot: {slot}")
        click.echo(f"RPC endpoint: {settings.rpc_url}")

    click.echo()
    click.echo("Data directories:")
    click.echo(f"  Ledger: {settings.ledger_dir}")
    click.echo(f"  Config: {settings.config_dir}")
    click.echo(f"  Accounts: {settings.accounts_dir}")


@main.command('logs')
@click.option('--follow', '-f', is_flag=True, help='Follow log output')
@click.option('--lines', '-n', type=int, default=100, help='Number of lines to show')
@click.pass_obj
@requires_container
def show_logs(net, follow, lines):
    """Show the validator log."""
    log_file = net.settings.validator_log
    argv = ['tail', '-n', str(lines)]

    if follow:
        click.echo(f"📋 Following {log_file} (Ctrl-C to stop)")
        click.echo("-" * 80)
        try:
            net.docker.exec(argv + ['-f', log_file], capture=False)
        except KeyboardInterrupt:
            click.echo("\nStopped following logs.")
        return

    result = net.docker.exec(argv + [log_file])
    if result.returncode != 0:
        raise ManagerError(f"Log file not found: {log_file}. Has the validator been started?")
    click.echo(f"📋 Validator log: {log_file}")
    click.echo("-" * 80)
    click.echo(result.stdout.rstrip() if result.stdout.strip() else "No logs found or log file is empty.")


if __name__ == '__main__':
    main()
