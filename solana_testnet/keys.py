"""Key management commands: list, generate, import/export, balances, airdrops, transfers."""

import shutil
import sys

import click

from . import __version__, console
from .errors import CommandFailed, ManagerError, RpcError, ValidationError
from .network import common_options, requires_container, setup_context
from .util import timestamp, timestamped
from .validation import sanitize_key_name, validate_amount, validate_pubkey, validate_slot

IMPORT_TMP_PATH = '/tmp/import-key.json'


def index_option(f):
    return click.option('--index', '-n', type=int, help='Key index as shown by "list"')(f)


def pubkey_option(*decls):
    def decorator(f):
        return click.option(*decls, 'pubkey', help='Base58 public key')(f)
    return decorator


def _require_one(index, pubkey, pubkey_flag='-k'):
    if (index is None) == (pubkey is None):
        raise click.UsageError(f"Use -n <index> or {pubkey_flag} <pubkey> (exactly one).")


def _local_key(net, index, pubkey, pubkey_flag='-k'):
    """Resolve -n/-k to a host key file that exists in the keystore."""
    _require_one(index, pubkey, pubkey_flag)
    if index is not None:
        return net.keystore.by_index(index)
    return net.keystore.by_pubkey(pubkey)


@click.group()
@click.version_option(version=__version__)
@common_options
@click.pass_context
def keys(ctx, verbose, config_path, container, data_dir, rpc_url):
    """Solana key manager: keys, balances, airdrops and transfers."""
    setup_context(ctx, verbose, config_path, container, data_dir, rpc_url)


@keys.command('list')
@click.pass_obj
@requires_container
def list_keys(net):
    """List all available keys with indices."""
    console.info("Available Keys:")
    click.echo()

    files = net.keystore.key_files()
    if not files:
        console.warning("No keys found.")
        return

    for index, path in enumerate(files, 1):
        click.echo(f"[{index}] {path.name}")
        click.echo(f"    Path: {path}")
        click.echo(f"    Public Key: {net.keystore.pubkey(path) or 'N/A'}")
        click.echo()


@keys.command('generate')
@click.argument('name', required=False)
@click.option('--airdrop', 'airdrop_amount', help='Airdrop this many SOL to the new key')
@click.pass_obj
@requires_container
def generate(net, name, airdrop_amount):
    """Generate a new keypair (default name: wallet-<timestamp>)."""
    name = sanitize_key_name(name or timestamped('wallet'))
    path = net.settings.accounts_dir / f"{name}.json"

    if path.exists():
        console.warning(f"Key file already exists: {path}")
        if not click.confirm("Overwrite?", default=False):
            console.info("Key generation cancelled.")
            return

    console.info(f"Generating new keypair: {name}")
    click.echo()
    pubkey = net.keystore.generate(path)

    console.info("Keypair generated successfully!")
    click.echo()
    click.echo(f"Name: {name}")
    click.echo(f"File: {path}")
    click.echo(f"Public Key: {pubkey or 'N/A'}")
    click.echo()
    console.warning(f"Save this information! The private key is stored in: {path}")

    if airdrop_amount is None and sys.stdin.isatty():
        click.echo()
        if click.confirm("Airdrop test SOL to this address?", default=False):
            airdrop_amount = click.prompt("Amount (SOL)", default=net.settings.default_airdrop)
    if airdrop_amount is None or pubkey is None:
        return

    amount = validate_amount(airdrop_amount)
    console.info(f"Requesting airdrop of {amount} SOL...")
    result = net.tools.airdrop(amount, pubkey)
    if result.returncode != 0:
        console.error("Airdrop failed. You can request it later with: solana-keys airdrop -k " + pubkey)
        return
    console.info("Airdrop successful!")
    click.echo(f"New Balance: {net.tools.balance(pubkey) or 'N/A'}")


@keys.command('export')
@index_option
@pubkey_option('--pubkey', '-pubkey', '-p')
@click.argument('output', required=False, type=click.Path(dir_okay=False))
@click.pass_obj
@requires_container
def export_key(net, index, pubkey, output):
    """Export a private key by index or public key to a JSON file."""
    path = _local_key(net, index, pubkey, pubkey_flag='--pubkey')
    if index is not None:
        console.info(f"Exporting key #{index}...")
    else:
        console.info(f"Exporting key with public key: {pubkey}...")

    output = output or f"exported-{path.stem}-{timestamp()}.json"

    click.echo()
    console.info("Exporting private key...")
    click.echo(f"Source: {path.name}")
    click.echo(f"Output: {output}")
    click.echo()

    try:
        shutil.copyfile(path, output)
    except OSError as e:
        raise ManagerError(f"Failed to export private key: {e}")

    console.info("Private key exported successfully!")
    click.echo()
    click.echo(f"File: {output}")
    click.echo(f"Public Key: {net.keystore.pubkey(path) or 'N/A'}")
    click.echo()
    console.warning("SECURITY WARNING")
    console.warning("This file contains your PRIVATE KEY!")
    console.warning("Keep it secure and never share it with anyone!")
    console.warning("Anyone with this file can control your funds!")


@keys.command('import')
@click.argument('import_file', type=click.Path(exists=True, dir_okay=False))
@click.argument('name', required=False)
@click.pass_obj
@requires_container
def import_key(net, import_file, name):
    """Import a private key from a JSON keypair file."""
    console.info(f"Importing keypair from: {import_file}")
    click.echo()

    net.docker.copy_to(import_file, IMPORT_TMP_PATH)
    try:
        pubkey = net.tools.pubkey(IMPORT_TMP_PATH)
        if pubkey is None:
            raise ValidationError("Invalid keypair file format.")

        name = sanitize_key_name(name or timestamped('imported'))
        dest = net.settings.accounts_dir / f"{name}.json"
        if dest.exists():
            console.warning(f"Key file already exists: {dest}")
            if not click.confirm("Overwrite?", default=False):
                console.info("Import cancelled.")
                return

        dest.parent.mkdir(parents=True, exist_ok=True)
        net.docker.copy_from(IMPORT_TMP_PATH, dest)
    finally:
        net.docker.exec(['rm', '-f', IMPORT_TMP_PATH])

    console.info("Keypair imported successfully!")
    click.echo()
    click.echo(f"Name: {name}")
    click.echo(f"File: {dest}")
    click.echo(f"Public Key: {pubkey}")
    click.echo()

    current = net.tools.balance(pubkey)
    if current is not None:
        click.echo(f"Current Balance: {current}")


@keys.command('balance')
@index_option
@pubkey_option('--pubkey', '-k')
@click.pass_obj
@requires_container
def balance(net, index, pubkey):
    """Show the balance of a key by index or public key."""
    _require_one(index, pubkey)
    if index is not None:
        path = net.keystore.by_index(index)
        console.info(f"Getting balance for key #{index}...")
        click.echo()
        pubkey = net.keystore.pubkey(path)
        amount = net.tools.balance(net.keystore.to_container_path(path))
        if amount is None:
            raise ManagerError(f"Failed to get balance for key #{index}")
        click.echo(f"Key #{index}: {path.name}")
    else:
        validate_pubkey(pubkey)
        console.info(f"Getting balance for public key: {pubkey}")
        click.echo()
        amount = net.tools.balance(pubkey)
        if amount is None:
            raise ManagerError(f"Failed to get balance for public key: {pubkey}")

    click.echo(f"Public Key: {pubkey or 'N/A'}")
    click.echo(f"Balance: {amount}")


@keys.command('airdrop')
@index_option
@pubkey_option('--pubkey', '-k')
@click.argument('amount', required=False)
@click.pass_obj
@requires_container
def airdrop(net, index, pubkey, amount):
    """Airdrop SOL to a key by index or public key (default: 100 SOL)."""
    _require_one(index, pubkey)
    amount = validate_amount(amount or net.settings.default_airdrop)

    if index is not None:
        path = net.keystore.by_index(index)
        pubkey = net.keystore.pubkey(path)
        if pubkey is None:
            raise ManagerError(f"Cannot read public key of key #{index}: {path}")
        console.info(f"Airdropping to key #{index}...")
    else:
        validate_pubkey(pubkey)
        console.info(f"Airdropping to public key: {pubkey}...")

    click.echo()
    click.echo(f"Target: {pubkey}")
    click.echo(f"Amount: {amount} SOL")
    click.echo()
    console.info("Requesting airdrop...")

    result = net.tools.airdrop(amount, pubkey)
    if result.returncode != 0:
        raise CommandFailed(result.args, result.returncode, result.stderr or result.stdout, message="Airdrop failed!")

    console.info("Airdrop successful!")
    click.echo(result.stdout.rstrip())
    new_balance = net.tools.balance(pubkey)
    if new_balance is not None:
        click.echo()
        click.echo(f"New Balance: {new_balance}")


@keys.command('send')
@index_option
@pubkey_option('--pubkey', '-k')
@click.option('--receiver', '-r', required=True, help='Receiver public key')
@click.option('--amount', '-a', required=True, help='Amount of SOL to send')
@click.pass_obj
@requires_container
def send(net, index, pubkey, receiver, amount):
    """Send SOL from a local key (by index or public key) to a receiver."""
    validate_pubkey(receiver)
    amount = validate_amount(amount)
    sender = _local_key(net, index, pubkey)
    if index is not None:
        console.info(f"Sending from key #{index}...")
    else:
        console.info(f"Sending from public key: {pubkey}...")

    click.echo()
    click.echo(f"Sender: {sender.name}")
    click.echo(f"Receiver: {receiver}")
    click.echo(f"Amount: {amount} SOL")
    click.echo()

    result = net.tools.transfer(net.keystore.to_container_path(sender), receiver, amount)
    if result.returncode != 0:
        raise CommandFailed(result.args, result.returncode, result.stderr or result.stdout, message="Transfer failed!")
    console.info("Transfer successful!")
    click.echo(result.stdout.rstrip())


def _show_epoch_info(info):
    slots_in_epoch = info.get('slotsInEpoch') or 0
    slot_index = info.get('slotIndex', 0)
    click.echo(f"  Epoch: {info.get('epoch')}")
    click.echo(f"  Slot Index: {slot_index}/{slots_in_epoch}")
    if slots_in_epoch:
        click.echo(f"  Epoch Completed: {100.0 * slot_index / slots_in_epoch:.3f}%")
    click.echo(f"  Absolute Slot: {info.get('absoluteSlot')}")


@keys.command('block')
@click.argument('slot', required=False)
@click.pass_obj
@requires_container
def block(net, slot):
    """Show current block/slot information, or the block at SLOT."""
    if slot is not None:
        slot = validate_slot(slot)
        console.info(f"Block Details for Slot: {slot}")
        click.echo()
        click.echo(net.tools.block(slot).rstrip())
        return

    console.info("Current Block Information:")
    click.echo()
    try:
        current_slot = net.rpc.get_slot()
        block_height = net.rpc.get_block_height()
        epoch_info = net.rpc.get_epoch_info()
        tx_count = net.rpc.get_transaction_count()
    except RpcError as e:
        raise ManagerError(f"Cannot query the validator: {e.format_message()}")

    click.echo(f"Current Slot: {current_slot}")
    click.echo(f"Block Height: {block_height}")
    click.echo()
    click.echo("Epoch Information:")
    _show_epoch_info(epoch_info or {})
    click.echo()
    click.echo(f"Total Transactions: {tx_count}")


def main():
    keys(prog_name='solana-keys')
