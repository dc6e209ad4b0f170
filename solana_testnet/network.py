import functools

import click

from .config import CONFIG_FILE, load_settings
from .docker import Docker
from .keystore import Keystore
from .rpc import RpcClient
from .solana import SolanaTools
from .validator import Validator


class Testnet:
    """Everything a command needs to talk to one test network container."""

    def __init__(self, settings, overrides=None):
        self.settings = settings
        # options given on the command line, re-applied by nested groups
        self.overrides = dict(overrides or {})
        self.docker = Docker(settings)
        self.rpc = RpcClient(settings.rpc_url)
        self.tools = SolanaTools(self.docker, settings)
        self.keystore = Keystore(settings, self.tools)
        self.validator = Validator(self.docker, settings, self.rpc)


def common_options(f):
    """Options shared by the solana-testnet and solana-keys entry points."""
    options = [
        click.option('--verbose', '-v', is_flag=True, help='Echo every docker command before running it'),
        click.option('--config', 'config_path', type=click.Path(dir_okay=False),
                     help=f'Settings file (default: ./{CONFIG_FILE} when present)'),
        click.option('--container', help='Container name (default: solana-testnet)'),
        click.option('--data-dir', type=click.Path(file_okay=False), help='Host data directory (default: ./data)'),
        click.option('--rpc-url', help='Validator RPC URL as seen from the host'),
    ]
    for option in reversed(options):
        f = option(f)
    return f


def setup_context(ctx, verbose, config_path, container, data_dir, rpc_url):
    """Attach a Testnet to ``ctx.obj``, inheriting the parent group's settings.

    A nested group without ``--config`` starts from the parent's settings. With
    its own ``--config`` it reloads from that file, and the parent's command
    line options still apply on top.
    """
    parent = ctx.parent.obj if ctx.parent is not None else None
    inherited = parent.overrides if isinstance(parent, Testnet) else {}
    given = {'container': container, 'data_dir': data_dir, 'rpc_url': rpc_url, 'verbose': verbose or None}
    overrides = {**inherited, **{k: v for k, v in given.items() if v is not None}}

    if isinstance(parent, Testnet) and not config_path:
        settings = load_settings(base=parent.settings, **overrides)
    else:
        settings = load_settings(config_path, **overrides)
    ctx.obj = Testnet(settings, overrides)
    return ctx.obj


def requires_container(f):
    """Fail before running ``f`` unless the test network container is up."""
    @functools.wraps(f)
    def wrapper(net, *args, **kwargs):
        net.docker.require_container("Please start it first with: solana-testnet init")
        return f(net, *args, **kwargs)
    return wrapper
