"""Settings for the test network: defaults, testnet.yaml, environment, CLI."""

import os
from dataclasses import dataclass, fields, replace
from pathlib import Path, PurePosixPath

import yaml

from .errors import ValidationError

CONFIG_FILE = 'testnet.yaml'

ENV_CONFIG = 'SOLANA_TESTNET_CONFIG'
ENV_OVERRIDES = {
    'container': 'SOLANA_TESTNET_CONTAINER',
    'data_dir': 'SOLANA_TESTNET_DATA_DIR',
    'rpc_url': 'SOLANA_TESTNET_RPC_URL',
    'rpc_port': 'SOLANA_TESTNET_RPC_PORT',
    'gossip_port': 'SOLANA_TESTNET_GOSSIP_PORT',
    'dynamic_port_range': 'SOLANA_TESTNET_DYNAMIC_PORT_RANGE',
}


@dataclass(frozen=True)
class Settings:
    container: str = 'solana-testnet'
    data_dir: str = './data'
    project_dir: str = '.'
    container_root: str = '/solana'
    rpc_url: str = 'http://localhost:8899'
    rpc_port: int = 8899
    gossip_port: int = 8001
    dynamic_port_range: str = '8002-8020'
    faucet_lamports: int = 500000000000000000
    default_airdrop: str = '100'
    startup_timeout: int = 30
    verbose: bool = False

    @property
    def ledger_dir(self):
        return Path(self.data_dir) / 'ledger'

    @property
    def config_dir(self):
        return Path(self.data_dir) / 'config'

    @property
    def accounts_dir(self):
        return Path(self.data_dir) / 'accounts'

    @property
    def data_dirs(self):
        return [self.ledger_dir, self.config_dir, self.accounts_dir]

    @property
    def pubsub_port(self):
        return self.rpc_port + 1

    def compose_env(self):
        """Variables substituted into docker-compose.yml.

        The data directory is made absolute so the bind mounts do not depend
        on the directory compose runs from.
        """
        return {
            'SOLANA_TESTNET_CONTAINER': self.container,
            'SOLANA_TESTNET_DATA_DIR': str(Path(self.data_dir).resolve()),
            'SOLANA_TESTNET_ROOT': self.container_root,
            'SOLANA_TESTNET_RPC_PORT': str(self.rpc_port),
            'SOLANA_TESTNET_PUBSUB_PORT': str(self.pubsub_port),
            'SOLANA_TESTNET_GOSSIP_PORT': str(self.gossip_port),
            'SOLANA_TESTNET_DYNAMIC_PORT_RANGE': self.dynamic_port_range,
        }

    def container_path(self, *parts):
        return str(PurePosixPath(self.container_root, *parts))

    @property
    def container_ledger_dir(self):
        return self.container_path('ledger')

    @property
    def container_config_dir(self):
        return self.container_path('config')

    @property
    def container_accounts_dir(self):
        return self.container_path('accounts')

    @property
    def validator_log(self):
        return self.container_path('validator.log')

    @property
    def container_rpc_url(self):
        """RPC URL as seen from inside the container."""
        return f"http://localhost:{self.rpc_port}"


_FIELD_TYPES = {f.name: f.type for f in fields(Settings)}


def _coerce(key, value):
    expected = _FIELD_TYPES[key]
    if expected in (int, 'int'):
        if isinstance(value, bool):
            raise ValidationError(f"Invalid value for '{key}': {value!r} (expected an integer)")
        try:
            return int(value)
        except (TypeError, ValueError):
            raise ValidationError(f"Invalid value for '{key}': {value!r} (expected an integer)")
    if expected in (bool, 'bool'):
        if isinstance(value, bool):
            return value
        raise ValidationError(f"Invalid value for '{key}': {value!r} (expected true or false)")
    if value is None or isinstance(value, (dict, list)):
        raise ValidationError(f"Invalid value for '{key}': {value!r}")
    return str(value)


def read_config_file(path):
    """Read a testnet.yaml file into a dict of Settings fields."""
    try:
        with open(path, 'r') as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ValidationError(f"Cannot parse config file {path}: {e}")
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError(f"Config file {path} must contain a mapping")

    values = {}
    for key, value in data.items():
        key = str(key).replace('-', '_')
        if key not in _FIELD_TYPES or key == 'verbose':
            raise ValidationError(f"Unknown setting '{key}' in {path}")
        values[key] = _coerce(key, value)
    return values


def _check_port_range(value):
    try:
        low, high = (int(p) for p in value.split('-'))
    except ValueError:
        raise ValidationError(f"Invalid dynamic port range: {value} (expected LOW-HIGH)")
    if not 0 < low < high <= 65535:
        raise ValidationError(f"Invalid dynamic port range: {value}")


def load_settings(config_path=None, environ=None, base=None, **overrides):
    """Build Settings from defaults, a YAML file, the environment and overrides.

    Overrides set to None are ignored so click options can be passed through
    unchanged. Unless given explicitly, ``rpc_url`` follows ``rpc_port``.
    """
    if environ is None:
        environ = os.environ

    values = {}
    if base is None:
        config_path = config_path or environ.get(ENV_CONFIG)
        if config_path:
            if not os.path.exists(config_path):
                raise ValidationError(f"Config file not found: {config_path}")
            values.update(read_config_file(config_path))
        elif os.path.exists(CONFIG_FILE):
            values.update(read_config_file(CONFIG_FILE))

        for key, var in ENV_OVERRIDES.items():
            if environ.get(var):
                values[key] = _coerce(key, environ[var])
        base = Settings()

    values.update({k: v for k, v in overrides.items() if v is not None})
    if 'rpc_port' in values and 'rpc_url' not in values:
        values['rpc_url'] = f"http://localhost:{values['rpc_port']}"
    settings = replace(base, **values)
    _check_port_range(settings.dynamic_port_range)
    return settings
