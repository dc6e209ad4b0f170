"""Keypair files in the host data directory and their container paths.

``<data>/config`` and ``<data>/accounts`` are bind-mounted at
``/solana/config`` and ``/solana/accounts``, so every host key file has a
container twin that solana-keygen can read.
"""

from pathlib import Path

from .errors import KeyNotFoundError, ValidationError
from .validation import validate_index, validate_pubkey

# key type -> (data subdirectory, file name)
KEY_TYPES = {
    'validator': ('config', 'validator-keypair.json'),
    'vote': ('config', 'vote-account-keypair.json'),
    'stake': ('accounts', 'stake-account.json'),
}

KEY_LABELS = {
    'validator': 'Validator Identity',
    'vote': 'Vote Account',
    'stake': 'Stake Account',
}


class Keystore:
    def __init__(self, settings, tools):
        self.settings = settings
        self.tools = tools

    def _dirs(self):
        s = self.settings
        return [(s.config_dir, s.container_config_dir), (s.accounts_dir, s.container_accounts_dir)]

    def typed_path(self, key_type):
        subdir, name = KEY_TYPES[key_type]
        return Path(self.settings.data_dir) / subdir / name

    def typed_container_path(self, key_type):
        subdir, name = KEY_TYPES[key_type]
        return self.settings.container_path(subdir, name)

    def key_files(self):
        """All *.json keypairs under the config and accounts dirs, sorted by path."""
        files = []
        for host_dir, _ in self._dirs():
            if host_dir.is_dir():
                files.extend(p for p in host_dir.glob('*.json') if p.is_file())
        return sorted(files, key=str)

    def to_container_path(self, host_path):
        host_path = Path(host_path).resolve()
        for host_dir, container_dir in self._dirs():
            try:
                relative = host_path.relative_to(host_dir.resolve())
            except ValueError:
                continue
            return f"{container_dir}/{relative.as_posix()}"
        raise ValidationError(f"{host_path} is not inside {self.settings.config_dir} or {self.settings.accounts_dir}")

    def pubkey(self, host_path):
        return self.tools.pubkey(self.to_container_path(host_path))

    def by_index(self, index):
        files = self.key_files()
        try:
            return files[validate_index(index, len(files)) - 1]
        except ValidationError as e:
            raise KeyNotFoundError(e.format_message())

    def by_pubkey(self, pubkey):
        validate_pubkey(pubkey)
        for path in self.key_files():
            if self.pubkey(path) == pubkey:
                return path
        raise KeyNotFoundError(f"No keyfile found for public key: {pubkey}")

    def generate(self, host_path):
        host_path = Path(host_path)
        host_path.parent.mkdir(parents=True, exist_ok=True)
        self.tools.keygen_new(self.to_container_path(host_path))
        return self.pubkey(host_path)
