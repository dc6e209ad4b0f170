"""The solana, solana-keygen and solana-genesis tools, run inside the container."""

from .errors import CommandFailed


class SolanaTools:
    def __init__(self, docker, settings):
        self.docker = docker
        self.settings = settings

    def cli(self, *args, check=False):
        """Run ``solana <args> --url <rpc>`` in the container."""
        return self.docker.exec(['solana', *args, '--url', self.settings.container_rpc_url], check=check)

    def keygen_new(self, container_path):
        self.docker.exec(['solana-keygen', 'new', '--no-bip39-passphrase', '--silent',
                          '--outfile', container_path, '--force'], check=True)

    def pubkey(self, container_path):
        """Public key of a keypair file, or None when solana-keygen cannot read it."""
        result = self.docker.exec(['solana-keygen', 'pubkey', container_path])
        if result.returncode != 0:
            return None
        return result.stdout.strip() or None

    def genesis(self, identity, vote, stake):
        s = self.settings
        self.docker.exec(['solana-genesis',
                          '--bootstrap-validator', identity, vote, stake,
                          '--ledger', s.container_ledger_dir,
                          '--faucet-lamports', str(s.faucet_lamports),
                          '--hashes-per-tick', 'auto'], check=True)

    def balance(self, target):
        result = self.cli('balance', target)
        if result.returncode != 0:
            return None
        return result.stdout.strip()

    def airdrop(self, amount, target):
        return self.cli('airdrop', amount, target)

    def transfer(self, sender_keyfile, receiver, amount):
        return self.cli('transfer', '--from', sender_keyfile, receiver, amount, '--allow-unfunded-recipient')

    def block(self, slot):
        result = self.cli('block', str(slot))
        if result.returncode != 0:
            raise CommandFailed(result.args, result.returncode, result.stderr,
                                message=f"Failed to get block details for slot: {slot}")
        return result.stdout
