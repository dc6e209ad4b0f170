import subprocess

import pytest
from click.testing import CliRunner

from solana_testnet import util as util_module
from solana_testnet.rpc import RpcClient

PUBKEY = "7xJ5kAXMdUYH1yBfzgqxQdyMXqqSQfZPmJUaFm3XzLhV"
OTHER_PUBKEY = "9WzDXwBbmkg8ZTbNMqUxvQRAyrZzDsGYdLVL9zYtAWWM"


def _contains(argv, pattern):
    n = len(pattern)
    return any(list(argv[i:i + n]) == list(pattern) for i in range(len(argv) - n + 1))


class FakeRun:
    """Stand-in for subprocess.run that records argv and answers by pattern.

    A pattern matches when it appears as a contiguous run inside argv. Rules
    added later take precedence. A rule with several responses returns them in
    order and then keeps returning the last one.
    """

    def __init__(self):
        self.calls = []
        self.kwargs = []
        self.rules = []

    def on(self, *pattern, returncode=0, stdout="", stderr="", responses=None):
        if responses is None:
            responses = [(returncode, stdout, stderr)]
        self.rules.insert(0, (pattern, list(responses)))

    def __call__(self, argv, **kwargs):
        self.calls.append(list(argv))
        self.kwargs.append(kwargs)
        for pattern, responses in self.rules:
            if _contains(argv, pattern):
                returncode, stdout, stderr = responses.pop(0) if len(responses) > 1 else responses[0]
                return subprocess.CompletedProcess(argv, returncode, stdout, stderr)
        return subprocess.CompletedProcess(argv, 0, "", "")

    def ran(self, *pattern):
        return any(_contains(call, pattern) for call in self.calls)

    def find(self, *pattern):
        return [call for call in self.calls if _contains(call, pattern)]


@pytest.fixture
def fake_run(monkeypatch):
    run = FakeRun()
    run.on("docker", "ps", stdout="solana-testnet\n")
    run.on("pgrep", returncode=1)
    run.on("solana-keygen", "pubkey", stdout=PUBKEY + "\n")
    monkeypatch.setattr(util_module.subprocess, "run", run)
    monkeypatch.setattr("time.sleep", lambda seconds: None)
    return run


class FakeRpc:
    def __init__(self):
        self.results = {
            "getHealth": "ok",
            "getVersion": {"solana-core": "1.18.18", "feature-set": 4215500110},
            "getSlot": 1234,
            "getBlockHeight": 1200,
            "getEpochInfo": {"epoch": 2, "slotIndex": 100, "slotsInEpoch": 432000, "absoluteSlot": 1234},
            "getTransactionCount": 5678,
        }
        self.calls = []

    def __call__(self, client, method, params=None):
        self.calls.append(method)
        result = self.results[method]
        if isinstance(result, Exception):
            raise result
        return result


@pytest.fixture
def fake_rpc(monkeypatch):
    rpc = FakeRpc()
    monkeypatch.setattr(RpcClient, "call", lambda self, method, params=None: rpc(self, method, params))
    return rpc


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    for var in ("SOLANA_TESTNET_CONFIG", "SOLANA_TESTNET_CONTAINER",
                "SOLANA_TESTNET_DATA_DIR", "SOLANA_TESTNET_RPC_URL"):
        monkeypatch.delenv(var, raising=False)
    return tmp_path


@pytest.fixture
def runner(workdir, fake_run, fake_rpc):
    return CliRunner()


@pytest.fixture
def data_dir(workdir):
    data = workdir / "data"
    for sub in ("ledger", "config", "accounts"):
        (data / sub).mkdir(parents=True)
    return data


def write_key(path, seed=0):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(str([seed] * 64))
    return path
