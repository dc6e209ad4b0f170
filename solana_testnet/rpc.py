"""Minimal JSON-RPC client for the validator's published RPC port."""

import itertools

import requests

from .errors import RpcError
from .util import wait_until


class RpcClient:
    def __init__(self, url, timeout=5):
        self.url = url
        self.timeout = timeout
        self.session = requests.Session()
        self._ids = itertools.count(1)

    def call(self, method, params=None):
        """Make a JSON-RPC call and return its ``result``."""
        payload = {"jsonrpc": "2.0", "id": next(self._ids), "method": method}
        if params is not None:
            payload["params"] = params
        headers = {"Content-Type": "application/json"}
        try:
            response = self.session.post(self.url, json=payload, headers=headers, timeout=self.timeout)
            response.raise_for_status()
            body = response.json()
        except requests.exceptions.RequestException as e:
            raise RpcError(f"RPC call {method} to {self.url} failed: {e}")
        except ValueError:
            raise RpcError(f"RPC call {method} to {self.url} returned invalid JSON")

        if body.get("error"):
            error = body["error"]
            raise RpcError(f"RPC call {method} failed: {error.get('message', error)}")
        return body.get("result")

    def get_health(self):
        return self.call("getHealth")

    def is_healthy(self):
        try:
            return self.get_health() == "ok"
        except RpcError:
            return False

    def wait_until_healthy(self, timeout, interval=1.0):
        return wait_until(self.is_healthy, timeout, interval)

    def get_version(self):
        return (self.call("getVersion") or {}).get("solana-core")

    def get_slot(self):
        return self.call("getSlot")

    def get_block_height(self):
        return self.call("getBlockHeight")

    def get_epoch_info(self):
        return self.call("getEpochInfo")

    def get_transaction_count(self):
        return self.call("getTransactionCount")
