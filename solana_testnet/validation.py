"""Checks for user-supplied addresses, keys, indices and amounts."""

import re

from .errors import ValidationError

_IPV4 = re.compile(r'^(25[0-5]|2[0-4]\d|1\d\d|[1-9]?\d)(\.(25[0-5]|2[0-4]\d|1\d\d|[1-9]?\d)){3}$')
_HOSTNAME = re.compile(r'^(?=.{1,253}$)([A-Za-z0-9]([A-Za-z0-9-]{0,61}[A-Za-z0-9])?)(\.[A-Za-z0-9]([A-Za-z0-9-]{0,61}[A-Za-z0-9])?)*$')
_PORT = re.compile(r'^[1-9]\d{0,4}$')
_PUBKEY = re.compile(r'^[1-9A-HJ-NP-Za-km-z]{32,44}$')
_AMOUNT = re.compile(r'^(\d+(\.\d*)?|\.\d+)$')
_UNSAFE_NAME_CHARS = re.compile(r'[^A-Za-z0-9_-]')


def parse_node_address(text):
    """Split ``host:port`` into (host, port).

    The host is a dotted IPv4 address or a DNS name. Numeric-looking hosts
    must be valid IPv4 so ``300.1.1.1`` is rejected rather than treated as a
    hostname.
    """
    usage = f"Invalid node address: {text!r}. Expected <ip:port>, e.g. 192.168.1.100:8001"
    if not text or text.count(':') != 1:
        raise ValidationError(usage)

    host, port = text.split(':')
    if not _PORT.match(port) or int(port) > 65535:
        raise ValidationError(usage)

    if re.match(r'^[\d.]+$', host):
        if not _IPV4.match(host):
            raise ValidationError(usage)
    elif not _HOSTNAME.match(host):
        raise ValidationError(usage)
    return host, int(port)


def validate_pubkey(text):
    if not text or not _PUBKEY.match(text):
        raise ValidationError(f"Invalid public key: {text!r}")
    return text


def validate_index(value, count):
    """Return ``value`` as an int in 1..count."""
    if count == 0:
        raise ValidationError("No keys found.")
    try:
        index = int(str(value).strip())
    except ValueError:
        raise ValidationError(f"Invalid key index: {value}. Valid range: 1-{count}")
    if index < 1 or index > count:
        raise ValidationError(f"Invalid key index: {index}. Valid range: 1-{count}")
    return index


def validate_amount(text):
    """A positive SOL amount, returned unchanged so no float formatting leaks into the solana call."""
    text = str(text).strip()
    if not _AMOUNT.match(text) or float(text) <= 0:
        raise ValidationError(f"Invalid amount: {text!r}. Expected a positive number of SOL")
    return text


def validate_slot(text):
    text = str(text).strip()
    if not text.isdigit():
        raise ValidationError(f"Invalid slot: {text!r}")
    return int(text)


def sanitize_key_name(name):
    return _UNSAFE_NAME_CHARS.sub('_', name)
