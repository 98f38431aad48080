#!/usr/bin/env python3
"""
csak HD Wallet Commands

- hd-wallet-generate: new 15/24-word wallet with CIP-1852 accounts
- hd-wallet-restore: restore accounts from an existing mnemonic
- private-to-public-key: public key and enterprise address of a private key
"""

from __future__ import annotations

import json
import logging
import sys
from typing import Any, Dict, List

import cbor2
import click
from rich.console import Console
from rich.markup import escape

from csak.config import DEFAULT_NETWORK
from csak.core.address import change_address, credential_id, enterprise_address, payment_address, stake_address
from csak.core.crypto_utils import public_key_from_signing_key, wipe
from csak.core.exceptions import CsakError
from csak.core.network import Network
from csak.security import mnemonic as mnemonic_provider
from csak.security.hd_wallet import AccountKeys, HDWallet, Role

logger = logging.getLogger(__name__)
console = Console()

RULE = "=" * 80
THIN_RULE = "-" * 80


def _handle_cli_error(exc: Exception, exit_code: int = 1) -> None:
    """Centralized CLI error handler."""
    logger.debug("CLI error: %s", exc, exc_info=True)
    console.print(f"[bold red]Error:[/] {escape(str(exc))}", highlight=False, soft_wrap=True)
    sys.exit(exit_code)


def _account_report(keys: AccountKeys, network: Network) -> Dict[str, Any]:
    payment = keys.payment_key
    return {
        "account": keys.account_index,
        "wallet_type": "SOFTWARE (Icarus derivation)",
        "paths": {role.name.lower(): str(keys.path(role)) for role in Role},
        "base_address": str(payment_address(keys, network)),
        "change_address": str(change_address(keys, network)),
        "stake_address": str(stake_address(keys, network)),
        "drep_id": credential_id(Role.DREP, keys.role_key(Role.DREP).public_key),
        "cc_cold_id": credential_id(Role.CC_COLD, keys.role_key(Role.CC_COLD).public_key),
        "cc_hot_id": credential_id(Role.CC_HOT, keys.role_key(Role.CC_HOT).public_key),
        "private_key": payment.private_key.hex(),
        "private_key_cbor": cbor2.dumps(payment.private_key).hex(),
        "public_key": payment.public_key.hex(),
        "public_key_cbor": cbor2.dumps(payment.public_key).hex(),
    }


def _wallet_report(wallet: HDWallet, network: Network, count: int) -> Dict[str, Any]:
    accounts: List[Dict[str, Any]] = []
    for index in range(count):
        with wallet.derive_account(index) as keys:
            accounts.append(_account_report(keys, network))
    return {
        "network": network.label,
        "word_count": wallet.mnemonic.word_count,
        "mnemonic": wallet.mnemonic.phrase,
        "accounts": accounts,
    }


def _print_account(account: Dict[str, Any]) -> None:
    label = "Account" if account["account"] == 0 else "Derived Account"
    click.echo(f"{label} (index={account['account']}):")
    click.echo(THIN_RULE)
    click.echo(f"  Wallet Type: {account['wallet_type']}")
    click.echo()
    click.echo("  Derivation Paths (CIP-1852):")
    for role in Role:
        click.echo(f"    {role.description + ':':<28}{account['paths'][role.name.lower()]}")
    click.echo()
    for title, key in (
        ("Base Address (Bech32)", "base_address"),
        ("Change Address (Bech32)", "change_address"),
        ("Stake Address (Bech32)", "stake_address"),
        ("DRep ID (CIP-105)", "drep_id"),
        ("CC Cold ID (CIP-105)", "cc_cold_id"),
        ("CC Hot ID (CIP-105)", "cc_hot_id"),
    ):
        click.echo(f"  {title}:")
        click.echo(f"    {account[key]}")
        click.echo()
    click.echo("  Private Key (hex):")
    click.echo(f"    {account['private_key']}")
    click.echo("  Private Key (CBOR hex):")
    click.echo(f"    {account['private_key_cbor']}")
    click.echo()
    click.echo("  Public Key (hex):")
    click.echo(f"    {account['public_key']}")
    click.echo("  Public Key (CBOR hex):")
    click.echo(f"    {account['public_key_cbor']}")


def _show_wallet(ctx: click.Context, report: Dict[str, Any], title: str) -> None:
    if ctx.obj.get("json_output"):
        click.echo(json.dumps(report, indent=2))
        return

    click.echo(RULE)
    console.print(f"[bold green]{title}[/]")
    click.echo(RULE)
    click.echo()
    click.echo(f"Network: {report['network'].upper()}")
    click.echo(f"Mnemonic Words: {report['word_count']}")
    click.echo()
    click.echo("Mnemonic:")
    click.echo(THIN_RULE)
    click.echo(report["mnemonic"])
    click.echo(THIN_RULE)
    click.echo()
    for position, account in enumerate(report["accounts"]):
        if position > 0:
            click.echo()
        _print_account(account)
    click.echo()
    click.echo(RULE)
    console.print("[bold yellow]IMPORTANT:[/] Keep this mnemonic and private keys secure!")
    click.echo("Anyone with access to these can control your funds.")
    click.echo(RULE)


@click.command("hd-wallet-generate")
@click.option("-n", "--network", default=DEFAULT_NETWORK, show_default=True,
              help="Network: mainnet, preprod, preview or testnet")
@click.option("-c", "--count", default=1, type=click.IntRange(min=1), show_default=True,
              help="Number of accounts to derive")
@click.option("-w", "--words", type=click.Choice(["15", "24"]), default="24", show_default=True,
              help="Mnemonic length")
@click.pass_context
def hd_wallet_generate(ctx: click.Context, network: str, count: int, words: str):
    """Generate a new Cardano HD wallet (Icarus, CIP-1852)"""
    try:
        net = Network.from_name(network)
        with HDWallet(mnemonic_provider.generate(int(words))) as wallet:
            report = _wallet_report(wallet, net, count)
        logger.info("HD wallet generated", extra={"event": "cli.hd_wallet.generated", "accounts": count})
        _show_wallet(ctx, report, "Cardano HD Wallet Generated Successfully")
    except CsakError as exc:
        _handle_cli_error(exc)


@click.command("hd-wallet-restore")
@click.argument("words", nargs=-1, required=True)
@click.option("-n", "--network", default=DEFAULT_NETWORK, show_default=True,
              help="Network: mainnet, preprod, preview or testnet")
@click.option("-c", "--count", default=1, type=click.IntRange(min=1), show_default=True,
              help="Number of accounts to derive")
@click.option("-p", "--passphrase", default="", help="Optional passphrase (second factor)")
@click.pass_context
def hd_wallet_restore(ctx: click.Context, words: tuple, network: str, count: int, passphrase: str):
    """Restore a Cardano HD wallet from a 15 or 24 word mnemonic"""
    try:
        net = Network.from_name(network)
        phrase = mnemonic_provider.validate(words)
        with HDWallet(phrase, passphrase=passphrase) as wallet:
            report = _wallet_report(wallet, net, count)
        logger.info("HD wallet restored", extra={"event": "cli.hd_wallet.restored", "accounts": count})
        _show_wallet(ctx, report, "Cardano HD Wallet Restored Successfully")
    except CsakError as exc:
        _handle_cli_error(exc)


def _parse_private_key(private_key: str, fmt: str) -> bytearray:
    cleaned = "".join(private_key.split())
    try:
        raw = bytes.fromhex(cleaned)
    except ValueError as exc:
        raise ValueError("Invalid private key hex format") from exc
    if fmt == "cbor":
        decoded = cbor2.loads(raw)
        if not isinstance(decoded, bytes):
            raise ValueError("CBOR private key must be a byte string")
        raw = decoded
    return bytearray(raw)


@click.command("private-to-public-key")
@click.argument("private_key")
@click.option("-n", "--network", default=DEFAULT_NETWORK, show_default=True,
              help="Network: mainnet, preprod, preview or testnet")
@click.option("-f", "--format", "fmt", type=click.Choice(["cbor", "hex"], case_sensitive=False),
              default="cbor", show_default=True, help="Input format of the private key")
@click.pass_context
def private_to_public_key(ctx: click.Context, private_key: str, network: str, fmt: str):
    """Extract the public key and enterprise address from a private key"""
    fmt = fmt.lower()
    key = None
    try:
        net = Network.from_name(network)
        key = _parse_private_key(private_key, fmt)
        public_key = public_key_from_signing_key(key)
        report = {
            "network": net.label,
            "input_format": fmt,
            "private_key": "".join(private_key.split()),
            "public_key": public_key.hex(),
            "public_key_cbor": cbor2.dumps(public_key).hex(),
            "address": str(enterprise_address(public_key, net)),
        }
    except (CsakError, ValueError) as exc:
        _handle_cli_error(exc)
    finally:
        wipe(key)

    if ctx.obj.get("json_output"):
        click.echo(json.dumps(report, indent=2))
        return

    click.echo(RULE)
    console.print("[bold green]Public Key Extracted from Private Key[/]")
    click.echo(RULE)
    click.echo()
    click.echo(f"Network: {report['network'].upper()}")
    click.echo(f"Input Format: {fmt.upper()}")
    click.echo()
    click.echo(f"Private Key ({'hex' if fmt == 'hex' else 'CBOR hex'}):")
    click.echo(report["private_key"])
    click.echo()
    click.echo("Public Key (hex):")
    click.echo(report["public_key"])
    click.echo("Public Key (CBOR hex):")
    click.echo(report["public_key_cbor"])
    click.echo()
    click.echo("Enterprise Address (Bech32):")
    click.echo(report["address"])
    click.echo()
    click.echo(RULE)
