#!/usr/bin/env python3
"""
csak CIP-30 Message Signing Commands

Sign arbitrary messages the way CIP-30 wallets do (``signData``) and verify
COSE_Sign1 signatures produced by any compliant wallet.
"""

from __future__ import annotations

import json
import logging
import sys
from typing import Optional

import click
from rich.console import Console
from rich.markup import escape

from csak.config import DEFAULT_NETWORK
from csak.core.address import address_to_bytes, enterprise_address, parse_address_bytes, payment_address
from csak.core.crypto_utils import public_key_from_signing_key, wipe
from csak.core.exceptions import CsakError
from csak.core.network import Network
from csak.security import mnemonic as mnemonic_provider
from csak.security.hd_wallet import HDWallet
from csak.wallet.message_signing import sign, verify

logger = logging.getLogger(__name__)
console = Console()

RULE = "=" * 80


def _handle_cli_error(exc: Exception, exit_code: int = 1) -> None:
    """Centralized CLI error handler."""
    logger.debug("CLI error: %s", exc, exc_info=True)
    console.print(f"[bold red]Error:[/] {escape(str(exc))}", highlight=False, soft_wrap=True)
    sys.exit(exit_code)


def _decode_hex(value: str, what: str) -> bytes:
    try:
        return bytes.fromhex("".join(value.split()))
    except ValueError as exc:
        raise ValueError(f"Invalid hex format in {what}") from exc


def _message_bytes(message: str, message_format: str) -> bytes:
    if message_format == "hex":
        return _decode_hex(message, "message")
    return message.encode("utf-8")


@click.command("cip30-sign")
@click.argument("message")
@click.argument("secret")
@click.option("--input-type", type=click.Choice(["mnemonic", "key"], case_sensitive=False),
              default="mnemonic", show_default=True,
              help="Whether SECRET is a mnemonic phrase or a private key in hex")
@click.option("--message-format", type=click.Choice(["text", "hex"], case_sensitive=False),
              default="text", show_default=True, help="Encoding of MESSAGE")
@click.option("--hashed", is_flag=True, help="Sign the Blake2b-224 hash of the message (hardware wallet mode)")
@click.option("-a", "--address", "address", default=None,
              help="Signing address (bech32 or hex); defaults to the key's own address")
@click.option("-n", "--network", default=DEFAULT_NETWORK, show_default=True,
              help="Network: mainnet, preprod, preview or testnet")
@click.option("--account", default=0, type=click.IntRange(min=0), show_default=True,
              help="Account index when signing with a mnemonic")
@click.option("-p", "--passphrase", default="", help="Mnemonic passphrase")
@click.option("--embed-key", is_flag=True, help="Embed the public key in the envelope (kid header)")
@click.pass_context
def cip30_sign(
    ctx: click.Context,
    message: str,
    secret: str,
    input_type: str,
    message_format: str,
    hashed: bool,
    address: Optional[str],
    network: str,
    account: int,
    passphrase: str,
    embed_key: bool,
):
    """
    Sign MESSAGE with SECRET using CIP-30 data signing.

    With a mnemonic the payment key m/1852'/1815'/ACCOUNT'/0/0 signs for the
    account's base address. With a private key (32-byte seed or 64-byte
    extended key) the enterprise address of the key is used unless -a is given.
    """
    message_format = message_format.lower()
    signing_key = None
    try:
        net = Network.from_name(network)
        payload = _message_bytes(message, message_format)

        if input_type.lower() == "mnemonic":
            with HDWallet(mnemonic_provider.validate(secret), passphrase=passphrase) as wallet:
                with wallet.derive_account(account) as keys:
                    signing_key = bytearray(keys.payment_key.private_key)
                    public_key = keys.payment_key.public_key
                    signer_address = address_to_bytes(address) if address else payment_address(keys, net).to_bytes()
        else:
            signing_key = bytearray(_decode_hex(secret, "private key"))
            public_key = public_key_from_signing_key(signing_key)
            signer_address = address_to_bytes(address) if address else enterprise_address(public_key, net).to_bytes()

        envelope = sign(
            signer_address,
            payload,
            signing_key,
            public_key,
            hashed=hashed,
            embed_public_key=embed_key,
        )
    except (CsakError, ValueError) as exc:
        _handle_cli_error(exc)
    finally:
        wipe(signing_key)

    logger.info("CIP-30 signature created", extra={"event": "cli.cip30.signed", "hashed": hashed})
    report = {
        "network": net.label,
        "message_format": message_format,
        "message_hex": payload.hex(),
        "address": parse_address_bytes(signer_address).to_bech32(),
        "hashed": hashed,
        "signature": envelope.to_hex(),
        "key": envelope.cose_key_hex(),
    }
    if message_format == "text":
        report["message"] = message

    if ctx.obj.get("json_output"):
        click.echo(json.dumps(report, indent=2))
        return

    click.echo(RULE)
    console.print("[bold green]CIP-30 Data Signature[/]")
    click.echo(RULE)
    click.echo()
    click.echo(f"Message Input Format: {message_format.upper()}")
    click.echo()
    if message_format == "text":
        click.echo("Message (text):")
        click.echo(message)
        click.echo()
    click.echo("Message (hex):")
    click.echo(report["message_hex"])
    click.echo()
    click.echo("Address:")
    click.echo(report["address"])
    click.echo()
    click.echo("Signature Mode:")
    click.echo("Hashed (Hardware Wallet compatible)" if hashed else "Full payload (Software Wallet)")
    click.echo()
    click.echo("CIP-30 Signature (hex):")
    click.echo(report["signature"])
    click.echo()
    click.echo("CIP-30 Key (hex):")
    click.echo(report["key"])
    click.echo()
    click.echo(f"Network: {net.label.upper()}")
    click.echo()
    click.echo(RULE)
    click.echo()
    click.echo("Usage:")
    click.echo("To verify this signature, use:")
    click.echo(f"  csak cip30-verify {report['signature']} -k {report['key']}")
    click.echo()
    click.echo(RULE)


@click.command("cip30-verify")
@click.argument("signature")
@click.option("-k", "--key", "key", default=None,
              help="Public key (32-byte hex or COSE_Key hex); defaults to the embedded key")
@click.option("-f", "--format", "fmt", type=click.Choice(["text", "hex", "base64"], case_sensitive=False),
              default="text", show_default=True, help="How to display the signed message")
@click.option("--payload", default=None, help="Original message to compare against the signed payload")
@click.option("--payload-format", type=click.Choice(["text", "hex"], case_sensitive=False),
              default="text", show_default=True, help="Encoding of --payload")
@click.pass_context
def cip30_verify(
    ctx: click.Context,
    signature: str,
    key: Optional[str],
    fmt: str,
    payload: Optional[str],
    payload_format: str,
):
    """Verify a CIP-30 COSE_Sign1 signature (exit code 0 only when valid)"""
    fmt = fmt.lower()
    try:
        public_key = _decode_hex(key, "public key") if key else None
        result = verify(_decode_hex(signature, "signature"), public_key=public_key)
        payload_matches = None
        if payload is not None:
            payload_matches = result.matches_payload(_message_bytes(payload, payload_format.lower()))
    except (CsakError, ValueError) as exc:
        _handle_cli_error(exc)

    valid = result.valid and payload_matches is not False
    logger.info("CIP-30 signature verified", extra={"event": "cli.cip30.verified", "valid": valid})

    report = {
        "valid": valid,
        "signature_valid": result.valid,
        "hashed": result.is_hashed,
        "address": result.address_bech32 or result.address.hex(),
        "message": result.message_as(fmt),
        "message_format": "hex" if (fmt == "text" and result.is_hashed) else fmt,
        "public_key": result.public_key.hex(),
        "key_matches_address": result.key_matches_address,
        "payload_matches": payload_matches,
        "signature": result.signature.hex(),
        "protected_header": result.protected_header.hex(),
    }

    if ctx.obj.get("json_output"):
        click.echo(json.dumps(report, indent=2))
    else:
        click.echo(RULE)
        console.print("[bold green]CIP-30 Signature Verification[/]")
        click.echo(RULE)
        click.echo()
        if valid:
            console.print("Valid: [bold green]YES[/]")
        else:
            console.print("Valid: [bold red]NO[/]")
        click.echo(f"Hardware Wallet (hashed): {'YES' if result.is_hashed else 'NO'}")
        if payload_matches is not None:
            click.echo(f"Payload Matches: {'YES' if payload_matches else 'NO'}")
        if result.key_matches_address is not None:
            click.echo(f"Key Matches Address: {'YES' if result.key_matches_address else 'NO'}")
        click.echo()
        click.echo("Address (Bech32):" if result.address_bech32 else "Address (hex):")
        click.echo(report["address"])
        click.echo()
        click.echo(f"Message ({report['message_format']}):")
        click.echo(report["message"])
        click.echo()
        click.echo("Public Key (hex):")
        click.echo(report["public_key"])
        click.echo()
        click.echo("Signature (hex):")
        click.echo(report["signature"])
        click.echo()
        click.echo("COSE Protected Header (hex):")
        click.echo(report["protected_header"])
        click.echo()
        click.echo(RULE)

    if not valid:
        sys.exit(1)
