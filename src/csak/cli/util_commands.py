#!/usr/bin/env python3
"""
csak Utility Commands

Small conversions that come up constantly when working with Cardano data:
Blake2b digests and text / hex / base64 round trips.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
import sys

import click
from rich.console import Console
from rich.markup import escape

from csak.core.crypto_utils import blake2b_160, blake2b_224, blake2b_256

logger = logging.getLogger(__name__)
console = Console()

RULE = "=" * 80


def _handle_cli_error(exc: Exception, exit_code: int = 1) -> None:
    """Centralized CLI error handler."""
    logger.debug("CLI error: %s", exc, exc_info=True)
    console.print(f"[bold red]Error:[/] {escape(str(exc))}", highlight=False, soft_wrap=True)
    sys.exit(exit_code)


def _parse_hex(value: str) -> bytes:
    cleaned = "".join(value.split())
    if len(cleaned) % 2 != 0:
        raise ValueError("Hex string must have an even number of characters.")
    try:
        return bytes.fromhex(cleaned)
    except ValueError as exc:
        raise ValueError(
            "Invalid hex string. Only hexadecimal characters (0-9, a-f, A-F) are allowed."
        ) from exc


def _render(ctx: click.Context, title: str, report: dict, sections: list) -> None:
    if ctx.obj.get("json_output"):
        click.echo(json.dumps(report, indent=2))
        return
    click.echo(RULE)
    console.print(f"[bold green]{title}[/]")
    click.echo(RULE)
    click.echo()
    for heading, value in sections:
        click.echo(f"{heading}:")
        click.echo(value)
        click.echo()
    click.echo(RULE)


@click.command("blake2b-hash")
@click.argument("input_hex")
@click.pass_context
def blake2b_hash(ctx: click.Context, input_hex: str):
    """Calculate Blake2b-160, -224 and -256 hashes of hex input"""
    try:
        data = _parse_hex(input_hex)
    except ValueError as exc:
        _handle_cli_error(exc)

    report = {
        "input": data.hex(),
        "blake2b_160": blake2b_160(data).hex(),
        "blake2b_224": blake2b_224(data).hex(),
        "blake2b_256": blake2b_256(data).hex(),
    }
    _render(ctx, "Blake2b Hash Results", report, [
        ("Input (hex)", report["input"]),
        ("Blake2b-160 (20 bytes)", report["blake2b_160"]),
        ("Blake2b-224 (28 bytes)", report["blake2b_224"]),
        ("Blake2b-256 (32 bytes)", report["blake2b_256"]),
    ])


@click.command("string-to-hex")
@click.argument("text")
@click.pass_context
def string_to_hex(ctx: click.Context, text: str):
    """Convert a UTF-8 string to hex"""
    data = text.encode("utf-8")
    report = {"input": text, "hex": data.hex(), "byte_length": len(data)}
    _render(ctx, "String to Hex Conversion", report, [
        ("Input String", text),
        ("Hex Output", report["hex"]),
        ("Byte Length", str(len(data))),
    ])


@click.command("hex-to-string")
@click.argument("hex_string")
@click.pass_context
def hex_to_string(ctx: click.Context, hex_string: str):
    """Convert hex to a UTF-8 string"""
    try:
        data = _parse_hex(hex_string)
    except ValueError as exc:
        _handle_cli_error(exc)

    text = data.decode("utf-8", errors="replace")
    report = {"input": data.hex(), "text": text, "byte_length": len(data)}
    _render(ctx, "Hex to String Conversion", report, [
        ("Input Hex", report["input"]),
        ("UTF-8 String Output", text),
        ("Byte Length", str(len(data))),
    ])


@click.command("string-to-base64")
@click.argument("text")
@click.pass_context
def string_to_base64(ctx: click.Context, text: str):
    """Encode a UTF-8 string as base64"""
    encoded = base64.b64encode(text.encode("utf-8")).decode("ascii")
    report = {"input": text, "base64": encoded}
    _render(ctx, "String to Base64 Conversion", report, [
        ("Input String", text),
        ("Base64 Output", encoded),
    ])


@click.command("base64-to-string")
@click.argument("encoded")
@click.pass_context
def base64_to_string(ctx: click.Context, encoded: str):
    """Decode base64 into a UTF-8 string"""
    try:
        data = base64.b64decode("".join(encoded.split()), validate=True)
    except (binascii.Error, ValueError) as exc:
        _handle_cli_error(ValueError(f"Invalid base64 input: {exc}"))

    text = data.decode("utf-8", errors="replace")
    report = {"input": encoded, "text": text, "byte_length": len(data)}
    _render(ctx, "Base64 to String Conversion", report, [
        ("Input Base64", encoded),
        ("UTF-8 String Output", text),
        ("Byte Length", str(len(data))),
    ])
