"""Canonical hashing helpers for selectors, event topics and call encoding.

Selectors and topics follow the Solidity ABI: keccak-256 over the canonical
signature (``name(type1,type2)`` with no spaces and tuples expanded), the
first four bytes for functions and the full digest for events.
"""

from __future__ import annotations

from typing import Any, Sequence

from eth_abi import encode
from eth_abi.exceptions import ParseError
from eth_abi.grammar import TupleType, parse
from eth_utils import keccak
from eth_utils.abi import collapse_if_tuple


def keccak_hex(text: str) -> str:
    """Return the ``0x``-prefixed keccak-256 hex digest of a UTF-8 string."""
    return "0x" + keccak(text=text).hex()


def compute_selector(signature: str) -> str:
    """4-byte function selector for a canonical signature.

    Pure and deterministic: the same signature always yields the same
    selector.
    """
    return keccak_hex(signature)[:10]


def compute_topic(signature: str) -> str:
    """32-byte event topic for a canonical event signature."""
    return keccak_hex(signature)


def canonical_signature(fragment: dict[str, Any]) -> str:
    """Canonical signature for an ABI function or event fragment.

    Tuple inputs are expanded to their components, so
    ``{"type": "tuple[]", "components": [...]}`` becomes ``(t1,t2)[]``.
    """
    args = ",".join(collapse_if_tuple(p) for p in fragment.get("inputs", []))
    return f"{fragment['name']}({args})"


def split_signature(signature: str) -> tuple[str, list[str]]:
    """Split ``name(t1,(t2,t3)[],t4)`` into its name and top-level types."""
    open_idx = signature.find("(")
    if open_idx <= 0 or not signature.endswith(")"):
        raise ValueError(f"Malformed signature: {signature!r}")

    name = signature[:open_idx]
    # The ABI grammar has no zero-length tuple.
    if signature[open_idx:] == "()":
        return name, []
    try:
        arguments = parse(signature[open_idx:])
    except ParseError as exc:
        raise ValueError(f"Malformed argument list in signature: {signature!r}") from exc
    if not isinstance(arguments, TupleType) or arguments.is_array:
        raise ValueError(f"Malformed argument list in signature: {signature!r}")
    return name, [c.to_type_str() for c in arguments.components]


def encode_call(signature: str, args: Sequence[Any]) -> bytes:
    """ABI-encode a call: selector followed by the encoded arguments."""
    _, types = split_signature(signature)
    if len(types) != len(args):
        raise ValueError(
            f"{signature} takes {len(types)} arguments, got {len(args)}"
        )
    selector = bytes.fromhex(compute_selector(signature)[2:])
    return selector + encode(types, list(args))
