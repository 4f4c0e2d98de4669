"""Discover addresses of contracts created inside a transaction.

A creation call returns only a receipt; the new instance's address is carried
by an event the router (or the factory behind it) emits. The resolver scans
the receipt's records for that event and decodes the address field. It is a
pure function over the records: no network I/O.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from eth_abi import decode
from eth_abi.exceptions import DecodingError
from eth_utils import to_checksum_address

from facetforge.models.events import EventRecord, EventShape

logger = logging.getLogger(__name__)


class AddressNotFoundError(LookupError):
    """Raised when a required creation event is not among the records."""


def _hex_bytes(value: str) -> bytes:
    try:
        return bytes.fromhex(value.removeprefix("0x"))
    except ValueError as exc:
        raise DecodingError(f"Not hex: {value!r}") from exc


def _decode_record(record: EventRecord, shape: EventShape) -> str:
    field = shape.address_input
    if field.indexed:
        position = [i.name for i in shape.indexed_inputs].index(field.name)
        topic = _hex_bytes(record.topics[position + 1])
        (address,) = decode(["address"], topic)
    else:
        data_inputs = shape.data_inputs
        values = decode([i.type for i in data_inputs], _hex_bytes(record.data))
        address = values[[i.name for i in data_inputs].index(field.name)]
    return to_checksum_address(address)


def matching_records(events: Sequence[EventRecord], shape: EventShape) -> list[EventRecord]:
    """Records whose topic0 and topic count match ``shape``."""
    topic = shape.topic
    expected_topics = 1 + len(shape.indexed_inputs)
    return [
        record
        for record in events
        if record.topics
        and record.topics[0].lower() == topic
        and len(record.topics) == expected_topics
    ]


def resolve_address(events: Sequence[EventRecord], shape: EventShape) -> str | None:
    """Address field of the first decodable record matching ``shape``.

    Unrelated records are ignored. Records that match the topic but do not
    decode are skipped. Returns None when nothing matches.
    """
    for record in matching_records(events, shape):
        try:
            address = _decode_record(record, shape)
        except DecodingError as exc:
            logger.debug(
                "Skipping undecodable %s record at log index %d: %s",
                shape.name,
                record.log_index,
                exc,
            )
            continue
        logger.debug("Resolved %s.%s = %s", shape.name, shape.address_field, address)
        return address
    return None


def require_address(
    events: Sequence[EventRecord], shape: EventShape, context: str = ""
) -> str:
    """Like ``resolve_address()`` but raises ``AddressNotFoundError``."""
    address = resolve_address(events, shape)
    if address is None:
        where = f" for {context}" if context else ""
        raise AddressNotFoundError(
            f"No {shape.name} event found{where} among {len(events)} event record(s)"
        )
    return address
