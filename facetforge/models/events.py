"""Event and receipt models — what a confirmed transaction hands back."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, model_validator

from facetforge.core.hasher import compute_topic


class EventInput(BaseModel):
    """One parameter of an event declaration."""

    model_config = ConfigDict(frozen=True)

    name: str
    type: str
    indexed: bool = False


class EventShape(BaseModel):
    """The expected event declaration and which field carries the address."""

    model_config = ConfigDict(frozen=True)

    name: str
    inputs: list[EventInput]
    address_field: str

    @model_validator(mode="after")
    def _check_address_field(self) -> EventShape:
        field = next((i for i in self.inputs if i.name == self.address_field), None)
        if field is None or field.type != "address":
            raise ValueError(f"{self.name} has no address input named {self.address_field!r}")
        return self

    @property
    def address_input(self) -> EventInput:
        return next(i for i in self.inputs if i.name == self.address_field)

    @property
    def signature(self) -> str:
        return f"{self.name}({','.join(i.type for i in self.inputs)})"

    @property
    def topic(self) -> str:
        return compute_topic(self.signature)

    @property
    def indexed_inputs(self) -> list[EventInput]:
        return [i for i in self.inputs if i.indexed]

    @property
    def data_inputs(self) -> list[EventInput]:
        return [i for i in self.inputs if not i.indexed]


class EventRecord(BaseModel):
    """A raw log entry from a transaction receipt."""

    model_config = ConfigDict(frozen=True)

    emitter: str
    topics: list[str]
    data: str = "0x"
    log_index: int = 0


class TransactionReceipt(BaseModel):
    """Confirmed transaction with its emitted event records."""

    model_config = ConfigDict(frozen=True)

    tx_hash: str
    block_number: int = 0
    status: int = 1
    contract_address: str | None = None
    events: list[EventRecord] = []


# event VaultCollectionCreated(address indexed collection, uint8 indexed collectionType, string name)
COLLECTION_CREATED_EVENT = EventShape(
    name="VaultCollectionCreated",
    inputs=[
        EventInput(name="collection", type="address", indexed=True),
        EventInput(name="collectionType", type="uint8", indexed=True),
        EventInput(name="name", type="string"),
    ],
    address_field="collection",
)
