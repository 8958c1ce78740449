"""Transaction parser schemas."""

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Transaction(BaseModel):
    """Indexed transaction, immutable once created."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    hash: str = Field(..., description="Transaction hash")
    from_address: str = Field(..., alias="from", description="Sender address")
    to_address: str = Field(..., alias="to", description="Recipient address")
    value: str = Field(..., description="Raw hex value, not converted")
    block_height: int = Field(
        ..., alias="block", description="Height reported by the containing block"
    )


class RawTransaction(BaseModel):
    """Transaction object as returned inside eth_getBlockByNumber.

    Missing or null fields decode to defaults so one incomplete transaction
    never fails the whole block.
    """

    hash: str = ""
    from_address: str = Field("", alias="from")
    to_address: str = Field("", alias="to")
    value: str = "0x0"

    @field_validator("hash", "from_address", "to_address", mode="before")
    @classmethod
    def _null_to_empty(cls, v: str | None) -> str:
        # Contract creations carry "to": null
        return "" if v is None else v

    @field_validator("value", mode="before")
    @classmethod
    def _null_value(cls, v: str | None) -> str:
        return "0x0" if v is None else v


class RawBlock(BaseModel):
    """Block object as returned by eth_getBlockByNumber with full transactions."""

    number: str | None = None
    hash: str | None = None
    transactions: list[RawTransaction] = Field(default_factory=list)


class CurrentBlockResponse(BaseModel):
    """Response for the current block query."""

    model_config = ConfigDict(populate_by_name=True)

    current_block: int = Field(..., alias="currentBlock", description="Cursor height")


class SubscribeRequest(BaseModel):
    """Request to add an address to the watchlist."""

    address: str = Field(..., min_length=1, description="Address to watch")


class SubscribeResponse(BaseModel):
    """Result of a subscribe request."""

    subscribed: bool = Field(..., description="False if already subscribed")
