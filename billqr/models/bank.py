"""Bank directory record."""

from pydantic import BaseModel, ConfigDict, Field


class BankRecord(BaseModel):
    """
    One entry of the static NAPAS bank directory.

    Records are immutable and loaded once for the process lifetime.
    """
    model_config = ConfigDict(frozen=True)

    code: str = Field(
        ...,
        min_length=1,
        description="Short bank code (e.g. VCB)"
    )
    display_name: str = Field(
        ...,
        min_length=1,
        description="Human-readable short name (e.g. Vietcombank)"
    )
    legal_name: str = Field(
        ...,
        min_length=1,
        description="Full registered Vietnamese name"
    )
    identifier: str = Field(
        ...,
        pattern=r"^[0-9]{6}$",
        description="6-digit bank identifier (BIN) used in payment payloads"
    )
