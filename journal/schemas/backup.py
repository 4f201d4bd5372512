"""Pydantic schema of the backup document."""

from pydantic import BaseModel, ConfigDict, Field, field_validator

from journal.utils.constants import BACKUP_SCHEMA_VERSION


class BackupDocument(BaseModel):
    """``{schemaVersion, account, trades, transactions, exportedAt}``.

    Records stay as loose dicts here; the wire codec normalises them.
    """

    model_config = ConfigDict(populate_by_name=True)

    schema_version: int = Field(alias="schemaVersion")
    account: dict
    trades: list[dict] = Field(default_factory=list)
    transactions: list[dict] = Field(default_factory=list)
    exported_at: str | None = Field(default=None, alias="exportedAt")

    @field_validator("schema_version")
    @classmethod
    def _known_version(cls, value: int) -> int:
        if value > BACKUP_SCHEMA_VERSION or value < 1:
            raise ValueError(f"unsupported backup schema version {value}")
        return value
