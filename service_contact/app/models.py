"""
Domain models for the contact service.
"""

from datetime import datetime, timezone

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_serializer, field_validator


class Message(BaseModel):
    """A stored contact message as persisted and returned to the operator."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: int
    name: str
    email: str
    message: str
    submitter_address: str = Field(
        default="unknown",
        validation_alias=AliasChoices("submitterAddress", "submitter_address", "ip"),
        serialization_alias="submitterAddress",
    )
    received_at: datetime = Field(
        validation_alias=AliasChoices("receivedAt", "received_at"),
        serialization_alias="receivedAt",
    )

    @field_validator("received_at")
    @classmethod
    def _as_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    @field_serializer("received_at")
    def _serialize_received_at(self, value: datetime) -> str:
        return value.isoformat(timespec="milliseconds").replace("+00:00", "Z")

    def to_document(self) -> dict:
        """JSON-ready representation with the public field names."""
        return self.model_dump(mode="json", by_alias=True)
