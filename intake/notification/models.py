from dataclasses import dataclass


@dataclass(frozen=True)
class NotificationPayload:
    """Body POSTed to the downstream processing webhook."""

    document_id: str
    storage_path: str
    public_url: str | None
    file_name: str
    owner_id: str

    def to_json(self) -> dict[str, str | None]:
        return {
            "documentId": self.document_id,
            "storagePath": self.storage_path,
            "publicURL": self.public_url,
            "fileName": self.file_name,
            "ownerId": self.owner_id,
        }
