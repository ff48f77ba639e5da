from enum import StrEnum


class IngestionState(StrEnum):
    """Stage reached by an upload in the ingestion pipeline."""

    RECEIVED = "received"  # Upload staged to a temp file
    METADATA_EXTRACTED = "metadata_extracted"  # Tags and artwork parsed
    RECORD_PERSISTED = "record_persisted"  # Song stored without file_url
    ASSET_UPLOADED = "asset_uploaded"  # Audio blob stored, file_url set
    COMPLETE = "complete"
    FAILED = "failed"

    @property
    def is_finished(self) -> bool:
        return self in (self.COMPLETE, self.FAILED)
