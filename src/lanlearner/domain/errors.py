class StorageQuotaExceeded(Exception):
    """Raised when a write would exceed the storage budget.

    Recoverable: the caller should prompt for cleanup. Nothing from the
    failed write has been persisted.
    """

    def __init__(self, key: str, required_bytes: int, quota_bytes: int):
        self.key = key
        self.required_bytes = required_bytes
        self.quota_bytes = quota_bytes
        super().__init__(
            f"Storage quota exceeded while saving '{key}': "
            f"{required_bytes} bytes needed, {quota_bytes} allowed"
        )
