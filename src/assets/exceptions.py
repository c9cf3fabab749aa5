"""Errors raised by the asset lifecycle services.

Caller-data problems use Django's ``ValidationError``; everything here
describes a failure of the store or of an artifact after validation.
"""


class AssetLifecycleError(Exception):
    """Base class for asset lifecycle failures."""


class PersistenceError(AssetLifecycleError):
    """A store call failed (connection, permission or record not found)."""


class StaleRecordError(PersistenceError):
    """The record changed since the caller read it."""

    def __init__(self, record_id, expected_version, actual_version):
        self.record_id = record_id
        self.expected_version = expected_version
        self.actual_version = actual_version
        super().__init__(
            f"Asset {record_id} is at version {actual_version}, "
            f"expected {expected_version}. Reload and try again."
        )


class SizeExceededError(AssetLifecycleError):
    """A generated QR image is too large to accept."""

    def __init__(self, size, limit, declined=False):
        self.size = size
        self.limit = limit
        self.declined = declined
        if declined:
            message = (
                f"QR image is {size // 1024} KB, above the "
                f"{limit // 1024} KB warning threshold, and was not confirmed."
            )
        else:
            message = (
                f"QR image is {size // 1024} KB, above the "
                f"{limit // 1024} KB limit."
            )
        super().__init__(message)


class ArchivalError(AssetLifecycleError):
    """The archive snapshot could not be written; the live record is intact."""


class PartialDeletionError(AssetLifecycleError):
    """The archive was written but the live record could not be removed."""

    def __init__(self, record_id, archive_id):
        self.record_id = record_id
        self.archive_id = archive_id
        super().__init__(
            f"Asset {record_id} was archived as #{archive_id} but could not "
            f"be removed. Both copies exist and need manual reconciliation."
        )
