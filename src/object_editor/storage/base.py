"""Abstract base class for the object storage backends used by the editor."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from ..location import ObjectLocation

# Fingerprint of an object that does not exist remotely.
ABSENT_FINGERPRINT = "absent"

# Reported when a conflict was detected but the current version could not be read.
UNKNOWN_FINGERPRINT = "unknown"

DEFAULT_CONTENT_TYPE = "application/octet-stream"


@dataclass(frozen=True)
class ObjectSnapshot:
    """Content of a remote object together with its version fingerprint."""

    content: bytes
    fingerprint: str
    content_type: str = DEFAULT_CONTENT_TYPE
    metadata: dict[str, str] = field(default_factory=dict)

    @property
    def exists(self) -> bool:
        return self.fingerprint != ABSENT_FINGERPRINT

    @classmethod
    def absent(cls, content_type: str = DEFAULT_CONTENT_TYPE) -> "ObjectSnapshot":
        """Empty snapshot standing in for an object that has not been created yet."""
        return cls(content=b"", fingerprint=ABSENT_FINGERPRINT, content_type=content_type)


@dataclass(frozen=True)
class Written:
    """Conditional write succeeded."""

    new_fingerprint: str


@dataclass(frozen=True)
class Conflict:
    """Conditional write was rejected because the remote object changed."""

    actual_fingerprint: str


WriteResult = Written | Conflict


class StorageBackend(ABC):
    """Provider-agnostic fetch and optimistic-concurrency write of single objects."""

    @abstractmethod
    def fetch(self, location: ObjectLocation) -> ObjectSnapshot:
        """Download the object and its current fingerprint.

        Raises StorageNotFoundError if the object does not exist.
        """

    @abstractmethod
    def conditional_write(
        self,
        location: ObjectLocation,
        content: bytes,
        expected_fingerprint: str,
        *,
        content_type: str | None = None,
        metadata: dict[str, str] | None = None,
    ) -> WriteResult:
        """Upload content only if the remote fingerprint still equals expected_fingerprint.

        An expected fingerprint of ABSENT_FINGERPRINT means the object must not
        exist yet. A precondition failure is returned as Conflict, never raised.
        """
