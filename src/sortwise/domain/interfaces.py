"""
Collaborator contracts around the decision and statistics engines.

The engines themselves never touch these; the scan workflow and the CLI wire
concrete implementations (SQLite repository, local image store) to them.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional, Union

from sortwise.domain.models import FeedbackAnnotation, ScanRecord


@dataclass(frozen=True)
class ImageRef:
    """Location of a stored image."""
    url: str
    sha256: Optional[str] = None
    size_bytes: Optional[int] = None
    content_type: Optional[str] = None


class ImageStore(ABC):
    """Port: stores a captured or uploaded image and hands back a URL."""

    @abstractmethod
    def upload(self, data: Union[bytes, str]) -> ImageRef:
        """
        Store an image.

        Args:
            data: Raw image bytes or a ``data:`` URI.

        Returns:
            ImageRef whose ``url`` is kept on the scan record as an opaque string.
        """
        ...


class IdentityProvider(ABC):
    """Port: yields the identifier of the signed-in user."""

    @abstractmethod
    def current_owner(self) -> str:
        ...


class ScanRepository(ABC):
    """Port: append-only scan storage."""

    @abstractmethod
    def append(self, record: ScanRecord) -> ScanRecord:
        """Store a new record and return it with its ``scan_id`` set."""
        ...

    @abstractmethod
    def get(self, scan_id: int) -> Optional[ScanRecord]:
        ...

    @abstractmethod
    def list_for_owner(self, owner_id: str) -> List[ScanRecord]:
        """Return an owner's records in creation order."""
        ...


class FeedbackChannel(ABC):
    """Port: append-only feedback annotations on earlier scans."""

    @abstractmethod
    def append_feedback(self, feedback: FeedbackAnnotation) -> FeedbackAnnotation:
        ...

    @abstractmethod
    def list_feedback(self, owner_id: Optional[str] = None) -> List[FeedbackAnnotation]:
        ...


class StaticIdentity(IdentityProvider):
    """Identity provider for a fixed, already-authenticated user."""

    def __init__(self, owner_id: str):
        if not owner_id:
            raise ValueError("owner_id must be a non-empty string")
        self.owner_id = owner_id

    def current_owner(self) -> str:
        return self.owner_id
