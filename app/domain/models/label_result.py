"""
Label operation result and error taxonomy.

LabelOperationResult is the normalized outcome of one carrier interaction.
Failures carry an ErrorKind plus the raw upstream text for diagnostics.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Stable local classification of label failures."""

    MISSING_CREDENTIALS = "MISSING_CREDENTIALS"
    SHIPMENT_NOT_FOUND = "SHIPMENT_NOT_FOUND"
    UPSTREAM_ERROR = "UPSTREAM_ERROR"
    CONNECTIVITY_ERROR = "CONNECTIVITY_ERROR"
    PROXY_INTERNAL_ERROR = "PROXY_INTERNAL_ERROR"

    @classmethod
    def parse(cls, value: Any) -> "ErrorKind | None":
        """Return the matching kind, or None for unknown values."""
        try:
            return cls(value)
        except ValueError:
            return None


@dataclass(frozen=True)
class LabelOperationResult:
    """
    Normalized outcome of one carrier operation.

    Attributes:
        label_url: Label document location (success only)
        shipment_id: Carrier shipment id, always a string
        warning: Human-readable caveat (simulation, mock fallback)
        error_kind: Failure classification (failure only)
        upstream_status: HTTP status returned upstream, if any
        upstream_message: Raw upstream body or exception text
    """

    label_url: str | None = None
    shipment_id: str | None = None
    warning: str | None = None
    error_kind: ErrorKind | None = None
    upstream_status: int | None = None
    upstream_message: str | None = None

    def __post_init__(self) -> None:
        if self.shipment_id is not None and not isinstance(self.shipment_id, str):
            object.__setattr__(self, "shipment_id", str(self.shipment_id))

    @property
    def ok(self) -> bool:
        """Check if the operation succeeded."""
        return self.error_kind is None and bool(self.label_url)

    @classmethod
    def success(cls, label_url: str, shipment_id: str, warning: str | None = None) -> "LabelOperationResult":
        """Build a successful result."""
        return cls(label_url=label_url, shipment_id=str(shipment_id), warning=warning)

    @classmethod
    def failure(
        cls,
        error_kind: ErrorKind,
        upstream_message: str | None = None,
        upstream_status: int | None = None,
        shipment_id: str | None = None,
    ) -> "LabelOperationResult":
        """Build a failed result."""
        return cls(
            error_kind=error_kind,
            upstream_message=upstream_message,
            upstream_status=upstream_status,
            shipment_id=shipment_id,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert result to a JSON-friendly dictionary."""
        return {
            "ok": self.ok,
            "label_url": self.label_url,
            "shipment_id": self.shipment_id,
            "warning": self.warning,
            "error_kind": self.error_kind.value if self.error_kind else None,
            "upstream_status": self.upstream_status,
            "upstream_message": self.upstream_message,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LabelOperationResult":
        """Rebuild a result from its dictionary form."""
        return cls(
            label_url=data.get("label_url"),
            shipment_id=data.get("shipment_id"),
            warning=data.get("warning"),
            error_kind=ErrorKind.parse(data.get("error_kind")) if data.get("error_kind") else None,
            upstream_status=data.get("upstream_status"),
            upstream_message=data.get("upstream_message"),
        )
