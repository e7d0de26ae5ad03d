"""
Simulation and mock-label helpers shared by the carrier proxy clients.
"""

import uuid

from app.domain.models import LabelOperationResult

SIMULATION_WARNING = "Simulation mode: no real booking was made and no charge was incurred."
SIMULATED_PRINT_WARNING = "Simulation mode: placeholder label returned, the carrier was not contacted."
MISSING_KEY_WARNING = "Carrier API key is not configured; returned a mock label (no booking was made)."


def new_mock_shipment_id() -> str:
    """Mock shipment id, unique within a session (not cryptographic)."""
    return f"SIM-{uuid.uuid4().hex[:10].upper()}"


def simulated_booking(placeholder_label_url: str) -> LabelOperationResult:
    """Result of a simulated booking."""
    return LabelOperationResult.success(
        label_url=placeholder_label_url,
        shipment_id=new_mock_shipment_id(),
        warning=SIMULATION_WARNING,
    )


def simulated_print(shipment_id: str, placeholder_label_url: str) -> LabelOperationResult:
    """Result of a simulated print of an existing shipment id."""
    return LabelOperationResult.success(
        label_url=placeholder_label_url,
        shipment_id=str(shipment_id),
        warning=SIMULATED_PRINT_WARNING,
    )


def placeholder_booking(placeholder_label_url: str, warning: str) -> LabelOperationResult:
    """Fail-open booking result: usable placeholder label plus a warning."""
    return LabelOperationResult.success(
        label_url=placeholder_label_url,
        shipment_id=new_mock_shipment_id(),
        warning=warning,
    )


def booking_failed_warning(status: int | None, body: str) -> str:
    """Warning text for a real booking that failed upstream."""
    status_text = f"HTTP {status}" if status else "no response"
    return f"Real booking failed ({status_text}): {body or 'empty response'}. Using placeholder label."
