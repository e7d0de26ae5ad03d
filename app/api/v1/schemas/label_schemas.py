"""
Esquemas de request/response para los endpoints de etiquetas y del proxy del transportista.
"""

from typing import Any

from pydantic import BaseModel, Field, field_validator

from app.domain.models import Parcel, ShipmentRequest, ShippingAddress


class GenerateLabelRequest(BaseModel):
    """Modelo para generar la etiqueta de un pedido."""

    manual_shipment_id: str | None = Field(
        None,
        max_length=128,
        description="Id de envío del transportista introducido por el operador",
    )
    simulate: bool = Field(
        False,
        description="Si True, no se llama al transportista ni se genera coste",
    )
    confirm_reprint: bool = Field(
        False,
        description="Confirmación explícita para reimprimir un pedido ya etiquetado",
    )


class PrintLabelRequest(BaseModel):
    """Modelo para imprimir la etiqueta de un envío existente."""

    shipment_id: str = Field(..., min_length=1, description="Id de envío del transportista")
    simulate: bool = Field(False, description="Modo simulación")

    @field_validator("shipment_id", mode="before")
    @classmethod
    def coerce_shipment_id(cls, v: Any) -> Any:
        """Los ids numéricos se aceptan pero siempre se tratan como texto."""
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v


class AddressSchema(BaseModel):
    """Dirección de remitente o destinatario."""

    name: str
    email: str = ""
    address_line1: str
    city: str
    country: str = Field(..., min_length=2, max_length=2, description="Código ISO de país")
    postal_code: str

    def to_domain(self) -> ShippingAddress:
        return ShippingAddress(**self.model_dump())


class ParcelSchema(BaseModel):
    """Descriptor de bulto (peso en kg, dimensiones en cm)."""

    weight: float = Field(..., gt=0)
    height: int = Field(..., gt=0)
    length: int = Field(..., gt=0)
    width: int = Field(..., gt=0)
    contents: str = ""

    def to_domain(self) -> Parcel:
        return Parcel(**self.model_dump())


class BookShipmentRequest(BaseModel):
    """Modelo para reservar un envío nuevo a través del proxy."""

    reference: str = Field(..., min_length=1, description="Referencia del pedido")
    sender: AddressSchema
    receiver: AddressSchema
    parcels: list[ParcelSchema] = Field(..., min_length=1)
    carrier_product_id: str = Field(..., min_length=1, description="Producto del transportista")
    simulate: bool = Field(False, description="Modo simulación")

    def to_domain(self) -> ShipmentRequest:
        """Convierte el request al modelo de dominio."""
        return ShipmentRequest(
            reference=self.reference,
            sender=self.sender.to_domain(),
            receiver=self.receiver.to_domain(),
            parcels=tuple(parcel.to_domain() for parcel in self.parcels),
            carrier_product_id=self.carrier_product_id,
        )
