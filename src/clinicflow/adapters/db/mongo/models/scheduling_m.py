"""
MongoDB Beanie models for the service catalog, orders and appointments.
"""

from datetime import datetime
from typing import List, Optional

from beanie import Document
from pydantic import BaseModel, Field

from clinicflow.domain.enums.appointment import AppointmentStatus


class ServiceMongo(Document):
    """MongoDB document for a bookable treatment service."""

    service_id: str = Field(..., description="Service ID", unique=True)
    name: str = Field(..., description="Display name")
    base_price: float = Field(..., ge=0, description="List price of the full package")
    default_sessions: int = Field(default=1, ge=1, description="Sessions in a new package")
    is_active: bool = Field(default=True, description="Whether the service can be booked")
    created_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "services"
        indexes = ["service_id", "is_active"]


class OrderMongo(Document):
    """MongoDB document for a purchased treatment package."""

    order_id: str = Field(..., description="Order ID", unique=True)
    patient_id: str = Field(..., description="Owning patient")
    service_id: str = Field(..., description="Service the package is for")
    total_sessions: int = Field(..., ge=1, description="Sessions bought")
    final_price: Optional[float] = Field(None, ge=0, description="Agreed package price")
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "orders"
        indexes = ["order_id", "patient_id", [("patient_id", 1), ("created_at", 1)]]


class AppointmentServiceMongo(BaseModel):
    """Embedded session row of an appointment (no revision_id)."""

    appointment_service_id: str = Field(..., description="Appointment service ID")
    order_id: str = Field(..., description="Order the session consumes")
    service_id: str = Field(..., description="Service performed")
    session_number: Optional[int] = Field(None, ge=1, description="Position within the package")


class AppointmentMongo(Document):
    """MongoDB document for an appointment and its sessions."""

    appointment_id: str = Field(..., description="Appointment ID", unique=True)
    patient_id: str = Field(..., description="Patient ID")
    scheduled_date: datetime = Field(..., description="Start of the appointment")
    duration_minutes: int = Field(default=30, description="Length in minutes")
    status: AppointmentStatus = Field(default=AppointmentStatus.RESERVED)
    reservation_amount: Optional[float] = Field(None, ge=0)
    notes: str = Field(default="")
    appointment_services: List[AppointmentServiceMongo] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "appointments"
        indexes = [
            "appointment_id",
            "patient_id",
            "appointment_services.order_id",
            [("patient_id", 1), ("scheduled_date", -1)],
        ]


DOCUMENT_MODELS = [ServiceMongo, OrderMongo, AppointmentMongo]
