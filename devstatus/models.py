from typing import Optional
from datetime import datetime
from sqlalchemy import DateTime, Index, text
from sqlalchemy.dialects.postgresql import JSONB
from sqlmodel import SQLModel, Field, Column, JSON

class DeviceStatus(SQLModel, table=True):
    __tablename__ = "device_status"
    __table_args__ = (
        Index("idx_device_status_serial_no", "serial_no"),
        Index("idx_device_status_timestamp", "timestamp"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    serial_no: str = Field(nullable=False)
    name: Optional[str] = None
    # assigned by the database at insert time, never by the caller
    timestamp: Optional[datetime] = Field(
        default=None,
        sa_column=Column(DateTime, nullable=False, server_default=text("CURRENT_TIMESTAMP")),
    )
    data: dict = Field(sa_column=Column(JSON().with_variant(JSONB(), "postgresql"), nullable=False))
