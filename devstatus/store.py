import json
import logging
from typing import Any, Optional

from sqlalchemy import Text, cast, insert
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import SQLModel, select

from .db import get_session
from .models import DeviceStatus
from .schemas import StatusOut

log = logging.getLogger("devstatus.store")


class StoreError(Exception):
    """Raised when the database rejects or fails a read or write."""


class PayloadEncodeError(StoreError):
    """The payload cannot be serialized to JSON; nothing was written."""


class PayloadDecodeError(StoreError):
    """A stored row exists but its data column is not a JSON object."""


class StatusStore:
    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    def init(self) -> None:
        # CREATE TABLE / INDEX IF NOT EXISTS; errors are fatal to the caller
        SQLModel.metadata.create_all(self.engine)
        log.info("device_status table ready")

    def insert(self, serial_no: str, name: Optional[str], payload: Any) -> int:
        if not serial_no:
            raise ValueError("serial_no must be a non-empty string")
        try:
            json.dumps(payload, allow_nan=False)
        except (TypeError, ValueError, RecursionError) as e:
            raise PayloadEncodeError(str(e)) from e

        stmt = (
            insert(DeviceStatus)
            .values(serial_no=serial_no, name=name, data=payload)
            .returning(DeviceStatus.id)
        )
        try:
            with self.engine.begin() as conn:
                return conn.execute(stmt).scalar_one()
        except SQLAlchemyError as e:
            log.exception("insert failed serial_no=%s", serial_no)
            raise StoreError("failed to insert record") from e

    def find_latest(self, serial_no: str) -> Optional[StatusOut]:
        # timestamp and data come back in the database's own text form
        stmt = (
            select(
                DeviceStatus.id,
                DeviceStatus.serial_no,
                DeviceStatus.name,
                cast(DeviceStatus.timestamp, Text),
                cast(DeviceStatus.data, Text),
            )
            .where(DeviceStatus.serial_no == serial_no)
            .order_by(DeviceStatus.timestamp.desc(), DeviceStatus.id.desc())
            .limit(1)
        )
        try:
            with get_session(self.engine) as session:
                row = session.exec(stmt).first()
        except SQLAlchemyError as e:
            log.exception("select failed serial_no=%s", serial_no)
            raise StoreError("failed to read record") from e

        if row is None:
            return None
        status_id, serial, name, timestamp, raw = row

        try:
            data = json.loads(raw)
        except (TypeError, ValueError, RecursionError) as e:
            raise PayloadDecodeError(f"row {status_id}: {e}") from e
        if not isinstance(data, dict):
            raise PayloadDecodeError(f"row {status_id}: data is not a JSON object")

        fields: dict[str, Any] = {"id": status_id, "serialNo": serial, "timestamp": timestamp, "data": data}
        if name is not None:
            fields["name"] = name
        return StatusOut(**fields)
