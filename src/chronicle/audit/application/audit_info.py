"""Parameters describing one audited mutation."""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, InstanceOf, field_validator

from chronicle.audit.application.audit_record_builder import parse_operation, require_text
from chronicle.audit.domain.audit_context import AuditContext
from chronicle.audit.domain.constants import MAX_TABLE_NAME_LENGTH
from chronicle.audit.domain.operation import Operation


class AuditInfo(BaseModel):
    """What is being mutated, by whom, and the snapshots around the mutation."""

    model_config = ConfigDict(frozen=True)

    table_name: str = Field(min_length=1, max_length=MAX_TABLE_NAME_LENGTH)
    record_id: str = Field(min_length=1)
    operation: Operation
    context: InstanceOf[AuditContext] = Field(default_factory=AuditContext)
    old_values: Optional[dict[str, Any]] = None
    new_values: Optional[dict[str, Any]] = None

    @field_validator("table_name", mode="before")
    @classmethod
    def check_table_name(cls, value: Any) -> str:
        return require_text("table_name", value, MAX_TABLE_NAME_LENGTH)

    @field_validator("record_id", mode="before")
    @classmethod
    def check_record_id(cls, value: Any) -> str:
        # Record ids are not type-checked against the target table
        return require_text("record_id", value)

    @field_validator("operation", mode="before")
    @classmethod
    def coerce_operation(cls, value: Any) -> Operation:
        return parse_operation(value)

    @field_validator("context", mode="before")
    @classmethod
    def coerce_context(cls, value: Any) -> AuditContext:
        if isinstance(value, AuditContext):
            return value
        if isinstance(value, dict):
            return AuditContext.from_mapping(value)
        return AuditContext()
