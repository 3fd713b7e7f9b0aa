from datetime import datetime
from typing import List, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictFloat,
    StrictInt,
    StrictStr,
    field_serializer,
    field_validator,
)

from formbuilder.models.form import FieldType
from formbuilder.utils.helpers import format_datetime


class FormFieldCreate(BaseModel):
    field_id: str = Field(..., min_length=1)
    type: FieldType
    label: str = Field(..., min_length=1)
    required: bool = False


class FormCreateRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    fields: List[FormFieldCreate] = Field(..., min_length=1)

    @field_validator("fields")
    @classmethod
    def unique_field_ids(cls, v):
        seen = set()
        duplicates = []
        for field in v:
            if field.field_id in seen and field.field_id not in duplicates:
                duplicates.append(field.field_id)
            seen.add(field.field_id)
        if duplicates:
            raise ValueError(f"Duplicate field IDs: {', '.join(duplicates)}")
        return v


class FormResponseItem(BaseModel):
    field_id: str = Field(..., min_length=1)
    # Bool first so true/false are never read as numbers
    value: Union[StrictBool, StrictInt, StrictFloat, StrictStr]


class FormSubmitRequest(BaseModel):
    # An empty list is rejected by the submission rules after required fields are reported
    responses: List[FormResponseItem]


class PaginationParams(BaseModel):
    page: int = Field(1, ge=1, le=1_000_000_000)
    limit: int = Field(10, ge=1, le=100)


class FormFieldOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    field_id: str
    type: FieldType
    label: str
    required: bool


class FormOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    description: Optional[str] = None
    user_id: str
    created_at: datetime
    updated_at: datetime
    fields: List[FormFieldOut]

    @field_serializer("created_at", "updated_at")
    def serialize_timestamps(self, value: datetime):
        return format_datetime(value)


class FormSummaryOut(FormOut):
    submission_count: int = 0
