import enum

from sqlalchemy import Boolean, Column, DateTime, Enum, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import relationship

from formbuilder.db.base import Base
from formbuilder.models.user import generate_id, utc_now


class FieldType(str, enum.Enum):
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"


class Form(Base):
    __tablename__ = "forms"
    id = Column(String(36), primary_key=True, default=generate_id)
    title = Column(String(100), nullable=False)
    description = Column(String(500), nullable=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False)

    owner = relationship("User", back_populates="forms")
    fields = relationship(
        "FormField",
        back_populates="form",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
    )
    submissions = relationship(
        "Submission",
        back_populates="form",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class FormField(Base):
    __tablename__ = "form_fields"
    __table_args__ = (UniqueConstraint("form_id", "field_id", name="uq_form_fields_form_field"),)

    id = Column(String(36), primary_key=True, default=generate_id)
    form_id = Column(String(36), ForeignKey("forms.id", ondelete="CASCADE"), nullable=False, index=True)
    field_id = Column(String, nullable=False)  # public identifier used by respondents
    type = Column(Enum(FieldType, values_callable=lambda e: [m.value for m in e], native_enum=False), nullable=False)
    label = Column(String, nullable=False)
    required = Column(Boolean, nullable=False, default=False)

    form = relationship("Form", back_populates="fields")
    responses = relationship(
        "FieldResponse",
        back_populates="form_field",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
