from sqlalchemy import Column, ForeignKey, String, Text
from sqlalchemy.orm import relationship

from formbuilder.db.base import Base
from formbuilder.models.user import generate_id


class FieldResponse(Base):
    __tablename__ = "field_responses"

    id = Column(String(36), primary_key=True, default=generate_id)
    field_id = Column(String(36), ForeignKey("form_fields.id", ondelete="CASCADE"), nullable=False, index=True)
    submission_id = Column(String(36), ForeignKey("submissions.id", ondelete="CASCADE"), nullable=False, index=True)
    value = Column(Text, nullable=False)  # stored as text whatever the field type

    form_field = relationship("FormField", back_populates="responses", lazy="joined")
    submission = relationship("Submission", back_populates="responses")
