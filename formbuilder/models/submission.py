from sqlalchemy import Column, DateTime, ForeignKey, String
from sqlalchemy.orm import relationship

from formbuilder.db.base import Base
from formbuilder.models.user import generate_id, utc_now


class Submission(Base):
    __tablename__ = "submissions"

    id = Column(String(36), primary_key=True, default=generate_id)
    form_id = Column(String(36), ForeignKey("forms.id", ondelete="CASCADE"), nullable=False, index=True)
    submitted_at = Column(DateTime(timezone=True), default=utc_now, nullable=False, index=True)

    form = relationship("Form", back_populates="submissions")
    responses = relationship(
        "FieldResponse",
        back_populates="submission",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
    )
