from typing import Dict, List, Any
import logging

from sqlalchemy import func
from sqlalchemy.orm import Session

from formbuilder.core.exceptions import NotFoundError
from formbuilder.models.form import Form, FormField
from formbuilder.models.submission import Submission
from formbuilder.schemas.form import FormCreateRequest, FormOut, FormSummaryOut

logger = logging.getLogger(__name__)


def serialize_form(form: Form) -> Dict[str, Any]:
    return FormOut.model_validate(form).model_dump(mode="json")


def create_form(db: Session, owner_id: str, form_in: FormCreateRequest) -> Dict[str, Any]:
    """
    Create a form together with its fields in one transaction

    Parameters:
    - db: Database session
    - owner_id: ID of the authenticated user creating the form
    - form_in: Validated FormCreateRequest

    Returns:
    - Dictionary with the form details and its fields
    """
    new_form = Form(
        title=form_in.title,
        description=form_in.description,
        user_id=owner_id,
    )
    new_form.fields = [
        FormField(
            field_id=field.field_id,
            type=field.type,
            label=field.label,
            required=field.required,
        )
        for field in form_in.fields
    ]

    try:
        db.add(new_form)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(new_form)
    logger.info(f"Form {new_form.id} created by user {owner_id} with {len(new_form.fields)} fields")
    return serialize_form(new_form)


def get_form_model(db: Session, form_id: str) -> Form:
    form = db.query(Form).filter(Form.id == form_id).first()
    if not form:
        raise NotFoundError("Form not found")
    return form


def get_form(db: Session, form_id: str) -> Dict[str, Any]:
    """Public read of a single form with its fields"""
    return serialize_form(get_form_model(db, form_id))


def list_forms(db: Session, owner_id: str) -> List[Dict[str, Any]]:
    """
    Get all forms owned by a user, newest first

    Each form carries its fields and the number of submissions it received.
    """
    submission_counts = (
        db.query(Submission.form_id, func.count(Submission.id).label("submission_count"))
        .group_by(Submission.form_id)
        .subquery()
    )

    rows = (
        db.query(Form, func.coalesce(submission_counts.c.submission_count, 0))
        .outerjoin(submission_counts, submission_counts.c.form_id == Form.id)
        .filter(Form.user_id == owner_id)
        .order_by(Form.created_at.desc(), Form.id.desc())
        .all()
    )

    result = []
    for form, submission_count in rows:
        summary = FormSummaryOut.model_validate(form).model_copy(update={"submission_count": submission_count})
        result.append(summary.model_dump(mode="json"))
    return result


def delete_form(db: Session, form: Form) -> None:
    """Hard delete a form; fields, submissions and responses go with it"""
    form_id = form.id
    try:
        db.delete(form)
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info(f"Form {form_id} deleted")
