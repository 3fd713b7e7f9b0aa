from typing import Any, Dict, List
import logging

from sqlalchemy.orm import Session

from formbuilder.core.exceptions import ValidationFailedError
from formbuilder.crud.forms import get_form_model
from formbuilder.models.form_response import FieldResponse
from formbuilder.models.submission import Submission
from formbuilder.schemas.form import FormResponseItem
from formbuilder.utils.helpers import coerce_stored_value, format_datetime, stringify_value

logger = logging.getLogger(__name__)


def submit_form(db: Session, form_id: str, responses: List[FormResponseItem]) -> str:
    """
    Accept a respondent's answers to a form

    Parameters:
    - db: Database session
    - form_id: ID of the form being answered
    - responses: Validated response items

    Returns:
    - The ID of the new submission
    """
    form = get_form_model(db, form_id)

    submitted_field_ids = {response.field_id for response in responses}

    # Check if all required fields are provided
    missing_fields = [
        field.field_id for field in form.fields
        if field.required and field.field_id not in submitted_field_ids
    ]
    if missing_fields:
        raise ValidationFailedError(f"Missing required fields: {', '.join(missing_fields)}")

    # Validate field IDs
    field_mapping = {field.field_id: field.id for field in form.fields}
    invalid_fields = [response.field_id for response in responses if response.field_id not in field_mapping]
    if invalid_fields:
        raise ValidationFailedError(f"Invalid field IDs: {', '.join(invalid_fields)}")

    if not responses:
        raise ValidationFailedError("At least one response is required")

    new_submission = Submission(form_id=form.id)
    new_submission.responses = [
        FieldResponse(
            field_id=field_mapping[response.field_id],
            value=stringify_value(response.value),
        )
        for response in responses
    ]

    try:
        db.add(new_submission)
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(f"Submission {new_submission.id} recorded for form {form.id}")
    return new_submission.id


def format_submission(submission: Submission) -> Dict[str, Any]:
    data = {}
    for response in submission.responses:
        data[response.form_field.field_id] = coerce_stored_value(response.value)

    return {
        "submission_id": submission.id,
        "submitted_at": format_datetime(submission.submitted_at),
        "data": data,
    }


def list_submissions(db: Session, form_id: str, page: int = 1, limit: int = 10) -> Dict[str, Any]:
    """
    Get one page of a form's submissions, newest first

    Returns:
    - Dictionary with total_count, page, limit and the formatted submissions
    """
    query = db.query(Submission).filter(Submission.form_id == form_id)

    # Get total count for pagination
    total_count = query.count()

    submissions = (
        query
        .order_by(Submission.submitted_at.desc(), Submission.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )

    return {
        "total_count": total_count,
        "page": page,
        "limit": limit,
        "submissions": [format_submission(submission) for submission in submissions],
    }
