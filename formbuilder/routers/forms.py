from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from formbuilder.crud import forms as forms_crud
from formbuilder.crud import submissions as submissions_crud
from formbuilder.db.session import get_db
from formbuilder.dependencies.auth import get_current_user, get_owned_form
from formbuilder.models.form import Form
from formbuilder.schemas.common import success_response
from formbuilder.schemas.form import FormCreateRequest, FormSubmitRequest, PaginationParams
from formbuilder.schemas.user import CurrentUser

router = APIRouter(prefix="/forms", tags=["forms"])


@router.post("/create", status_code=status.HTTP_201_CREATED)
def create_form(
    form_data: FormCreateRequest,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Create a new form with its fields"""
    form = forms_crud.create_form(db, current_user.id, form_data)
    return success_response(form, message="Form created successfully", status_code=status.HTTP_201_CREATED)


@router.delete("/delete/{form_id}")
def delete_form(
    form: Form = Depends(get_owned_form),
    db: Session = Depends(get_db),
):
    """Delete a form owned by the current user"""
    forms_crud.delete_form(db, form)
    return success_response(message="Form deleted successfully")


@router.get("/")
def list_forms(
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Get all forms of the current user"""
    return success_response(forms_crud.list_forms(db, current_user.id))


@router.post("/submit/{form_id}", status_code=status.HTTP_201_CREATED)
def submit_form(
    form_id: str,
    submission: FormSubmitRequest,
    db: Session = Depends(get_db),
):
    """Submit a response to a form"""
    submission_id = submissions_crud.submit_form(db, form_id, submission.responses)
    return success_response(
        {"submission_id": submission_id},
        message="Form submitted successfully",
        status_code=status.HTTP_201_CREATED,
    )


@router.get("/submissions/{form_id}")
def list_submissions(
    pagination: Annotated[PaginationParams, Query()],
    form: Form = Depends(get_owned_form),
    db: Session = Depends(get_db),
):
    """Get a page of a form's submissions"""
    page = submissions_crud.list_submissions(db, form.id, pagination.page, pagination.limit)
    return success_response(**page)


@router.get("/{form_id}")
def get_form(form_id: str, db: Session = Depends(get_db)):
    """Get a form by ID"""
    return success_response(forms_crud.get_form(db, form_id))
