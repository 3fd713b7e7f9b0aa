# =============================================================================
# tests/test_forms.py - Form CRUD and the Ownership Gate
# =============================================================================

from datetime import datetime

from fastapi.testclient import TestClient
from sqlalchemy import event

from formbuilder.models.form import Form, FormField
from formbuilder.models.form_response import FieldResponse
from formbuilder.models.submission import Submission


class TestCreateForm:
    def test_create_form_with_fields(self, client, register_user, sample_form_payload):
        user, token = register_user()

        response = client.post(
            "/forms/create",
            json=sample_form_payload,
            headers={"Authorization": f"Bearer {token}"},
        )

        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "Form created successfully"
        form = body["data"]
        assert form["title"] == "Event signup"
        assert form["description"] == "Tell us who is coming"
        assert form["user_id"] == user["id"]
        assert form["created_at"] and form["updated_at"]

        fields = {field["field_id"]: field for field in form["fields"]}
        assert set(fields) == {"name", "age", "vegetarian"}
        assert fields["name"]["type"] == "string"
        assert fields["name"]["required"] is True
        # required defaults to false
        assert fields["age"]["required"] is False
        assert all(field["id"] for field in form["fields"])

    def test_create_form_requires_authentication(self, client, db, sample_form_payload):
        response = client.post("/forms/create", json=sample_form_payload)

        assert response.status_code == 401
        assert db.query(Form).count() == 0

    def test_create_form_without_fields(self, client, auth_headers, db):
        response = client.post("/forms/create", json={"title": "Empty", "fields": []}, headers=auth_headers)

        assert response.status_code == 400
        assert "fields" in response.json()["message"]
        assert db.query(Form).count() == 0

    def test_create_form_rejects_unknown_field_type(self, client, auth_headers):
        payload = {
            "title": "Bad type",
            "fields": [{"field_id": "when", "type": "date", "label": "When"}],
        }

        response = client.post("/forms/create", json=payload, headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["errors"][0]["path"] == "fields.0.type"

    def test_create_form_rejects_long_title_and_description(self, client, auth_headers):
        payload = {
            "title": "x" * 101,
            "description": "y" * 501,
            "fields": [{"field_id": "a", "type": "string", "label": "A"}],
        }

        response = client.post("/forms/create", json=payload, headers=auth_headers)

        assert response.status_code == 400
        paths = {error["path"] for error in response.json()["errors"]}
        assert {"title", "description"} <= paths

    def test_create_form_rejects_duplicate_field_ids(self, client, auth_headers, db):
        payload = {
            "title": "Dupes",
            "fields": [
                {"field_id": "email", "type": "string", "label": "Email"},
                {"field_id": "email", "type": "string", "label": "Email again"},
            ],
        }

        response = client.post("/forms/create", json=payload, headers=auth_headers)

        assert response.status_code == 400
        assert "Duplicate field IDs: email" in response.json()["message"]
        assert db.query(FormField).count() == 0

    def test_failed_write_leaves_no_partial_form(self, app, db, auth_headers, sample_form_payload):
        def fail_after_insert(session, flush_context):
            if any(isinstance(obj, FormField) for obj in session.new):
                raise RuntimeError("disk full")

        event.listen(app.state.session_factory, "after_flush", fail_after_insert)
        try:
            client = TestClient(app, raise_server_exceptions=False)
            response = client.post("/forms/create", json=sample_form_payload, headers=auth_headers)
        finally:
            event.remove(app.state.session_factory, "after_flush", fail_after_insert)

        assert response.status_code == 500
        assert db.query(Form).count() == 0
        assert db.query(FormField).count() == 0


class TestListForms:
    def test_lists_own_forms_newest_first_with_counts(
        self, client, db, register_user, create_form, sample_form_payload
    ):
        _, token = register_user()
        headers = {"Authorization": f"Bearer {token}"}
        first = create_form(headers, {**sample_form_payload, "title": "First"})
        second = create_form(headers, {**sample_form_payload, "title": "Second"})

        # Make the ordering independent of clock resolution
        db.query(Form).filter(Form.id == first["id"]).update({Form.created_at: datetime(2024, 1, 1)})
        db.commit()

        _, other_token = register_user(username="other", email="other@example.com")
        create_form({"Authorization": f"Bearer {other_token}"}, {**sample_form_payload, "title": "Not mine"})

        client.post(f"/forms/submit/{first['id']}", json={"responses": [{"field_id": "name", "value": "A"}]})
        client.post(f"/forms/submit/{first['id']}", json={"responses": [{"field_id": "name", "value": "B"}]})

        response = client.get("/forms/", headers=headers)

        assert response.status_code == 200
        forms = response.json()["data"]
        assert [form["id"] for form in forms] == [second["id"], first["id"]]
        assert forms[0]["submission_count"] == 0
        assert forms[1]["submission_count"] == 2
        assert len(forms[1]["fields"]) == 3

    def test_empty_list(self, client, auth_headers):
        response = client.get("/forms/", headers=auth_headers)

        assert response.status_code == 200
        assert response.json() == {"status": "success", "data": []}

    def test_list_requires_authentication(self, client):
        assert client.get("/forms/").status_code == 401


class TestGetForm:
    def test_get_form_is_public(self, client, auth_headers, create_form, sample_form_payload):
        created = create_form(auth_headers, sample_form_payload)

        response = client.get(f"/forms/{created['id']}")

        assert response.status_code == 200
        form = response.json()["data"]
        assert form["id"] == created["id"]
        assert len(form["fields"]) == 3

    def test_get_missing_form(self, client):
        response = client.get("/forms/does-not-exist")

        assert response.status_code == 404
        assert response.json() == {"status": "error", "statusCode": 404, "message": "Form not found"}


class TestDeleteForm:
    def test_owner_deletes_form_and_everything_under_it(self, client, db, auth_headers, create_form, sample_form_payload):
        form = create_form(auth_headers, sample_form_payload)
        submit = client.post(
            f"/forms/submit/{form['id']}",
            json={"responses": [{"field_id": "name", "value": "Alice"}, {"field_id": "age", "value": 30}]},
        )
        assert submit.status_code == 201

        response = client.delete(f"/forms/delete/{form['id']}", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["message"] == "Form deleted successfully"
        assert db.query(Form).filter(Form.id == form["id"]).first() is None
        assert db.query(FormField).filter(FormField.form_id == form["id"]).count() == 0
        assert db.query(Submission).filter(Submission.form_id == form["id"]).count() == 0
        assert db.query(FieldResponse).count() == 0
        assert client.get(f"/forms/{form['id']}").status_code == 404

    def test_other_user_cannot_delete(self, client, db, register_user, create_form, sample_form_payload):
        _, owner_token = register_user()
        form = create_form({"Authorization": f"Bearer {owner_token}"}, sample_form_payload)
        _, intruder_token = register_user(username="intruder", email="intruder@example.com")

        response = client.delete(
            f"/forms/delete/{form['id']}",
            headers={"Authorization": f"Bearer {intruder_token}"},
        )

        assert response.status_code == 403
        assert response.json()["message"] == "You do not have permission to access this form"
        assert db.query(Form).count() == 1

    def test_delete_missing_form(self, client, auth_headers):
        response = client.delete("/forms/delete/nope", headers=auth_headers)

        assert response.status_code == 404

    def test_delete_requires_authentication(self, client, auth_headers, create_form, sample_form_payload):
        form = create_form(auth_headers, sample_form_payload)

        response = client.delete(f"/forms/delete/{form['id']}")

        assert response.status_code == 401
