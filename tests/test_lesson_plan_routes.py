import pytest

STEP_FIELDS = {
    "subject": "Chemistry",
    "grade": "grade9",
    "objectives": "Students will be able to balance equations correctly",
    "standards": "KICD 9.2",
    "materials": "Molecule kits",
    "warmup": "Quiz",
    "introduction": "Conservation of mass",
    "mainActivity": "Pairs practice",
    "closure": "Summary",
    "differentiation": "Scaffolded sheet",
    "formativeAssessment": "Mini whiteboards",
    "summativeAssessment": "End of unit test",
}


def _act(client, **payload):
    r = client.post('/lesson-plans/draft/actions', json=payload)
    assert r.status_code == 200, r.get_json()
    return r.get_json()


def _fill(client):
    for name, value in STEP_FIELDS.items():
        _act(client, type="set_field", name=name, value=value)
    _act(client, type="toggle_allocation", name="Quizzes")
    _act(client, type="set_allocation", name="Quizzes", value="30")
    _act(client, type="toggle_allocation", name="Final Exams")
    _act(client, type="set_allocation", name="Final Exams", value="70")
    _act(client, type="toggle_allocation", name="Tests")
    _act(client, type="set_total_units", value=1)
    return _act(client, type="set_unit", index=0, title="Stoichiometry", duration="3 weeks")


def test_draft_tracks_allocations(teacher_client):
    body = _act(teacher_client, type="toggle_allocation", name="Quizzes")
    assert body["draft"]["assessments"] == {"Quizzes": 0}
    body = _act(teacher_client, type="set_allocation", name="Quizzes", value="45")
    assert body["assessmentTotal"] == 45
    body = _act(teacher_client, type="set_allocation", name="Quizzes", value="0")
    assert body["draft"]["assessments"] == {}


def test_unknown_action_is_rejected(teacher_client):
    r = teacher_client.post('/lesson-plans/draft/actions', json={"type": "launch"})
    assert r.status_code == 400


def test_submit_requires_complete_draft(teacher_client):
    _act(teacher_client, type="set_field", name="subject", value="Chemistry")
    r = teacher_client.post('/lesson-plans/draft/submit', json={})
    assert r.status_code == 400
    assert any("100%" in e for e in r.get_json()["errors"])


def test_submit_persists_weighted_assessments(teacher_client):
    body = _fill(teacher_client)
    assert body["draft"]["assessments"] == {"Quizzes": 30, "Final Exams": 70, "Tests": 0}
    r = teacher_client.post('/lesson-plans/draft/submit', json={"department": "Sciences"})
    assert r.status_code == 201
    plan = r.get_json()["plan"]
    assert plan["assessments"] == {"Quizzes": 30, "Final Exams": 70}
    assert plan["status"] == "Draft"
    assert plan["email"] == "teacher@school.com"
    assert teacher_client.get('/lesson-plans/draft').get_json()["draft"]["subject"] == ""
    assert len(teacher_client.get('/lesson-plans/').get_json()["plans"]) == 1


def test_reset_discards_draft(teacher_client):
    _fill(teacher_client)
    teacher_client.post('/lesson-plans/draft/reset')
    assert teacher_client.get('/lesson-plans/draft').get_json()["draft"]["assessments"] == {}


@pytest.fixture
def submitted_plan_id(teacher_client):
    _fill(teacher_client)
    plan_id = teacher_client.post('/lesson-plans/draft/submit', json={}).get_json()["plan"]["id"]
    teacher_client.post('/auth/logout')
    teacher_client.post('/auth/login', json={"role": "admin", "username": "admin", "password": "Admin#2025"})
    return plan_id


def test_admin_review_appends_comments(teacher_client, submitted_plan_id):
    client = teacher_client
    r = client.post(f'/lesson-plans/{submitted_plan_id}/review', json={"action": "revision", "comment": "Add rubric"})
    assert r.get_json()["plan"]["status"] == "Revision Requested"
    r = client.post(f'/lesson-plans/{submitted_plan_id}/review', json={"action": "approve"})
    plan = r.get_json()["plan"]
    assert plan["status"] == "Approved"
    assert plan["comments"] == "Revision Requested: Add rubric\nApproved"
    assert client.post(f'/lesson-plans/{submitted_plan_id}/review', json={"action": "ship"}).status_code == 400
    assert client.post('/lesson-plans/999/review', json={"action": "approve"}).status_code == 404


def test_bulk_review(teacher_client, submitted_plan_id):
    client = teacher_client
    r = client.post('/lesson-plans/review', json={"action": "reject", "ids": [submitted_plan_id]})
    assert r.get_json()["updated"] == [submitted_plan_id]
    plans = client.get('/lesson-plans/?status=Rejected').get_json()["plans"]
    assert [p["id"] for p in plans] == [submitted_plan_id]
    assert client.post('/lesson-plans/review', json={"action": "reject", "ids": []}).status_code == 400


def test_teacher_cannot_review(teacher_client):
    assert teacher_client.post('/lesson-plans/review', json={"action": "approve", "ids": [1]}).status_code == 403


def test_optional_section_can_be_dropped(teacher_client):
    _fill(teacher_client)
    body = _act(teacher_client, type="toggle_field", name="warmup")
    assert body["draft"]["excludedFields"] == ["warmup"]
    assert ["materials"] in body["steps"]
    r = teacher_client.post('/lesson-plans/draft/submit', json={})
    assert r.status_code == 201
    assert r.get_json()["plan"]["warmup"] == ""
    assert r.get_json()["plan"]["materials"] == "Molecule kits"


def test_required_section_cannot_be_dropped(teacher_client):
    r = teacher_client.post('/lesson-plans/draft/actions', json={"type": "toggle_field", "name": "objectives"})
    assert r.status_code == 400
    assert r.get_json()["error"] == "Objectives is a required field and cannot be deselected."


def test_edit_updates_saved_plan_in_place(teacher_client):
    _fill(teacher_client)
    plan_id = teacher_client.post('/lesson-plans/draft/submit', json={}).get_json()["plan"]["id"]

    body = teacher_client.post(f'/lesson-plans/{plan_id}/edit').get_json()
    assert body["isEditing"] is True
    assert body["draft"]["planId"] == plan_id
    assert body["draft"]["assessments"] == {"Quizzes": 30, "Final Exams": 70}
    _act(teacher_client, type="set_field", name="closure", value="Reflection journal")

    r = teacher_client.post('/lesson-plans/draft/submit', json={})
    assert r.status_code == 200
    assert r.get_json()["message"] == "Lesson plan updated successfully!"
    plans = teacher_client.get('/lesson-plans/').get_json()["plans"]
    assert [(p["id"], p["closure"], p["status"]) for p in plans] == [(plan_id, "Reflection journal", "Draft")]


def test_edit_keeps_review_status(teacher_client, submitted_plan_id):
    client = teacher_client
    client.post(f'/lesson-plans/{submitted_plan_id}/review', json={"action": "revision", "comment": "Add rubric"})
    client.post('/auth/logout')
    client.post('/auth/login', json={"role": "teacher", "username": "teacher@school.com", "password": "Teach#2025"})
    client.post(f'/lesson-plans/{submitted_plan_id}/edit')
    plan = client.post('/lesson-plans/draft/submit', json={}).get_json()["plan"]
    assert plan["status"] == "Revision Requested"


def test_edit_unknown_plan(teacher_client):
    assert teacher_client.post('/lesson-plans/999/edit').status_code == 404


def test_review_rejects_malformed_ids(teacher_client, submitted_plan_id):
    r = teacher_client.post('/lesson-plans/review', json={"action": "approve", "ids": "1"})
    assert r.status_code == 400
    r = teacher_client.post(f'/lesson-plans/{submitted_plan_id}/review', json={"action": ["approve"]})
    assert r.status_code == 400
