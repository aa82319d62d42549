from datetime import date, datetime

from flask import Blueprint, request, jsonify, current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from extensions import db
from models import Student, GradeRoster
from utils import admin_required
from utils.identifiers import (
    generate_identifier,
    is_identifier_collision,
    IdentifierOverflow,
    MalformedIdentifier,
)
from utils.validators import clean_fields, clean_text, is_valid_phone, parse_date

student_bp = Blueprint('students', __name__, url_prefix='/students')

NEW_STUDENT_MESSAGES = {
    "fullName": "Full name is required",
    "dob": "Date of birth is required",
    "gender": "Gender is required",
    "parentName": "Parent name is required",
    "address": "Address is required",
}

TEXT_FIELDS = tuple(NEW_STUDENT_MESSAGES) + ("grade", "customGrade", "previousSchool")


def _next_student_id() -> str:
    cfg = current_app.config
    return generate_identifier(
        Student.stu_id,
        cfg.get("STUDENT_ID_PREFIX", "ST"),
        date.today().year,
        cfg.get("ID_SEQUENCE_WIDTH", 4),
    )


def _id_error_response(exc: Exception):
    if isinstance(exc, (MalformedIdentifier, IdentifierOverflow)):
        current_app.logger.error("Student id issuance refused: %s", exc)
        return jsonify({"ok": False, "error": str(exc)}), 409
    current_app.logger.exception("Student id lookup failed")
    return jsonify({"ok": False, "error": "Record store unavailable, please retry"}), 503


def _documents(raw):
    if not isinstance(raw, list):
        return None
    names = [clean_text(d) for d in raw]
    if any(n is None for n in names):
        return None
    return [n for n in names if n]


def validate_new_student(data):
    """Return ``(cleaned, errors)`` for a registration body.

    ``cleaned`` holds the text fields as stripped strings plus ``documents``
    and the resolved ``grade``.
    """
    cleaned, errors = clean_fields(data, TEXT_FIELDS)
    for name, message in NEW_STUDENT_MESSAGES.items():
        if name not in errors and not cleaned.get(name):
            errors[name] = message
    if "dob" not in errors and parse_date(cleaned["dob"]) is None:
        errors["dob"] = "Date of birth must be a valid date"
    if cleaned.get("grade") == "other":
        if not cleaned.get("customGrade") and "customGrade" not in errors:
            errors["customGrade"] = "Custom grade is required"
        cleaned["grade"] = cleaned.get("customGrade", "")
    elif not cleaned.get("grade") and "grade" not in errors:
        errors["grade"] = "Grade is required"
    if not is_valid_phone(data.get("parentContact")):
        errors["parentContact"] = "Valid 10-digit contact number is required"
    documents = _documents(data.get("documents") or [])
    if documents is None:
        errors["documents"] = "Documents must be a list of file names"
    elif not documents:
        errors["documents"] = "At least one document is required"
    else:
        cleaned["documents"] = documents
    return cleaned, errors


def _add_to_roster(grade: str, student: Student) -> None:
    roster = db.session.get(GradeRoster, grade)
    if roster is None:
        roster = GradeRoster(grade=grade, students=[])
        db.session.add(roster)
    entry = {"stuId": student.stu_id, "fullName": student.full_name, "section": student.section}
    members = list(roster.students or [])
    if entry not in members:
        members.append(entry)
    # Reassign so the JSON column is flagged dirty
    roster.students = members


@student_bp.route('/', methods=['GET'])
@admin_required
def list_students():
    query = db.select(Student).order_by(Student.stu_id)
    grade = request.args.get('grade')
    if grade:
        query = query.filter_by(grade=grade)
    students = db.session.execute(query).scalars().all()
    return jsonify({"ok": True, "students": [s.to_dict() for s in students]})


@student_bp.route('/next-id', methods=['GET'])
@admin_required
def preview_next_id():
    try:
        return jsonify({"ok": True, "stuId": _next_student_id()})
    except (MalformedIdentifier, IdentifierOverflow, SQLAlchemyError) as exc:
        db.session.rollback()
        return _id_error_response(exc)


@student_bp.route('/', methods=['POST'])
@admin_required
def register_student():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        data = {}
    cleaned, errors = validate_new_student(data)
    if errors:
        return jsonify({"ok": False, "errors": errors}), 400

    try:
        stu_id = _next_student_id()
    except (MalformedIdentifier, IdentifierOverflow, SQLAlchemyError) as exc:
        db.session.rollback()
        return _id_error_response(exc)

    grade = cleaned["grade"]
    student = Student(
        stu_id=stu_id,
        full_name=cleaned["fullName"],
        dob=parse_date(cleaned["dob"]),
        gender=cleaned["gender"],
        grade=grade,
        section=current_app.config.get("DEFAULT_SECTION", "section1"),
        parent_name=cleaned["parentName"],
        parent_contact=data["parentContact"],
        address=cleaned["address"],
        previous_school=cleaned.get("previousSchool") or None,
        documents=cleaned["documents"],
        status="pending",
        admission_date=datetime.utcnow(),
    )
    try:
        db.session.add(student)
        _add_to_roster(grade, student)
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        if is_identifier_collision(exc, Student.stu_id):
            # Another registration took the same id between lookup and insert
            current_app.logger.warning("Student id %s already taken", stu_id)
            return jsonify({"ok": False, "error": f"Student ID {stu_id} was just issued elsewhere, please retry"}), 409
        current_app.logger.error("Student %s rejected by the store: %s", stu_id, exc.orig)
        return jsonify({"ok": False, "error": "Student record was rejected, check the submitted fields."}), 400
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("Failed to store student %s", stu_id)
        return jsonify({"ok": False, "error": "Failed to register student. Please try again."}), 503

    current_app.logger.info("Registered student %s in %s", stu_id, grade)
    return jsonify({
        "ok": True,
        "message": f"Student registered successfully! ID: {stu_id}",
        "student": student.to_dict(),
    }), 201


def _get_student(stu_id: str):
    return db.session.execute(db.select(Student).filter_by(stu_id=stu_id)).scalar_one_or_none()


@student_bp.route('/<stu_id>/senior', methods=['PATCH'])
@admin_required
def update_senior_student(stu_id):
    student = _get_student(stu_id)
    if student is None:
        return jsonify({"ok": False, "error": "Student not found"}), 404
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        data = {}
    errors = {}
    address = clean_text(data.get("address"))
    if "parentContact" in data and not is_valid_phone(data.get("parentContact")):
        errors["parentContact"] = "Valid 10-digit contact number is required"
    if "address" in data and not address:
        errors["address"] = "Address is required."
    subjects = data.get("subjects") or []
    if "subjects" in data and (not isinstance(subjects, list) or any(clean_text(s) is None for s in subjects)):
        errors["subjects"] = "Subjects must be a list of names."
    if errors:
        return jsonify({"ok": False, "errors": errors}), 400

    if "address" in data:
        student.address = address
    if "parentContact" in data:
        student.parent_contact = data["parentContact"]
    if "subjects" in data:
        student.subjects = [clean_text(s) for s in subjects if clean_text(s)]
    student.updated_at = datetime.utcnow()
    db.session.commit()
    return jsonify({"ok": True, "message": "Senior student updated successfully!", "student": student.to_dict()})


@student_bp.route('/<stu_id>/arrange', methods=['POST'])
@admin_required
def arrange_student(stu_id):
    student = _get_student(stu_id)
    if student is None:
        return jsonify({"ok": False, "error": "Student not found"}), 404
    data = request.get_json(silent=True)
    section = clean_text(data.get("section")) if isinstance(data, dict) else ""
    if not section:
        return jsonify({"ok": False, "errors": {"section": "Section is required."}}), 400

    student.section = section
    roster = db.session.get(GradeRoster, student.grade)
    if roster is not None:
        roster.students = [
            dict(m, section=section) if m.get("stuId") == stu_id else m
            for m in (roster.students or [])
        ]
    db.session.commit()
    return jsonify({"ok": True, "student": student.to_dict()})
