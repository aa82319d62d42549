import time
from datetime import date

from flask import Blueprint, request, jsonify, current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from extensions import db
from models import Teacher
from utils import admin_required
from utils.identifiers import (
    generate_identifier,
    is_identifier_collision,
    IdentifierOverflow,
    MalformedIdentifier,
)
from utils.validators import (
    clean_fields,
    is_valid_phone,
    missing_fields,
    parse_amount,
    parse_date,
    parse_name_list,
)

teacher_bp = Blueprint('teachers', __name__, url_prefix='/teachers')

REQUIRED_FIELDS = (
    "firstName",
    "contact",
    "address",
    "dob",
    "gender",
    "qualifications",
    "joiningDate",
    "contractType",
    "salary",
    "subjects",
    "role",
    "department",
)

# subjects is a list or a comma separated string, see parse_name_list
TEXT_FIELDS = tuple(f for f in REQUIRED_FIELDS if f != "subjects")


def validate_teacher(data):
    """Return ``(cleaned, errors)`` for a registration body.

    ``cleaned`` carries stripped text fields, ``subjects`` as a list and
    ``salary`` as a Decimal.
    """
    cleaned, errors = clean_fields(data, TEXT_FIELDS)
    for field, message in missing_fields(cleaned, TEXT_FIELDS).items():
        errors.setdefault(field, message)

    subjects = parse_name_list(data.get("subjects"))
    if subjects is None:
        errors["subjects"] = "Subjects must be a list or comma separated text."
    elif not subjects:
        errors["subjects"] = "Subjects is required."
    else:
        cleaned["subjects"] = subjects

    if cleaned.get("contact") and not is_valid_phone(cleaned["contact"]):
        errors["contact"] = "Contact number must be 10 digits."
    if cleaned.get("salary"):
        salary = parse_amount(cleaned["salary"])
        if salary is None:
            errors["salary"] = "Salary must be a valid number."
        else:
            cleaned["salary"] = salary
    for field in ("dob", "joiningDate"):
        if cleaned.get(field) and parse_date(cleaned[field]) is None:
            errors[field] = "Must be a valid date (YYYY-MM-DD)."
    return cleaned, errors


def _login_email(first_name: str) -> str:
    domain = current_app.config.get("TEACHER_EMAIL_DOMAIN", "school.com")
    local = "".join(first_name.lower().split())
    return f"{local}_{int(time.time() * 1000)}@{domain}"


@teacher_bp.route('/register', methods=['POST'])
@admin_required
def register_teacher():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        data = {}
    cleaned, errors = validate_teacher(data)
    if errors:
        return jsonify({"ok": False, "errors": errors}), 400

    cfg = current_app.config
    try:
        teacher_id = generate_identifier(
            Teacher.teacher_id,
            cfg.get("TEACHER_ID_PREFIX", "TC"),
            date.today().year,
            cfg.get("ID_SEQUENCE_WIDTH", 4),
        )
    except (MalformedIdentifier, IdentifierOverflow) as exc:
        current_app.logger.error("Teacher id issuance refused: %s", exc)
        return jsonify({"ok": False, "error": str(exc)}), 409
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("Teacher id lookup failed")
        return jsonify({"ok": False, "error": "Record store unavailable, please retry"}), 503

    teacher = Teacher(
        teacher_id=teacher_id,
        email=_login_email(cleaned["firstName"]),
        first_name=cleaned["firstName"],
        contact=cleaned["contact"],
        address=cleaned["address"],
        dob=parse_date(cleaned["dob"]),
        gender=cleaned["gender"],
        qualifications=cleaned["qualifications"],
        joining_date=parse_date(cleaned["joiningDate"]),
        contract_type=cleaned["contractType"],
        salary=cleaned["salary"],
        subjects=cleaned["subjects"],
        role=cleaned["role"],
        department=cleaned["department"],
    )
    try:
        db.session.add(teacher)
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        if is_identifier_collision(exc, Teacher.teacher_id):
            current_app.logger.warning("Teacher id %s already taken", teacher_id)
            return jsonify({"ok": False, "error": f"Teacher ID {teacher_id} was just issued elsewhere, please retry"}), 409
        current_app.logger.error("Teacher %s rejected by the store: %s", teacher_id, exc.orig)
        return jsonify({"ok": False, "error": "Teacher record was rejected, check the submitted fields."}), 400
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("Failed to store teacher %s", teacher_id)
        return jsonify({"ok": False, "error": "Failed to save registration data. Please try again."}), 503

    current_app.logger.info("Registered teacher %s (%s)", teacher_id, teacher.department)
    return jsonify({"ok": True, "teacher": teacher.to_dict()}), 201


@teacher_bp.route('/', methods=['GET'])
@admin_required
def list_teachers():
    query = db.select(Teacher).order_by(Teacher.teacher_id)
    department = request.args.get('department')
    if department:
        query = query.filter_by(department=department)
    teachers = db.session.execute(query).scalars().all()
    return jsonify({"ok": True, "teachers": [t.to_dict() for t in teachers]})
