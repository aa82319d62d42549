from datetime import date, timedelta
from decimal import Decimal

from flask import Blueprint, request, jsonify, current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from extensions import db
from models import FeeAccount, FeePayment, FeeStructure, Student
from utils import admin_required
from utils.identifiers import (
    generate_identifier,
    is_identifier_collision,
    IdentifierOverflow,
    MalformedIdentifier,
)
from utils.validators import (
    clean_fields,
    clean_text,
    missing_fields,
    parse_amount,
    parse_date,
    parse_name_list,
)

fee_bp = Blueprint('fees', __name__, url_prefix='/fees')

REPORT_TYPES = ("daily", "monthly", "annual", "defaulters", "revenue")


def _body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _amount_error(cleaned, errors, field, label, positive=False):
    if field in errors or not cleaned.get(field):
        return
    amount = parse_amount(cleaned[field])
    if amount is None or (positive and amount == 0):
        errors[field] = f"{label} must be a valid amount."
    else:
        cleaned[field] = amount


@fee_bp.route('/structures', methods=['POST'])
@admin_required
def add_fee_structure():
    data = _body()
    fields = ("category", "amount", "classProgram", "dueDate")
    cleaned, errors = clean_fields(data, fields)
    for field, message in missing_fields(cleaned, fields).items():
        errors.setdefault(field, message)
    _amount_error(cleaned, errors, "amount", "Amount", positive=True)
    if cleaned.get("dueDate") and parse_date(cleaned["dueDate"]) is None:
        errors["dueDate"] = "Must be a valid date (YYYY-MM-DD)."
    plans = parse_name_list(data.get("installmentPlans"))
    if plans is None:
        errors["installmentPlans"] = "Installment plans must be a list or comma separated text."
    if errors:
        return jsonify({"ok": False, "errors": errors}), 400

    structure = FeeStructure(
        category=cleaned["category"],
        amount=cleaned["amount"],
        class_program=cleaned["classProgram"],
        installment_plans=plans,
        due_date=parse_date(cleaned["dueDate"]),
    )
    try:
        db.session.add(structure)
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("Failed to add fee structure")
        return jsonify({"ok": False, "error": "Failed to add fee structure"}), 503
    return jsonify({"ok": True, "message": "Fee structure added successfully", "structure": structure.to_dict()}), 201


@fee_bp.route('/structures', methods=['GET'])
@admin_required
def list_fee_structures():
    query = db.select(FeeStructure).order_by(FeeStructure.due_date, FeeStructure.id)
    class_program = request.args.get('classProgram')
    if class_program:
        query = query.filter_by(class_program=class_program)
    structures = db.session.execute(query).scalars().all()
    return jsonify({"ok": True, "structures": [s.to_dict() for s in structures]})


def _get_account(stu_id: str):
    return db.session.execute(db.select(FeeAccount).filter_by(stu_id=stu_id)).scalar_one_or_none()


@fee_bp.route('/accounts', methods=['POST'])
@admin_required
def open_account():
    data = _body()
    cleaned, errors = clean_fields(data, ("stuId", "balance", "familyAccountId"))
    if not errors.get("stuId") and not cleaned.get("stuId"):
        errors["stuId"] = "Student ID is required."
    cleaned["balance"] = cleaned.get("balance") or "0"
    _amount_error(cleaned, errors, "balance", "Opening balance")
    if errors:
        return jsonify({"ok": False, "errors": errors}), 400

    student = db.session.execute(db.select(Student).filter_by(stu_id=cleaned["stuId"])).scalar_one_or_none()
    if student is None:
        return jsonify({"ok": False, "error": "Student not found"}), 404
    if _get_account(student.stu_id) is not None:
        return jsonify({"ok": False, "error": f"Fee account for {student.stu_id} already exists"}), 409

    account = FeeAccount(
        stu_id=student.stu_id,
        student_name=student.full_name,
        balance=cleaned["balance"],
        family_account_id=cleaned.get("familyAccountId") or None,
    )
    try:
        db.session.add(account)
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return jsonify({"ok": False, "error": f"Fee account for {student.stu_id} already exists"}), 409
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("Failed to open fee account for %s", student.stu_id)
        return jsonify({"ok": False, "error": "Failed to open fee account"}), 503
    current_app.logger.info("Opened fee account for %s with balance %s", account.stu_id, account.balance)
    return jsonify({"ok": True, "account": account.to_dict()}), 201


@fee_bp.route('/accounts', methods=['GET'])
@admin_required
def list_accounts():
    accounts = db.session.execute(db.select(FeeAccount).order_by(FeeAccount.stu_id)).scalars().all()
    return jsonify({"ok": True, "accounts": [a.to_dict() for a in accounts]})


@fee_bp.route('/accounts/<stu_id>', methods=['GET'])
@admin_required
def get_account(stu_id):
    account = _get_account(stu_id)
    if account is None:
        return jsonify({"ok": False, "error": "Fee account not found"}), 404
    return jsonify({"ok": True, "account": account.to_dict(with_payments=True)})


def _next_receipt_id() -> str:
    cfg = current_app.config
    return generate_identifier(
        FeePayment.receipt_id,
        cfg.get("RECEIPT_ID_PREFIX", "REC"),
        date.today().year,
        cfg.get("RECEIPT_ID_WIDTH", 6),
    )


@fee_bp.route('/payments', methods=['POST'])
@admin_required
def record_payment():
    data = _body()
    cleaned, errors = clean_fields(data, ("stuId", "amount", "date", "method", "lateFee"))
    for field, message in missing_fields(cleaned, ("stuId", "amount", "method")).items():
        errors.setdefault(field, message)
    _amount_error(cleaned, errors, "amount", "Amount", positive=True)
    cleaned["lateFee"] = cleaned.get("lateFee") or "0"
    _amount_error(cleaned, errors, "lateFee", "Late fee")
    paid_on = parse_date(cleaned["date"]) if cleaned.get("date") else date.today()
    if paid_on is None:
        errors["date"] = "Must be a valid date (YYYY-MM-DD)."
    is_partial = data.get("isPartial", False)
    if not isinstance(is_partial, bool):
        errors["isPartial"] = "Is Partial must be true or false."
    if errors:
        return jsonify({"ok": False, "errors": errors}), 400

    account = _get_account(cleaned["stuId"])
    if account is None:
        return jsonify({"ok": False, "error": "Fee account not found"}), 404

    try:
        receipt_id = _next_receipt_id()
    except (MalformedIdentifier, IdentifierOverflow) as exc:
        current_app.logger.error("Receipt issuance refused: %s", exc)
        return jsonify({"ok": False, "error": str(exc)}), 409
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("Receipt lookup failed")
        return jsonify({"ok": False, "error": "Record store unavailable, please retry"}), 503

    payment = FeePayment(
        receipt_id=receipt_id,
        stu_id=account.stu_id,
        amount=cleaned["amount"],
        late_fee=cleaned["lateFee"],
        payment_date=paid_on,
        method=cleaned["method"],
        is_partial=is_partial,
    )
    account.balance = Decimal(account.balance or 0) - cleaned["amount"]
    try:
        db.session.add(payment)
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        if is_identifier_collision(exc, FeePayment.receipt_id):
            current_app.logger.warning("Receipt %s already taken", receipt_id)
            return jsonify({"ok": False, "error": f"Receipt {receipt_id} was just issued elsewhere, please retry"}), 409
        current_app.logger.error("Payment %s rejected by the store: %s", receipt_id, exc.orig)
        return jsonify({"ok": False, "error": "Failed to record payment"}), 400
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("Failed to record payment %s", receipt_id)
        return jsonify({"ok": False, "error": "Failed to record payment"}), 503

    current_app.logger.info("Payment %s of %s recorded for %s", receipt_id, payment.amount, account.stu_id)
    return jsonify({
        "ok": True,
        "message": "Payment recorded successfully",
        "payment": payment.to_dict(),
        "account": account.to_dict(),
    }), 201


@fee_bp.route('/payments', methods=['GET'])
@admin_required
def list_payments():
    query = db.select(FeePayment).order_by(FeePayment.payment_date, FeePayment.id)
    stu_id = request.args.get('stuId')
    if stu_id:
        query = query.filter_by(stu_id=stu_id)
    payments = db.session.execute(query).scalars().all()
    return jsonify({"ok": True, "payments": [p.to_dict() for p in payments]})


def _period(kind: str, day: date):
    """First and last day of the reporting window containing ``day``."""
    if kind == "daily":
        return day, day
    if kind == "monthly":
        start = day.replace(day=1)
        next_month = (start + timedelta(days=32)).replace(day=1)
        return start, next_month - timedelta(days=1)
    return day.replace(month=1, day=1), day.replace(month=12, day=31)


@fee_bp.route('/reports/<kind>', methods=['GET'])
@admin_required
def fee_report(kind):
    if kind not in REPORT_TYPES:
        return jsonify({"ok": False, "error": f"Report must be one of {', '.join(REPORT_TYPES)}"}), 400

    if kind == "defaulters":
        # Largest balances first
        accounts = db.session.execute(
            db.select(FeeAccount).where(FeeAccount.balance > 0).order_by(FeeAccount.balance.desc(), FeeAccount.stu_id)
        ).scalars().all()
        return jsonify({"ok": True, "type": kind, "data": [a.to_dict() for a in accounts]})

    if kind == "revenue":
        total = db.session.execute(db.select(db.func.coalesce(db.func.sum(FeePayment.amount), 0))).scalar()
        return jsonify({"ok": True, "type": kind, "data": f"{Decimal(total):.2f}"})

    raw_day = request.args.get('date')
    day = parse_date(clean_text(raw_day)) if raw_day else date.today()
    if day is None:
        return jsonify({"ok": False, "error": "Date must be a valid date (YYYY-MM-DD)."}), 400
    start, end = _period(kind, day)
    payments = db.session.execute(
        db.select(FeePayment)
        .where(FeePayment.payment_date >= start, FeePayment.payment_date <= end)
        .order_by(FeePayment.payment_date, FeePayment.id)
    ).scalars().all()
    return jsonify({
        "ok": True,
        "type": kind,
        "from": start.isoformat(),
        "to": end.isoformat(),
        "data": [p.to_dict() for p in payments],
    })
