from flask import Blueprint, request, session, jsonify, current_app
from sqlalchemy.exc import SQLAlchemyError

from extensions import db
from models import LessonPlan
from utils import admin_required, current_role, role_required
from utils.allocations import ASSESSMENT_TYPES
from utils.lesson_plan_form import (
    LessonPlanDraft,
    LOCKED_FIELDS,
    OPTIONAL_FIELDS,
    DraftActionError,
    action_from_payload,
    active_steps,
    all_errors,
    reduce,
    step_errors,
)
from utils.validators import clean_text

lesson_plan_bp = Blueprint('lesson_plans', __name__, url_prefix='/lesson-plans')

DRAFT_KEY = 'lesson_plan_draft'

REVIEW_STATUSES = {
    "approve": "Approved",
    "reject": "Rejected",
    "revision": "Revision Requested",
}


def _load_draft() -> LessonPlanDraft:
    return LessonPlanDraft.from_dict(session.get(DRAFT_KEY))


def _store_draft(draft: LessonPlanDraft) -> None:
    session[DRAFT_KEY] = draft.to_dict()


def _draft_payload(draft: LessonPlanDraft) -> dict:
    return {
        "ok": True,
        "draft": draft.to_dict(),
        "steps": [list(s) for s in active_steps(draft)],
        "stepErrors": step_errors(draft, draft.step),
        "assessmentTotal": draft.assessments.total(),
        "assessmentTypes": list(ASSESSMENT_TYPES),
        "optionalFields": list(OPTIONAL_FIELDS),
        "lockedFields": sorted(LOCKED_FIELDS),
        "isEditing": draft.plan_id is not None,
    }


def _own_plan(plan_id: int):
    plan = db.session.get(LessonPlan, plan_id)
    if plan is None or plan.email != (session.get('username') or ''):
        return None
    return plan


def _apply_draft(plan: LessonPlan, draft: LessonPlanDraft) -> None:
    plan.subject = draft.get('subject')
    plan.grade = draft.get('grade')
    plan.objectives = draft.get('objectives')
    plan.introduction = draft.get('introduction')
    plan.materials = draft.saved_value('materials')
    plan.warmup = draft.saved_value('warmup')
    plan.main_activity = draft.saved_value('mainActivity')
    plan.closure = draft.saved_value('closure')
    plan.differentiation = draft.saved_value('differentiation')
    plan.formative_assessment = draft.saved_value('formativeAssessment')
    plan.summative_assessment = draft.saved_value('summativeAssessment')
    plan.standards = draft.saved_value('standards')
    plan.assessments = draft.assessments.weighted()
    plan.units = [{"title": u.title, "duration": u.duration} for u in draft.units]
    plan.total_units = draft.total_units


@lesson_plan_bp.route('/draft', methods=['GET'])
@role_required("teacher")
def get_draft():
    return jsonify(_draft_payload(_load_draft()))


@lesson_plan_bp.route('/draft/actions', methods=['POST'])
@role_required("teacher")
def apply_action():
    try:
        action = action_from_payload(request.get_json(silent=True) or {})
        draft = reduce(_load_draft(), action)
    except DraftActionError as exc:
        return jsonify({"ok": False, "error": str(exc)}), 400
    _store_draft(draft)
    return jsonify(_draft_payload(draft))


@lesson_plan_bp.route('/draft/reset', methods=['POST'])
@role_required("teacher")
def reset_draft():
    session.pop(DRAFT_KEY, None)
    return jsonify(_draft_payload(LessonPlanDraft()))


@lesson_plan_bp.route('/<int:plan_id>/edit', methods=['POST'])
@role_required("teacher")
def edit_plan(plan_id):
    """Load a saved plan written by the signed-in user into the draft."""
    plan = _own_plan(plan_id)
    if plan is None:
        return jsonify({"ok": False, "error": "Lesson plan not found"}), 404
    draft = LessonPlanDraft.from_plan(plan.to_dict(), plan.id)
    _store_draft(draft)
    return jsonify(_draft_payload(draft))


@lesson_plan_bp.route('/draft/submit', methods=['POST'])
@role_required("teacher")
def submit_draft():
    draft = _load_draft()
    errors = all_errors(draft)
    if errors:
        return jsonify({"ok": False, "errors": errors}), 400

    data = request.get_json(silent=True)
    department = clean_text(data.get('department')) if isinstance(data, dict) else ''
    editing = draft.plan_id is not None
    if editing:
        plan = _own_plan(draft.plan_id)
        if plan is None:
            session.pop(DRAFT_KEY, None)
            return jsonify({"ok": False, "error": "Lesson plan not found"}), 404
        if department:
            plan.department = department
    else:
        # Status stays as is on edits; new plans start as drafts
        plan = LessonPlan(email=session.get('username') or '', department=department or None, status="Draft")
        db.session.add(plan)
    _apply_draft(plan, draft)
    try:
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("Failed to save lesson plan")
        message = "Failed to update lesson plan." if editing else "Failed to save lesson plan."
        return jsonify({"ok": False, "error": message}), 503

    session.pop(DRAFT_KEY, None)
    if editing:
        current_app.logger.info("Lesson plan %s updated by %s", plan.id, plan.email)
        return jsonify({"ok": True, "message": "Lesson plan updated successfully!", "plan": plan.to_dict()})
    current_app.logger.info("Lesson plan %s saved for %s", plan.id, plan.email)
    return jsonify({"ok": True, "message": "Lesson plan saved successfully!", "plan": plan.to_dict()}), 201


@lesson_plan_bp.route('/', methods=['GET'])
@role_required("admin", "teacher")
def list_plans():
    query = db.select(LessonPlan).order_by(LessonPlan.created_at.desc(), LessonPlan.id.desc())
    if current_role() == "teacher":
        query = query.filter_by(email=session.get('username') or '')
    status = request.args.get('status')
    if status:
        query = query.filter_by(status=status)
    plans = db.session.execute(query).scalars().all()
    return jsonify({"ok": True, "plans": [p.to_dict() for p in plans]})


def _review(plan: LessonPlan, action: str, comment: str) -> None:
    status = REVIEW_STATUSES[action]
    line = f"{status}: {comment}" if comment else status
    plan.status = status
    plan.comments = f"{plan.comments or ''}\n{line}".strip()


def _review_body():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        data = {}
    return data, (clean_text(data.get('action')) or '').lower()


@lesson_plan_bp.route('/<int:plan_id>/review', methods=['POST'])
@admin_required
def review_plan(plan_id):
    data, action = _review_body()
    if action not in REVIEW_STATUSES:
        return jsonify({"ok": False, "error": "Action must be approve, reject or revision"}), 400
    plan = db.session.get(LessonPlan, plan_id)
    if plan is None:
        return jsonify({"ok": False, "error": "Lesson plan not found"}), 404
    _review(plan, action, clean_text(data.get('comment')) or '')
    db.session.commit()
    return jsonify({"ok": True, "plan": plan.to_dict()})


@lesson_plan_bp.route('/review', methods=['POST'])
@admin_required
def review_plans_bulk():
    data, action = _review_body()
    ids = data.get('ids') or []
    if action not in REVIEW_STATUSES:
        return jsonify({"ok": False, "error": "Action must be approve, reject or revision"}), 400
    if not isinstance(ids, list) or not all(isinstance(i, int) and not isinstance(i, bool) for i in ids):
        return jsonify({"ok": False, "error": "Lesson plan ids must be a list of numbers."}), 400
    if not ids:
        return jsonify({"ok": False, "error": "Please select at least one lesson plan."}), 400
    comments = data.get('comments')
    if not isinstance(comments, dict):
        comments = {}
    plans = db.session.execute(db.select(LessonPlan).where(LessonPlan.id.in_(ids))).scalars().all()
    for plan in plans:
        _review(plan, action, clean_text(comments.get(str(plan.id))) or '')
    db.session.commit()
    return jsonify({"ok": True, "updated": [p.id for p in plans]})
