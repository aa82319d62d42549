from datetime import datetime, timedelta

from flask import Blueprint, request, jsonify, current_app
from sqlalchemy.exc import SQLAlchemyError

from extensions import db
from models import Book, BookIssue
from utils import admin_required
from utils.validators import clean_fields, missing_fields, parse_count

library_bp = Blueprint('library', __name__, url_prefix='/library')

BOOK_FIELDS = ("title", "author", "classification", "genre", "gradeLevel")


def _body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _commit(failure: str):
    """Commit the session; a JSON error response when the store refuses."""
    try:
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception(failure)
        return jsonify({"ok": False, "error": failure}), 503
    return None


@library_bp.route('/books', methods=['POST'])
@admin_required
def add_book():
    data = _body()
    cleaned, errors = clean_fields(data, BOOK_FIELDS)
    for field, message in missing_fields(cleaned, BOOK_FIELDS).items():
        errors.setdefault(field, message)
    if errors:
        return jsonify({"ok": False, "errors": errors}), 400

    book = Book(
        title=cleaned["title"],
        author=cleaned["author"],
        classification=cleaned["classification"],
        genre=cleaned["genre"],
        grade_level=cleaned["gradeLevel"],
        status="available",
    )
    db.session.add(book)
    failed = _commit("Failed to add book")
    if failed:
        return failed
    return jsonify({"ok": True, "message": "Book added successfully", "book": book.to_dict()}), 201


@library_bp.route('/books', methods=['GET'])
@admin_required
def list_books():
    query = db.select(Book).order_by(Book.title, Book.id)
    for arg, column in (("status", Book.status), ("gradeLevel", Book.grade_level), ("genre", Book.genre)):
        value = request.args.get(arg)
        if value:
            query = query.where(column == value)
    books = db.session.execute(query).scalars().all()
    return jsonify({"ok": True, "books": [b.to_dict() for b in books]})


@library_bp.route('/issues', methods=['POST'])
@admin_required
def issue_book():
    data = _body()
    cleaned, errors = clean_fields(data, ("bookId", "userId"))
    for field, message in missing_fields(cleaned, ("bookId", "userId")).items():
        errors.setdefault(field, message)
    book_id = parse_count(cleaned.get("bookId"))
    if "bookId" not in errors and book_id is None:
        errors["bookId"] = "Book ID must be a number."
    if errors:
        return jsonify({"ok": False, "errors": errors}), 400

    book = db.session.get(Book, book_id)
    if book is None:
        return jsonify({"ok": False, "error": "Book not found"}), 404
    if book.status != "available":
        return jsonify({"ok": False, "error": f"'{book.title}' is already issued"}), 409

    now = datetime.utcnow()
    issue = BookIssue(
        book_id=book.id,
        user_id=cleaned["userId"],
        issue_date=now,
        due_date=now + timedelta(days=current_app.config.get("LIBRARY_LOAN_DAYS", 14)),
    )
    book.status = "issued"
    db.session.add(issue)
    failed = _commit("Failed to issue book")
    if failed:
        return failed
    current_app.logger.info("Book %s issued to %s until %s", book.id, issue.user_id, issue.due_date.date())
    return jsonify({"ok": True, "message": "Book issued successfully", "issue": issue.to_dict()}), 201


@library_bp.route('/issues/<int:issue_id>/return', methods=['POST'])
@admin_required
def return_book(issue_id):
    issue = db.session.get(BookIssue, issue_id)
    if issue is None:
        return jsonify({"ok": False, "error": "Issue record not found"}), 404
    if issue.return_date is not None:
        return jsonify({"ok": False, "error": "Book already returned"}), 409
    issue.return_date = datetime.utcnow()
    issue.book.status = "available"
    failed = _commit("Failed to return book")
    if failed:
        return failed
    return jsonify({"ok": True, "message": "Book returned successfully", "issue": issue.to_dict()})


@library_bp.route('/issues', methods=['GET'])
@admin_required
def list_issues():
    query = db.select(BookIssue).order_by(BookIssue.issue_date.desc(), BookIssue.id.desc())
    user_id = request.args.get('userId')
    if user_id:
        query = query.filter_by(user_id=user_id)
    if request.args.get('overdue') in ("1", "true"):
        query = query.where(BookIssue.return_date.is_(None), BookIssue.due_date < datetime.utcnow())
    elif request.args.get('open') in ("1", "true"):
        query = query.where(BookIssue.return_date.is_(None))
    issues = db.session.execute(query).scalars().all()
    return jsonify({"ok": True, "issues": [i.to_dict() for i in issues]})
