from datetime import date

import pytest
from sqlalchemy.exc import IntegrityError

from extensions import db
from models import Student
from utils.identifiers import (
    IdentifierOverflow,
    MalformedIdentifier,
    generate_identifier,
    is_identifier_collision,
    latest_identifier,
    next_identifier,
    next_identifier_from,
    year_prefix,
)


def test_year_prefix_uses_two_digit_year():
    assert year_prefix("ST", 2025) == "ST25"
    assert year_prefix("ST", 2007) == "ST07"
    assert year_prefix("TC", 2100) == "TC00"


def test_next_identifier_increments_same_year():
    assert next_identifier("ST", 2025, "ST250042") == "ST250043"
    assert next_identifier("ST", 2025, "ST250009") == "ST250010"


def test_next_identifier_starts_fresh_without_match():
    assert next_identifier("ST", 2025, None) == "ST250001"
    assert next_identifier("ST", 2025, "") == "ST250001"


def test_next_identifier_resets_on_new_year():
    assert next_identifier("ST", 2025, "ST240099") == "ST250001"
    assert next_identifier("ST", 2030, "ST299999") == "ST300001"


def test_next_identifier_ignores_other_prefixes():
    assert next_identifier("ST", 2025, "TC250077") == "ST250001"


@pytest.mark.parametrize("bad", ["ST25ABCD", "ST25", "ST25123", "ST2500012", "ST25-001"])
def test_next_identifier_rejects_malformed_match(bad):
    with pytest.raises(MalformedIdentifier):
        next_identifier("ST", 2025, bad)


def test_next_identifier_refuses_to_overflow_width():
    with pytest.raises(IdentifierOverflow):
        next_identifier("ST", 2025, "ST259999")
    assert next_identifier("ST", 2025, "ST259998") == "ST259999"


def test_next_identifier_custom_width():
    assert next_identifier("ST", 2025, "ST25000041", width=6) == "ST25000042"
    assert next_identifier("ST", 2025, None, width=2) == "ST2501"


def test_next_identifier_from_picks_greatest_match():
    ids = ["ST240120", "ST250003", "ST250011", "TC250500", "ST250007"]
    assert next_identifier_from("ST", 2025, ids) == "ST250012"
    assert next_identifier_from("ST", 2026, ids) == "ST260001"


def _student(stu_id):
    return Student(
        stu_id=stu_id,
        full_name="Test Pupil",
        dob=date(2015, 1, 1),
        gender="Female",
        grade="grade3",
        parent_name="Parent",
        parent_contact="0712345678",
        address="1 School Lane",
    )


def test_latest_identifier_reads_current_year_only(app):
    db.session.add_all([_student("ST250003"), _student("ST250012"), _student("ST260001")])
    db.session.commit()
    assert latest_identifier(Student.stu_id, "ST", 2025) == "ST250012"
    assert latest_identifier(Student.stu_id, "ST", 2024) is None


def test_generate_identifier_from_store(app):
    assert generate_identifier(Student.stu_id, "ST", 2025) == "ST250001"
    db.session.add(_student("ST250041"))
    db.session.commit()
    assert generate_identifier(Student.stu_id, "ST", 2025) == "ST250042"


def _integrity_error(message):
    return IntegrityError("INSERT", {}, Exception(message))


def test_identifier_collision_matches_only_the_id_index():
    assert is_identifier_collision(_integrity_error("UNIQUE constraint failed: students.stu_id"), Student.stu_id)
    assert is_identifier_collision(
        _integrity_error("(1062, \"Duplicate entry 'ST250001' for key 'students.ix_students_stu_id'\")"),
        Student.stu_id,
    )
    assert not is_identifier_collision(_integrity_error("UNIQUE constraint failed: teachers.email"), Student.stu_id)
    assert not is_identifier_collision(_integrity_error("NOT NULL constraint failed: students.stu_id"), Student.stu_id)
