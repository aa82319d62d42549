from datetime import date
from decimal import Decimal

from utils.validators import (
    clean_fields,
    clean_text,
    humanize_field,
    is_number,
    is_smart_objective,
    is_valid_email,
    is_valid_phone,
    missing_fields,
    parse_amount,
    parse_count,
    parse_date,
    password_problems,
    validate_units,
)


def test_phone_must_be_ten_digits():
    assert is_valid_phone("0712345678")
    assert not is_valid_phone("071234567")
    assert not is_valid_phone("+254712345678")
    assert not is_valid_phone("07123x5678")
    assert not is_valid_phone(None)
    assert not is_valid_phone("0712345678\n")
    assert not is_valid_phone(712345678)


def test_email_shape():
    assert is_valid_email("head@school.com")
    assert not is_valid_email("head@school")
    assert not is_valid_email("head school@x.com")
    assert not is_valid_email("head@school.com\n")


def test_password_problems_lists_each_rule():
    assert password_problems("Str0ng!pass") == []
    problems = password_problems("weak")
    assert "Password must be at least 8 characters long" in problems
    assert "Password must contain at least one uppercase letter" in problems
    assert "Password must contain at least one number" in problems
    assert "Password must contain at least one special character" in problems
    assert password_problems("ALLUPPER1!") == ["Password must contain at least one lowercase letter"]


def test_parse_date():
    assert parse_date("2015-03-09") == date(2015, 3, 9)
    assert parse_date("2015-03-09T00:00:00Z") == date(2015, 3, 9)
    assert parse_date("09/03/2015") is None
    assert parse_date("") is None


def test_missing_fields_messages():
    errors = missing_fields({"firstName": " ", "contact": "0712345678", "subjects": []},
                            ["firstName", "contact", "joiningDate", "subjects"])
    assert errors == {
        "firstName": "First Name is required.",
        "joiningDate": "Joining Date is required.",
        "subjects": "Subjects is required.",
    }
    assert humanize_field("contractType") == "Contract Type"


def test_is_number():
    assert is_number("45000.50")
    assert not is_number("lots")
    assert not is_number(None)
    assert not is_number("nan")
    assert not is_number("inf")
    assert not is_number(True)


def test_smart_objective_needs_outcome_and_measure():
    assert is_smart_objective("Students will be able to solve equations with 90% accuracy")
    assert is_smart_objective("Learners WILL BE ABLE TO label the cell correctly")
    assert not is_smart_objective("Students will be able to learn fractions")
    assert not is_smart_objective("Solve 10 problems successfully")
    assert not is_smart_objective("")


def test_validate_units():
    assert validate_units([{"title": "Intro", "duration": "2 weeks"}], 1)
    assert not validate_units([{"title": "Intro", "duration": ""}], 1)
    assert not validate_units([], 0)


def test_clean_text_coerces_scalars_only():
    assert clean_text("  Amina ") == "Amina"
    assert clean_text(4) == "4"
    assert clean_text(None) == ""
    assert clean_text(["a"]) is None
    assert clean_text({"a": 1}) is None
    assert clean_text(False) is None


def test_clean_fields_reports_structured_values():
    cleaned, errors = clean_fields({"fullName": " Amina ", "grade": 4, "address": ["x"]},
                                   ["fullName", "grade", "address", "gender"])
    assert cleaned == {"fullName": "Amina", "grade": "4", "gender": ""}
    assert errors == {"address": "Address must be text."}


def test_parse_amount():
    assert parse_amount("1500.50") == Decimal("1500.50")
    assert parse_amount(200) == Decimal("200")
    assert parse_amount("nan") is None
    assert parse_amount("-1") is None
    assert parse_amount("10.001") is None


def test_parse_count():
    assert parse_count(3) == 3
    assert parse_count(" 12 ") == 12
    assert parse_count(0) is None
    assert parse_count("1.5") is None
    assert parse_count("٣") is None
    assert parse_count(True) is None
