import pytest

from marketplace_api.core.exceptions import ValidationError
from marketplace_api.services.validation import collect_submission_errors, parse_submission

VALID_SUBMISSION = {
    "name": "  Ravi Kumar ",
    "phone": " 9876543210 ",
    "regNo": " mh12 ab1234 ",
    "kmDriven": "45000",
    "demand": "350000",
    "type": "Car",
}


def test_valid_submission_is_normalized():
    submission = parse_submission(VALID_SUBMISSION)

    assert submission.name == "Ravi Kumar"
    assert submission.phone == "9876543210"
    assert submission.reg_no == "MH12AB1234"
    assert submission.km_driven == 45000.0
    assert submission.demand == 350000.0
    assert submission.vehicle_type == "car"


def test_vehicle_type_defaults_to_car():
    payload = dict(VALID_SUBMISSION)
    del payload["type"]
    assert parse_submission(payload).vehicle_type == "car"


def test_empty_submission_reports_every_missing_field():
    errors = collect_submission_errors({})

    assert [error["field"] for error in errors] == ["name", "phone", "regNo", "kmDriven", "demand"]


def test_parse_submission_raises_with_all_errors():
    with pytest.raises(ValidationError) as exc_info:
        parse_submission({"name": "Ravi", "kmDriven": "lots", "demand": "", "type": "boat"})

    exc = exc_info.value
    assert exc.status_code == 400
    fields = [error["field"] for error in exc.details["errors"]]
    assert fields == ["phone", "regNo", "kmDriven", "demand", "type"]
    assert exc.message == "Invalid or missing fields: phone, regNo, kmDriven, demand, type"


def test_negative_km_driven_is_rejected():
    payload = dict(VALID_SUBMISSION, kmDriven="-10")
    errors = collect_submission_errors(payload)

    assert errors == [{"field": "kmDriven", "message": "KM driven cannot be negative"}]


def test_whitespace_only_reg_no_is_missing():
    payload = dict(VALID_SUBMISSION, regNo="   ")
    errors = collect_submission_errors(payload)

    assert [error["field"] for error in errors] == ["regNo"]


def test_over_long_text_fields_are_rejected():
    payload = dict(VALID_SUBMISSION, name="R" * 201, phone="9" * 33, regNo="MH12 " + "A" * 20)
    errors = collect_submission_errors(payload)

    assert errors == [
        {"field": "name", "message": "name must be at most 200 characters"},
        {"field": "phone", "message": "phone must be at most 32 characters"},
        {"field": "regNo", "message": "registration number must be at most 20 characters"},
    ]


def test_length_limit_applies_after_normalization():
    payload = dict(VALID_SUBMISSION, regNo="  mh 12 ab 1234 5678 9012  ", name=" " + "R" * 200 + " ")

    assert collect_submission_errors(payload) == []
