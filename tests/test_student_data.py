"""
Tests for student data normalisation helpers and profile schemas
"""
from datetime import date, datetime

import pytest
from pydantic import ValidationError

from placement_api.schemas.student import CgpaRow, StudentAdminUpdate, StudentSelfUpdate
from placement_api.utils.student_data import (
    clean_text,
    dob_password,
    format_resume_url,
    generate_student_password,
    parse_cgpa,
    parse_flexible_date,
    parse_percentage,
)


class TestParseFlexibleDate:

    @pytest.mark.parametrize(
        "raw",
        ["2002-08-15", "15-08-2002", "15/08/2002", "15.08.2002", "2002/08/15", " 15-08-2002 "],
    )
    def test_supported_layouts(self, raw):
        assert parse_flexible_date(raw) == date(2002, 8, 15)

    def test_iso_datetime_fallback(self):
        assert parse_flexible_date("2002-08-15T10:00:00Z") == date(2002, 8, 15)

    def test_date_and_datetime_pass_through(self):
        assert parse_flexible_date(date(2001, 1, 2)) == date(2001, 1, 2)
        assert parse_flexible_date(datetime(2001, 1, 2, 9, 0)) == date(2001, 1, 2)

    @pytest.mark.parametrize("raw", [None, "", "   ", "31-02-2002", "15-08-02", "yesterday", 20020815])
    def test_unparseable_is_none(self, raw):
        assert parse_flexible_date(raw) is None


class TestPasswords:

    def test_dob_password(self):
        assert dob_password(date(2002, 8, 15)) == "15082002"
        assert dob_password(date(1999, 1, 5)) == "05011999"

    def test_generated_password_uses_dob(self):
        assert generate_student_password("2002-08-15") == "15082002"

    def test_generated_password_without_dob_is_random(self):
        first = generate_student_password(None)
        assert len(first) == 8
        assert first.isalnum()


class TestScalars:

    @pytest.mark.parametrize(
        "raw, expected",
        [(8, 8.0), (7.25, 7.25), (" 9.1 ", 9.1), ("n/a", None), (None, None), (True, None), ([8], None)],
    )
    def test_parse_cgpa(self, raw, expected):
        assert parse_cgpa(raw) == expected

    def test_parse_percentage(self):
        assert parse_percentage("87.5%") == 87.5
        assert parse_percentage("") is None
        assert parse_percentage("first class") is None

    def test_clean_text(self):
        assert clean_text("  Asha ") == "Asha"
        assert clean_text("   ") is None
        assert clean_text(None) is None

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("x.com", "https://x.com"),
            ("http://drive.example/cv", "http://drive.example/cv"),
            ("HTTPS://Example.org", "HTTPS://Example.org"),
            ("  ", None),
            (None, None),
        ],
    )
    def test_format_resume_url(self, raw, expected):
        assert format_resume_url(raw) == expected


class TestStudentSelfUpdate:

    def test_blank_values_are_dropped(self):
        update = StudentSelfUpdate(first_name="Asha", altEmail="", altPhone="  ", resume_url="")
        assert update.to_columns() == {"first_name": "Asha"}

    def test_pan_is_uppercased(self):
        assert StudentSelfUpdate(pan_card="abcde1234f").to_columns()["pan_card"] == "ABCDE1234F"

    def test_resume_url_gets_scheme(self):
        assert StudentSelfUpdate(resume_url="cv.example.com/asha").to_columns()["resume_url"] == (
            "https://cv.example.com/asha"
        )

    def test_invalid_aadhar_rejected(self):
        with pytest.raises(ValidationError):
            StudentSelfUpdate(aadhar_number="1234")

    def test_addresses_and_education_split_out(self):
        update = StudentSelfUpdate(
            permanentAddress={"city": "Vizag", "postalCode": "530001"},
            degree={"courseName": "B.Tech", "durationFrom": "01-08-2020", "percentage": "81%"},
        )

        addresses = update.addresses()
        assert list(addresses) == ["permanent"]
        assert addresses["permanent"].to_columns()["postal_code"] == "530001"

        degree = update.education()["degree"].to_columns()
        assert degree["duration_from"] == date(2020, 8, 1)
        assert degree["percentage"] == 81.0

    def test_blank_address_has_no_columns(self):
        update = StudentSelfUpdate(presentAddress={"city": "  "})
        assert update.addresses()["present"].to_columns() is None

    def test_student_cannot_set_cgpa(self):
        assert "cgpa" not in StudentSelfUpdate(cgpa=9.9).to_columns()


class TestStudentAdminUpdate:

    def test_academic_fields(self):
        columns = StudentAdminUpdate(branch=" ECE ", cgpa="8.4", dob="15-08-2002").to_columns()
        assert columns == {"branch": "ECE", "cgpa": 8.4, "dob": date(2002, 8, 15)}

    def test_cgpa_out_of_range(self):
        with pytest.raises(ValidationError):
            StudentAdminUpdate(cgpa=11)


class TestCgpaRow:

    def test_accepts_alternate_spellings(self):
        assert CgpaRow(regd_id="21A91A0501", cpga="8.1").normalized() == {"regd_id": "21A91A0501", "cgpa": 8.1}
        assert CgpaRow(registration="21A91A0502", cgpa=7).normalized() == {"regd_id": "21A91A0502", "cgpa": 7.0}

    def test_incomplete_rows_are_skipped(self):
        assert CgpaRow(regd="21A91A0501").normalized() is None
        assert CgpaRow(cgpa=8).normalized() is None
