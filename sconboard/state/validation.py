"""
SConboard — Submit Validation Rules
====================================

What:  The full rule set run on every submit.
How:   Every rule is evaluated independently (no short-circuit) and writes at
       most one message under its error key. The record is acceptable iff the
       returned mapping is empty.

    Key          Rule
    ───────────  ─────────────────────────────────────────────
    center_name  non-empty after trim
    phone        non-empty; 10 ASCII digits, leading digit 6-9
    email        non-empty; local@domain.tld shape
    city         non-empty after trim
    state        non-empty after trim
    zip_code     non-empty; exactly 6 ASCII digits
    location     latitude and longitude both populated
    categories   at least one selected
    images       at least one attached
"""

import re
from typing import Dict

from sconboard.schemas.form import FormRecord

# Indian mobile numbers: 10 digits starting with 6, 7, 8 or 9.
# ASCII digits only: in a str pattern \d also matches Devanagari and other
# Unicode decimal digits.
PHONE_PATTERN = re.compile(r"[6-9][0-9]{9}")
EMAIL_PATTERN = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")
# Indian PIN codes
ZIP_PATTERN = re.compile(r"[0-9]{6}")

# Error keys, in the order the form displays them
CENTER_NAME = "center_name"
PHONE = "phone"
EMAIL = "email"
CITY = "city"
STATE = "state"
ZIP_CODE = "zip_code"
LOCATION = "location"
CATEGORIES = "categories"
IMAGES = "images"

ERROR_KEYS = (CENTER_NAME, PHONE, EMAIL, CITY, STATE, ZIP_CODE, LOCATION, CATEGORIES, IMAGES)


def is_valid_phone(value: str) -> bool:
    # fullmatch, not match: "98765432101" must fail
    return PHONE_PATTERN.fullmatch(value) is not None


def is_valid_email(value: str) -> bool:
    return EMAIL_PATTERN.fullmatch(value) is not None


def is_valid_zip(value: str) -> bool:
    return ZIP_PATTERN.fullmatch(value) is not None


def validate_record(record: FormRecord) -> Dict[str, str]:
    """
    Run every submit rule against the record.

    Returns:
        Mapping of error key → message. Empty when the record is acceptable.
    """
    errors: Dict[str, str] = {}

    if not record.center_name.strip():
        errors[CENTER_NAME] = "Service center name is required"

    if not record.phone.strip():
        errors[PHONE] = "Phone number is required"
    elif not is_valid_phone(record.phone):
        errors[PHONE] = "Enter a valid 10-digit Indian phone number"

    if not record.email.strip():
        errors[EMAIL] = "Email is required"
    elif not is_valid_email(record.email):
        errors[EMAIL] = "Enter a valid email address"

    if not record.city.strip():
        errors[CITY] = "City is required"
    if not record.state.strip():
        errors[STATE] = "State is required"

    if not record.zip_code.strip():
        errors[ZIP_CODE] = "Zip code is required"
    elif not is_valid_zip(record.zip_code):
        errors[ZIP_CODE] = "Enter a valid 6-digit Zip code"

    if not record.has_location:
        errors[LOCATION] = "Please fetch your location coordinates"

    if not record.categories:
        errors[CATEGORIES] = "Select at least one category"
    if not record.images:
        errors[IMAGES] = "Upload at least one image"

    return errors
