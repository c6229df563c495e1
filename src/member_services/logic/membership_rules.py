"""
Business tables and rules for memberships sold through the webshop.

A webshop product variation identifies campus and membership length. Campus
decides the ERP department; length decides the customer category, the
invoiced product and the accrual period.
"""

import re
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Optional

from member_services.handlers.utils.errors import ValidationError


class MembershipType(str, Enum):
    SEMESTER = 'Semester'
    YEAR = 'Year'
    THREE_YEARS = '3 Years'


@dataclass(frozen=True)
class Campus:
    campus_id: str
    name: str


OSLO = Campus('1', 'Oslo')
BERGEN = Campus('2', 'Bergen')
TRONDHEIM = Campus('3', 'Trondheim')
STAVANGER = Campus('4', 'Stavanger')
NATIONAL = Campus('5', 'National')

CAMPUSES = (OSLO, BERGEN, TRONDHEIM, STAVANGER)


@dataclass(frozen=True)
class MembershipVariation:
    variation_id: str
    campus: Campus
    membership_type: MembershipType

    @property
    def category_id(self) -> int:
        return CATEGORY_BY_TYPE[self.membership_type]

    @property
    def product_id(self) -> int:
        return PRODUCT_BY_TYPE[self.membership_type]

    @property
    def department_id(self) -> int:
        return department_for_campus(self.campus.campus_id)

    @property
    def accrual_length(self) -> int:
        return accrual_length(self.membership_type.value)


CATEGORY_BY_TYPE = {
    MembershipType.SEMESTER: 113170,
    MembershipType.YEAR: 113172,
    MembershipType.THREE_YEARS: 113171,
}

PRODUCT_BY_TYPE = {
    MembershipType.SEMESTER: 50,
    MembershipType.YEAR: 69,
    MembershipType.THREE_YEARS: 80,
}

# variation ids run Oslo, Bergen, Trondheim, Stavanger within each membership length
VARIATIONS = {
    variation.variation_id: variation
    for variation in (
        MembershipVariation(str(22141 + offset + 4 * index), campus, membership_type)
        for index, membership_type in enumerate(MembershipType)
        for offset, campus in enumerate(CAMPUSES)
    )
}

DEPARTMENT_BY_CAMPUS = {'1': 1, '2': 300, '3': 600, '4': 800}
NATIONAL_DEPARTMENT_ID = 1000

ACCRUAL_MONTHS = {'semester': 6, 'year': 12, '3 years': 36}
# paid checkouts always accrue over one half-year
CHECKOUT_ACCRUAL_MONTHS = 6


def variation(variation_id: str) -> MembershipVariation:
    """Look up a webshop variation; unknown ids are a validation error."""
    found = VARIATIONS.get(str(variation_id).strip())
    if found is None:
        raise ValidationError(
            message=f'Unknown membership variation {variation_id}',
            field_errors=[{'field': 'selected_variation', 'message': 'unknown variation'}],
        )
    return found


def department_for_campus(campus_id: Optional[str]) -> int:
    return DEPARTMENT_BY_CAMPUS.get(str(campus_id) if campus_id is not None else '', NATIONAL_DEPARTMENT_ID)


def campus_for_department(department_id: int) -> Campus:
    """Inverse of the department ranges each campus owns."""
    if department_id < 300:
        return OSLO
    if department_id < 600:
        return BERGEN
    if department_id < 800:
        return TRONDHEIM
    if department_id < 1000:
        return STAVANGER
    return NATIONAL


def accrual_date(today: date) -> date:
    """July 1st for purchases from July onwards, otherwise June 1st of the same year."""
    if today.month >= 7:
        return date(today.year, 7, 1)
    return date(today.year, 6, 1)


def checkout_accrual_date(today: date) -> date:
    """Start of the next half-year: July 1st before July, otherwise January 1st of the next year."""
    if today.month < 7:
        return date(today.year, 7, 1)
    return date(today.year + 1, 1, 1)


def accrual_length(membership_type: str) -> int:
    months = ACCRUAL_MONTHS.get(membership_type.strip().lower())
    if months is None:
        raise ValidationError(message=f'Invalid membership type {membership_type}')
    return months


def normalize_student_number(value) -> int:
    """Strip everything but digits from a student number such as ``s1234567``."""
    digits = re.sub(r'[^0-9]', '', str(value if value is not None else ''))
    if not digits:
        raise ValidationError(
            message='Invalid student number format',
            field_errors=[{'field': 'snumber', 'message': 'must contain digits'}],
        )
    return int(digits)
