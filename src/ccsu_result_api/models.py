from __future__ import annotations

import re
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field, field_validator


ROLL_NUMBER_RE = re.compile(r"[0-9]{1,9}")

MISSING_FIELDS_MESSAGE = "Missing required fields"
ROLL_NUMBER_FORMAT_MESSAGE = "Roll number must be numeric and 1–9 digits long"
NOT_FOUND_MESSAGE = "Result not found. Please verify your input."
INTERNAL_ERROR_MESSAGE = "Internal server error"


class ResultRequest(BaseModel):
    """
    One lookup against the portal. Field aliases are the portal's own form field names,
    which is also what the HTTP API accepts.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    course: str = Field(alias="crsselect", min_length=1)
    year: str = Field(alias="yrselect", min_length=1)
    roll_number: str = Field(alias="textrollnum")

    @field_validator("roll_number")
    @classmethod
    def _validate_roll_number(cls, v: str) -> str:
        if not is_valid_roll_number(v):
            raise ValueError(ROLL_NUMBER_FORMAT_MESSAGE)
        return v


class SubjectMarks(BaseModel):
    theory: str = "0"
    practical: str = "0"
    viva: str = "0"


class ResultRecord(BaseModel):
    candidateName: str = ""
    fatherName: str = ""
    motherName: str = ""
    rollNo: str = ""
    enrolmentNo: str = ""
    college: str = ""
    marks: Dict[str, SubjectMarks] = Field(default_factory=dict)

    @property
    def found(self) -> bool:
        # An empty candidate name means the portal rendered no matching record.
        return bool(self.candidateName)


class ErrorResponse(BaseModel):
    error: str


def is_valid_roll_number(value: Any) -> bool:
    return isinstance(value, str) and ROLL_NUMBER_RE.fullmatch(value) is not None
