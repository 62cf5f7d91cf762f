from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class PortalSelectors:
    """
    The result portal is a third-party page with no versioning; its markup may change.
    Keep every selector, label and positional offset here for easy maintenance.
    """

    # Form
    course_select: str = 'select[name="crsselect"]'
    year_select: str = 'select[name="yrselect"]'
    roll_number_input: str = 'input[name="textrollnum"]'
    submit_button: str = 'input[type="submit"]'

    # Result page: personal details are laid out as `label | ":" | value` cells, so the
    # value sits two cells after its label in document order.
    label_value_offset: int = 2
    candidate_name_label: str = "Candidate Name"
    father_name_label: str = "Father's Name"
    mother_name_label: str = "Mother's Name"
    roll_no_label: str = "Roll No."
    enrolment_no_label: str = "Enrolment No."
    college_label: str = "College/Institution"

    # Result page: marks grid. Rows are subject codes, theory, internal/practical, viva;
    # the first cells of each row are header/label columns.
    marks_table_index: int = 2
    marks_header_cells: int = 9

    def field_labels(self) -> dict[str, str]:
        """Record field name -> label text shown on the result page."""
        return {
            "candidateName": self.candidate_name_label,
            "fatherName": self.father_name_label,
            "motherName": self.mother_name_label,
            "rollNo": self.roll_no_label,
            "enrolmentNo": self.enrolment_no_label,
            "college": self.college_label,
        }
