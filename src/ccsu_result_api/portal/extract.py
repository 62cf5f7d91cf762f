from __future__ import annotations

import logging
from typing import Any, Optional

from pydantic import ValidationError

from ..models import ResultRecord
from .selectors import PortalSelectors


logger = logging.getLogger(__name__)


# Shared by every in-page script below, so the label lookup exists exactly once.
CELL_HELPERS_JS = """
  const cellText = (el) => ((el && el.innerText) || '').trim();

  const getLabelValue = (label, offset) => {
    const tdList = Array.from(document.querySelectorAll('td'));
    for (let i = 0; i < tdList.length; i++) {
      const target = tdList[i + offset];
      if (cellText(tdList[i]) === label && target) {
        return cellText(target);
      }
    }
    return '';
  };
"""

_EXTRACT_RESULT_BODY_JS = """
  const extractMarks = () => {
    const tables = document.querySelectorAll('table');
    if (tables.length <= opts.marksTableIndex) return {};
    const rows = tables[opts.marksTableIndex].querySelectorAll('tr');
    if (rows.length < 4) return {};

    const rowCells = (row) =>
      Array.from(row.querySelectorAll('td')).slice(opts.marksHeaderCells).map(cellText);

    const subjectCodes = rowCells(rows[0]);
    const theoryMarks = rowCells(rows[1]);
    const internalMarks = rowCells(rows[2]);
    const vivaMarks = rowCells(rows[3]);

    const marks = {};
    for (let i = 0; i < subjectCodes.length; i++) {
      const code = subjectCodes[i];
      if (!code) continue;
      marks[code] = {
        theory: theoryMarks[i] || '0',
        practical: internalMarks[i] || '0',
        viva: vivaMarks[i] || '0'
      };
    }
    return marks;
  };

  const record = {};
  for (const [field, label] of Object.entries(opts.labels)) {
    record[field] = getLabelValue(label, opts.labelValueOffset);
  }
  record.marks = extractMarks();
  return record;
"""

# Runs inside the result page via `page.evaluate(EXTRACT_RESULT_JS, options)`.
# Must return only JSON-serializable data.
EXTRACT_RESULT_JS = "(opts) => {" + CELL_HELPERS_JS + _EXTRACT_RESULT_BODY_JS + "}"

# One label at a time; handy when inspecting a saved snapshot.
GET_VALUE_JS = "([label, offset]) => {" + CELL_HELPERS_JS + "  return getLabelValue(label, offset);\n}"


def extract_options(selectors: Optional[PortalSelectors] = None) -> dict[str, Any]:
    """Arguments passed to `EXTRACT_RESULT_JS` (serialized into the page)."""
    sel = selectors or PortalSelectors()
    return {
        "labels": sel.field_labels(),
        "labelValueOffset": sel.label_value_offset,
        "marksTableIndex": sel.marks_table_index,
        "marksHeaderCells": sel.marks_header_cells,
    }


def record_from_payload(payload: Any) -> ResultRecord:
    """
    Validate the payload marshaled back from the page into a `ResultRecord`.

    Raises ValueError when the page returned something that is not a record at all.
    """
    if not isinstance(payload, dict):
        raise ValueError(f"Unexpected extraction payload type: {type(payload).__name__}")
    try:
        return ResultRecord.model_validate(payload)
    except ValidationError as e:
        raise ValueError(f"Extraction payload did not match ResultRecord: {e}") from e


def extract_result(page, selectors: Optional[PortalSelectors] = None) -> ResultRecord:
    payload = page.evaluate(EXTRACT_RESULT_JS, extract_options(selectors))
    record = record_from_payload(payload)
    logger.debug(
        "Extracted record (found=%s, subjects=%d)",
        record.found,
        len(record.marks),
    )
    return record


def get_value(page, label: str, selectors: Optional[PortalSelectors] = None) -> str:
    sel = selectors or PortalSelectors()
    return page.evaluate(GET_VALUE_JS, [label, sel.label_value_offset])
