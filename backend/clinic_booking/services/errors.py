"""
Admission error taxonomy.

Every error carries a stable `kind`, a localized `message` and an optional
`diagnostic` (store/driver detail, never part of the kind).

The first seven kinds are validation errors: raised before any write,
safe to retry with corrected input. StoreUnavailable may hide a partial
effect and is reported separately.
"""

from typing import Optional

from ..i18n import t


class AdmissionError(Exception):
    kind: str = "AdmissionError"
    message_key: str = ""
    http_status: int = 400

    def __init__(
        self,
        *args,
        lang: Optional[str] = None,
        diagnostic: Optional[str] = None,
    ):
        self.message = t(self.message_key, lang, *args) if self.message_key else self.kind
        self.diagnostic = diagnostic
        super().__init__(self.message)

    @property
    def is_validation(self) -> bool:
        return self.kind in VALIDATION_KINDS

    def to_dict(self) -> dict:
        data = {"kind": self.kind, "message": self.message}
        if self.diagnostic:
            data["diagnostic"] = self.diagnostic
        return data


class InvalidDate(AdmissionError):
    kind = "InvalidDate"
    message_key = "error:invalid_date"


class InvalidTimeFormat(AdmissionError):
    kind = "InvalidTimeFormat"
    message_key = "error:invalid_time_format"


class ClinicClosed(AdmissionError):
    kind = "ClinicClosed"
    message_key = "error:clinic_closed"


class SlotNotInGrid(AdmissionError):
    kind = "SlotNotInGrid"
    message_key = "error:slot_not_in_grid"


class TooLateOrPast(AdmissionError):
    kind = "TooLateOrPast"
    message_key = "error:too_late_or_past"


class SlotFull(AdmissionError):
    kind = "SlotFull"
    message_key = "error:slot_full"
    http_status = 409


class DuplicateBooking(AdmissionError):
    kind = "DuplicateBooking"
    message_key = "error:duplicate_booking"
    http_status = 409


class NotFound(AdmissionError):
    kind = "NotFound"
    message_key = "error:not_found"
    http_status = 404


class Forbidden(AdmissionError):
    kind = "Forbidden"
    message_key = "error:forbidden"
    http_status = 403


class InvalidTransition(AdmissionError):
    kind = "InvalidTransition"
    message_key = "error:invalid_transition"
    http_status = 409


class StoreUnavailable(AdmissionError):
    kind = "StoreUnavailable"
    message_key = "error:store_unavailable"
    http_status = 503


VALIDATION_KINDS = frozenset({
    InvalidDate.kind,
    InvalidTimeFormat.kind,
    ClinicClosed.kind,
    SlotNotInGrid.kind,
    TooLateOrPast.kind,
    SlotFull.kind,
    DuplicateBooking.kind,
})
