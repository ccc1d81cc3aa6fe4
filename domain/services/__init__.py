from .amortization import (
    AmortizationSchedule,
    PaymentBasis,
    ScheduleRow,
    compute_amortization_schedule,
    INSTALLMENT_ROUNDING_UNIT,
)
from .jalali_calendar import (
    JalaliDate,
    add_months_to_jalali_string,
    add_months_to_jalali_string_ascii,
    format_jalali_date,
    get_installment_due_date_from_agreement,
    gregorian_to_jalali,
    parse_jalali_date_string,
)

__all__ = [
    "AmortizationSchedule", "PaymentBasis", "ScheduleRow", "compute_amortization_schedule",
    "INSTALLMENT_ROUNDING_UNIT", "JalaliDate", "add_months_to_jalali_string",
    "add_months_to_jalali_string_ascii", "format_jalali_date",
    "get_installment_due_date_from_agreement", "gregorian_to_jalali", "parse_jalali_date_string",
]
