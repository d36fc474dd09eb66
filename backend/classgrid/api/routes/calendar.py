from fastapi import APIRouter, Depends

from classgrid.api.deps import get_calendar
from classgrid.schemas.calendar import CalendarOut
from classgrid.services.period_calendar import PeriodCalendar

router = APIRouter()


@router.get("/calendar", response_model=CalendarOut)
def read_period_calendar(calendar: PeriodCalendar = Depends(get_calendar)) -> CalendarOut:
    return CalendarOut(
        days=calendar.days,
        periods=calendar.periods,
        assignable_slot_count=calendar.assignable_slot_count(),
    )
