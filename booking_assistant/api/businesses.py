from fastapi import APIRouter, Depends, HTTPException, Query

from booking_assistant.api.schemas import AvailabilityResponseSchema
from booking_assistant.application.exceptions import AvailabilityUnknown
from booking_assistant.application.ports.business_directory import BusinessDirectoryPort
from booking_assistant.application.use_cases.availability import AvailabilityChecker
from booking_assistant.application.utils.date_parser import parse_iso_date
from booking_assistant.wiring.dependencies import get_availability_checker, get_business_directory

router = APIRouter()


@router.get("/businesses/{business_id}/availability", response_model=AvailabilityResponseSchema)
def get_availability(
    business_id: str,
    date: str = Query(..., description="YYYY-MM-DD"),
    checker: AvailabilityChecker = Depends(get_availability_checker),
    directory: BusinessDirectoryPort = Depends(get_business_directory),
):
    if directory.get_business_profile(business_id) is None:
        raise HTTPException(status_code=404, detail=f"Business {business_id} not found")
    if parse_iso_date(date) is None:
        raise HTTPException(status_code=422, detail="date must be YYYY-MM-DD")
    try:
        slots = checker.list_available_slots(business_id, date)
    except AvailabilityUnknown:
        return AvailabilityResponseSchema(date=date, slots=[], known=False)
    return AvailabilityResponseSchema(date=date, slots=slots, known=True)
