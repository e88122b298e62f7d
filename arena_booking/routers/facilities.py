"""
Facility endpoints – read-only view of bookable venues and their slots.
"""

from fastapi import APIRouter, HTTPException, status

from arena_booking import db
from arena_booking.models import Facility, Slot, SlotCatalogResponse
from arena_booking.services.slot_catalog import generate_slots, slot_label

router = APIRouter(prefix="/api/facilities", tags=["facilities"])


async def _get_facility_or_404(facility_id: int) -> Facility:
    facility = await db.get_facility(facility_id)
    if facility is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Facility {facility_id} not found",
        )
    return facility


@router.get(
    "",
    response_model=list[Facility],
    operation_id="listFacilities",
    summary="List facilities",
)
async def list_facilities() -> list[Facility]:
    return await db.list_facilities()


@router.get(
    "/{facility_id}",
    response_model=Facility,
    operation_id="getFacility",
    summary="Get a facility",
)
async def get_facility(facility_id: int) -> Facility:
    return await _get_facility_or_404(facility_id)


@router.get(
    "/{facility_id}/slots",
    response_model=SlotCatalogResponse,
    operation_id="listFacilitySlots",
    summary="The daily slot schedule of a facility",
)
async def list_facility_slots(facility_id: int) -> SlotCatalogResponse:
    await _get_facility_or_404(facility_id)
    return SlotCatalogResponse(
        facility_id=facility_id,
        slots=[
            Slot(start=start, end=end, label=slot_label(start, end))
            for start, end in generate_slots()
        ],
    )
