from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.responses import redirect_to
from app.core.dependencies import get_db, get_image_viewer
from app.core.logging_config import get_image_logger
from app.services.ownership import parse_id
from app.services.reservation_images import reservation_image_target

router = APIRouter(prefix="/api/reservations", tags=["Reservation Images"])
logger = get_image_logger()


# =====================================================================
# RESERVATION IMAGE (caller must own the reservation)
# =====================================================================
@router.get("/{reservation_id}/image")
def reservation_image(
    reservation_id: str,
    user=Depends(get_image_viewer),
    db: Session = Depends(get_db),
):
    target = reservation_image_target(db, parse_id(reservation_id), user.id)
    logger.info(f"RESERVATION | reservation={reservation_id} | user={user.id} | -> {target}")
    return redirect_to(target)
