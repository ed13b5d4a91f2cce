"""Lead repository - Database operations for leads and their attachments"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Attachment, City, Lead, Service


class LeadRepository:
    """Repository for lead database operations"""

    @staticmethod
    def create_lead(db: Session, **lead_data) -> Lead:
        lead = Lead(**lead_data)
        db.add(lead)
        db.commit()
        db.refresh(lead)
        return lead

    @staticmethod
    def create_attachment(db: Session, lead_id: int, url: str, type: Optional[str]) -> Attachment:
        attachment = Attachment(lead_id=lead_id, url=url, type=type)
        db.add(attachment)
        db.commit()
        db.refresh(attachment)
        return attachment

    @staticmethod
    def get_service_name(db: Session, service_id: int) -> Optional[str]:
        service = db.query(Service).filter(Service.id == service_id).first()
        return service.name if service else None

    @staticmethod
    def get_city_name(db: Session, city_id: int) -> Optional[str]:
        city = db.query(City).filter(City.id == city_id).first()
        return city.name if city else None
