"""SMS repository - sms_interactions rows, one per send attempt"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import SmsInteraction


class SmsRepository:
    @staticmethod
    def create_interaction(db: Session, **interaction_data) -> SmsInteraction:
        interaction = SmsInteraction(status="pending", direction="outbound", **interaction_data)
        db.add(interaction)
        db.commit()
        db.refresh(interaction)
        return interaction

    @staticmethod
    def mark_sent(db: Session, interaction: SmsInteraction, twilio_sid: Optional[str]) -> SmsInteraction:
        interaction.status = "sent"
        interaction.twilio_sid = twilio_sid
        db.commit()
        return interaction

    @staticmethod
    def mark_failed(db: Session, interaction: SmsInteraction, error_message: Optional[str]) -> SmsInteraction:
        interaction.status = "failed"
        interaction.error_message = error_message
        db.commit()
        return interaction
