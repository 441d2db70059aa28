from datetime import datetime
from clubhub.extensions import db
from clubhub.models.constants import DELIVERY_STATUSES, check_in
from clubhub.utils.dates import iso


class NotificationLog(db.Model):
    __tablename__ = "notification_logs"

    id = db.Column(db.Integer, primary_key=True)
    organization_id = db.Column(db.Integer, db.ForeignKey("organizations.id", ondelete="CASCADE"), index=True)
    channel = db.Column(db.String(20), nullable=False)  # requested channel, may be "auto"
    delivered_channel = db.Column(db.String(20))
    template = db.Column(db.String(64), nullable=False)
    recipient = db.Column(db.JSON, nullable=False)
    payload = db.Column(db.JSON, nullable=False)
    status = db.Column(db.String(20), check_in("status", DELIVERY_STATUSES), nullable=False, default="pending", index=True)
    attempts = db.Column(db.Integer, nullable=False, default=0)
    message_id = db.Column(db.String(128))
    error_code = db.Column(db.String(50))
    error_message = db.Column(db.Text)
    retryable = db.Column(db.Boolean, nullable=False, default=False)
    sent_at = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "organization_id": self.organization_id,
            "channel": self.channel,
            "delivered_channel": self.delivered_channel,
            "template": self.template,
            "recipient": self.recipient,
            "status": self.status,
            "attempts": self.attempts,
            "message_id": self.message_id,
            "error": (
                {"code": self.error_code, "message": self.error_message, "retryable": self.retryable}
                if self.error_code else None
            ),
            "sent_at": iso(self.sent_at),
            "created_at": iso(self.created_at),
        }
