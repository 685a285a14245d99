from __future__ import annotations

import logging
from typing import Optional, Protocol

import requests

from .model import ParentAlert

logger = logging.getLogger(__name__)

EMAILJS_ENDPOINT = "https://api.emailjs.com/api/v1.0/email/send"


class NotificationSender(Protocol):
    def send_absence_alert(self, alert: ParentAlert) -> bool:
        """Deliver a parent absence alert. Returns True only when the transport accepted it."""

        raise NotImplementedError


class EmailJSNotificationSender(NotificationSender):
    """Send alerts through an EmailJS template; the template owns the wording."""

    def __init__(
        self,
        *,
        service_id: str,
        template_id: str,
        public_key: str,
        endpoint: str = EMAILJS_ENDPOINT,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ):
        self._service_id = service_id
        self._template_id = template_id
        self._public_key = public_key
        self._endpoint = endpoint
        self._timeout = timeout
        self._session = session or requests.Session()

    def build_payload(self, alert: ParentAlert) -> dict:
        return {
            "service_id": self._service_id,
            "template_id": self._template_id,
            "user_id": self._public_key,
            "template_params": {
                "email": alert.parent_email,
                "name": alert.parent_name,
                "student_name": alert.student_name,
                "student_id": alert.student_id,
                "absent_dates": ", ".join(alert.absent_dates),
                "total_absences": str(alert.total_absences),
            },
        }

    def send_absence_alert(self, alert: ParentAlert) -> bool:
        if not alert.parent_email or not alert.parent_email.strip():
            logger.error("Parent email is empty for student %s", alert.student_id)
            return False

        try:
            response = self._session.post(self._endpoint, json=self.build_payload(alert), timeout=self._timeout)
            response.raise_for_status()
        except requests.RequestException:
            logger.error("Failed to send absence alert for student %s", alert.student_id, exc_info=True)
            return False

        logger.info("Absence alert email accepted for student %s", alert.student_id)
        return True


class DisabledNotificationSender(NotificationSender):
    """Used when no transport is configured; alerts stay pending until one is."""

    def send_absence_alert(self, alert: ParentAlert) -> bool:
        logger.warning("Notification transport not configured; alert for %s left pending", alert.student_id)
        return False
