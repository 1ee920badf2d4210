"""
Outbound email - workflow notifications and cost estimate delivery over SMTP.

Notification helpers never raise: a failed notification is logged and the
workflow action that triggered it still succeeds.
"""
from email.message import EmailMessage
from pathlib import Path
from typing import List, Optional
import logging
import smtplib

from freight_console.db.database import settings
from freight_console.models import Shipment

logger = logging.getLogger(__name__)


class EmailNotConfigured(Exception):
    pass


def _shipment_line(shipment: Shipment) -> str:
    return f"{shipment.order_ref or 'No order ref'} - {shipment.supplier} ({shipment.product_name or 'product n/a'})"


def send_email(
    to: List[str],
    subject: str,
    body: str,
    attachment_path: Optional[str] = None,
) -> None:
    if not settings.smtp_host:
        raise EmailNotConfigured("SMTP_HOST is not set")
    if not to:
        raise ValueError("At least one recipient is required")

    message = EmailMessage()
    message["From"] = settings.smtp_from
    message["To"] = ", ".join(to)
    message["Subject"] = subject
    message.set_content(body)
    if attachment_path:
        path = Path(attachment_path)
        message.add_attachment(path.read_bytes(), maintype="application", subtype="pdf", filename=path.name)

    with smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=10) as smtp:
        smtp.starttls()
        if settings.smtp_user:
            smtp.login(settings.smtp_user, settings.smtp_password)
        smtp.send_message(message)
    logger.info("Sent email '%s' to %s", subject, ", ".join(to))


def _notify(subject: str, body: str) -> bool:
    recipients = settings.notification_recipients
    if not settings.smtp_host or not recipients:
        logger.info("Notification skipped (email not configured): %s", subject)
        return False
    try:
        send_email(recipients, subject, body)
        return True
    except (smtplib.SMTPException, OSError) as e:
        logger.error("Notification '%s' failed: %s", subject, e)
        return False


def notify_shipment_arrival(shipment: Shipment) -> bool:
    return _notify(
        f"Shipment arrived: {shipment.order_ref or shipment.supplier}",
        f"Unloading has started for {_shipment_line(shipment)}.\n"
        f"Warehouse: {shipment.receiving_warehouse or 'n/a'}",
    )


def notify_inspection_passed(shipment: Shipment) -> bool:
    return _notify(
        f"Inspection passed: {shipment.order_ref or shipment.supplier}",
        f"{_shipment_line(shipment)} passed inspection and is ready for receiving.\n"
        f"Inspected by: {shipment.inspected_by or 'Unknown'}",
    )


def notify_inspection_failed(shipment: Shipment) -> bool:
    reasons = ", ".join(shipment.failure_reasons or []) or "not specified"
    return _notify(
        f"Inspection failed: {shipment.order_ref or shipment.supplier}",
        f"{_shipment_line(shipment)} failed inspection.\n"
        f"Reasons: {reasons}\n"
        f"Notes: {shipment.inspection_notes or ''}",
    )


def notify_shipment_rejected(shipment: Shipment, archived: bool = False) -> bool:
    outcome = "archived" if archived else "kept on record as rejected"
    return _notify(
        f"Shipment rejected: {shipment.order_ref or shipment.supplier}",
        f"{_shipment_line(shipment)} was rejected and {outcome}.\n"
        f"Reason: {shipment.rejection_reason or ''}\n"
        f"Rejected by: {shipment.rejected_by or 'Unknown'}",
    )


def send_cost_estimate_email(to_email: str, reference: str, pdf_path: str, supplier: Optional[str] = None) -> None:
    """Email an estimate PDF; errors propagate so the caller can report them."""
    body = f"Please find attached the import cost estimate {reference}"
    if supplier:
        body += f" for {supplier}"
    send_email([to_email], f"Import Cost Estimate {reference}", body + ".\n", attachment_path=pdf_path)
