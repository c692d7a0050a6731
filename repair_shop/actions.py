"""
What the UI buttons do, minus the widgets: validate input, call the
state/vault/services, and report the outcome.
"""
import logging
from typing import Optional

from .errors import TransportError, ValidationError
from .invoice import render_invoice
from .models import SMS_FAILED, SMS_SENT, STATUS_COMPLETED, RepairJob, SmsLog, now_millis

logger = logging.getLogger(__name__)


def _optional(value: Optional[str]) -> Optional[str]:
    value = (value or "").strip()
    return value or None


def save_repair(state, customer_name, phone, model="", imei="", problem="",
                image_path=None, pin=None, password=None, pattern=None) -> RepairJob:
    customer_name = (customer_name or "").strip()
    phone = (phone or "").strip()
    if not customer_name or not phone:
        raise ValidationError("Customer name & phone are required")
    job = RepairJob(
        customer_name=customer_name,
        phone=phone,
        model=(model or "").strip(),
        imei=(imei or "").strip(),
        problem=(problem or "").strip(),
        image_path=image_path,
        pin=_optional(pin),
        password=_optional(password),
        pattern=_optional(pattern),
    )
    state.add_repair(job)
    logger.info("Repair job %s added for %s", job.id, job.customer_name)
    return job


def complete_repair(state, job: RepairJob, completed_at: Optional[int] = None) -> RepairJob:
    job.status = STATUS_COMPLETED
    job.completed_at = completed_at if completed_at is not None else now_millis()
    state.update_repair(job)
    logger.info("Repair job %s marked complete", job.id)
    return job


def delete_repair(state, job: RepairJob) -> int:
    affected = state.delete_repair(job.id)
    logger.info("Repair job %s deleted (%d row)", job.id, affected)
    return affected


def send_sms(state, transport, to_number, message) -> SmsLog:
    """
    Send one SMS and log the attempt. A transport failure does not raise:
    it is recorded as a 'failed' log entry and returned to the caller, who
    decides what to tell the user (and whether to clear the message box).
    """
    to_number = (to_number or "").strip()
    message = (message or "").strip()
    if not to_number or not message:
        raise ValidationError("Number and message required")
    try:
        transport.send(to_number, message)
        status = SMS_SENT
    except TransportError as e:
        logger.warning("SMS to %s failed: %s", to_number, e)
        status = SMS_FAILED
    log = SmsLog(to_number=to_number, message=message, status=status)
    state.add_sms_log(log)
    return log


def save_credential(vault, label, secret):
    label = (label or "").strip()
    secret = (secret or "").strip()
    if not label or not secret:
        raise ValidationError("Label & value required")
    vault.write(label, secret)


def print_invoice(job: RepairJob, printer) -> str:
    data = render_invoice(job)
    return printer.print_document(data, f"invoice_{job.id}")


def call_customer(job: RepairJob, dialer):
    dialer.dial(job.phone)
