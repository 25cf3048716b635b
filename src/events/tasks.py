"""Celery tasks for participant notifications.

Tasks are queued with ``notify_on_commit`` once the triggering transaction
commits. They load fresh state by id and send plain-text email.
"""

import structlog
from celery import shared_task
from django.conf import settings
from django.template.loader import render_to_string

from .models import Registration, TeamInvite

logger = structlog.get_logger(__name__)


def _ticket_link(ticket_id: str | None) -> str:
    return f"{settings.FRONTEND_BASE_URL}/ticket/{ticket_id}"


@shared_task
def send_registration_confirmation(registration_id: str) -> None:
    """Email a participant their ticket after a confirmed registration."""
    from common.tasks import send_email

    registration = Registration.objects.with_related().get(pk=registration_id)
    participant = registration.participant
    subject = f"Registration confirmed: {registration.event.name}"
    body = render_to_string(
        "events/emails/registration_confirmation_body.txt",
        {
            "participant_name": participant.get_full_name() or participant.username,
            "event_name": registration.event.name,
            "event_start": registration.event.start,
            "ticket_id": registration.ticket_id,
            "team_name": registration.team.name if registration.team else None,
            "ticket_link": _ticket_link(registration.ticket_id),
        },
    )
    send_email(to=participant.email, subject=subject, body=body)
    logger.info("registration_confirmation_sent", registration_id=registration_id)


@shared_task
def send_order_decision(registration_id: str) -> None:
    """Email a participant the outcome of their merchandise order."""
    from common.tasks import send_email

    registration = Registration.objects.with_related().get(pk=registration_id)
    participant = registration.participant
    event = registration.event
    context = {
        "participant_name": participant.get_full_name() or participant.username,
        "item_name": event.item_name or event.name,
        "size": registration.order_size,
        "color": registration.order_color,
        "quantity": registration.quantity,
        "amount": registration.amount_paid,
        "ticket_id": registration.ticket_id,
        "ticket_link": _ticket_link(registration.ticket_id),
        "reason": registration.rejection_reason,
        "organizer_name": event.organizer.display_name,
    }
    if registration.status == Registration.Status.CONFIRMED:
        subject = f"Order approved: {context['item_name']}"
        body = render_to_string("events/emails/order_approved_body.txt", context)
    elif registration.status == Registration.Status.REJECTED:
        subject = f"Order not approved: {context['item_name']}"
        body = render_to_string("events/emails/order_rejected_body.txt", context)
    else:
        logger.warning("order_decision_without_decision", registration_id=registration_id, status=registration.status)
        return
    send_email(to=participant.email, subject=subject, body=body)
    logger.info("order_decision_sent", registration_id=registration_id, status=registration.status)


@shared_task
def send_team_invites(invite_ids: list[str]) -> None:
    """Email each invited address its single-use join link."""
    from common.tasks import send_email

    invites = TeamInvite.objects.select_related("team", "team__event", "team__leader").filter(pk__in=invite_ids)
    for invite in invites:
        team = invite.team
        body = render_to_string(
            "events/emails/team_invite_body.txt",
            {
                "leader_name": team.leader.get_full_name() or team.leader.username,
                "team_name": team.name,
                "event_name": team.event.name,
                "invite_link": f"{settings.FRONTEND_BASE_URL}/team-invite/{invite.code}",
                "expires_at": invite.expires_at,
            },
        )
        send_email(to=invite.invited_email, subject=f"Join {team.name} for {team.event.name}", body=body)
    logger.info("team_invites_sent", count=len(invite_ids))
