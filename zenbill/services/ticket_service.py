# ==============================================================================
# SERVICIO DE SOPORTE
# ==============================================================================
# Tickets entre las tiendas y el personal de la plataforma.
#
# REGLAS:
# - Un usuario de tienda solo ve y responde tickets de su tienda.
# - El super admin ve y responde todos; su respuesta pasa el ticket a
#   'In Progress'.
# - Solo el super admin cambia el estado.
# ==============================================================================

import logging
from typing import Any, Dict, List, Optional

from zenbill.models import (
    HQ_SHOP_ID,
    TICKET_STATUSES,
    Ticket,
    TicketMessage,
    TicketStatus,
    User,
    clean_text,
    new_id,
    short_id,
    utc_now_iso,
)
from zenbill.repositories.interfaces import ITicketRepository
from zenbill.services.activity_service import ActivityService

logger = logging.getLogger(__name__)


class TicketService:
    """Servicio de tickets de soporte."""

    def __init__(self, ticket_repo: ITicketRepository, activity_service: ActivityService):
        self.ticket_repo = ticket_repo
        self.activity_service = activity_service

    def _visible_to(self, actor: User, ticket: Optional[Dict[str, Any]]) -> bool:
        if not ticket:
            return False
        return actor.is_super_admin or ticket.get('shop_id') == actor.shop_id

    # =========================================================================
    # CONSULTAS
    # =========================================================================

    def list_tickets(self, actor: User, status: Optional[str] = None) -> List[Dict[str, Any]]:
        """
        Tickets visibles para el usuario, del más recientemente actualizado.

        Args:
            actor: Usuario actual
            status: Filtro de estado (solo aplica al super admin)
        """
        if actor.is_super_admin:
            tickets = self.ticket_repo.get_all()
            status = clean_text(status)
            if status and status.lower() != 'all':
                tickets = [t for t in tickets if t.get('status') == status]
        else:
            tickets = self.ticket_repo.get_by_shop(actor.shop_id)
        tickets.sort(key=lambda t: t.get('updated_at', ''), reverse=True)
        return tickets

    def get_ticket(self, actor: User, ticket_id: str) -> Optional[Dict[str, Any]]:
        ticket = self.ticket_repo.get_by_id(ticket_id)
        return ticket if self._visible_to(actor, ticket) else None

    # =========================================================================
    # MODIFICACIONES
    # =========================================================================

    def create_ticket(self, actor: User, subject: str, message: str) -> Dict[str, Any]:
        """
        Abre un ticket con el primer mensaje del usuario.

        Returns:
            {'ok': True, 'ticket': dict} o {'ok': False, 'error': str}
        """
        subject = clean_text(subject)
        message = clean_text(message)
        if not subject or not message:
            return {'ok': False, 'error': 'Subject and message are required'}
        if actor.is_super_admin:
            return {'ok': False, 'error': 'Platform staff cannot open tickets'}

        ticket = Ticket(
            id=new_id('tkt'),
            shop_id=actor.shop_id,
            customer_id=actor.id,
            customer_name=actor.shop_name,
            subject=subject,
            messages=[TicketMessage(
                id=new_id('msg'),
                sender_id=actor.id,
                sender_name=actor.name,
                message=message,
            )],
        )
        self.ticket_repo.append(ticket.to_dict())
        self.activity_service.log(actor.shop_id, f'New support ticket created: "{subject}"')
        return {'ok': True, 'ticket': ticket.to_dict()}

    def add_message(self, actor: User, ticket_id: str, message: str) -> Dict[str, Any]:
        """
        Agrega una respuesta al ticket.

        Returns:
            {'ok': True, 'ticket': dict} o {'ok': False, 'error': str}
        """
        message = clean_text(message)
        if not message:
            return {'ok': False, 'error': 'Message is required'}

        with self.ticket_repo.locked():
            data = self.ticket_repo.get_by_id(ticket_id)
            if not self._visible_to(actor, data):
                return {'ok': False, 'error': 'Ticket not found'}

            ticket = Ticket.from_dict(data)
            ticket.messages.append(TicketMessage(
                id=new_id('msg'),
                sender_id=actor.id,
                sender_name=actor.name,
                message=message,
            ))
            if actor.is_super_admin:
                ticket.status = TicketStatus.IN_PROGRESS.value
            ticket.updated_at = utc_now_iso()
            self.ticket_repo.update_by_id(ticket.id, ticket.to_dict())

        log_shop = HQ_SHOP_ID if actor.is_super_admin else actor.shop_id
        self.activity_service.log(log_shop, f"New reply added to ticket #{short_id(ticket.id)}")
        return {'ok': True, 'ticket': ticket.to_dict()}

    def update_status(self, actor: User, ticket_id: str, status: str) -> Dict[str, Any]:
        """
        Cambia el estado del ticket (solo super admin).

        Returns:
            {'ok': True, 'ticket': dict} o {'ok': False, 'error': str}
        """
        if not actor.is_super_admin:
            return {'ok': False, 'error': 'Only platform staff can change ticket status'}
        status = clean_text(status)
        if status not in TICKET_STATUSES:
            return {'ok': False, 'error': f'Invalid status: {status}'}

        updated = self.ticket_repo.update_by_id(ticket_id, {
            'status': status,
            'updated_at': utc_now_iso(),
        })
        if not updated:
            return {'ok': False, 'error': 'Ticket not found'}

        self.activity_service.log_platform(
            f"Super Admin updated status for ticket #{short_id(ticket_id)} to {status}."
        )
        logger.info("Ticket %s -> %s", ticket_id, status)
        return {'ok': True, 'ticket': updated}
