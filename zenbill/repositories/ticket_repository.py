# ==============================================================================
# REPOSITORIO DE TICKETS DE SOPORTE
# ==============================================================================

import os
from typing import Any, Dict, List

from zenbill.models import Ticket
from zenbill.repositories.base import ListRepository


class TicketRepository(ListRepository):
    """
    Tickets de soporte con sus mensajes embebidos.

    Formato de datos en tickets.json:
    [
        {
            "id": "tkt-...", "shop_id": "...", "customer_id": "user-...",
            "customer_name": "Mi Tienda", "subject": "...", "status": "Open",
            "messages": [{"id": "msg-...", "sender_id": "...", "sender_name": "...",
                          "message": "...", "timestamp": "..."}],
            "created_at": "...", "updated_at": "..."
        }
    ]
    """

    def __init__(self, base_path: str):
        super().__init__(os.path.join(base_path, 'tickets.json'))

    def get_by_shop(self, shop_id: str) -> List[Dict[str, Any]]:
        return self.find_all_by('shop_id', shop_id)

    def count_open(self) -> int:
        """Tickets que no están cerrados."""
        return sum(1 for t in self.get_all() if Ticket.from_dict(t).is_open)
