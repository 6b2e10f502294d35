# ==============================================================================
# SERVICIO DE CONSOLA DE PLATAFORMA
# ==============================================================================
# Operaciones del super admin sobre las tiendas cliente:
# - Resumen (clientes, usuarios, tickets abiertos, actividad reciente)
# - Deshabilitar cuenta / banner de anuncios
# - Usuarios de cada tienda cliente
#
# Un "cliente" es el usuario Admin de una tienda; las banderas de
# deshabilitación y banner viven en él y afectan a toda su tienda.
# ==============================================================================

import logging
from typing import Any, Dict, List, Optional

from zenbill.models import User, UserRole, clean_text, parse_flag
from zenbill.repositories.interfaces import ITicketRepository, IUserRepository
from zenbill.services.activity_service import ActivityService
from zenbill.services.user_service import ProtectedAccountError, UserService

logger = logging.getLogger(__name__)

CUSTOMER_FLAGS = ('is_disabled', 'disabled_message', 'is_banner_visible', 'banner_text')


class AdminService:
    """Servicio de la consola del super admin."""

    def __init__(
        self,
        user_repo: IUserRepository,
        ticket_repo: ITicketRepository,
        activity_service: ActivityService,
        user_service: UserService,
    ):
        self.user_repo = user_repo
        self.ticket_repo = ticket_repo
        self.activity_service = activity_service
        self.user_service = user_service

    def _get_customer(self, customer_id: str) -> Optional[User]:
        data = self.user_repo.get_by_id(customer_id)
        customer = User.from_dict(data) if data else None
        if not customer or not customer.is_admin:
            return None
        return customer

    # =========================================================================
    # RESUMEN
    # =========================================================================

    def overview(self) -> Dict[str, Any]:
        """
        Resumen de la plataforma.

        Returns:
            Dict con customers, total_customers, total_users, open_tickets y
            recent_activity (5 últimas acciones de tiendas cliente)
        """
        users = self.user_repo.get_all()
        customers = [User.from_dict(u).to_public_dict() for u in self.user_repo.get_admins()]
        shop_names = {u.get('shop_id'): u.get('shop_name') for u in users}
        return {
            'customers': customers,
            'total_customers': len(customers),
            'total_users': len(users),
            'open_tickets': self.ticket_repo.count_open(),
            'recent_activity': self.activity_service.recent_customer_activity(shop_names, limit=5),
        }

    def platform_activities(self) -> List[Dict[str, Any]]:
        return self.activity_service.list_platform()

    # =========================================================================
    # CLIENTES
    # =========================================================================

    def update_customer(self, customer_id: str, updates: Dict[str, Any]) -> Dict[str, Any]:
        """
        Cambia las banderas de un cliente (deshabilitación y banner).

        Args:
            customer_id: ID del usuario Admin de la tienda
            updates: Subconjunto de is_disabled, disabled_message,
                is_banner_visible, banner_text

        Returns:
            {'ok': True, 'customer': dict} o {'ok': False, 'error': str}
        """
        customer = self._get_customer(customer_id)
        if not customer:
            return {'ok': False, 'error': 'Customer not found'}

        changes = {}
        for key in CUSTOMER_FLAGS:
            if key not in updates:
                continue
            value = updates[key]
            if key.startswith('is_'):
                flag = parse_flag(value)
                if flag is None:
                    return {'ok': False, 'error': f'Invalid value for {key}'}
                changes[key] = flag
            else:
                changes[key] = clean_text(value)
        if not changes:
            return {'ok': False, 'error': 'Nothing to update'}

        updated = self.user_repo.update_by_id(customer_id, changes)

        shop = customer.shop_name
        description = f"Super Admin updated settings for {shop}."
        if 'is_disabled' in changes:
            action = 'disabled' if changes['is_disabled'] else 'enabled'
            description = f"Super Admin {action} account for {shop}."
        if 'is_banner_visible' in changes:
            action = 'enabled' if changes['is_banner_visible'] else 'disabled'
            description = f"Super Admin {action} the announcement banner for {shop}."
        self.activity_service.log_platform(description)
        return {'ok': True, 'customer': User.from_dict(updated).to_public_dict()}

    def list_customer_users(self, customer_id: str) -> Optional[List[Dict[str, Any]]]:
        """
        Usuarios de la tienda del cliente, sin contar a los Admin.

        Returns:
            Lista de usuarios o None si el cliente no existe
        """
        customer = self._get_customer(customer_id)
        if not customer:
            return None
        return [
            u for u in self.user_service.list_shop_users(customer.shop_id)
            if u.get('role') != UserRole.ADMIN.value
        ]

    def add_user_to_customer(self, customer_id: str, name: str, password: str, role: str) -> Dict[str, Any]:
        customer = self._get_customer(customer_id)
        if not customer:
            return {'ok': False, 'error': 'Customer not found'}

        result = self.user_service.create_member(customer, name, password, role)
        if result['ok']:
            user = result['user']
            self.activity_service.log_platform(
                f"Super Admin added new user: {user.name} ({user.role}) to shop {customer.shop_name}."
            )
            result['user'] = user.to_public_dict()
        return result

    def remove_user(self, user_id: str) -> Dict[str, Any]:
        """
        Elimina un usuario de cualquier tienda.

        Raises:
            ProtectedAccountError: Si el usuario es el Admin de su tienda
        """
        target = self.user_repo.get_by_id(user_id)
        if not target:
            return {'ok': False, 'error': 'User not found'}
        if target.get('role') == UserRole.ADMIN.value:
            raise ProtectedAccountError('Shop admin accounts cannot be removed')

        self.user_repo.delete_by_id(user_id)
        self.activity_service.log_platform(
            f"Super Admin removed user: {target.get('name')} from shop {target.get('shop_name')}."
        )
        return {'ok': True}
