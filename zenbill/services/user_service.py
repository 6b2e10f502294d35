# ==============================================================================
# SERVICIO DE USUARIOS
# ==============================================================================
# Centraliza la lógica de negocio de usuarios y tiendas:
# - Alta de tienda (signup) y autenticación
# - Perfil de tienda e impuestos (solo Admin)
# - Usuarios de la tienda
#
# REGLA - SUPER ADMIN:
# El personal de la plataforma no existe en users.json. Sus credenciales
# vienen de la configuración y se representa con User.super_admin().
# ==============================================================================

import logging
from typing import Any, Dict, List, Optional

from werkzeug.security import check_password_hash, generate_password_hash

from zenbill.models import (
    SHOP_ROLES,
    User,
    UserRole,
    clean_text,
    new_id,
    new_merchant_id,
)
from zenbill.repositories.interfaces import IUserRepository
from zenbill.services.activity_service import ActivityService

logger = logging.getLogger(__name__)

DEFAULT_DISABLED_MESSAGE = 'Your account has been disabled. Please contact support.'

# Vista inicial de cada rol tras el login
LANDING_VIEWS = {
    UserRole.ADMIN.value: 'dashboard',
    UserRole.CASHIER.value: 'new_sale',
    UserRole.ACCOUNTANT.value: 'stock',
    UserRole.SUPER_ADMIN.value: 'super_admin_dashboard',
}


class ProtectedAccountError(Exception):
    """Se intenta eliminar una cuenta que no se puede eliminar."""
    pass


def parse_percentage(value: Any) -> Optional[float]:
    """Convierte un porcentaje de impuesto; None si no es un número en [0, 100]."""
    if value is None or value == '':
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if number < 0 or number > 100:
        return None
    return number


class UserService:
    """
    Servicio para gestión de usuarios y perfil de tienda.

    Los métodos que modifican datos devuelven {'ok': bool, 'error': str, ...}
    y las rutas los traducen a respuestas HTTP.
    """

    def __init__(
        self,
        user_repo: IUserRepository,
        activity_service: ActivityService,
        superadmin_user: str = 'admin',
        superadmin_password: str = 'password',
    ):
        """
        Args:
            user_repo: Repositorio de usuarios
            activity_service: Registro de actividad
            superadmin_user: Usuario del personal de la plataforma
            superadmin_password: Contraseña del personal de la plataforma
        """
        self.user_repo = user_repo
        self.activity_service = activity_service
        self.superadmin_user = superadmin_user
        self.superadmin_password = superadmin_password

    # =========================================================================
    # CONSULTAS
    # =========================================================================

    def get_user(self, user_id: str) -> Optional[User]:
        """
        Relee el usuario desde almacenamiento.

        Se usa en cada petición: así los cambios de perfil y la
        deshabilitación de la tienda aplican de inmediato.
        """
        if not user_id:
            return None
        if user_id == User.super_admin().id:
            return User.super_admin()
        data = self.user_repo.get_by_id(user_id)
        return User.from_dict(data) if data else None

    @staticmethod
    def landing_view(role: str) -> str:
        return LANDING_VIEWS.get(role, 'dashboard')

    def get_shop_admins(self, shop_id: str) -> List[User]:
        return [User.from_dict(u) for u in self.user_repo.get_shop_admins(shop_id)]

    def disabled_message(self, user: User) -> Optional[str]:
        """
        Mensaje de cuenta deshabilitada si la tienda del usuario lo está.

        La bandera vive en los Admin de la tienda y afecta a todos sus usuarios.

        Returns:
            Mensaje a mostrar o None si la tienda está activa
        """
        if user.is_super_admin:
            return None
        for admin in self.get_shop_admins(user.shop_id):
            if admin.is_disabled:
                return admin.disabled_message or DEFAULT_DISABLED_MESSAGE
        return None

    def banner_for(self, user: User) -> Optional[str]:
        """Texto del banner de la tienda, si está visible y la tienda activa."""
        if user.is_super_admin or self.disabled_message(user):
            return None
        for admin in self.get_shop_admins(user.shop_id):
            if admin.is_banner_visible and admin.banner_text:
                return admin.banner_text
        return None

    def _name_taken(self, name: str) -> bool:
        """El nombre ya lo usa otro usuario o es el login del super admin."""
        return self.user_repo.name_exists(name) or name.lower() == self.superadmin_user.lower()

    def list_shop_users(self, shop_id: str) -> List[Dict[str, Any]]:
        return [User.from_dict(u).to_public_dict() for u in self.user_repo.get_by_shop(shop_id)]

    # =========================================================================
    # AUTENTICACIÓN
    # =========================================================================

    def authenticate(self, name: str, password: str) -> Dict[str, Any]:
        """
        Autentica por nombre y contraseña.

        Acepta contraseñas legacy en texto plano y las migra a hash en el
        primer login exitoso.

        Args:
            name: Nombre de login
            password: Contraseña en texto plano

        Returns:
            {'ok': True, 'user': User} o {'ok': False, 'error': str}
        """
        name = clean_text(name)
        password = password if isinstance(password, str) else ''
        invalid = {'ok': False, 'error': 'Invalid username or password'}

        if not name or not password:
            return invalid

        if name == self.superadmin_user and password == self.superadmin_password:
            logger.info("Login de super admin")
            return {'ok': True, 'user': User.super_admin()}

        data = self.user_repo.get_by_name(name)
        if not data or data.get('name') != name:
            return invalid

        stored = data.get('password', '')
        if stored.startswith(('pbkdf2:', 'scrypt:')):
            if not check_password_hash(stored, password):
                return invalid
        else:
            if stored != password:
                return invalid
            self.user_repo.update_by_id(data['id'], {'password': generate_password_hash(password)})
            logger.info("Contraseña legacy migrada a hash para %s", name)

        user = User.from_dict(data)
        if not self.disabled_message(user):
            self.activity_service.log(user.shop_id, f"{user.name} logged in.")
        return {'ok': True, 'user': user}

    def log_logout(self, user: User) -> None:
        if user.is_super_admin or self.disabled_message(user):
            return
        self.activity_service.log(user.shop_id, f"{user.name} logged out.")

    def signup(self, name: str, password: str, shop_name: str) -> Dict[str, Any]:
        """
        Crea una tienda nueva con su usuario Admin.

        Args:
            name: Nombre de login del administrador
            password: Contraseña
            shop_name: Nombre de la tienda

        Returns:
            {'ok': True, 'user': User} o {'ok': False, 'error': str}
        """
        name = clean_text(name)
        shop_name = clean_text(shop_name)
        if not name or not isinstance(password, str) or not password or not shop_name:
            return {'ok': False, 'error': 'All fields are required'}

        with self.user_repo.locked():
            if self._name_taken(name):
                return {'ok': False, 'error': 'Username is already taken'}

            user = User(
                id=new_id('user'),
                shop_id=new_id('shop'),
                name=name,
                password=generate_password_hash(password),
                shop_name=shop_name,
                role=UserRole.ADMIN.value,
                merchant_id=new_merchant_id(),
            )
            self.user_repo.append(user.to_dict())

        self.activity_service.log(
            user.shop_id,
            f'Shop "{shop_name}" created. Admin user "{name}" registered.'
        )
        logger.info("Nueva tienda %s (%s)", user.shop_id, shop_name)
        return {'ok': True, 'user': user}

    def backfill_merchant_ids(self) -> int:
        """
        Asigna ID de comercio a los usuarios guardados que no lo tienen.

        Returns:
            Cantidad de usuarios actualizados
        """
        with self.user_repo.locked():
            users = self.user_repo.get_all()
            count = 0
            for user in users:
                if user.get('role') != UserRole.SUPER_ADMIN.value and not user.get('merchant_id'):
                    user['merchant_id'] = new_merchant_id()
                    count += 1
            if count:
                self.user_repo.save_all(users)
                logger.info("ID de comercio asignado a %d usuarios", count)
        return count

    # =========================================================================
    # PERFIL DE TIENDA
    # =========================================================================

    def update_profile(self, actor: User, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Actualiza el perfil e impuestos de la tienda del Admin.

        Los campos de tienda se replican en todos los usuarios de la tienda;
        'name' renombra solo al Admin que hace el cambio.

        Args:
            actor: Admin que edita
            data: Campos enviados por el formulario

        Returns:
            {'ok': True, 'user': dict} o {'ok': False, 'error': str}
        """
        shop_name = clean_text(data['shop_name'] if 'shop_name' in data else actor.shop_name)
        if not shop_name:
            return {'ok': False, 'error': 'Shop name is required'}

        sgst = parse_percentage(data.get('sgst_percentage', actor.sgst_percentage))
        cgst = parse_percentage(data.get('cgst_percentage', actor.cgst_percentage))
        if sgst is None or cgst is None:
            return {'ok': False, 'error': 'Tax percentages must be numbers between 0 and 100'}

        shop_updates = {
            'shop_name': shop_name,
            'gst_number': clean_text(data.get('gst_number', actor.gst_number)),
            'sgst_percentage': sgst,
            'cgst_percentage': cgst,
            'shop_address': clean_text(data.get('shop_address', actor.shop_address)),
            'shop_logo': clean_text(data.get('shop_logo', actor.shop_logo)),
            'shop_phone_number': clean_text(data.get('shop_phone_number', actor.shop_phone_number)),
        }

        new_name = clean_text(data.get('name')) or actor.name

        with self.user_repo.locked():
            if new_name.lower() != actor.name.lower():
                if self._name_taken(new_name):
                    return {'ok': False, 'error': 'Username is already taken'}
            self.user_repo.update_shop(actor.shop_id, shop_updates)
            updated = self.user_repo.update_by_id(actor.id, {'name': new_name})

        self.activity_service.log(actor.shop_id, 'Shop profile and tax settings were updated.')
        return {'ok': True, 'user': User.from_dict(updated).to_public_dict()}

    # =========================================================================
    # USUARIOS DE LA TIENDA
    # =========================================================================

    def create_member(self, shop_owner: User, name: str, password: str, role: str) -> Dict[str, Any]:
        """
        Crea un usuario en la tienda de shop_owner heredando su perfil.

        Lo usan tanto el Admin de la tienda como el super admin; el registro
        de actividad queda a cargo de quien llama.

        Returns:
            {'ok': True, 'user': User} o {'ok': False, 'error': str}
        """
        name = clean_text(name)
        role = clean_text(role)
        if not name or not isinstance(password, str) or not password:
            return {'ok': False, 'error': 'Name and password are required'}
        if role not in SHOP_ROLES:
            return {'ok': False, 'error': f'Invalid role: {role}'}

        with self.user_repo.locked():
            if self._name_taken(name):
                return {'ok': False, 'error': 'Username is already taken'}
            user = User(
                id=new_id('user'),
                shop_id=shop_owner.shop_id,
                name=name,
                password=generate_password_hash(password),
                role=role,
                **shop_owner.shop_profile()
            )
            self.user_repo.append(user.to_dict())
        return {'ok': True, 'user': user}

    def add_shop_user(self, actor: User, name: str, password: str, role: str) -> Dict[str, Any]:
        result = self.create_member(actor, name, password, role)
        if result['ok']:
            user = result['user']
            self.activity_service.log(actor.shop_id, f"Added new user: {user.name} ({user.role}).")
            result['user'] = user.to_public_dict()
        return result

    def remove_shop_user(self, actor: User, user_id: str) -> Dict[str, Any]:
        """
        Elimina un usuario de la tienda del Admin.

        Raises:
            ProtectedAccountError: Si el Admin intenta eliminarse a sí mismo
        """
        if user_id == actor.id:
            raise ProtectedAccountError('You cannot remove your own account')

        target = self.user_repo.get_by_id(user_id)
        if not target or target.get('shop_id') != actor.shop_id:
            return {'ok': False, 'error': 'User not found'}

        self.user_repo.delete_by_id(user_id)
        self.activity_service.log(actor.shop_id, f"Removed user: {target.get('name')}.")
        return {'ok': True}
