# ==============================================================================
# REPOSITORIO BASE - Colecciones persistidas en archivos JSON
# ==============================================================================
# Cada colección es un archivo <nombre>.json con una lista de registros.
# Las escrituras pasan por un archivo temporal y os.replace, y todas las
# operaciones de lectura-modificación-escritura toman el mismo lock.
# ==============================================================================

import json
import logging
import os
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

logger = logging.getLogger(__name__)


class BaseRepository(ABC):
    """
    Clase base abstracta para los repositorios de archivo.

    El lock es de clase: un solo escritor a la vez para todas las colecciones.
    Esto permite que un servicio modifique dos colecciones (p.ej. ventas y
    productos) dentro de un mismo bloque sin intercalarse con otra petición.
    """

    _file_lock = threading.RLock()

    def __init__(self, file_path: str):
        """
        Args:
            file_path: Ruta absoluta al archivo JSON de la colección
        """
        self.file_path = file_path
        directory = os.path.dirname(file_path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        if not os.path.exists(self.file_path):
            self._write_raw(self._empty_data())

    @abstractmethod
    def _empty_data(self) -> Any:
        """Estructura vacía de la colección."""

    @classmethod
    @contextmanager
    def locked(cls) -> Iterator[None]:
        """Bloque atómico respecto de cualquier otro repositorio."""
        with cls._file_lock:
            yield

    def _read_raw(self) -> Any:
        """
        Lee el archivo completo.

        Un archivo ausente o con JSON inválido se trata como colección vacía.
        """
        with self._file_lock:
            try:
                with open(self.file_path, 'r', encoding='utf-8') as f:
                    return json.load(f)
            except FileNotFoundError:
                return self._empty_data()
            except json.JSONDecodeError:
                logger.warning("Archivo de datos ilegible, se usa colección vacía: %s", self.file_path)
                return self._empty_data()

    def _write_raw(self, data: Any) -> None:
        """Reemplaza el archivo completo de forma atómica."""
        with self._file_lock:
            temp_path = self.file_path + '.tmp'
            try:
                with open(temp_path, 'w', encoding='utf-8') as f:
                    json.dump(data, f, indent=2, ensure_ascii=False)
                os.replace(temp_path, self.file_path)
            except Exception:
                if os.path.exists(temp_path):
                    os.remove(temp_path)
                raise


class ListRepository(BaseRepository):
    """
    Repositorio para colecciones almacenadas como lista de diccionarios.

    Los registros se identifican por su campo 'id'.
    """

    def _empty_data(self) -> List:
        return []

    def get_all(self) -> List[Dict[str, Any]]:
        data = self._read_raw()
        return data if isinstance(data, list) else []

    def save_all(self, data: List[Dict[str, Any]]) -> None:
        self._write_raw(data)

    def get_by_id(self, record_id: str) -> Optional[Dict[str, Any]]:
        return self.find_by('id', record_id)

    def append(self, record: Dict[str, Any]) -> None:
        """Agrega un registro al final."""
        with self._file_lock:
            data = self.get_all()
            data.append(record)
            self._write_raw(data)

    def prepend(self, record: Dict[str, Any]) -> None:
        """Agrega un registro al inicio (colecciones de más reciente a más antiguo)."""
        with self._file_lock:
            data = self.get_all()
            data.insert(0, record)
            self._write_raw(data)

    def find_by(self, field: str, value: Any) -> Optional[Dict[str, Any]]:
        """
        Busca un registro por un campo.

        Args:
            field: Nombre del campo
            value: Valor a buscar

        Returns:
            Primer registro que coincide o None
        """
        for record in self.get_all():
            if record.get(field) == value:
                return record
        return None

    def find_all_by(self, field: str, value: Any) -> List[Dict[str, Any]]:
        return [r for r in self.get_all() if r.get(field) == value]

    def update_where(self, field: str, value: Any, updates: Dict[str, Any]) -> int:
        """
        Aplica los mismos cambios a todos los registros que coinciden.

        Returns:
            Cantidad de registros modificados
        """
        with self._file_lock:
            data = self.get_all()
            count = 0
            for record in data:
                if record.get(field) == value:
                    record.update(updates)
                    count += 1
            if count:
                self._write_raw(data)
            return count

    def update_by_id(self, record_id: str, updates: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Actualiza un registro por ID.

        Returns:
            El registro actualizado o None si no existe
        """
        with self._file_lock:
            data = self.get_all()
            for record in data:
                if record.get('id') == record_id:
                    record.update(updates)
                    self._write_raw(data)
                    return record
            return None

    def delete_by_id(self, record_id: str) -> Optional[Dict[str, Any]]:
        """
        Elimina un registro por ID.

        Returns:
            El registro eliminado o None si no existía
        """
        with self._file_lock:
            data = self.get_all()
            for index, record in enumerate(data):
                if record.get('id') == record_id:
                    removed = data.pop(index)
                    self._write_raw(data)
                    return removed
            return None
