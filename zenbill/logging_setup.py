# ==============================================================================
# CONFIGURACIÓN DE LOGGING
# ==============================================================================
# Consola con Rich y, si se indica, un archivo con formato completo.
# ==============================================================================

import logging
import os
from typing import Optional, Union

from rich.logging import RichHandler

CONSOLE_FORMAT = "%(name)s: %(message)s"
FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(
    level: Union[int, str] = logging.INFO,
    log_file: Optional[str] = None,
) -> None:
    """
    Configura el logger raíz de la aplicación.

    Volver a llamarla reemplaza solo los handlers instalados aquí; los
    demás (por ejemplo los de pytest) se mantienen.

    Args:
        level: Nivel de logging (número o nombre como "INFO")
        log_file: Ruta opcional del archivo de log
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    for handler in list(root_logger.handlers):
        if getattr(handler, '_zenbill', False):
            root_logger.removeHandler(handler)
            handler.close()

    console_handler = RichHandler(
        show_time=False,
        show_path=False,
        rich_tracebacks=True,
    )
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    console_handler._zenbill = True
    root_logger.addHandler(console_handler)

    if log_file:
        directory = os.path.dirname(log_file)
        if directory:
            os.makedirs(directory, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        file_handler._zenbill = True
        root_logger.addHandler(file_handler)

    # Librerías ruidosas
    logging.getLogger("werkzeug").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)
