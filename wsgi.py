# ==============================================================================
# WSGI Entry Point - Para Gunicorn en producción
# ==============================================================================
# USO:
#   gunicorn wsgi:app --bind 0.0.0.0:$PORT
#
# ESTRUCTURA DEL PROYECTO:
#   repo_root/           <- Directorio de trabajo (en sys.path automáticamente)
#   ├── wsgi.py          <- Este archivo
#   ├── pyproject.toml
#   └── zenbill/         <- Paquete Python
#       ├── main.py      <- create_app()
#       ├── services/
#       └── repositories/
#
# La configuración sale de variables de entorno (ver zenbill/config.py).
# ==============================================================================

import os

from zenbill.main import create_app

app = create_app()

# Para desarrollo local:
#   python wsgi.py
if __name__ == '__main__':
    app.run(
        debug=os.environ.get('FLASK_DEBUG', '0') == '1',
        host=os.environ.get('FLASK_HOST', '0.0.0.0'),
        port=int(os.environ.get('FLASK_PORT', 5000)),
    )
