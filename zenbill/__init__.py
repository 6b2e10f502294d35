# ==============================================================================
# ZenBill - Punto de venta y facturación multi-tienda
# ==============================================================================
# API Flask con persistencia en archivos JSON.
# Entrada: zenbill.main.create_app()
# ==============================================================================

__version__ = '1.0.0'
