# ==============================================================================
# SERVICIO DE ANALISTA IA (chat)
# ==============================================================================
# Envía la conversación y un resumen de las ventas de la tienda al endpoint
# generateContent de Gemini y devuelve el texto de la respuesta.
#
# Sin API key la función queda deshabilitada (ChatDisabledError).
# ==============================================================================

import json
import logging
from datetime import date
from typing import Any, Dict, List, Optional

import requests

from zenbill.models import Sale, clean_text

logger = logging.getLogger(__name__)

GEMINI_URL = 'https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent'

ONBOARDING_MESSAGE = (
    "I'm ready to help you with business insights, but you don't have any sales data yet. "
    "Once you make some sales, I can analyze them for you. "
    "For now, feel free to ask me general business questions!"
)

FAILURE_MESSAGE = (
    'Failed to get a response from the AI analyst. '
    'The model may be busy. Please try again in a moment.'
)


class ChatServiceError(Exception):
    """El modelo no respondió o respondió algo inutilizable."""
    pass


class ChatDisabledError(ChatServiceError):
    """No hay API key configurada."""
    pass


def simplify_sales(sales: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Resumen de ventas que se envía al modelo (sin IDs ni impuestos)."""
    return [
        {
            'total': sale.get('total'),
            'date': sale.get('date'),
            'item_count': Sale.from_dict(sale).item_count,
            'items': [
                {'name': i.get('name'), 'quantity': i.get('quantity'), 'price': i.get('price')}
                for i in sale.get('items', [])
            ],
        }
        for sale in sales
    ]


def build_system_instruction(sales: List[Dict[str, Any]], today: date) -> str:
    simplified = simplify_sales(sales)
    sample = json.dumps(simplified[0] if simplified else {})
    return (
        "You are Zen, a friendly and helpful business analyst for a small retail shop.\n"
        "Your personality is encouraging and insightful.\n"
        "You will be given the shop's sales data.\n"
        "Analyze the data to answer the user's questions. "
        "Provide concise, clear, and actionable insights.\n"
        "If a user asks a question you cannot answer with the given data, "
        "politely explain what data you need.\n"
        f"The current date is {today.isoformat()}.\n"
        f"The sales data is in this format: {sample}\n\n"
        "Here is the complete sales data for your analysis:\n"
        f"{json.dumps(simplified)}"
    )


class ChatService:
    """
    Cliente del analista IA.

    Args:
        api_key: Clave de la API de Gemini (vacía = deshabilitado)
        model: Modelo a usar
        timeout: Segundos máximos de espera por respuesta
    """

    def __init__(self, api_key: Optional[str], model: str = 'gemini-2.5-flash', timeout: float = 30.0):
        self.api_key = api_key
        self.model = model
        self.timeout = timeout

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    @staticmethod
    def _to_contents(history: List[Dict[str, Any]], user_input: str) -> List[Dict[str, Any]]:
        """Historial [{role: user|model, text}] al formato 'contents' de la API."""
        contents = []
        for turn in history or []:
            text = clean_text(turn.get('text')) if isinstance(turn, dict) else ''
            if not text:
                continue
            role = 'model' if turn.get('role') == 'model' else 'user'
            contents.append({'role': role, 'parts': [{'text': text}]})
        contents.append({'role': 'user', 'parts': [{'text': user_input}]})
        return contents

    def get_chat_response(
        self,
        user_input: str,
        history: List[Dict[str, Any]],
        sales: List[Dict[str, Any]],
        today: Optional[date] = None,
    ) -> str:
        """
        Respuesta del analista a la pregunta del usuario.

        Sin ventas ni historial devuelve el mensaje de bienvenida sin llamar
        a la API.

        Raises:
            ChatDisabledError: Si no hay API key
            ChatServiceError: Si la llamada falla o la respuesta no trae texto
        """
        if not self.enabled:
            raise ChatDisabledError('AI analyst is not configured')
        if not sales and not history:
            return ONBOARDING_MESSAGE

        payload = {
            'system_instruction': {
                'parts': [{'text': build_system_instruction(sales, today or date.today())}]
            },
            'contents': self._to_contents(history, user_input),
        }

        try:
            response = requests.post(
                GEMINI_URL.format(model=self.model),
                headers={'x-goog-api-key': self.api_key, 'Content-Type': 'application/json'},
                json=payload,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as exc:
            logger.error("Error llamando al analista IA: %s", exc)
            raise ChatServiceError(FAILURE_MESSAGE) from exc

        if response.status_code != 200:
            logger.error("Analista IA respondió %s: %s", response.status_code, response.text[:500])
            raise ChatServiceError(FAILURE_MESSAGE)

        try:
            body = response.json()
            parts = body['candidates'][0]['content']['parts']
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            logger.error("Respuesta inválida del analista IA: %s", exc)
            raise ChatServiceError(FAILURE_MESSAGE) from exc

        text = ''.join(part.get('text', '') for part in parts).strip()
        if not text:
            raise ChatServiceError(FAILURE_MESSAGE)
        return text
