# Overview: Marketing copy for catalog entries generated by the Gemini API.

from __future__ import annotations

import logging

import httpx
from flask import current_app

from ..errors import ConfigurationError, NetworkError, ValidationError

logger = logging.getLogger(__name__)

PROMPT_TEMPLATE = (
    'Genera una descripción de producto atractiva y concisa en español para un producto '
    'llamado "{name}" en la categoría de "{category}". La descripción debe ser de 2 o 3 '
    'frases como máximo y resaltar un beneficio clave. No uses markdown.'
)

GENERATION_CONFIG = {
    "temperature": 0.7,
    "topP": 1,
    "topK": 32,
    "maxOutputTokens": 100,
}


def _http_client() -> httpx.Client:
    """Client bound to the current app (tests may set app.extensions['description_http_client'])."""
    client = current_app.extensions.get("description_http_client")
    if client is None:
        client = httpx.Client(timeout=current_app.config.get("DESCRIPTION_TIMEOUT_SECONDS", 15))
        current_app.extensions["description_http_client"] = client
    return client


def _extract_text(payload) -> str:
    try:
        parts = payload["candidates"][0]["content"]["parts"]
    except (KeyError, IndexError, TypeError):
        raise NetworkError("Description service returned no candidates")
    text = "".join(part.get("text", "") for part in parts if isinstance(part, dict)).strip()
    if not text:
        raise NetworkError("Description service returned an empty description")
    return text


def generate_description(name, category=None) -> str:
    """
    Ask the model for a short Spanish product description.

    Raises:
        ValidationError: blank product name
        ConfigurationError: GEMINI_API_KEY is not set
        NetworkError: the API is unreachable, times out or rejects the request
    """
    name = str(name or "").strip()
    if not name:
        raise ValidationError("name is required")
    category = str(category or "").strip() or "Otros"

    api_key = current_app.config.get("GEMINI_API_KEY")
    if not api_key:
        raise ConfigurationError("Description generation is not configured (GEMINI_API_KEY)")

    url = f"{current_app.config['GEMINI_API_URL'].rstrip('/')}/models/{current_app.config['GEMINI_MODEL']}:generateContent"
    body = {
        "contents": [{"parts": [{"text": PROMPT_TEMPLATE.format(name=name, category=category)}]}],
        "generationConfig": GENERATION_CONFIG,
    }

    try:
        response = _http_client().post(url, json=body, headers={"x-goog-api-key": api_key})
        response.raise_for_status()
        payload = response.json()
    except httpx.TimeoutException as exc:
        logger.warning("Description request timed out for %r: %s", name, exc)
        raise NetworkError("Description service timed out")
    except httpx.HTTPStatusError as exc:
        logger.error("Description service rejected request: %s", exc.response.status_code)
        raise NetworkError(
            "Description service rejected the request",
            details={"upstream_status": exc.response.status_code},
        )
    except httpx.RequestError as exc:
        logger.error("Description service unreachable: %s", exc)
        raise NetworkError("Description service is unreachable")
    except ValueError:
        raise NetworkError("Description service returned invalid JSON")

    return _extract_text(payload)
