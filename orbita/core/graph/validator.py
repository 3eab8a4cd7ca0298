"""
Validación de ids y atributos (lógica pura).

Sin I/O; solo reglas sobre estructuras de datos.
"""

import re
from typing import Any, Dict, List

from orbita.core.errors import ValidationError

NODE_ID_PATTERN = re.compile(r"^[A-Za-z0-9_\-]+$")


def validate_node_id(node_id: str) -> None:
    """Valida que el id sea referenciable con ${...}."""
    if not isinstance(node_id, str) or not node_id.strip():
        raise ValidationError("El id de recurso no puede estar vacío")
    if not NODE_ID_PATTERN.match(node_id):
        raise ValidationError(
            f"Id de recurso inválido '{node_id}': solo letras, dígitos, '_' y '-'"
        )


def validate_attributes(node_id: str, attributes: Dict[str, Any]) -> List[str]:
    """
    Valida los atributos deseados de un recurso.
    Devuelve lista de mensajes de error; si vacía, es válido.
    """
    errors: List[str] = []
    if not isinstance(attributes, dict):
        errors.append(f"{node_id}: 'attributes' debe ser un diccionario")
        return errors
    for name in attributes:
        if not isinstance(name, str) or not name:
            errors.append(f"{node_id}: nombre de atributo inválido {name!r}")
    return errors
