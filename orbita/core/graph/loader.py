"""
Loader de la descripción deseada.
Carga YAML y lo convierte a StackDescription (Pydantic).
"""

from pathlib import Path
from typing import Union

import pydantic
import yaml

from orbita.core.errors import ConfigError, DuplicateId, ValidationError
from orbita.core.graph.models import StackDescription


def _resources_node(root):
    """Nodo YAML que contiene los recursos: `resources` o, sin esa clave, la raíz."""
    if isinstance(root, yaml.MappingNode):
        for key_node, value_node in root.value:
            if isinstance(key_node, yaml.ScalarNode) and key_node.value == "resources":
                return value_node
    return root


class _UniqueKeyLoader(yaml.SafeLoader):
    """
    SafeLoader que no pisa claves repetidas en silencio.
    Un id repetido en los recursos es DuplicateId; cualquier otra clave
    repetida (atributos, outputs...) es un error de validación.
    """

    def construct_document(self, node):
        self._resources = _resources_node(node)
        return super().construct_document(node)

    def construct_mapping(self, node, deep=False):
        keys = set()
        for key_node, _ in node.value:
            key = self.construct_object(key_node, deep=deep)
            if key in keys:
                if node is self._resources:
                    raise DuplicateId(str(key))
                raise ValidationError(
                    f"Clave repetida '{key}' (línea {key_node.start_mark.line + 1})"
                )
            keys.add(key)
        return super().construct_mapping(node, deep=deep)


def parse_description(text: str) -> StackDescription:
    try:
        data = yaml.load(text, Loader=_UniqueKeyLoader) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"YAML inválido: {e}") from e
    if not isinstance(data, dict):
        raise ValidationError("La descripción debe ser un mapping con 'resources'")
    if "resources" not in data:
        data = {"resources": data}
    try:
        return StackDescription.model_validate(data)
    except pydantic.ValidationError as e:
        raise ValidationError(f"Descripción inválida: {e}") from e


def load_description(path: Union[str, Path]) -> StackDescription:
    """Carga un archivo YAML (o JSON, que es YAML válido) de estado deseado."""
    path = Path(path)
    if not path.exists():
        raise ConfigError(f"No existe la descripción: {path}")
    with open(path, "r") as f:
        text = f.read()
    description = parse_description(text)
    if description.name == "default":
        description = description.model_copy(update={"name": path.stem})
    return description
