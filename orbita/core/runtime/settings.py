"""
Configuración de la reconciliación.

Orden de precedencia: valores por defecto < .env del proyecto < variables
ORBITA_* del entorno < overrides explícitos (flags de la CLI).
"""

import os
from typing import Any, Dict, Literal, Optional

import pydantic
from dotenv import load_dotenv
from pydantic import BaseModel, Field

from orbita.core.errors import ConfigError
from orbita.core.runtime.resolver import project_base

ENV_PREFIX = "ORBITA_"

ExecutionMode = Literal["fail-fast", "best-effort"]


class ReconcileSettings(BaseModel):
    parallelism: int = Field(4, ge=1, description="Operaciones concurrentes como máximo")
    mode: ExecutionMode = Field("fail-fast", description="fail-fast | best-effort")
    max_attempts: int = Field(5, ge=1, description="Intentos ante errores transitorios")
    backoff_initial: float = Field(1.0, ge=0, description="Primer backoff (s)")
    backoff_max: float = Field(30.0, ge=0, description="Backoff máximo (s)")
    poll_interval: float = Field(2.0, ge=0, description="Intervalo de describe al confirmar (s)")
    confirm_timeout: float = Field(300.0, gt=0, description="Tiempo máximo hasta estado terminal (s)")
    refresh: bool = Field(True, description="Consultar al provider antes de calcular el diff")
    treat_corrupt_state_as_empty: bool = Field(False, description="Estado corrupto → vacío")


def _load_dotenv() -> None:
    base = project_base()
    if base and (base / ".env").exists():
        load_dotenv(base / ".env")


def _from_environment() -> Dict[str, Any]:
    values: Dict[str, Any] = {}
    for name in ReconcileSettings.model_fields:
        raw = os.environ.get(ENV_PREFIX + name.upper())
        if raw is not None and raw.strip() != "":
            values[name] = raw.strip()
    return values


def load_settings(overrides: Optional[Dict[str, Any]] = None) -> ReconcileSettings:
    """Construye ReconcileSettings; los overrides con valor None se ignoran."""
    _load_dotenv()
    values = _from_environment()
    values.update({k: v for k, v in (overrides or {}).items() if v is not None})
    try:
        return ReconcileSettings(**values)
    except pydantic.ValidationError as e:
        raise ConfigError(f"Configuración inválida: {e}") from e
