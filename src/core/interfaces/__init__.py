"""Interfaces/abstracciones del Core.

Por qué:
- Define contratos (Protocol) que implementan adaptadores concretos.
- Permite invertir dependencias: el Core depende de abstracciones.
"""

from core.interfaces.runner import CommandRunner, HealthProber, Sleeper

__all__ = ["CommandRunner", "HealthProber", "Sleeper"]
