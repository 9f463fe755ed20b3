"""Reescritura de tags de imagen en un compose file.

Por qué sustitución textual (y no YAML):
- El contrato con el pipeline es literal: líneas `image: <imagen>:<tag>`.
- Parsear y volcar YAML reordena claves y pierde comentarios; aquí solo
  cambia el tag, el resto del fichero queda byte a byte igual.

Limitación conocida:
- Si el compose file renombra servicios o imágenes, la línea no se encuentra
  y no hay sustitución (solo un warning).
"""

from __future__ import annotations

import logging
import re
import shutil
from pathlib import Path
from typing import Sequence

logger = logging.getLogger(__name__)


def _image_line_re(image: str, registry: str | None) -> re.Pattern[str]:
    # Con registry se acepta cualquier prefijo previo (el compose de
    # producción puede apuntar a otro registry); sin registry, solo la imagen local.
    prefix = r"(?:\S+/)?" if registry else ""
    return re.compile(
        rf"^(?P<indent>[ \t]*)image:[ \t]*{prefix}{re.escape(image)}:[^\r\n]*(?=\r?\n|\Z)",
        re.MULTILINE,
    )


def image_reference(image: str, version: str, registry: str | None = None) -> str:
    if registry:
        return f"{registry.rstrip('/')}/{image}:{version}"
    return f"{image}:{version}"


def render_image_tags(
    text: str,
    *,
    version: str,
    images: Sequence[str],
    registry: str | None = None,
) -> tuple[str, dict[str, int]]:
    """Devuelve el texto con los tags sustituidos y cuántas líneas cambió cada imagen."""

    counts: dict[str, int] = {}
    for image in images:
        replacement = image_reference(image, version, registry)
        text, n = _image_line_re(image, registry).subn(
            lambda m: f"{m.group('indent')}image: {replacement}",
            text,
        )
        counts[image] = n
    return text, counts


def rewrite_image_tags(
    path: Path,
    *,
    version: str,
    images: Sequence[str],
    registry: str | None = None,
    backup: bool = True,
) -> dict[str, int]:
    """Reescribe in-place los tags de `images` en `path`.

    - Deja una copia `<path>.bak` con el contenido anterior.
    - No toca ninguna otra línea (ni el salto de línea final).
    """

    # newline="" conserva CRLF tal cual.
    with path.open(encoding="utf-8", newline="") as fh:
        original = fh.read()
    updated, counts = render_image_tags(original, version=version, images=images, registry=registry)

    for image, n in counts.items():
        if n == 0:
            logger.warning("No 'image: %s:<tag>' line found in %s; tag not updated", image, path)

    if backup:
        shutil.copyfile(path, path.with_name(path.name + ".bak"))
    if updated != original:
        with path.open("w", encoding="utf-8", newline="") as fh:
            fh.write(updated)
    logger.info("Updated image tags in %s to %s", path, version)
    return counts
