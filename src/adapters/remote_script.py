"""Script remoto para el despliegue en EC2.

Se envía por stdin a una única sesión `ssh`; el orden es fijo:
pull -> rewrite -> restart (down/up) -> prune.
"""

from __future__ import annotations

import shlex
from typing import Sequence

from adapters.compose_file import image_reference


_BRE_SPECIAL = set(".[]*^$\\|")


def _bre_escape(value: str) -> str:
    return "".join(f"\\{ch}" if ch in _BRE_SPECIAL else ch for ch in value)


def _sed_expression(image: str, reference: str) -> str:
    # `|` como delimitador: las referencias de registry contienen `/`.
    pattern = rf"^\([[:space:]]*\)image:[[:space:]]*\(.*/\)\{{0,1\}}{_bre_escape(image)}:.*$"
    return f"s|{pattern}|\\1image: {reference}|"


def build_ec2_script(
    *,
    app_dir: str,
    compose_file: str,
    registry: str,
    version: str,
    images: Sequence[str],
) -> str:
    """Devuelve el script bash que ejecuta la sesión SSH."""

    references = [image_reference(image, version, registry) for image in images]
    compose = shlex.quote(compose_file)

    lines = ["set -e", f"cd {shlex.quote(app_dir)}", ""]
    lines += [f"docker pull {shlex.quote(ref)}" for ref in references]
    lines.append("")
    lines += [
        f"sed -i {shlex.quote(_sed_expression(image, ref))} {compose}"
        for image, ref in zip(images, references)
    ]
    lines += [
        "",
        f"docker-compose -f {compose} down",
        f"docker-compose -f {compose} up -d",
        "",
        "docker image prune -f",
    ]
    return "\n".join(lines) + "\n"
