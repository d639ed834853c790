"""
package.xml manifest generation.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Iterable, Optional
from xml.sax.saxutils import escape

logger = logging.getLogger(__name__)

MANIFEST_NAMESPACE = "http://soap.sforce.com/2006/04/metadata"
MANIFEST_FILENAME = "new.xml"


def build_package_xml(manifest: Dict[str, Iterable[str]], api_version: str) -> str:
    """Serialize a type -> members mapping into a package.xml document.

    Types and members are sorted here, so the output does not depend on
    the order in which they were collected.
    """
    lines = [
        '<?xml version="1.0" encoding="UTF-8"?>',
        f'<Package xmlns="{MANIFEST_NAMESPACE}">',
    ]
    for type_name in sorted(manifest):
        lines.append("    <types>")
        for member in sorted(manifest[type_name]):
            lines.append(f"        <members>{escape(member)}</members>")
        lines.append(f"        <name>{escape(type_name)}</name>")
        lines.append("    </types>")
    lines.append(f"    <version>{escape(str(api_version))}</version>")
    lines.append("</Package>")
    return "\n".join(lines) + "\n"


def write_manifest(
    manifest: Dict[str, Iterable[str]],
    api_version: str,
    output_dir: Path = Path("./output"),
) -> Optional[Path]:
    """Write the manifest to output_dir/new.xml.

    Returns:
        Path of the written file, or None when there is nothing to write
    """
    if not manifest:
        logger.debug("No changed components, skipping manifest")
        return None

    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    manifest_file = output_dir / MANIFEST_FILENAME
    with open(manifest_file, 'w', encoding='utf-8', newline='\n') as f:
        f.write(build_package_xml(manifest, api_version))
    return manifest_file
