# This project was developed with assistance from AI tools.
"""Signed-document production for completed identity verifications.

Stamping is "guaranteed artifact, optional enrichment": the original is
first copied to a ``*_signed_*`` file in the client's private directory,
then an attestation page is generated and appended with pymupdf. Any
failure after the copy leaves the plain copy as the deliverable and
reports ``enriched=False``; nothing here raises to the caller.
"""

import asyncio
import logging
import os
import shutil
from dataclasses import dataclass
from datetime import datetime
from functools import partial
from pathlib import Path
from urllib.parse import unquote, urlparse

import fitz  # pymupdf

from .storage import StorageService, is_secured_url, parse_secured_url

logger = logging.getLogger(__name__)

LEGACY_PUBLIC_PREFIX = "/client/public/"

ATTESTATION_TITLE = "DIGITAL SIGNATURE CONFIRMATION"
ATTESTATION_FOOTER = "Identity verification completed via document and facial recognition."


@dataclass(frozen=True)
class StampResult:
    artifact_path: Path
    enriched: bool


def _within(path: Path, root: Path) -> Path | None:
    resolved = path.resolve()
    return resolved if resolved.is_relative_to(root.resolve()) else None


def resolve_document_path(
    document_url: str, storage: StorageService, client_id: int
) -> Path | None:
    """Map a session document URL to its file on disk.

    Understands the legacy public convention (``/client/public/...``), the
    secured per-client convention (``/api/secured-files/<id>/<name>``), and
    otherwise treats the path as relative to the public root. A secured URL
    resolves only inside ``client_id``'s own directory. Returns None when
    the URL points anywhere else.
    """
    if not document_url:
        return None
    if is_secured_url(document_url):
        parts = parse_secured_url(document_url)
        if parts is None or parts[0] != client_id:
            return None
        client_dir = storage.client_dir(client_id)
        return _within(client_dir / parts[1], client_dir)

    path = unquote(urlparse(document_url).path)
    if path.startswith(LEGACY_PUBLIC_PREFIX):
        return _within(storage.public_root / path[len(LEGACY_PUBLIC_PREFIX):], storage.public_root)
    return _within(storage.public_root / path.lstrip("/"), storage.public_root)


def _write_attestation(path: Path, *, session_id: str, completed_at: datetime) -> None:
    pdf = fitz.open()
    try:
        page = pdf.new_page()  # A4 portrait
        width = page.rect.width
        page.insert_textbox(
            fitz.Rect(50, 90, width - 50, 130),
            ATTESTATION_TITLE,
            fontsize=20,
            fontname="hebo",
            align=fitz.TEXT_ALIGN_CENTER,
        )
        page.draw_line(fitz.Point(50, 140), fitz.Point(width - 50, 140))
        body = (
            f"Document digitally signed on: {completed_at.strftime('%d/%m/%Y %H:%M:%S')}\n"
            f"Session ID: {session_id}\n\n"
            f"{ATTESTATION_FOOTER}"
        )
        page.insert_textbox(fitz.Rect(50, 170, width - 50, 320), body, fontsize=12)
        pdf.save(str(path))
    finally:
        pdf.close()


def _merge(original: Path, attestation: Path, target: Path) -> None:
    merged = fitz.open(str(original))
    try:
        page_doc = fitz.open(str(attestation))
        try:
            merged.insert_pdf(page_doc)
        finally:
            page_doc.close()
        merged.save(str(target))
    finally:
        merged.close()


def _discard(*paths: Path) -> None:
    for path in paths:
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            logger.warning("Could not remove temporary file %s: %s", path, exc)


def stamp_file(
    original: Path,
    *,
    output_dir: Path,
    session_id: str,
    completed_at: datetime,
) -> StampResult | None:
    """Produce the signed copy of ``original`` (blocking).

    Returns None when the original does not exist or cannot be copied;
    otherwise a result whose ``artifact_path`` is always a readable file.
    """
    if not original.is_file():
        logger.warning("Document to stamp not found on disk: %s", original)
        return None

    stamp = int(completed_at.timestamp() * 1000)
    signed = output_dir / f"{original.stem}_signed_{stamp}{original.suffix}"
    try:
        output_dir.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(original, signed)
    except OSError:
        logger.exception("Could not copy %s for signing", original)
        return None

    if original.suffix.lower() != ".pdf":
        logger.info("Skipping attestation page for non-PDF document %s", original.name)
        return StampResult(artifact_path=signed, enriched=False)

    attestation = output_dir / f"signature_page_{stamp}.pdf"
    temp_merged = output_dir / f"temp_merged_{stamp}.pdf"
    try:
        _write_attestation(attestation, session_id=session_id, completed_at=completed_at)
    except Exception:
        logger.exception("Attestation page generation failed for session %s", session_id)
        _discard(attestation)
        return StampResult(artifact_path=signed, enriched=False)

    try:
        _merge(original, attestation, temp_merged)
        os.replace(temp_merged, signed)
    except Exception:
        logger.exception("Merging attestation page failed for session %s", session_id)
        return StampResult(artifact_path=signed, enriched=False)
    finally:
        _discard(temp_merged, attestation)

    logger.info("Signed document written: %s", signed.name)
    return StampResult(artifact_path=signed, enriched=True)


async def stamp_document(
    original: Path,
    *,
    output_dir: Path,
    session_id: str,
    completed_at: datetime,
) -> StampResult | None:
    """Async wrapper running :func:`stamp_file` in a thread-pool executor."""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(
        None,
        partial(
            stamp_file,
            original,
            output_dir=output_dir,
            session_id=session_id,
            completed_at=completed_at,
        ),
    )
