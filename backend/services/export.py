"""
Export Service
Serializes an application to JSON or a Word document.
"""

import io
import re
from datetime import datetime, timezone
from typing import Any, Optional

from docx import Document
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.shared import Inches, Pt

from backend.services.mechanisms import NIH_FORMATTING, get_mechanism

DOCX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
# Characters python-docx refuses to write into document XML
XML_INVALID_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f]")


def export_filename(title: str, ext: str, suffix: str = "", default: str = "application") -> str:
    """
    Sanitized download name: non-alphanumerics become ``_``, max 50 chars.

    The result is plain ASCII so it is safe in a Content-Disposition header.
    """
    stem = re.sub(r"[^a-zA-Z0-9]", "_", (title or "").strip())[:50] or default
    return f"{stem}{suffix}.{ext}"


def docx_text(text: str) -> str:
    """Drop control characters (form feeds from pasted PDFs etc.) python-docx rejects."""
    return XML_INVALID_CHARS.sub("", text or "")


def application_to_dict(application, author: Optional[str] = None) -> dict[str, Any]:
    """Plain dict of the application and its sections in display order."""
    mechanism = get_mechanism(application.mechanism)
    return {
        "title": application.title,
        "mechanism": application.mechanism,
        "mechanism_name": mechanism.name if mechanism else application.mechanism,
        "status": application.status.value if hasattr(application.status, "value") else application.status,
        "author": author,
        "exported_at": datetime.now(timezone.utc).isoformat(),
        "sections": [
            {
                "type": section.type,
                "title": section.title,
                "content": section.content or "",
                "page_count": section.page_count,
                "page_limit": section.page_limit,
                "is_valid": section.is_valid,
                "is_complete": section.is_complete,
            }
            for section in sorted(application.sections, key=lambda s: s.order_index)
        ],
        "attachments": [
            {"name": a.name, "required": a.required, "status": getattr(a.status, "value", a.status)}
            for a in application.attachments
        ],
    }


def application_to_docx(data: dict[str, Any]) -> bytes:
    """
    Render an exported application dict as DOCX.

    Uses NIH formatting defaults: 11 pt Arial with half-inch margins.
    """
    doc = Document()

    style = doc.styles["Normal"]
    style.font.name = NIH_FORMATTING["font"]
    style.font.size = Pt(NIH_FORMATTING["font_size"])
    for section in doc.sections:
        margin = Inches(float(NIH_FORMATTING["margins"].split()[0]))
        section.top_margin = section.bottom_margin = margin
        section.left_margin = section.right_margin = margin

    title = doc.add_heading(docx_text(data["title"]), 0)
    title.alignment = WD_ALIGN_PARAGRAPH.CENTER

    meta = doc.add_paragraph()
    meta.alignment = WD_ALIGN_PARAGRAPH.CENTER
    meta_run = meta.add_run(docx_text(data["mechanism_name"]))
    meta_run.italic = True
    if data.get("author"):
        meta.add_run(f"\nAuthor: {docx_text(data['author'])}").italic = True
    meta.add_run(f"\nDate: {data['exported_at'][:10]}").italic = True

    for section in data["sections"]:
        doc.add_heading(docx_text(section["title"]), level=1)
        content = docx_text(section["content"]).strip()
        if not content:
            doc.add_paragraph().add_run("[Section not yet written]").italic = True
            continue
        for para in content.split("\n\n"):
            if para.strip():
                doc.add_paragraph(para.strip())

    buffer = io.BytesIO()
    doc.save(buffer)
    return buffer.getvalue()
