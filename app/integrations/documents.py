from io import BytesIO
from pathlib import Path
from typing import Union

from docx import Document

from app.core.logging import logger
from app.utils.errors import DocumentReadError

DocumentInput = Union[str, Path, bytes]


def extract_text(source: DocumentInput) -> str:
    """
    Extract the raw text of a Word (.docx) document.

    Paragraph text comes first, in document order, followed by the text of
    every table row (cells joined by " | ").
    """
    try:
        if isinstance(source, (bytes, bytearray)):
            document = Document(BytesIO(source))
        elif isinstance(source, (str, Path)):
            document = Document(str(source))
        else:
            raise DocumentReadError("Invalid document source. Expected a file path or bytes.")

        lines = [paragraph.text for paragraph in document.paragraphs if paragraph.text.strip()]
        for table in document.tables:
            for row in table.rows:
                cells = [cell.text.strip() for cell in row.cells if cell.text.strip()]
                if cells:
                    lines.append(" | ".join(cells))
    except DocumentReadError:
        raise
    except Exception as e:
        raise DocumentReadError(f"Failed to read Word document: {e}")

    text = "\n".join(lines)
    logger.info("Word document read", characters=len(text))
    return text
