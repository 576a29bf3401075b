"""
Debug overlay tool for visual QA of row clustering and column calibration.
"""
from pathlib import Path
from typing import List, Optional, Tuple
import logging
from PIL import Image, ImageDraw, ImageFont
import fitz  # PyMuPDF

from ..core.detectors import PatternRegistry
from ..core.loader import PDFLoader, PageData
from ..core.tables import cluster_rows, iter_rows
from ..models.schema import ColumnLayout

logger = logging.getLogger(__name__)

TOKEN_COLOR = (0, 150, 255, 128)
HEADER_COLOR = (255, 0, 0, 200)
BAND_COLOR = (255, 200, 0, 200)
BLOCK_END_COLOR = (160, 0, 160, 200)


def _font(size: int):
    try:
        return ImageFont.truetype("arial.ttf", size)
    except OSError:
        return ImageFont.load_default()


class DebugOverlay:
    """Creates visual debug overlays for PDF parsing."""

    def __init__(self, pdf_path: Path, pattern_id: str):
        self.pdf_path = pdf_path
        self.layout = PatternRegistry().get_pattern(pattern_id)

        self.loader = PDFLoader(pdf_path)
        self.pages = self.loader.load()

        # Load PDF with PyMuPDF for rendering
        self.pdf_doc = fitz.open(str(pdf_path))

    def create_overlays(self, output_dir: Path):
        """
        Create debug overlay images for all pages.

        Args:
            output_dir: Directory to save overlay images
        """
        output_dir.mkdir(parents=True, exist_ok=True)

        for page_data in self.pages:
            page_num = page_data.page_num

            pdf_page = self.pdf_doc[page_num - 1]
            mat = fitz.Matrix(2.0, 2.0)  # 2x zoom for better visibility
            pix = pdf_page.get_pixmap(matrix=mat)
            img = Image.frombytes("RGB", [pix.width, pix.height], pix.samples)

            overlay = self._create_page_overlay(page_data, img.size)
            combined = Image.alpha_composite(img.convert("RGBA"), overlay)

            output_path = output_dir / f"page_{page_num:02d}_overlay.png"
            combined.save(output_path)
            logger.info(f"Created overlay: {output_path}")

    def page_blocks(self, page_data: PageData) -> List[Tuple[float, Optional[float], ColumnLayout]]:
        """
        Walk a page's rows like the parser does.

        Returns:
            (header_y, end_y, layout) per calibrated block; end_y is None when
            the block runs to the bottom of the page
        """
        config = self.layout.config
        rows = cluster_rows(page_data.tokens, config.row_tolerance, config.margin_to_ignore, 0)

        blocks = []
        current = None
        for key, row in iter_rows(rows):
            if current is None:
                if self.layout.is_header(row):
                    current = (key, self.layout.calibrate(row))
                continue
            fields = self.layout.extract_row(row, current[1])
            if self.layout.is_end_of_block(fields):
                blocks.append((current[0], key, current[1]))
                current = None

        if current is not None:
            blocks.append((current[0], None, current[1]))
        return blocks

    def _create_page_overlay(self, page_data: PageData, img_size: Tuple[int, int]) -> Image.Image:
        overlay = Image.new("RGBA", img_size, (0, 0, 0, 0))
        draw = ImageDraw.Draw(overlay)

        scale_x = img_size[0] / page_data.width
        scale_y = img_size[1] / page_data.height

        self._draw_token_boxes(draw, page_data, scale_x, scale_y)
        for header_y, end_y, layout in self.page_blocks(page_data):
            bottom = page_data.height if end_y is None else end_y
            self._draw_bands(draw, layout, header_y, bottom, img_size[0], scale_x, scale_y)
            if end_y is not None:
                y = int(end_y * scale_y)
                draw.line([0, y, img_size[0], y], fill=BLOCK_END_COLOR, width=2)

        return overlay

    def _draw_token_boxes(self, draw: ImageDraw.ImageDraw, page_data: PageData,
                          scale_x: float, scale_y: float):
        """Draw bounding boxes around all tokens."""
        font = _font(8)
        for token in page_data.tokens:
            x0 = int(token.x * scale_x)
            y0 = int(token.y * scale_y)
            x1 = int(token.right * scale_x)
            y1 = int((token.y + token.height) * scale_y)
            draw.rectangle([x0, y0, x1, y1], outline=TOKEN_COLOR, width=1)
            draw.text((x0, y0 - 10), token.text[:20], fill=TOKEN_COLOR, font=font)

    def _draw_bands(self, draw: ImageDraw.ImageDraw, layout: ColumnLayout, top: float,
                    bottom: float, width: int, scale_x: float, scale_y: float):
        """Draw calibrated column bands below a header row."""
        font = _font(10)
        y0 = int(top * scale_y)
        y1 = int(bottom * scale_y)

        draw.line([0, y0, width, y0], fill=HEADER_COLOR, width=2)
        for name, band in layout.bands.items():
            x0 = int(band.start * scale_x)
            x1 = int(band.end * scale_x)
            draw.rectangle([x0, y0, x1, y1], outline=BAND_COLOR, width=2)
            draw.text((x0 + 2, y0 - 20), name, fill=BAND_COLOR, font=font)

    def close(self):
        """Close resources."""
        if hasattr(self, 'loader'):
            self.loader.close()
        if hasattr(self, 'pdf_doc'):
            self.pdf_doc.close()


def create_debug_overlay(pdf_path: Path, pattern_id: str, output_dir: Path):
    """
    Create debug overlay images for a PDF.

    Args:
        pdf_path: Path to PDF file
        pattern_id: Bank pattern to calibrate with
        output_dir: Directory to save overlay images
    """
    overlay = DebugOverlay(pdf_path, pattern_id)
    try:
        overlay.create_overlays(output_dir)
    finally:
        overlay.close()
