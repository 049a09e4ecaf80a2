"""
Flattening of annotation overlays onto rendered pages.
"""
from PyQt5.QtCore import QBuffer, QByteArray, QIODevice, Qt
from PyQt5.QtGui import QImage, QPainter

from digital_ink.core.annotations import AnnotationSurface
from digital_ink.core.errors import RenderFailure
from digital_ink.core.page import PageState


def overlay_for(page: PageState, width: int, height: int) -> QImage:
    """
    Rasterize a page's strokes onto a transparent image.

    The attached surface is used when there is one; otherwise a throwaway
    surface is rebuilt from the snapshot.

    Args:
        page: State of the page
        width: Width of the rendered page in pixels
        height: Height of the rendered page in pixels

    Returns:
        Transparent ARGB image of width x height with the strokes drawn on it

    Raises:
        RestoreFailure: if the page snapshot is corrupt
    """
    surface = page.surface
    if surface is None:
        surface = AnnotationSurface(width, height)
        if page.snapshot is not None:
            surface.restore(page.snapshot)

    overlay = surface.rasterize()
    if overlay.width() != width or overlay.height() != height:
        overlay = overlay.scaled(width, height, Qt.IgnoreAspectRatio, Qt.SmoothTransformation)
    return overlay


def compose(page_image: QImage, overlay: QImage) -> QImage:
    """Draw the overlay over a copy of the page image at the origin."""
    result = page_image.convertToFormat(QImage.Format_ARGB32)

    painter = QPainter(result)
    try:
        painter.setCompositionMode(QPainter.CompositionMode_SourceOver)
        painter.drawImage(0, 0, overlay)
    finally:
        painter.end()
    return result


def image_to_png(image: QImage) -> bytes:
    """
    Encode an image as PNG.

    Raises:
        RenderFailure: if Qt cannot encode the image
    """
    data = QByteArray()
    buffer = QBuffer(data)
    buffer.open(QIODevice.WriteOnly)
    ok = image.save(buffer, "PNG")
    buffer.close()

    if not ok:
        raise RenderFailure("Could not encode image as PNG")
    return bytes(data)
