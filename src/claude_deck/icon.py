"""Tray icon images."""

from PIL import Image, ImageDraw, ImageFont

ICON_STYLES = ("default", "monochrome")

COLOR_DEFAULT = "#d97757"  # Claude orange
COLOR_MONO = "#e0e0e0"


def _load_font(size: int) -> ImageFont.ImageFont:
    for name in ("arialbd.ttf", "DejaVuSans-Bold.ttf", "arial.ttf"):
        try:
            return ImageFont.truetype(name, size)
        except OSError:
            continue
    return ImageFont.load_default()


def render_icon(style: str = "default", text: str = "", size: int = 64) -> Image.Image:
    """Draw a rounded-square icon, optionally with short text in the middle.

    Unknown styles draw like ``default``.
    """
    img = Image.new("RGBA", (size, size), (0, 0, 0, 0))
    draw = ImageDraw.Draw(img)

    if style == "monochrome":
        fill, text_color = COLOR_MONO, "#000000"
    else:
        fill, text_color = COLOR_DEFAULT, "#ffffff"

    draw.rounded_rectangle([0, 0, size - 1, size - 1], radius=size // 8, fill=fill)

    label = text[:4] if text else "C"
    font = _load_font(size * 2 // 3 if len(label) == 1 else size // (len(label) + 1) * 2)
    bbox = draw.textbbox((0, 0), label, font=font)
    tw = bbox[2] - bbox[0]
    th = bbox[3] - bbox[1]
    tx = (size - tw) // 2 - bbox[0]
    ty = (size - th) // 2 - bbox[1]
    draw.text((tx, ty), label, fill=text_color, font=font)

    return img
