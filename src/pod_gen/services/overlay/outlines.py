from __future__ import annotations

from pathlib import Path

from PIL import Image, ImageDraw, ImageOps

from pod_gen.models.inspection import View
from pod_gen.services.assets import outline_path
from pod_gen.services.overlay.geometry import CANONICAL_VIEWS

OUTLINE_SIZE = (800, 560)
LINE_RGB = (70, 70, 70)
LINE_W = 6


def _side(draw: ImageDraw.ImageDraw) -> None:
    body = [(60, 400), (60, 320), (140, 290), (260, 270), (330, 185), (520, 180), (620, 270), (730, 295), (750, 320), (750, 400)]
    draw.polygon(body, outline=LINE_RGB, width=LINE_W)
    draw.polygon([(350, 200), (430, 200), (430, 268), (290, 270)], outline=LINE_RGB, width=LINE_W - 2)
    draw.polygon([(450, 198), (515, 198), (590, 268), (450, 268)], outline=LINE_RGB, width=LINE_W - 2)
    draw.line([(440, 200), (440, 390)], fill=LINE_RGB, width=LINE_W - 3)
    draw.line([(290, 275), (290, 390)], fill=LINE_RGB, width=LINE_W - 3)
    for cx in (200, 620):
        draw.ellipse([cx - 64, 336, cx + 64, 464], fill=(255, 255, 255), outline=LINE_RGB, width=LINE_W)
        draw.ellipse([cx - 30, 370, cx + 30, 430], outline=LINE_RGB, width=LINE_W - 3)


def _front_or_rear(draw: ImageDraw.ImageDraw, *, front: bool) -> None:
    draw.polygon([(220, 210), (290, 95), (510, 95), (580, 210)], outline=LINE_RGB, width=LINE_W)
    draw.polygon([(245, 200), (305, 112), (495, 112), (555, 200)], outline=LINE_RGB, width=LINE_W - 3)
    draw.rounded_rectangle([120, 210, 680, 440], radius=40, outline=LINE_RGB, width=LINE_W)
    for x0 in (140, 570):
        draw.rounded_rectangle([x0, 440, x0 + 90, 495], radius=10, outline=LINE_RGB, width=LINE_W)
    if front:
        draw.rounded_rectangle([150, 255, 280, 305], radius=14, outline=LINE_RGB, width=LINE_W - 2)
        draw.rounded_rectangle([520, 255, 650, 305], radius=14, outline=LINE_RGB, width=LINE_W - 2)
        draw.rectangle([320, 265, 480, 335], outline=LINE_RGB, width=LINE_W - 2)
    else:
        draw.rectangle([150, 250, 250, 300], outline=LINE_RGB, width=LINE_W - 2)
        draw.rectangle([550, 250, 650, 300], outline=LINE_RGB, width=LINE_W - 2)
        draw.line([(140, 340), (660, 340)], fill=LINE_RGB, width=LINE_W - 3)
    draw.rectangle([340, 365, 460, 400], outline=LINE_RGB, width=LINE_W - 3)


def draw_default_outline(view: View) -> Image.Image:
    """Simple line-art vehicle outline used when no branded template is supplied."""
    img = Image.new("RGB", OUTLINE_SIZE, (255, 255, 255))
    draw = ImageDraw.Draw(img)
    if view is View.FRONT:
        _front_or_rear(draw, front=True)
    elif view is View.REAR:
        _front_or_rear(draw, front=False)
    elif view is View.DRIVER_SIDE:
        _side(draw)
    elif view is View.PASSENGER_SIDE:
        _side(draw)
        img = ImageOps.mirror(img)
    else:
        raise ValueError(f"no outline drawing for view: {view.value}")
    return img


def make_default_outlines(assets_dir: Path, *, overwrite: bool = False) -> list[Path]:
    written: list[Path] = []
    for view in CANONICAL_VIEWS:
        out = outline_path(assets_dir, view)
        if out.exists() and not overwrite:
            continue
        out.parent.mkdir(parents=True, exist_ok=True)
        draw_default_outline(view).save(out, format="PNG", optimize=True)
        written.append(out)
    return written
