"""Generate the VarSwitch tray and window icons."""

from pathlib import Path

from PIL import Image, ImageDraw, ImageFont

ICON_SIZES = [(256, 256), (64, 64), (32, 32), (16, 16)]


def render_icon(size: int = 256, text: str = "VS") -> Image.Image:
    """Two-letter badge on a rounded square."""
    img = Image.new('RGBA', (size, size), color=(0, 0, 0, 0))
    draw = ImageDraw.Draw(img)

    margin = size // 12
    draw.rounded_rectangle(
        [(margin, margin), (size - margin, size - margin)],
        radius=size // 8,
        fill='#0d6efd'
    )

    try:
        font = ImageFont.truetype("segoeui.ttf", size * 3 // 7)
    except OSError:
        font = ImageFont.load_default()

    bbox = draw.textbbox((0, 0), text, font=font)
    text_width = bbox[2] - bbox[0]
    text_height = bbox[3] - bbox[1]
    position = ((size - text_width) // 2 - bbox[0], (size - text_height) // 2 - bbox[1])
    draw.text(position, text, fill='white', font=font)
    return img


def main(output_dir: Path = Path(__file__).parent):
    img = render_icon()
    img.resize((64, 64)).save(output_dir / 'icon_64.png')
    img.save(output_dir / 'icon.ico', format='ICO', sizes=ICON_SIZES)
    print(f"Icons written to {output_dir}")


if __name__ == "__main__":
    main()
