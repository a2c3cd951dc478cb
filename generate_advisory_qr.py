#!/usr/bin/env python3
"""
Generate a QR code that opens a printable advisory receipt on the kiosk.
Usage:
    python generate_advisory_qr.py --base-url https://kiosk.cropsync.in \
        --problem-name-en "Leaf Blight" --category Fungal --stage Flowering \
        --components-file treatment.json --output blight_qr.png
"""
import argparse
import json
from pathlib import Path

import qrcode
from PIL import Image, ImageDraw, ImageFont

from advisory import AdvisoryRecord, TreatmentComponent, encode_query
from receipt_view import LAYOUTS

QR_SIZE = 350
CANVAS_WIDTH = 400
CANVAS_HEIGHT = 460


def load_components(path: str) -> tuple:
    if not path:
        return ()
    components_path = Path(path)
    if not components_path.exists():
        raise SystemExit(f"Components file not found: {components_path}")
    try:
        items = json.loads(components_path.read_text(encoding="utf-8"))
    except ValueError as exc:
        raise SystemExit(f"Components file is not valid JSON: {exc}")
    if not isinstance(items, list):
        raise SystemExit("Components file must hold a JSON array")
    return tuple(TreatmentComponent.from_json(item) for item in items)


def build_receipt_url(base_url: str, layout: str, record: AdvisoryRecord) -> str:
    query = encode_query(record)
    url = f"{base_url.rstrip('/')}/{layout}"
    return f"{url}?{query}" if query else url


def make_captioned_qr(data: str, caption: str) -> Image.Image:
    qr = qrcode.QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=10,
        border=4,
    )
    qr.add_data(data)
    qr.make(fit=True)
    qr_img = qr.make_image(fill_color="black", back_color="white").convert("RGB")

    img = Image.new("RGB", (CANVAS_WIDTH, CANVAS_HEIGHT), "white")
    qr_img = qr_img.resize((QR_SIZE, QR_SIZE))
    img.paste(qr_img, ((CANVAS_WIDTH - QR_SIZE) // 2, 20))

    draw = ImageDraw.Draw(img)
    try:
        font = ImageFont.truetype("/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf", 24)
    except OSError:
        font = ImageFont.load_default()

    bbox = draw.textbbox((0, 0), caption, font=font)
    text_width = bbox[2] - bbox[0]
    draw.text(((CANVAS_WIDTH - text_width) // 2, QR_SIZE + 40), caption, fill="black", font=font)
    return img


def main():
    parser = argparse.ArgumentParser(
        description="Generate a QR code that opens a printable advisory receipt"
    )
    parser.add_argument(
        "--base-url",
        required=True,
        help="Base URL of the receipt service (e.g., https://kiosk.cropsync.in)",
    )
    parser.add_argument("--layout", choices=sorted(LAYOUTS), default="label")
    parser.add_argument("--problem-name-te", default="")
    parser.add_argument("--problem-name-en", default="Advisory")
    parser.add_argument("--category", default="-")
    parser.add_argument("--stage", default="-")
    parser.add_argument("--symptoms-te", default="", help="Use '\\n' between lines")
    parser.add_argument("--notes-te", default="", help="Use '\\n' between lines")
    parser.add_argument("--receipt-id", default="", help="Leave empty to let the kiosk assign one")
    parser.add_argument("--components-file", default="", help="JSON array of treatment components")
    parser.add_argument("--caption", default="", help="Text under the QR code")
    parser.add_argument("--output", default="advisory_qr.png", help="Output filename for the QR code")
    args = parser.parse_args()

    record = AdvisoryRecord(
        receipt_id=args.receipt_id,
        rendered_at="",
        problem_name_te=args.problem_name_te,
        problem_name_en=args.problem_name_en,
        category=args.category,
        stage=args.stage,
        symptoms_te=args.symptoms_te.replace("\\n", "\n"),
        notes_te=args.notes_te.replace("\\n", "\n"),
        components=load_components(args.components_file),
    )
    url = build_receipt_url(args.base_url, args.layout, record)

    img = make_captioned_qr(url, args.caption or args.problem_name_en)
    img.save(args.output)

    print(f"✓ QR code generated: {args.output}")
    print(f"  URL: {url}")
    print(f"\nScan this QR code to print the {args.layout} receipt for: {record.display_name}")


if __name__ == "__main__":
    main()
