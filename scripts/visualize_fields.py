#!/usr/bin/env python3
# SPDX-License-Identifier: Apache-2.0
"""フィールド検出結果を可視化するスクリプト

検出されたフィールドを正規化後の種別ごとに色分けして、
ラスタライズしたページ画像に枠を描画した PNG を生成します。

Usage:
    python scripts/visualize_fields.py <pdf_path> [output_path]

Examples:
    python scripts/visualize_fields.py form.pdf                       # fallback レイアウト
    python scripts/visualize_fields.py form.pdf out.png --backend huggingface
    python scripts/visualize_fields.py form.pdf --scale 3

Environment Variables:
    HF_TOKEN: --backend huggingface に必要
"""

from __future__ import annotations

import argparse
import asyncio
import io
import os
import sys
from collections import Counter
from pathlib import Path

from dotenv import load_dotenv
from PIL import Image, ImageDraw, ImageFont

PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from pdf_form_filler.core.canonicalizer import classify_label  # noqa: E402
from pdf_form_filler.core.models import CanonicalKind, DetectedField  # noqa: E402
from pdf_form_filler.core.rasterizer import RasterizeConfig, Rasterizer  # noqa: E402
from pdf_form_filler.detectors import (  # noqa: E402
    FallbackDetector,
    FieldDetector,
    get_huggingface_detector,
)

# 種別ごとの色 (RGB)
KIND_COLORS: dict[CanonicalKind, tuple[int, int, int]] = {
    # 氏名 (緑系)
    CanonicalKind.FIRST_NAME: (0, 180, 0),
    CanonicalKind.MIDDLE_NAME: (0, 150, 0),
    CanonicalKind.LAST_NAME: (0, 120, 0),
    CanonicalKind.FULL_NAME: (50, 200, 50),
    # 連絡先 (青系)
    CanonicalKind.CELL_PHONE: (0, 0, 255),
    CanonicalKind.WORK_PHONE: (0, 80, 200),
    CanonicalKind.ADDRESS: (0, 150, 200),
    CanonicalKind.STATE: (0, 120, 180),
    CanonicalKind.ZIP_CODE: (0, 100, 160),
    # 属性 (紫系)
    CanonicalKind.GENDER: (150, 0, 150),
    CanonicalKind.MARITAL_STATUS: (120, 0, 120),
    # 日付・署名 (オレンジ系)
    CanonicalKind.DATE: (255, 140, 0),
    CanonicalKind.SIGNATURE: (255, 80, 0),
    # 不明 (赤)
    CanonicalKind.UNKNOWN: (220, 0, 0),
}


def get_font(size: int = 12) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
    """フォントを取得"""
    font_paths = [
        "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
        "/usr/share/fonts/truetype/liberation/LiberationSans-Regular.ttf",
        "/System/Library/Fonts/Helvetica.ttc",
        "C:/Windows/Fonts/arial.ttf",
    ]
    for path in font_paths:
        if Path(path).exists():
            try:
                return ImageFont.truetype(path, size)
            except OSError:
                continue
    return ImageFont.load_default()


def draw_fields(image: Image.Image, fields: list[DetectedField]) -> Image.Image:
    """検出結果を画像に描画"""
    img = image.convert("RGB")
    draw = ImageDraw.Draw(img)
    font = get_font(12)

    for detected in fields:
        kind = classify_label(detected.raw_label)
        color = KIND_COLORS[kind]
        box = detected.bbox
        if not box.is_valid:
            continue

        # 枠を描画
        draw.rectangle([box.x1, box.y1, box.x2, box.y2], outline=color, width=2)

        # ラベル
        label_text = f"{detected.raw_label} -> {kind.value} ({detected.confidence:.2f})"
        text_box = draw.textbbox((0, 0), label_text, font=font)
        text_width = text_box[2] - text_box[0]
        text_height = text_box[3] - text_box[1]
        label_y = max(0, box.y1 - text_height - 4)
        draw.rectangle(
            [box.x1, label_y, box.x1 + text_width + 4, label_y + text_height + 4],
            fill=color,
        )
        draw.text((box.x1 + 2, label_y + 2), label_text, fill=(255, 255, 255), font=font)

    return img


def create_detector(backend: str) -> FieldDetector:
    if backend == "huggingface":
        return get_huggingface_detector()()  # type: ignore[no-any-return]
    return FallbackDetector()


async def process_pdf(
    pdf_path: Path,
    output_path: Path | None,
    backend: str,
    scale: float,
) -> Path:
    """PDFを処理して可視化結果を生成"""
    if output_path is None:
        output_path = pdf_path.parent / f"{pdf_path.stem}_fields_visualized.png"

    rasterizer = Rasterizer(RasterizeConfig(scale=scale, format="png"))
    image = await rasterizer.rasterize_async(pdf_path.read_bytes())
    print(f"PDF: {pdf_path}")
    print(f"Page: {image.page.width_pt:.1f} x {image.page.height_pt:.1f} pt")
    print(f"Image: {image.width} x {image.height} px (scale {scale})")

    detector = create_detector(backend)
    detection = await detector.detect(image, os.environ.get("HF_TOKEN"))
    if detection.was_fallback:
        print("Detection returned nothing; showing the fallback layout")

    counts = Counter(classify_label(f.raw_label).value for f in detection.fields)
    print(f"Fields: {len(detection.fields)}")
    for kind, count in counts.most_common():
        print(f"  {kind}: {count}")

    with Image.open(io.BytesIO(image.data)) as page_image:
        visualized = draw_fields(page_image, detection.fields)
    visualized.save(output_path, "PNG")
    return output_path


def main() -> None:
    parser = argparse.ArgumentParser(description="フィールド検出結果の可視化")
    parser.add_argument("pdf_path", type=Path, help="入力 PDF")
    parser.add_argument("output_path", type=Path, nargs="?", help="出力 PNG")
    parser.add_argument(
        "--backend",
        default="fallback",
        choices=["huggingface", "fallback"],
        help="フィールド検出 (default: fallback)",
    )
    parser.add_argument("--scale", type=float, default=2.0, help="レンダリング倍率")
    args = parser.parse_args()

    load_dotenv(PROJECT_ROOT / ".env")

    if not args.pdf_path.exists():
        print(f"Error: PDF not found: {args.pdf_path}")
        sys.exit(1)

    output = asyncio.run(process_pdf(args.pdf_path, args.output_path, args.backend, args.scale))
    print(f"Output: {output}")


if __name__ == "__main__":
    main()
