#!/usr/bin/env python3
# SPDX-License-Identifier: Apache-2.0
"""PDFフォーム記入サンプルスクリプト

このスクリプトはpdf-form-fillerの基本的な使い方を示します。
設定変数を変更して、様々なオプションを試すことができます。

Usage:
    cd examples
    python fill_form.py

環境変数（.envファイルから自動読み込み）:
    HF_TOKEN: Hugging Faceでのフィールド検出に必要
"""

from __future__ import annotations

import asyncio
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

# プロジェクトルートをパスに追加（開発時用）
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT / "src"))

# Load .env file from project root (HF_TOKEN)
load_dotenv(PROJECT_ROOT / ".env")


# =============================================================================
# 設定変数 - ここを変更して動作をカスタマイズ
# =============================================================================

# フィールド検出: "huggingface" | "fallback"
# - huggingface: HF_TOKEN 環境変数が必要
# - fallback: 固定レイアウト（デモ用、ネットワーク不要）
DETECTOR = "fallback"

# 記入する個人データ（camelCase / snake_case どちらも可）
PROFILE = {
    "firstName": "Jane",
    "lastName": "Doe",
    "cellPhone": "555-0100",
    "homeAddress": "1 Main St, Springfield",
    "state": "IL",
    "zipCode": "62701",
}

# 署名画像（PNG）。None の場合は署名なし
SIGNATURE_PNG: Path | None = None

# 手書き風フォントをダウンロードするか（False の場合 Helvetica-Oblique）
FETCH_FONT = True

# 入出力パス
INPUT_PDF = PROJECT_ROOT / "tests" / "fixtures" / "sample_form.pdf"
OUTPUT_DIR = Path(__file__).parent / "outputs"

# =============================================================================
# メイン処理（通常は変更不要）
# =============================================================================


def progress(stage: str, current: int, total: int, message: str = "") -> None:
    """進捗を表示する。"""
    suffix = f" ({message})" if message else ""
    print(f"  [{stage}] {current}/{total}{suffix}")


async def main() -> None:
    """メイン処理。"""
    from pdf_form_filler.core.models import PersonalRecord, SignatureAsset
    from pdf_form_filler.detectors import FallbackDetector, get_huggingface_detector
    from pdf_form_filler.fonts import RemoteFontSource, StandardFontSource
    from pdf_form_filler.pipeline.fill_pipeline import FillPipeline

    # 入力ファイル確認
    if not INPUT_PDF.exists():
        print(f"Error: Input PDF not found: {INPUT_PDF}")
        sys.exit(1)

    token = os.environ.get("HF_TOKEN")
    if DETECTOR == "huggingface":
        if not token:
            print("Error: HF_TOKEN environment variable is not set")
            print("Set it with: export HF_TOKEN='hf_...'")
            sys.exit(1)
        detector = get_huggingface_detector()()
    else:
        detector = FallbackDetector()

    font_source = RemoteFontSource() if FETCH_FONT else StandardFontSource()
    signature = SignatureAsset.from_png(SIGNATURE_PNG.read_bytes()) if SIGNATURE_PNG else None

    # 出力ディレクトリ作成
    OUTPUT_DIR.mkdir(parents=True, exist_ok=True)

    # 設定を表示
    print("=" * 60)
    print("PDF Form Filling Example")
    print("=" * 60)
    print(f"Input:     {INPUT_PDF}")
    print(f"Detector:  {DETECTOR}")
    print(f"Font:      {font_source.name}")
    print(f"Signature: {SIGNATURE_PNG or 'none'}")
    print("=" * 60)

    # パイプライン実行
    pipeline = FillPipeline(detector, font_source, progress_callback=progress)

    print("\nFilling PDF...")
    result = await pipeline.fill(
        INPUT_PDF,
        PersonalRecord.from_dict(PROFILE),
        credential=token,
        signature=signature,
    )

    output_pdf = OUTPUT_DIR / result.filename
    output_pdf.write_bytes(result.pdf_bytes)

    # 結果表示
    print("\n" + "=" * 60)
    print("Filling Complete!")
    print("=" * 60)
    print(f"Status:      {result.completeness.value}")
    if result.was_fallback:
        print("             (fallback field layout)")
    if result.missing:
        print(f"Missing:     {', '.join(result.missing)}")
    for resolved in result.fields:
        print(f"  {resolved.kind.value:<14} {resolved.field.raw_label!r}")
    print(f"Output file: {output_pdf}")
    print(f"File size:   {output_pdf.stat().st_size / 1024:.1f} KB")

    print("\nDone!")


if __name__ == "__main__":
    asyncio.run(main())
