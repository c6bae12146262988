"""
PDFからテキストを取り出すモジュール
物件資料（パンフレット・概要書）のPDFの全ページのテキストを連結して返す。
"""
from typing import BinaryIO

import fitz


def pdf_to_text(file_stream: bytes | BinaryIO) -> str:
    """
    PDFの全ページを読み込み、ページ順にテキストを連結して返す。

    Args:
        file_stream: PDFのバイト列、または読み取り可能なバイナリストリーム

    Returns:
        全ページのテキスト（ページ間は改行で区切る）
    """
    if isinstance(file_stream, bytes):
        data = file_stream
    else:
        data = file_stream.read()

    pages: list[str] = []
    doc = fitz.open(stream=data, filetype="pdf")

    try:
        for page_index in range(len(doc)):
            pages.append(doc[page_index].get_text())
    finally:
        doc.close()

    return "\n".join(p.strip() for p in pages if p.strip())
