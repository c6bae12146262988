"""
AIによる紹介文の書き換え（Google Gemini）
プロンプトと現在の本文をJSONで model.generate_content に渡し、{"text": ...} 形式で書き換え結果を取得する。
"""
import json
import logging
import re
from typing import Any, Protocol

import google.generativeai as genai

from .sanitize import BANNED_WORDS

logger = logging.getLogger(__name__)

# デフォルトモデル: gemini-2.5-flash は無料枠あり
DEFAULT_MODEL = "models/gemini-2.5-flash"

DEFAULT_TONE = "上品・落ち着いた"
TONES = ("上品・落ち着いた", "一般的", "親しみやすい")


class RewriteError(Exception):
    """書き換えに失敗した場合の例外の基底クラス"""
    pass


class JSONParseError(RewriteError):
    """JSON解析に失敗した場合の例外。生の応答を含む。"""
    def __init__(self, message: str, raw_response: str):
        super().__init__(message)
        self.raw_response = raw_response


class SafetyBlockError(RewriteError):
    """セーフティフィルターまたは finish_reason により応答がブロックされた場合の例外。"""
    pass


class Rewriter(Protocol):
    """書き換え担当のインターフェース。prompt の指示に従い current_text を書き換えた本文を返す。"""

    def __call__(self, prompt: str, current_text: str, constraints: dict[str, Any] | None = None) -> str:
        ...


# ======================== スタイル/トーン ========================

def style_guide(tone: str | None) -> str:
    if tone == "親しみやすい":
        return "\n".join([
            "文体: 親しみやすく、やわらかい丁寧語。誇張は抑制。",
            "構成: ①立地・雰囲気 ②敷地/外観 ③アクセス ④共用/サービス ⑤結び。",
            "文長: 30〜60字中心。文末は「です/ます」。",
        ])
    if tone == "一般的":
        return "\n".join([
            "文体: 中立・説明的で読みやすい丁寧語。事実ベースで誇張を避ける。",
            "構成: ①全体概要 ②規模/デザイン ③アクセス ④共用/管理 ⑤まとめ。",
            "文長: 40〜70字中心。文末は「です/ます」。",
        ])
    # 上品・落ち着いた（デフォルト）
    return "\n".join([
        "文体: 上品で落ち着いた丁寧語。過度な比喩・感嘆記号は避ける。",
        "構成: ①立地・環境 ②ランドスケープ ③建築/デザイン ④アクセス ⑤共用/サービス ⑥結び。",
        "体言止めは最大2文まで。文末は「です/ます」。",
    ])


_RETURN_JSON = 'Return ONLY {"text": string}. (json)'
_KEEP_LOCKS = "[[LOCK_...]] の形のプレースホルダは物件の確定情報です。一字一句変えず、削除せずにそのまま残してください。"
_NO_FABRICATION = "禁止: 数値の捏造（総戸数/階数/築年/面積/帖/構造/向き/間取り）・将来断定（リフォーム/修繕/完了予定）。"


def draft_prompt(tone: str, min_chars: int, max_chars: int) -> str:
    """初稿生成用のプロンプト"""
    return "\n".join([
        _RETURN_JSON,
        "あなたは日本語の不動産コピーライターです。",
        f"トーン: {tone}。次のスタイルガイドに従う。",
        style_guide(tone),
        f"文字数は【厳守】{min_chars}〜{max_chars}（全角）。",
        "事実ベース。価格/金額/円/万円・電話番号・外部URLは禁止。",
        "禁止: 総戸数/階数/築年/面積/帖/構造/向き/間取り/リフォーム予定などの断定・数値の新規記載。",
        "確定情報（locked_facts）がある場合は、その表記のまま使ってよい。",
        f"禁止語も使わない：{'、'.join(BANNED_WORDS)}",
    ])


def length_prompt(tone: str, min_chars: int, max_chars: int, need: str) -> str:
    """文字数調整用のプロンプト。need は "expand" か "condense"。"""
    goal = "増やし" if need == "expand" else "収め"
    return "\n".join([
        _RETURN_JSON,
        f"日本語・トーン:{tone}。次のスタイルガイドを遵守：",
        style_guide(tone),
        f"目的: 文字数を{min_chars}〜{max_chars}（全角）に{goal}る。",
        _NO_FABRICATION + " 禁止: 価格/金額/円/万円・電話番号・URL・誇張表現。一般的で安全な叙述で調整する。",
        _KEEP_LOCKS,
    ])


def polish_prompt(tone: str) -> str:
    """校正用のプロンプト"""
    return "\n".join([
        _RETURN_JSON,
        f"以下の日本語を校正。文末は「です/ます」。体言止めは最大2文。トーン:{tone}",
        style_guide(tone),
        "禁止: 数値断定（総戸数/階数/築年/面積/帖/構造/向き/間取り）・将来断定（リフォーム/修繕）。",
        "新しい情報や文を付け足さない。",
        _KEEP_LOCKS,
    ])


# ======================== Gemini 呼び出し ========================

def _safety_settings():
    # 物件名・住所・会社名が不当にブロックされないようにする
    try:
        from google.generativeai.types import HarmBlockThreshold, HarmCategory
        settings = {
            HarmCategory.HARM_CATEGORY_HARASSMENT: HarmBlockThreshold.BLOCK_NONE,
            HarmCategory.HARM_CATEGORY_HATE_SPEECH: HarmBlockThreshold.BLOCK_NONE,
            HarmCategory.HARM_CATEGORY_SEXUALLY_EXPLICIT: HarmBlockThreshold.BLOCK_NONE,
            HarmCategory.HARM_CATEGORY_DANGEROUS_CONTENT: HarmBlockThreshold.BLOCK_NONE,
        }
        if hasattr(HarmCategory, "HARM_CATEGORY_CIVIC_INTEGRITY"):
            settings[HarmCategory.HARM_CATEGORY_CIVIC_INTEGRITY] = HarmBlockThreshold.BLOCK_NONE
        return settings
    except (ImportError, AttributeError):
        return [
            {"category": "HARM_CATEGORY_HARASSMENT", "threshold": "BLOCK_NONE"},
            {"category": "HARM_CATEGORY_HATE_SPEECH", "threshold": "BLOCK_NONE"},
            {"category": "HARM_CATEGORY_SEXUALLY_EXPLICIT", "threshold": "BLOCK_NONE"},
            {"category": "HARM_CATEGORY_DANGEROUS_CONTENT", "threshold": "BLOCK_NONE"},
        ]


def _finished_normally(finish_reason: Any) -> bool:
    # 1 = STOP (正常終了), 2 = MAX_TOKENS, 3 = SAFETY 等
    return finish_reason in (1, "STOP", "stop") or (
        finish_reason is not None and "STOP" in str(getattr(finish_reason, "name", str(finish_reason)))
    )


def _rescue_text_field(text: str) -> str | None:
    """
    末尾が欠損した {"text": "..."} から本文を取り出す。
    閉じ引用符が無い場合は、最後の句点までを本文として採用する。全て失敗なら None。
    """
    m = re.search(r'"text"\s*:\s*"((?:[^"\\]|\\.)*)', text, flags=re.DOTALL)
    if not m:
        return None
    body = m.group(1)
    try:
        return json.loads(f'"{body}"')
    except (json.JSONDecodeError, ValueError):
        pass
    cut = max(body.rfind("。"), body.rfind("！"), body.rfind("？"))
    if cut < 0:
        return None
    try:
        return json.loads(f'"{body[:cut + 1]}"')
    except (json.JSONDecodeError, ValueError):
        return None


def parse_text_json(response_text: str) -> str:
    """AI応答の {"text": ...} を解析して本文を返す。失敗時は JSONParseError を送出。"""
    cleaned_text = (response_text or "").strip()
    cleaned_text = cleaned_text.replace("```json", "").replace("```", "").strip()
    # JSONオブジェクトの外側にあるテキストを排除
    if "{" in cleaned_text:
        cleaned_text = cleaned_text[cleaned_text.find("{"):]
    try:
        data = json.loads(cleaned_text)
    except json.JSONDecodeError:
        rescued = _rescue_text_field(cleaned_text)
        if rescued is not None:
            return rescued
        raise JSONParseError("AIからの応答のJSON解析に失敗しました。", raw_response=response_text)
    if not isinstance(data, dict) or not isinstance(data.get("text"), str):
        raise JSONParseError("AIからの応答に text がありません。", raw_response=response_text)
    return data["text"]


class GeminiRewriter:
    """
    Gemini による書き換え。

    Args:
        api_key: Gemini APIキー
        model_name: モデル名（デフォルト: gemini-2.5-flash）
        timeout: 1回の呼び出しのタイムアウト（秒）
        temperature: 生成の温度

    Raises:
        ValueError: APIキーが空の場合
    """

    def __init__(
        self,
        api_key: str,
        model_name: str | None = None,
        timeout: float = 60.0,
        temperature: float = 0.1,
    ):
        if not (api_key and api_key.strip()):
            raise ValueError("APIキーを設定してください")
        genai.configure(api_key=api_key.strip())
        self.model_name = model_name or DEFAULT_MODEL
        self.timeout = timeout
        self.temperature = temperature
        self._model = genai.GenerativeModel(self.model_name, safety_settings=_safety_settings())

    def __call__(self, prompt: str, current_text: str, constraints: dict[str, Any] | None = None) -> str:
        payload = {"current_text": current_text or "", **(constraints or {})}
        response = self._model.generate_content(
            [prompt, json.dumps(payload, ensure_ascii=False)],
            generation_config=genai.types.GenerationConfig(
                response_mime_type="application/json",
                temperature=self.temperature,
                max_output_tokens=4096,
            ),
            request_options={"timeout": self.timeout},
        )

        # finish_reason を確認してから response.text にアクセス（ブロック時は .text が使えないため）
        if not response.candidates:
            raise SafetyBlockError("安全性の制限により書き換えが中断されました。")
        finish_reason = getattr(response.candidates[0], "finish_reason", None)
        if not _finished_normally(finish_reason):
            raise SafetyBlockError(f"書き換えが中断されました（finish_reason={finish_reason}）。")

        response_text = (response.text or "").strip()
        if not response_text:
            raise JSONParseError("AIからの応答が空です。", raw_response="")
        text = parse_text_json(response_text)
        logger.debug("rewrite done: model=%s chars=%d", self.model_name, len(text))
        return text
