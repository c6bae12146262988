"""
物件紹介文 作成・チェック - Streamlitアプリ
物件ページのURLから紹介文を生成し、表記ルール（禁止用語・不当表示・商標・住戸特定）をチェックします。
物件の確定情報（駅徒歩・総戸数・構造・階数・築年・会社名）は書き換え後も必ず元の表記に戻します。
"""
import logging
import sys
from pathlib import Path

# プロジェクトルートをパスに追加（Streamlit実行時のモジュール解決用）
sys.path.insert(0, str(Path(__file__).resolve().parent))

import streamlit as st

from tagline.ai_rewriter import DEFAULT_MODEL, DEFAULT_TONE, TONES, GeminiRewriter
from tagline.checkers.base import Scope, Severity
from tagline.config import load_settings
from tagline.pipeline import (
    CHAR_LIMIT_HIGH,
    CHAR_LIMIT_LOW,
    DEFAULT_MAX_CHARS,
    DEFAULT_MIN_CHARS,
    MODE_ANNOTATE,
    MODE_DELETE,
    check,
    generate,
    polish,
)

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

settings = load_settings()

st.set_page_config(
    page_title="物件紹介文チェック",
    page_icon="🏢",
    layout="wide",
    initial_sidebar_state="expanded",
)

_SCOPE_LABELS = {"棟紹介（住戸を特定しない）": Scope.BUILDING, "住戸紹介": Scope.UNIT}
_FACT_LABELS = {
    "station_walk": "駅徒歩",
    "unit_count": "総戸数",
    "structure": "構造",
    "floor_count": "階数",
    "built_date": "築年月",
    "developer": "分譲会社",
    "builder": "施工会社",
    "manager": "管理会社",
}


def _secret(name: str, default: str = "") -> str:
    try:
        return st.secrets.get(name, default)
    except (AttributeError, KeyError, FileNotFoundError):
        return default


# ---------- サイドバー ----------
with st.sidebar:
    st.header("設定")

    # Streamlit Secrets から API キーを優先取得（Streamlit Cloud デプロイ対応）。なければ環境変数 / .env
    gemini_api_key = _secret("GOOGLE_API_KEY") or _secret("GEMINI_API_KEY") or (settings.api_key or "")

    if not (gemini_api_key and gemini_api_key.strip()):
        gemini_api_key = st.text_input(
            "Google Gemini API Key",
            type="password",
            key="gemini_api_key_input",
            placeholder="Google Gemini APIキーを入力",
            help="紹介文の生成・AI校正に使います。チェックのみならAPIキーは不要です。",
        )
    else:
        st.success("✅ APIキーは Secrets / 環境変数から読み込まれました")

    st.divider()

    tone = st.selectbox("トーン", TONES, index=TONES.index(DEFAULT_TONE))
    scope_label = st.radio("紹介の範囲", list(_SCOPE_LABELS))
    scope = _SCOPE_LABELS[scope_label]
    min_chars, max_chars = st.slider(
        "文字数（全角）",
        min_value=CHAR_LIMIT_LOW,
        max_value=CHAR_LIMIT_HIGH,
        value=(DEFAULT_MIN_CHARS, DEFAULT_MAX_CHARS),
        step=10,
    )

    st.divider()
    gemini_model = _secret("GEMINI_MODEL") or settings.model_name or DEFAULT_MODEL
    st.caption(f"※ 使用モデル: {gemini_model}（Secrets / 環境変数の GEMINI_MODEL で変更可）")


def _rewriter():
    if not (gemini_api_key and gemini_api_key.strip()):
        return None
    return GeminiRewriter(gemini_api_key, gemini_model, timeout=settings.request_timeout)


# ---------- メインエリア ----------
st.title("🏢 物件紹介文 作成・チェック")
st.caption("物件ページから紹介文を作成し、不動産広告の表記ルールに沿っているかをチェックします。")

tab_generate, tab_check, tab_polish = st.tabs(["① 生成", "② チェック", "③ 仕上げ"])

with tab_generate:
    col1, col2 = st.columns(2)
    with col1:
        name = st.text_input("物件名", key="gen_name")
    with col2:
        url = st.text_input("物件ページURL", key="gen_url", placeholder="https://...")
    must_words = st.text_input("必ず入れたい語（空白・読点区切り）", key="gen_must_words")

    if st.button("✍️ 紹介文を生成", type="primary", use_container_width=True):
        if not (gemini_api_key and gemini_api_key.strip()):
            st.warning("⚠️ **APIキーが設定されていません。** 左のサイドバーでGoogle Gemini APIキーを入力してください。")
            st.stop()
        with st.spinner("物件ページの取得と紹介文の生成を実行中..."):
            result = generate(
                name,
                url,
                tone=tone,
                min_chars=min_chars,
                max_chars=max_chars,
                must_words=must_words,
                scope=scope,
                rewriter=_rewriter(),
                settings=settings,
            )
        if not result.ok:
            st.error(f"生成に失敗しました: {result.error}")
        else:
            st.session_state["generated_text"] = result.text
            st.session_state["generated_facts"] = result.facts

    if st.session_state.get("generated_text"):
        text = st.session_state["generated_text"]
        st.subheader("生成結果")
        st.text_area("紹介文", text, height=240, key="gen_result")
        st.caption(f"{len(text)} 文字")

        facts = st.session_state.get("generated_facts")
        if facts is not None:
            with st.expander("抽出した確定情報（本文中の表記はこの値に固定されます）"):
                for key, value in facts.to_dict().items():
                    if key == "station_walk" and value:
                        line = f"{value['line']}線" if value.get("line") else ""
                        minutes = f"徒歩{value['minutes']}分" if value.get("minutes") is not None else "徒歩分数不明"
                        value = f"{line}「{value['station']}」駅 {minutes}"
                    st.write(f"**{_FACT_LABELS.get(key, key)}:**", value if value not in (None, "") else "—")

with tab_check:
    text = st.text_area(
        "チェックする紹介文",
        value=st.session_state.get("generated_text", ""),
        height=220,
        key="check_text",
    )
    mode_label = st.radio("モード", ["NG文を削除", "指摘のみ（本文は変更しない）"], horizontal=True)
    mode = MODE_DELETE if mode_label == "NG文を削除" else MODE_ANNOTATE

    facts_input = {}
    if mode == MODE_DELETE:
        with st.expander("基本情報（本文に無ければ末尾に補足します）"):
            c1, c2 = st.columns(2)
            facts_input["units"] = c1.text_input("総戸数", key="bf_units") or None
            facts_input["structure"] = c2.text_input("構造", key="bf_structure", placeholder="鉄筋コンクリート造") or None
            facts_input["built"] = c1.text_input("築年月", key="bf_built", placeholder="1984年10月築") or None
            facts_input["management"] = c2.text_input("管理", key="bf_management", placeholder="管理会社に全部委託・巡回") or None
            facts_input["maint_fee_note"] = st.text_input("管理に関する注記", key="bf_note") or None

    if st.button("🔍 チェック開始", type="primary", use_container_width=True):
        response = check(text, facts_input, mode=mode, scope=scope)
        if not response.ok:
            st.error(response.error)
            st.stop()

        if mode == MODE_DELETE:
            st.subheader("チェック後の本文")
            st.text_area("修正後", response.improved, height=220, key="check_improved")
            if not response.deletions:
                st.success("✅ 削除した文はありませんでした。")
            else:
                st.metric("削除した文", len(response.deletions))
                for deletion in response.deletions:
                    reasons = "、".join(r.label for r in deletion.reasons)
                    with st.expander(f"🔴 {deletion.sentence}"):
                        st.caption(f"理由: {reasons}")
        else:
            issues = sorted(response.issues, key=lambda i: (i.start, i.end))
            if not issues:
                st.success("✅ 指摘事項はありませんでした。")
            else:
                error_count = sum(1 for i in issues if i.severity is Severity.ERROR)
                col1, col2 = st.columns(2)
                col1.metric("エラー", error_count)
                col2.metric("要確認", len(issues) - error_count)
                for issue in issues:
                    icon = "🔴" if issue.severity is Severity.ERROR else "🟡"
                    with st.expander(f"{icon} [{issue.category.value}] {issue.label}: 「{issue.excerpt}」",
                                     expanded=(issue.severity is Severity.ERROR)):
                        st.write(issue.message)
                        st.caption(f"位置: {issue.start}〜{issue.end} | ルール: {issue.id}")

with tab_polish:
    text = st.text_area(
        "仕上げる紹介文",
        value=st.session_state.get("generated_text", ""),
        height=220,
        key="polish_text",
    )
    use_ai = st.checkbox("AIで校正してから仕上げる", value=bool(gemini_api_key), disabled=not gemini_api_key)

    if st.button("✨ 仕上げ", type="primary", use_container_width=True):
        with st.spinner("仕上げ中..."):
            result = polish(
                text,
                tone,
                min_chars,
                max_chars,
                rewriter=_rewriter() if use_ai else None,
                facts=st.session_state.get("generated_facts"),
                scope=scope,
                walk_fallback_minutes=settings.walk_fallback_minutes,
            )
        if not result.ok:
            st.error(result.error)
        else:
            st.text_area("仕上げ後", result.text, height=220, key="polish_result")
            if result.changed:
                st.caption("変更点: " + "、".join(result.notes))
            else:
                st.info("変更はありませんでした。")
