# chat_web_bridge/cleaners.py

import re
from typing import Dict, Iterable, Optional, Tuple

BLOCK_TAGS = {
    "address", "article", "aside", "blockquote", "dd", "details", "div", "dl", "dt",
    "figcaption", "figure", "footer", "h1", "h2", "h3", "h4", "h5", "h6", "header",
    "hr", "li", "main", "nav", "ol", "p", "pre", "section", "summary", "table",
    "tbody", "thead", "tfoot", "tr", "ul",
}

PREFORMATTED_TAGS = {"pre", "textarea"}

FENCE = "```"

_WS_RUN = re.compile(r"[ \t\r\n\f]+")
_LANGUAGE_CLASS = re.compile(r"^language-([\w+#.-]+)$")


def _remove_comments(soup, pruned_counts: Dict[str, int]) -> None:
    from bs4 import Comment

    for c in soup.find_all(string=lambda t: isinstance(t, Comment)):
        c.extract()
        pruned_counts["comments_removed"] += 1


def remove_answer_chrome(soup, chrome_selectors: Iterable[str], pruned_counts: Optional[Dict[str, int]] = None) -> int:
    """
    Remove presentational controls (toolbars, copy/regenerate buttons, code
    block headers) that are not part of the answer text.

    Args:
        soup: BeautifulSoup object to modify in-place
        chrome_selectors: CSS selectors of the elements to drop
        pruned_counts: Optional dictionary to update with removal counts

    Returns:
        int: number of elements removed
    """
    removed = 0
    for selector in chrome_selectors:
        for el in soup.select(selector):
            el.decompose()
            removed += 1
    if pruned_counts is not None:
        pruned_counts["chrome_removed"] += removed
    return removed


def _code_language(el) -> Optional[str]:
    code = el if el.name == "code" else el.find("code")
    if code is None:
        return None
    for cls in code.get("class") or []:
        m = _LANGUAGE_CLASS.match(cls)
        if m:
            return m.group(1)
    return None


def fence_code_regions(soup, selector: str, pruned_counts: Optional[Dict[str, int]] = None) -> int:
    """
    Replace every scrollable code region with a ``<pre>`` holding a fenced
    block, so its content survives plain-text rendering intact.

    Returns:
        int: number of regions fenced
    """
    fenced = 0
    for el in soup.select(selector):
        code_text = el.get_text().strip("\n")
        language = _code_language(el) or ""
        block = soup.new_tag("pre")
        block.string = f"{FENCE}{language}\n{code_text}\n{FENCE}"
        el.replace_with(block)
        fenced += 1
    if pruned_counts is not None:
        pruned_counts["code_fenced"] += fenced
    return fenced


def _inside_preformatted(node) -> bool:
    return any(parent.name in PREFORMATTED_TAGS for parent in node.parents)


def _normalize_whitespace(soup) -> None:
    """Collapse whitespace runs in flowing text; preformatted text is left alone."""
    from bs4 import NavigableString

    for s in list(soup.find_all(string=True)):
        if type(s) is not NavigableString or _inside_preformatted(s):
            continue
        collapsed = _WS_RUN.sub(" ", str(s))
        if collapsed != str(s):
            s.replace_with(collapsed)


def _mark_blocks(soup) -> None:
    for br in soup.find_all("br"):
        br.replace_with("\n")
    for el in soup.find_all(sorted(BLOCK_TAGS)):
        el.insert_before("\n")
        el.insert_after("\n")


def _tidy_lines(text: str) -> str:
    """Strip flowing lines and drop blank ones; lines inside fences are kept verbatim."""
    out = []
    in_fence = False
    for line in text.split("\n"):
        if line.strip().startswith(FENCE):
            in_fence = not in_fence
            out.append(line.strip())
            continue
        if in_fence:
            out.append(line)
            continue
        line = line.strip()
        if line:
            out.append(line)
    return "\n".join(out).strip("\n")


def render_text(soup) -> str:
    """Block-aware plain text of an already cleaned tree."""
    _normalize_whitespace(soup)
    _mark_blocks(soup)
    return _tidy_lines(soup.get_text())


def clean_answer_html(
    html: str,
    chrome_selectors: Iterable[str] = (),
    code_selector: Optional[str] = None,
) -> Tuple[str, Dict[str, int]]:
    """
    Turn the outerHTML of one answer region into its plain-text reply.

    Returns:
        tuple: (text, pruned_counts)
    """
    from bs4 import BeautifulSoup

    pruned_counts: Dict[str, int] = {"comments_removed": 0, "chrome_removed": 0, "code_fenced": 0}
    if not html or not html.strip():
        return "", pruned_counts

    soup = BeautifulSoup(html, "html.parser")
    _remove_comments(soup, pruned_counts)
    for tag_name in ("script", "style", "noscript", "template", "svg"):
        for t in soup.find_all(tag_name):
            t.decompose()
    remove_answer_chrome(soup, chrome_selectors, pruned_counts)
    if code_selector:
        fence_code_regions(soup, code_selector, pruned_counts)

    return render_text(soup), pruned_counts


__all__ = [
    "clean_answer_html",
    "remove_answer_chrome",
    "fence_code_regions",
    "render_text",
    "BLOCK_TAGS",
    "FENCE",
]
