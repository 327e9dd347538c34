"""Markdown helpers used to pre- and post-process styled content.

Heading and code-fence bookkeeping is regex based and works line by line.
HTML is handled through a BeautifulSoup parse tree.
"""

import logging
import re
from dataclasses import dataclass

from bs4 import BeautifulSoup
from bs4.element import NavigableString, PageElement, PreformattedString, Tag

logger = logging.getLogger(__name__)

HEADING_REGEX = re.compile(r"^(#{1,6})\s+(.+)$", re.MULTILINE)
CODE_BLOCK_REGEX = re.compile(r"```[\s\S]*?```")
FENCE_REGEX = re.compile(r"```(\w*)\n([\s\S]*?)```")
FIRST_H1_REGEX = re.compile(r"^#[^#].*$", re.MULTILINE)

TOC_HEADINGS = ("## Table of Contents", "# Table of Contents")
TOC_MIN_HEADINGS = 3
UNSAFE_TAGS = ["script", "style"]


@dataclass(frozen=True)
class Heading:
    level: int
    text: str


def extract_headings(content: str) -> list[Heading]:
    return [
        Heading(level=len(match.group(1)), text=match.group(2).strip())
        for match in HEADING_REGEX.finditer(content)
    ]


def extract_code_blocks(content: str) -> list[str]:
    return CODE_BLOCK_REGEX.findall(content)


def _list_item_marker(item: Tag) -> str:
    parent = item.parent
    if parent is not None and parent.name == "ol":
        siblings = parent.find_all("li", recursive=False)
        position = next(i for i, li in enumerate(siblings, start=1) if li is item)
        return f"{position}."
    return "-"


def _to_markdown(node: PageElement) -> str:
    if isinstance(node, PreformattedString):
        return ""
    if isinstance(node, NavigableString):
        return str(node)

    name = node.name
    if name == "pre":
        code = node.get_text().strip("\n")
        return f"\n\n```\n{code}\n```\n\n"
    if name == "code":
        return f"`{node.get_text()}`"
    if name == "br":
        return "\n"
    if name == "img":
        src = node.get("src")
        return f"![{node.get('alt', '')}]({src})" if src else ""

    inner = "".join(_to_markdown(child) for child in node.children)
    match name:
        case "h1" | "h2" | "h3" | "h4" | "h5" | "h6":
            return f"\n\n{'#' * int(name[1])} {inner.strip()}\n\n"
        case "strong" | "b":
            return f"**{inner}**"
        case "em" | "i":
            return f"*{inner}*"
        case "a":
            href = node.get("href")
            return f"[{inner}]({href})" if href else inner
        case "li":
            return f"\n{_list_item_marker(node)} {inner.strip()}"
        case "ul" | "ol":
            return f"\n{inner}\n\n"
        case "blockquote":
            quoted = "\n".join(f"> {line}" for line in inner.strip().splitlines())
            return f"\n\n{quoted}\n\n"
        case "p" | "div" | "section" | "article":
            return f"\n\n{inner}\n\n"
        case _:
            return inner


def html_to_markdown(html: str) -> str:
    """Convert an HTML fragment from the editor into Markdown.

    Headings, emphasis, links, images, lists, quotes and code are mapped to
    their Markdown forms; any other tag contributes only its text.
    """
    soup = BeautifulSoup(html, "html.parser")
    text = "".join(_to_markdown(child) for child in soup.children)
    return re.sub(r"\n{3,}", "\n\n", text).strip()


def normalize_markdown(content: str) -> str:
    text = content.replace("\r\n", "\n").replace("\t", "    ")
    text = re.sub(r"[ \t]+$", "", text, flags=re.MULTILINE)
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip()


def _strip_unsafe(soup: BeautifulSoup) -> bool:
    changed = False
    for tag in soup.find_all(UNSAFE_TAGS):
        tag.decompose()
        changed = True
    for tag in soup.find_all(True):
        handlers = [attr for attr in tag.attrs if attr.lower().startswith("on")]
        for attr in handlers:
            del tag[attr]
            changed = True
    return changed


def sanitize_content(content: str) -> str:
    """Remove script and style elements and every ``on*`` event handler.

    Fenced code blocks are left alone, and prose with nothing to remove is
    returned unchanged so Markdown that merely mentions ``<tags>`` survives.
    """
    parts = []
    last = 0
    for match in CODE_BLOCK_REGEX.finditer(content):
        parts.append(_sanitize_prose(content[last : match.start()]))
        parts.append(match.group(0))
        last = match.end()
    parts.append(_sanitize_prose(content[last:]))
    return "".join(parts)


def _sanitize_prose(text: str) -> str:
    if "<" not in text:
        return text
    soup = BeautifulSoup(text, "html.parser")
    if not _strip_unsafe(soup):
        return text
    logger.warning("Removed unsafe markup from content")
    return soup.decode(formatter=None)


def preprocess(content: str, content_type: str = "markdown") -> str:
    text = sanitize_content(content)
    if content_type == "html":
        text = html_to_markdown(text)
    return normalize_markdown(text)


def truncate_content(content: str, max_length: int) -> str:
    """Shorten content for a prompt, preferring a paragraph or sentence end.

    A boundary is used only when it keeps at least 80% of ``max_length``;
    otherwise the text is cut hard and marked with ``...``.
    """
    if len(content) <= max_length:
        return content

    head = content[:max_length]
    cut = max(head.rfind("\n\n"), head.rfind(". "), head.rfind(".\n"))
    if cut > max_length * 0.8:
        return head[: cut + 1].rstrip()
    return f"{head}..."


def guess_code_language(code: str) -> str:
    """Best-effort language tag for an untagged code fence."""
    lowered = code.strip().lower()

    if any(token in lowered for token in ("function", "=>", "const", "let")):
        return "typescript" if "interface" in lowered or "type " in lowered else "javascript"
    if any(token in lowered for token in ("def ", "import ", "print(")):
        return "python"
    if any(token in lowered for token in ("<html", "<!doctype", "<div")):
        return "html"
    if "{" in lowered and ":" in lowered and ";" in lowered:
        return "css"
    if (lowered.startswith("{") and lowered.endswith("}")) or (
        lowered.startswith("[") and lowered.endswith("]")
    ):
        return "json"
    if any(token in lowered for token in ("select", "from", "where")):
        return "sql"
    return "text"


def optimize_code_blocks(content: str) -> str:
    """Tag untagged fences and trim blank lines inside every fence."""

    def _rewrite(match: re.Match[str]) -> str:
        lang = match.group(1) or guess_code_language(match.group(2))
        code = match.group(2).strip("\n").replace("\t", "  ")
        return f"```{lang}\n{code}\n```"

    return FENCE_REGEX.sub(_rewrite, content)


def clean_links(content: str) -> str:
    text = re.sub(r"\[\s+([^\]]+?)\s+\]", r"[\1]", content)
    text = re.sub(r"\[([^\]]*)\]\(\s*\)", r"\1", text)
    text = re.sub(r"!\[\]\(([^)]+)\)", r"![image](\1)", text)
    for match in re.finditer(r"\[[^\]]+\]\(\.\.?/[^)]+\)", text):
        logger.warning(f"Relative link found in content: {match.group(0)}")
    return text


def anchor_link(text: str) -> str:
    """GitHub-style anchor for a heading. Non-ASCII letters are kept."""
    anchor = re.sub(r"[^\w\s-]", "", text.lower())
    anchor = re.sub(r"\s+", "-", anchor.strip())
    return re.sub(r"-+", "-", anchor)


def build_table_of_contents(headings: list[Heading]) -> str:
    lines = ["## Table of Contents", ""]
    for heading in headings:
        # H1 is the document title
        if heading.level == 1:
            continue
        indent = "  " * (heading.level - 2)
        lines.append(f"{indent}- [{heading.text}](#{anchor_link(heading.text)})")
    return "\n".join(lines)


def insert_table_of_contents(content: str) -> str:
    """Insert a TOC after the first H1 when there are enough headings."""
    headings = extract_headings(content)
    if len(headings) < TOC_MIN_HEADINGS:
        return content
    if any(marker in content for marker in TOC_HEADINGS):
        return content

    toc = build_table_of_contents(headings)
    first_h1 = FIRST_H1_REGEX.search(content)
    if first_h1:
        index = first_h1.end()
        return f"{content[:index]}\n\n{toc}\n{content[index:]}"
    return f"{toc}\n\n{content}"


def postprocess(content: str, include_table_of_contents: bool = False) -> str:
    text = optimize_code_blocks(content)
    text = clean_links(text)
    if include_table_of_contents:
        text = insert_table_of_contents(text)
    return text.strip()
