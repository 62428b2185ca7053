"""
Template Catalog - canned HTML tools for the simplest requests.

Two rules, evaluated in order:

1. Exact phrase: the folded request equals one of the known phrases
   ("计算器", "生成一个计算器工具", ...).
2. Loose keyword: the folded request contains one of a kind's aliases
   AND is shorter than that kind's length ceiling. The ceiling keeps
   longer, more specific requests that merely mention "table" or
   "calculator" from being answered with a generic template.

Kinds are checked in a fixed priority order; the first hit wins.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Tuple, Union

logger = logging.getLogger("toolgen.services.template_catalog")

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"
FALLBACK_TEMPLATE = "custom_tool"


@dataclass(frozen=True)
class TemplateKind:
    """A tool kind served from a template file."""
    name: str
    template: str
    aliases: Tuple[str, ...]
    # Tunable: loose matches only fire when len(folded request) < max_length
    max_length: int
    title: str


# Priority order for the loose rule.
TEMPLATE_KINDS: Tuple[TemplateKind, ...] = (
    TemplateKind("calculator", "calculator", ("计算器", "calculator"), 20, "Calculator"),
    TemplateKind("table", "table_generator", ("表格生成器", "表格", "table"), 20, "Table Generator"),
    TemplateKind("text_replace", "text_replace", ("文本替换", "replace"), 20, "Text Replace"),
    TemplateKind("json_formatter", "json_formatter", ("json格式化", "json格式", "json formatter"), 25, "JSON Formatter"),
    TemplateKind("data_converter", "data_converter", ("数据转换", "data converter"), 20, "Data Converter"),
)

EXACT_PHRASES: Dict[str, str] = {
    "生成一个计算器工具": "calculator",
    "生成一个表格生成器": "table",
    "生成一个文本替换工具": "text_replace",
    "生成一个json格式化工具": "json_formatter",
    "生成一个数据转换工具": "data_converter",
    "计算器": "calculator",
    "计算器工具": "calculator",
    "表格": "table",
    "表格生成器": "table",
    "表格工具": "table",
    "文本替换": "text_replace",
    "文本替换工具": "text_replace",
    "json格式化": "json_formatter",
    "json格式化工具": "json_formatter",
    "数据转换": "data_converter",
    "数据转换工具": "data_converter",
}


def format_template(template: str, title: str, description: str, placeholder: str) -> str:
    """Fill the placeholders of the generic custom tool template."""
    return (
        template.replace("{title}", title)
        .replace("{description}", description)
        .replace("{placeholder}", placeholder)
    )


class TemplateCatalog:
    """
    Matches requests against the canned templates.

    Usage:
        catalog = TemplateCatalog()
        html = catalog.match("计算器")     # calculator template
        catalog.match("a CRM with invoicing and payroll")   # None
    """

    def __init__(self, template_dir: Union[str, Path] = TEMPLATE_DIR):
        self.template_dir = Path(template_dir)
        self._kinds = {kind.name: kind for kind in TEMPLATE_KINDS}
        self._cache: Dict[str, Optional[str]] = {}

    # ---------------------------------------------------------------------------
    # MATCHING
    # ---------------------------------------------------------------------------

    def match_kind(self, request: str) -> Optional[str]:
        """Return the name of the matching tool kind, or None."""
        folded = (request or "").strip().lower()
        if not folded:
            return None

        if folded in EXACT_PHRASES:
            return EXACT_PHRASES[folded]

        for kind in TEMPLATE_KINDS:
            if len(folded) < kind.max_length and any(alias in folded for alias in kind.aliases):
                return kind.name

        return None

    def match(self, request: str) -> Optional[str]:
        """Return rendered template content for the request, or None."""
        kind_name = self.match_kind(request)
        if kind_name is None:
            return None

        try:
            content = self.render(kind_name, request)
        except OSError as e:
            logger.warning(f"Template '{kind_name}' could not be loaded: {e}")
            return None

        if not content:
            return None

        logger.info(f"Request matched template '{kind_name}'")
        return content

    # ---------------------------------------------------------------------------
    # TEMPLATE STORE
    # ---------------------------------------------------------------------------

    def _load(self, template_name: str) -> Optional[str]:
        if template_name not in self._cache:
            path = self.template_dir / f"{template_name}.html"
            if path.is_file():
                self._cache[template_name] = path.read_text(encoding="utf-8")
            else:
                logger.warning(f"Template file not found: {path}")
                self._cache[template_name] = None
        return self._cache[template_name]

    def render(self, kind_name: str, request: str = "") -> str:
        """
        Render the template for a kind.

        Falls back to the generic custom tool template when the kind's own
        file is missing; returns "" when neither exists.
        """
        kind = self._kinds[kind_name]

        content = self._load(kind.template)
        if content is not None:
            return content

        fallback = self._load(FALLBACK_TEMPLATE)
        if fallback is None:
            logger.error(f"Template '{kind.template}' is missing and so is the fallback template")
            return ""

        return format_template(
            fallback,
            title=kind.title,
            description=request or kind.title,
            placeholder="Enter your input here...",
        )

    def reload(self) -> None:
        """Drop cached template bodies so edited files are picked up."""
        self._cache.clear()
