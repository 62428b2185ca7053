"""
Keyword extraction and artifact naming.

A request is reduced to an ordered list of tokens: runs of CJK ideographs
or runs of ASCII word characters. The same tokenizer names new artifacts
and matches requests against existing ones, which is what lets a repeated
request find the artifact an earlier one produced.

Naming contract:
    <up to 3 tokens joined by "_", max 30 chars>_<YYYYMMDD>_<HHMMSS>.html
"""

import re
from datetime import datetime
from typing import List, Optional

TOKEN_PATTERN = re.compile(r"[\u4e00-\u9fa5]+|[A-Za-z0-9_]+")

# Generic phrases removed before matching; longest alternatives first.
STOPLIST_PATTERN = re.compile(r"生成一个|生成|一个|工具")

NAME_TOKEN_LIMIT = 3
NAME_MAX_LENGTH = 30
DEFAULT_NAME = "tool"
ARTIFACT_EXTENSION = ".html"
TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"


def tokenize(text: str) -> List[str]:
    """Return CJK and word-character runs in order of appearance."""
    return TOKEN_PATTERN.findall(text or "")


def extract_keywords(request: str) -> List[str]:
    """
    Keywords used to match a request against persisted artifact names.

    Stoplist phrases are removed first and single-character tokens are
    dropped, so "生成一个计算器工具" yields ["计算器"].
    """
    cleaned = STOPLIST_PATTERN.sub("", request or "").strip()
    return [token for token in tokenize(cleaned) if len(token) > 1]


def artifact_stem(request: str) -> str:
    """
    Keyword portion of an artifact name.

    Built from the matching keywords, so a repeated request finds the
    artifact it produced.
    """
    tokens = extract_keywords(request)[:NAME_TOKEN_LIMIT]
    name = "_".join(tokens) or DEFAULT_NAME
    return name[:NAME_MAX_LENGTH]


def artifact_filename(request: str, now: Optional[datetime] = None) -> str:
    """
    Build the persisted file name for a request.

    Example:
        >>> artifact_filename("unit converter", datetime(2025, 1, 2, 3, 4, 5))
        'unit_converter_20250102_030405.html'
    """
    now = now or datetime.now()
    return f"{artifact_stem(request)}_{now.strftime(TIMESTAMP_FORMAT)}{ARTIFACT_EXTENSION}"
