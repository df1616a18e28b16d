"""Constants shared across the linedoc pipeline."""

# Largest order number a block header may carry (unsigned 16-bit).
MAX_ORDER_NUMBER = 65535

DOCUMENT_SUFFIX = ".md"

SOURCE_LINK_FORMAT = "[SOURCE FILE:](file:///{source_file}) LINE: {source_line}"

# Separators that would let a header value escape its folder.
FORBIDDEN_VALUE_CHARS = ("/", "\\")
FORBIDDEN_VALUES = {".", ".."}

# Directories never worth descending into.
ALWAYS_IGNORE_PATTERNS: set[str] = {
    ".git/",
    ".svn/",
    ".hg/",
    ".bzr/",
}
