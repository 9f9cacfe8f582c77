import re
from types import MappingProxyType


# A token is a double-quoted run or a run of non-quote, non-comma characters,
# and must be followed by optional whitespace and then a comma or end of line.
_TOKEN_PATTERN = re.compile(r'(".*?"|[^",]+)(?=\s*,|\s*$)')


def split_csv_line(line):
    """
    Split one CSV line into trimmed tokens, taking double quotes into account.

    Unterminated quotes never raise: the splitter simply skips the characters
    it cannot tokenise.

    Examples:
        split_csv_line('"Net, income", 42')  -> ['Net, income', '42']
        split_csv_line('Revenue,')           -> ['Revenue']
    """
    return [_strip_quotes(t).strip() for t in _TOKEN_PATTERN.findall(line)]


def _strip_quotes(token):
    # Only one leading and one trailing quote are removed.
    if token.startswith('"'):
        token = token[1:]
    if token.endswith('"'):
        token = token[:-1]
    return token


def parse_csv_to_dict(text):
    """
    Decode the raw text of one source into a read-only {feature: value} mapping.

    Rules:
        - The first line is always treated as a header and discarded.
        - Each following line contributes (first token, second token).
        - Lines with no feature (empty after trimming) are skipped silently.
        - A missing value token means value "" (present but blank).
        - If a feature repeats, the later line wins.

    Args:
        text: Raw CSV text. None is treated as an empty file.

    Returns:
        MappingProxyType mapping feature name to trimmed value string.
    """
    lines = (text or '').strip().split('\n')
    features = {}

    for line in lines[1:]:
        tokens = split_csv_line(line)
        feature = tokens[0] if tokens else ''
        value = tokens[1] if len(tokens) > 1 else ''
        if feature:
            features[feature] = value

    return MappingProxyType(features)
