"""
Typographic ("curly") quotes for rendered prose.

Works on the markdown-it token stream, one token at a time, so code stays
verbatim: only ``text`` tokens outside code blocks are rewritten.
"""

# Token types whose text must never be touched.
VERBATIM_TYPES = {"fence", "code_block"}
VERBATIM_TAGS = {"pre", "code"}


def convert_quotes_to_curly(original_text):
    """
    Replace straight quotes with directional ones.

    A quote preceded by whitespace opens, anything else closes. The start
    of the text counts as whitespace.
    """
    preceded_by_whitespace = True
    converted = []

    for char in original_text:
        if char == "'":
            converted.append("‘" if preceded_by_whitespace else "’")
        elif char == '"':
            converted.append("“" if preceded_by_whitespace else "”")
        else:
            converted.append(char)

        preceded_by_whitespace = char.isspace()

    return "".join(converted)


class QuoteConverter:
    """
    Per-chapter quote converter.

    Build a new one for every chapter; ``convert_text`` tracks whether we
    are inside a verbatim block and must not leak between chapters.
    """

    def __init__(self, enabled):
        self.enabled = enabled
        self.convert_text = True

    def convert(self, token):
        if not self.enabled:
            return token

        if token.type in VERBATIM_TYPES or token.tag in VERBATIM_TAGS:
            if token.nesting == 1:
                self.convert_text = False
            elif token.nesting == -1:
                self.convert_text = True
            return token

        # inline containers, and images whose children are the alt text
        if token.children:
            return token.copy(children=[self.convert(child) for child in token.children])

        if token.type == "text" and self.convert_text:
            return token.copy(content=convert_quotes_to_curly(token.content))

        return token
