"""
Text transforms applied to a HipChat message before it is put on the wire.

Every stage is a plain function from one string to a new string. The stages
that depend on the message format are returned in application order by
``message_pipeline``; each protocol encoder is applied once, last.
"""

import re
import string

BREAK_TAG = '<br />'

# A URL is a known scheme followed by at least one character up to a space or
# newline. URLs sitting directly inside an href or src attribute are already markup.
URL_PATTERN = re.compile(
    r"""(?<!href=")(?<!href=')(?<! src=")(?<! src=')"""
    r"""((?:https?|ftp|mailto)://[^ \n]+)"""
)
ANCHOR_TEMPLATE = r'<a href="\1">\1</a>'

UNRESERVED_BYTES = frozenset((string.ascii_letters + string.digits).encode('ascii'))


def newlines_to_breaks(text):
    """
    Replace each line feed with an HTML line break.
    """
    return text.replace('\n', BREAK_TAG)


def linkify(text):
    """
    Wrap bare URLs in anchor tags whose target and text are the URL itself.
    """
    return URL_PATTERN.sub(ANCHOR_TEMPLATE, text)


def v1_encode(text):
    """
    Percent-encode every byte of the UTF-8 text that is not an ASCII letter or digit.
    Undecodable input bytes carried as surrogate escapes are restored as-is.

    Unlike urllib.parse.quote, nothing else is left alone: "-", "_", "." and "~"
    are encoded too.
    """
    return ''.join(
        chr(byte) if byte in UNRESERVED_BYTES else '%{:02X}'.format(byte)
        for byte in text.encode('utf-8', 'surrogateescape')
    )


def v2_escape(text):
    """
    Escape backslashes, then double quotes, for embedding in a JSON string literal.
    """
    return text.replace('\\', '\\\\').replace('"', '\\"')


def message_pipeline(message_format):
    """
    Return the format-dependent stages, in the order they must be applied.

    Arguments:
        message_format (str): "html" or "text".

    Returns:
        list(function)
    """
    stages = []
    if message_format == 'html':
        stages.append(newlines_to_breaks)
    stages.append(linkify)
    return stages


def transform_message(text, message_format):
    for stage in message_pipeline(message_format):
        text = stage(text)
    return text
